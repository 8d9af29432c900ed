"""
Batch upload handler - sequences the per-file ingest pipeline over a selection.

Flow:
1. Pre-flight dedup by (name, size, mtime)
2. Ingest each file: hash → negotiate → transfer if needed → poll
3. Report progress after every file
4. Post-flight dedup by transcoded content identifier

Files run strictly one at a time unless config.concurrency > 1.
"""
import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..errors import TranscodeCancelled
from ..models import (
    BatchResult,
    FailurePolicy,
    IngestFailure,
    IngestResult,
    LocalAudioFile,
    UploadConfig,
)
from ..services.hasher import content_identifier
from ..use_cases.deduplication import dedupe_by_content, dedupe_files
from ..use_cases.upload import IngestFileUseCase

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], Any]


async def _notify(progress_callback: Optional[ProgressCallback], completed: int, total: int) -> None:
    if progress_callback is None:
        return
    try:
        outcome = progress_callback(completed, total)
        if inspect.isawaitable(outcome):
            await outcome
    except Exception as e:
        logger.error("Error in progress callback: %s", e)


class BatchUploadHandler:
    """
    Runs a batch of files through IngestFileUseCase.

    Accumulators live inside each run() call, so one handler can serve
    several batches at once.
    """

    def __init__(
        self,
        platform: Any,
        transfer_client: Any,
        config: Optional[UploadConfig] = None,
        ingest: Optional[IngestFileUseCase] = None,
    ):
        self._platform = platform
        self._transfer = transfer_client
        self._config = config or UploadConfig()
        self._ingest = ingest or IngestFileUseCase()

    async def run(
        self,
        files: Sequence[LocalAudioFile],
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> BatchResult:
        unique = dedupe_files(files)
        total = len(unique)
        logger.info("Batch started: %d file(s) (%d selected)", total, len(files))

        if self._config.concurrency > 1 and total > 1:
            batch = await self._run_pooled(unique, progress_callback, cancel_event)
        else:
            batch = await self._run_sequential(unique, progress_callback, cancel_event)

        logger.info(
            "Batch finished: %d ok, %d failed, cancelled=%s",
            len(batch.results), len(batch.failures), batch.cancelled,
        )
        return batch

    def _should_abort(self) -> bool:
        return self._config.failure_policy is FailurePolicy.ABORT

    async def _run_sequential(
        self,
        files: List[LocalAudioFile],
        progress_callback: Optional[ProgressCallback],
        cancel_event: Optional[asyncio.Event],
    ) -> BatchResult:
        total = len(files)
        results: List[IngestResult] = []
        failures: List[IngestFailure] = []
        cancelled = False
        completed = 0

        for file in files:
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                break

            try:
                result = await self._ingest.execute(
                    self._platform, self._transfer, file, self._config, cancel_event
                )
            except TranscodeCancelled:
                logger.info("Batch cancelled while polling %s", file.name)
                cancelled = True
                break
            except Exception as exc:
                failures.append(IngestFailure(file=file, error=exc))
                if self._should_abort():
                    logger.error("Ingest failed for %s, aborting batch: %s", file.name, exc)
                    break
                logger.warning("Ingest failed for %s, skipping: %s", file.name, exc)
            else:
                results.append(result)

            completed += 1
            await _notify(progress_callback, completed, total)

        return BatchResult(
            results=dedupe_by_content(results),
            total=total,
            failures=failures,
            cancelled=cancelled,
        )

    async def _run_pooled(
        self,
        files: List[LocalAudioFile],
        progress_callback: Optional[ProgressCallback],
        cancel_event: Optional[asyncio.Event],
    ) -> BatchResult:
        """
        Bounded-concurrency variant.

        Output keeps selection order. Files with identical bytes in flight at
        the same time are uploaded once; the rest reuse that descriptor.
        Under ABORT, files not yet started are skipped and files still in
        flight when the failure lands are discarded, so only results that
        completed before the failure are returned.
        """
        total = len(files)
        semaphore = asyncio.Semaphore(self._config.concurrency)
        lock = asyncio.Lock()
        stop = asyncio.Event()

        slots: List[Optional[IngestResult]] = [None] * total
        failed: Dict[int, IngestFailure] = {}
        owners: Dict[str, asyncio.Event] = {}
        outcomes: Dict[str, Any] = {}
        state = {"completed": 0, "cancelled": False, "aborted": False}

        async def worker(index: int, file: LocalAudioFile) -> None:
            async with semaphore:
                if stop.is_set() or (cancel_event is not None and cancel_event.is_set()):
                    if cancel_event is not None and cancel_event.is_set():
                        state["cancelled"] = True
                    return

                try:
                    data = await file.read()
                    sha256 = content_identifier(data)

                    async with lock:
                        done = owners.get(sha256)
                        is_owner = done is None
                        if is_owner:
                            done = owners[sha256] = asyncio.Event()

                    if is_owner:
                        try:
                            result = await self._ingest.execute(
                                self._platform, self._transfer, file, self._config,
                                cancel_event, data=data,
                            )
                            outcomes[sha256] = result
                        except BaseException as exc:
                            outcomes[sha256] = exc
                            raise
                        finally:
                            done.set()
                    else:
                        await done.wait()
                        outcome = outcomes[sha256]
                        if isinstance(outcome, BaseException):
                            raise outcome
                        logger.debug("%s shares content with an in-flight upload", file.name)
                        result = IngestResult(
                            file=file,
                            descriptor=outcome.descriptor,
                            content_identifier=sha256,
                            transferred=False,
                        )
                except TranscodeCancelled:
                    state["cancelled"] = True
                    stop.set()
                    return
                except Exception as exc:
                    failed[index] = IngestFailure(file=file, error=exc)
                    if self._should_abort():
                        logger.error("Ingest failed for %s, aborting batch: %s", file.name, exc)
                        state["aborted"] = True
                        stop.set()
                        return
                    logger.warning("Ingest failed for %s, skipping: %s", file.name, exc)
                else:
                    if state["aborted"]:
                        logger.warning("Discarding %s: finished after the batch was aborted", file.name)
                        return
                    slots[index] = result

                async with lock:
                    state["completed"] += 1
                    await _notify(progress_callback, state["completed"], total)

        await asyncio.gather(*(worker(i, f) for i, f in enumerate(files)))

        return BatchResult(
            results=dedupe_by_content(r for r in slots if r is not None),
            total=total,
            failures=[failed[i] for i in sorted(failed)],
            cancelled=state["cancelled"],
        )
