"""Command line interface for playlist_uploader package."""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import httpx
from rich.logging import RichHandler

from . import __version__
from .cli_progress import (
    BatchProgressDisplay,
    render_configuration_summary,
    render_playlist_result,
    render_playlists,
)
from .errors import BatchIngestError, UploaderError
from .models import FailurePolicy, UploadConfig
from .orchestrator import PlaylistUploader
from .orchestrator.file_collector import FileCollector
from .services.api_client import DEFAULT_API_URL

logger = logging.getLogger(__name__)


class CLIError(RuntimeError):
    """Raised when CLI validation/execution fails."""


def _setup_logging(debug: bool, silent: bool, log_level: Optional[str]) -> str:
    """
    Configure logging.

    Default behavior is silent unless --debug or --log-level is provided.
    Returns a string describing effective mode.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    logging.disable(logging.NOTSET)

    if silent or (not debug and not log_level):
        logging.disable(logging.CRITICAL)
        root_logger.setLevel(logging.CRITICAL + 1)
        return "silent"

    if debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, log_level.upper(), logging.INFO)

    handler = RichHandler(
        rich_tracebacks=True,
        markup=False,
        show_time=False,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    return logging.getLevelName(level)


# Only the settings this CLI reads are taken from an env file.
ENV_KEYS = frozenset({"YOTO_ACCESS_TOKEN", "YOTO_API_URL", "LOG_LEVEL"})


def _unquote(value: str) -> str:
    if len(value) > 1 and value[0] in "'\"" and value.endswith(value[0]):
        return value[1:-1]
    return value


def _parse_env_line(raw_line: str) -> Optional[Tuple[str, str]]:
    line = raw_line.strip()
    if line.startswith("#") or "=" not in line:
        return None
    key, _, value = line.partition("=")
    key = key.strip()
    if key.startswith("export "):
        key = key[len("export "):].strip()
    return key, _unquote(value.strip())


def _load_env_file(path: Path, override: bool = False) -> None:
    """Export YOTO_ACCESS_TOKEN, YOTO_API_URL and LOG_LEVEL from a dotenv file."""
    if not path.is_file():
        reason = "not found" if not path.exists() else "is not a file"
        raise CLIError(f"env file {reason}: {path}")
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise CLIError(f"could not read env file {path}: {exc}") from exc

    for pair in filter(None, map(_parse_env_line, lines)):
        key, value = pair
        if key not in ENV_KEYS:
            logger.debug("Ignoring %s from %s", key, path)
            continue
        if override or key not in os.environ:
            os.environ[key] = value


def _default_env_file() -> Optional[Path]:
    candidate = Path.cwd() / ".env"
    return candidate if candidate.is_file() else None


def _build_config(args: argparse.Namespace) -> UploadConfig:
    if args.concurrency < 1:
        raise CLIError("--concurrency must be at least 1")
    if args.poll_attempts < 1:
        raise CLIError("--poll-attempts must be at least 1")
    return UploadConfig(
        poll_interval=args.poll_interval,
        poll_attempts=args.poll_attempts,
        failure_policy=FailurePolicy.CONTINUE if args.continue_on_error else FailurePolicy.ABORT,
        concurrency=args.concurrency,
    )


def _collect_sources(paths: Sequence[Path]) -> List[Path]:
    try:
        files = FileCollector.expand([Path(p).expanduser() for p in paths])
    except FileNotFoundError as exc:
        raise CLIError(str(exc)) from exc
    if not files:
        raise CLIError("no audio files found in the given paths")
    return files


async def _run_command(args: argparse.Namespace, token: str, api_url: str) -> int:
    config = _build_config(args) if args.command != "list" else UploadConfig()

    async with PlaylistUploader(token, api_url=api_url, config=config) as uploader:
        if args.command == "list":
            render_playlists(await uploader.list_playlists(show_deleted=args.show_deleted))
            return 0

        files = _collect_sources(args.paths)
        display = BatchProgressDisplay()
        display.start(len(files))
        try:
            if args.command == "create":
                result = await uploader.create_playlist(
                    files,
                    title=args.title,
                    icon=args.icon,
                    cover_image_l=args.cover_url,
                    accept_partial=args.accept_partial,
                    progress_callback=display.get_callback(),
                )
                action = "Created"
            else:
                result = await uploader.append_to_playlist(
                    args.card_id,
                    files,
                    title=args.title,
                    icon=args.icon,
                    accept_partial=args.accept_partial,
                    progress_callback=display.get_callback(),
                )
                action = "Updated"
        except BatchIngestError as exc:
            display.render_batch(exc.batch)
            raise CLIError(
                "batch incomplete; nothing was written (use --accept-partial to keep the rest)"
            ) from exc
        finally:
            display.stop()

        display.render_batch(result.batch)
        render_playlist_result(result, action)
        return 0 if result.batch.success else 1


def _add_common_upload_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("paths", nargs="+", type=Path, help="Audio files or folders")
    parser.add_argument("-t", "--title", default=None, help="Playlist title")
    parser.add_argument(
        "-i",
        "--icon",
        default=None,
        help="Display icon: https URL, yoto:#<mediaId>, or bare mediaId",
    )
    parser.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Skip files that fail instead of aborting the batch",
    )
    parser.add_argument(
        "--accept-partial",
        action="store_true",
        help="Write the playlist even if some files failed",
    )
    parser.add_argument(
        "-j",
        "--concurrency",
        type=int,
        default=1,
        help="Files ingested at once (default 1, sequential)",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=1.0,
        help="Seconds between transcode status checks (default 1.0)",
    )
    parser.add_argument(
        "--poll-attempts",
        type=int,
        default=120,
        help="Transcode status checks before giving up (default 120)",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="playlist-up",
        description="Upload audio files and create or extend a playlist.",
    )
    parser.add_argument(
        "--api-url",
        default=None,
        help=f"Platform API URL (default from YOTO_API_URL or {DEFAULT_API_URL})",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load environment variables from this .env file",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logs")
    parser.add_argument("--silent", action="store_true", help="Only print errors")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Explicit log level (DEBUG/INFO/WARNING/ERROR)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"playlist-up {__version__}",
    )

    sub = parser.add_subparsers(dest="command")

    create = sub.add_parser("create", help="Create a new playlist from files")
    _add_common_upload_args(create)
    create.add_argument("--cover-url", default=None, help="Cover image URL (imageL)")

    append = sub.add_parser("append", help="Append files to an existing playlist")
    append.add_argument("card_id", help="Existing playlist cardId")
    _add_common_upload_args(append)

    listing = sub.add_parser("list", help="List your playlists")
    listing.add_argument("--show-deleted", action="store_true", help="Include deleted playlists")

    return parser


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    used_env_file = args.env_file or _default_env_file()
    if used_env_file is not None:
        try:
            _load_env_file(Path(used_env_file))
        except CLIError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1

    effective_log_mode = _setup_logging(
        debug=args.debug,
        silent=args.silent,
        log_level=args.log_level or os.getenv("LOG_LEVEL"),
    )

    if args.command is None:
        parser.print_help()
        return 0

    token = os.getenv("YOTO_ACCESS_TOKEN")
    if not token:
        print("ERROR: YOTO_ACCESS_TOKEN environment variable is not set", file=sys.stderr)
        return 1

    api_url = args.api_url or os.getenv("YOTO_API_URL") or DEFAULT_API_URL

    summary = {
        "Command": args.command,
        "API": api_url,
        "Env File": str(used_env_file) if used_env_file else "-",
        "Logging": effective_log_mode,
    }
    if args.command != "list":
        summary.update(
            {
                "Sources": ", ".join(str(p) for p in args.paths),
                "Card": getattr(args, "card_id", None) or "(new)",
                "On Error": "continue" if args.continue_on_error else "abort",
                "Concurrency": args.concurrency,
                "Poll": f"{args.poll_attempts} x {args.poll_interval}s",
            }
        )
    render_configuration_summary(summary)

    try:
        return asyncio.run(_run_command(args, token, api_url))
    except (CLIError, UploaderError, httpx.HTTPError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Cancelled.", file=sys.stderr)
        return 130


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
