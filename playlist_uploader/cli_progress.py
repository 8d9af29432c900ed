"""Console rendering and progress helpers for the playlist-up CLI."""
from __future__ import annotations

import time
from typing import Any, Dict, Iterable, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

console = Console()


def _echo(message: str) -> None:
    console.print(message)


def _human_size(value: float) -> str:
    size = float(max(value or 0, 0))
    units = ["B", "KB", "MB", "GB", "TB"]
    unit_idx = 0
    while size >= 1024.0 and unit_idx < len(units) - 1:
        size /= 1024.0
        unit_idx += 1
    if unit_idx == 0:
        return f"{int(size)} {units[unit_idx]}"
    return f"{size:.2f} {units[unit_idx]}"


def _human_duration(seconds: float) -> str:
    total = int(seconds or 0)
    minutes, secs = divmod(total, 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def render_configuration_summary(config: Dict[str, Any]) -> None:
    """Render startup configuration summary."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column(style="white")

    for key, value in config.items():
        rendered = "-" if value is None else str(value)
        table.add_row(key, rendered)

    panel = Panel(
        table,
        title="[bold green]playlist-up[/bold green]",
        subtitle="[dim]playlist uploader CLI[/dim]",
        border_style="blue",
    )
    console.print(panel)


def render_playlists(playlists: Iterable[Dict[str, Optional[str]]]) -> None:
    table = Table(title="My playlists", border_style="blue")
    table.add_column("cardId", style="bold cyan")
    table.add_column("title")
    for item in playlists:
        table.add_row(str(item.get("cardId") or "-"), str(item.get("title") or ""))
    console.print(table)


class BatchProgressDisplay:
    """Progress bar driven by the batch (completed, total) callback."""

    def __init__(self, label: str = "Uploading"):
        self._label = label
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold cyan]{task.fields[label]}", justify="left"),
            BarColumn(bar_width=42),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            expand=False,
            console=console,
        )
        self._task_id: Optional[TaskID] = None
        self._started_at = 0.0

    def start(self, total: Optional[int] = None) -> None:
        if self._task_id is not None:
            return
        self._started_at = time.monotonic()
        self._progress.start()
        self._task_id = self._progress.add_task("batch", label=self._label, total=total)

    def update(self, completed: int, total: int) -> None:
        if self._task_id is None:
            self.start(total)
        self._progress.update(self._task_id, completed=completed, total=total)

    def stop(self) -> None:
        if self._task_id is None:
            return
        self._progress.stop()
        self._task_id = None

    def get_callback(self):
        def callback(completed: int, total: int) -> None:
            self.update(completed, total)

        return callback

    def render_batch(self, batch: Any) -> None:
        """Print one line per failure, then a totals line."""
        self.stop()
        for failure in getattr(batch, "failures", []):
            _echo(f"[red]Failed:[/red] {failure.file.name} - {failure.error}")
        if getattr(batch, "cancelled", False):
            _echo("[yellow]Cancelled[/yellow] before the batch finished")
        elapsed = time.monotonic() - self._started_at if self._started_at else 0.0
        _echo(
            f"[bold]Ingested[/bold] {len(batch.results)}/{batch.total} file(s) "
            f"in {elapsed:.1f}s"
        )


def render_playlist_result(result: Any, action: str) -> None:
    """Summarise a create/append outcome."""
    duration = sum(track.duration or 0 for track in result.content.tracks)
    size = sum(track.byte_size or 0 for track in result.content.tracks)
    _echo(
        f"[green]{action}[/green] playlist [bold]{result.title}[/bold] "
        f"(cardId: {result.card_id or 'see response'}) - "
        f"{result.chapter_count} chapter(s), +{result.added_chapters} new, "
        f"{_human_duration(duration)}, {_human_size(size)}"
    )
