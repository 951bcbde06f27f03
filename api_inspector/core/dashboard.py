"""Rich terminal progress for load test runs."""

from __future__ import annotations

from typing import Any, Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from .observers import LoadTestObserver


def console_supports_live(console: Console) -> bool:
    """Return True when live updates should be rendered for this console."""
    return bool(getattr(console, "is_terminal", False))


class LiveProgressObserver(LoadTestObserver):
    """Bridges runner events into a Rich progress bar.

    Use as a context manager around the run so the bar is always stopped.
    """

    def __init__(self, console: Optional[Console] = None, description: str = "Load test") -> None:
        self.console = console or Console()
        self.description = description
        self.progress = Progress(
            TextColumn("[bold cyan]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("[green]{task.fields[ok]} ok[/green] [red]{task.fields[failed]} failed[/red]"),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        )
        self._task: Optional[TaskID] = None

    def __enter__(self) -> "LiveProgressObserver":
        self.progress.start()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.progress.stop()

    def on_run_start(self, **kwargs: Any) -> None:
        total = sum(kwargs.get("batch_sizes") or [])
        config = kwargs.get("config") or {}
        label = f"{self.description} {config.get('method', '')} {config.get('endpoint', '')}".strip()
        self._task = self.progress.add_task(label, total=total or None, ok=0, failed=0)

    def on_batch_complete(self, **kwargs: Any) -> None:
        if self._task is None:
            return
        progress = kwargs.get("progress") or {}
        self.progress.update(
            self._task,
            completed=progress.get("completed", 0),
            ok=progress.get("successCount", 0),
            failed=progress.get("errorCount", 0),
        )

    def on_run_error(self, **kwargs: Any) -> None:
        self.console.print(f"[red]Load test could not run:[/red] {kwargs.get('error')}")
