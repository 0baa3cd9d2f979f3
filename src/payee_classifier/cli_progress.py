"""Rich progress bar for CLI classification runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import override

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
)

from .protocols import ProgressReporter


def _build_progress(console: Console | None) -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[bold]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TextColumn("payees"),
        TaskProgressColumn(),
        TimeRemainingColumn(),
        console=console,
    )


@dataclass
class CliProgressReporter(ProgressReporter):
    """Show a run over payee names as a single rich progress bar.

    The bar is built on `start` and torn down on `finish`. `update` sets it to
    the reported count; updates outside a run are ignored.
    """

    console: Console | None = None
    _progress: Progress | None = field(default=None, init=False, repr=False)
    _task_id: TaskID | None = field(default=None, init=False, repr=False)

    @property
    def completed(self) -> int:
        """Payees done in the current run; 0 when no run is in progress."""
        if self._progress is None or self._task_id is None:
            return 0
        return int(self._progress.tasks[0].completed)

    @override
    def start(self, label: str, total: int | None) -> None:
        self.finish()
        self._progress = _build_progress(self.console)
        self._task_id = self._progress.add_task(label, total=total)
        self._progress.start()

    @override
    def update(self, current: int, total: int, percentage: int) -> None:
        if self._progress is None or self._task_id is None:
            return
        self._progress.update(self._task_id, completed=current, total=total)

    @override
    def finish(self) -> None:
        if self._progress is None:
            return
        self._progress.stop()
        self._progress = None
        self._task_id = None
