"""
Manages Rich progress bars for concurrent image downloads: one bar per image
in flight plus an overall bar counting processed references.
"""

import asyncio

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

from img_fetcher.models.target import FetchOutcome, ResolvedTarget
from img_fetcher.utils.formatting import shorten


class ProgressManager:
    """
    Renders per-image transfer progress. Each image gets its own task ID, so
    progress from concurrent downloads never lands on another image's bar.
    """

    def __init__(self, console: Console, enabled: bool = True):
        self.console = console
        self.enabled = enabled

        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}", justify="left"),
            BarColumn(bar_width=30),
            "[progress.percentage]{task.percentage:>3.0f}%",
            "•",
            DownloadColumn(),
            "•",
            TransferSpeedColumn(),
            "•",
            TimeRemainingColumn(),
            console=console,
            transient=False,
            disable=not enabled,
        )

        self._stats = {
            "total": 0,
            "completed": 0,
            "failed": 0,
            "skipped": 0,
            "active_downloads": 0,
            "peak_concurrent": 0,
        }
        self._overall_task_id: TaskID | None = None
        self._active_tasks: dict[TaskID, ResolvedTarget] = {}

    def initialize_session(self, total: int):
        self._stats["total"] = total
        if self.enabled:
            self._overall_task_id = self.progress.add_task(
                "[bold blue]Overall Progress", total=total or None
            )

    def start_target(self, target: ResolvedTarget) -> TaskID:
        description = escape(shorten(target.name, 40, keep_end=True))
        task_id = self.progress.add_task(description, total=None, start=True)
        self._active_tasks[task_id] = target
        self._stats["active_downloads"] = len(self._active_tasks)
        self._stats["peak_concurrent"] = max(
            self._stats["peak_concurrent"], self._stats["active_downloads"]
        )
        return task_id

    def advance_target(self, task_id: TaskID, loaded: int, total: int | None):
        """A ``None`` total leaves the bar indeterminate."""
        if task_id in self._active_tasks:
            self.progress.update(task_id, completed=loaded, total=total)

    def finish_target(self, task_id: TaskID, outcome: FetchOutcome):
        target = self._active_tasks.pop(task_id, None)
        if target is None:
            return
        self.progress.remove_task(task_id)
        self._stats["active_downloads"] = len(self._active_tasks)
        if outcome.ok:
            self._stats["completed"] += 1
            self._advance_overall(f"✓ {target.name}")
        else:
            self._stats["failed"] += 1
            self._advance_overall(f"✗ {target.name}")

    def record_skip(self, name: str):
        self._stats["skipped"] += 1
        self._advance_overall(f"○ {name}")

    def record_failure(self, reference: str):
        self._stats["failed"] += 1
        self._advance_overall(f"✗ {reference}")

    def _advance_overall(self, latest: str):
        """Moves the overall bar and shows the item just processed beside it."""
        if self._overall_task_id is None:
            return
        self.progress.update(
            self._overall_task_id,
            description=(
                f"[bold blue]Overall Progress[/] [dim]{escape(shorten(latest, 42))}[/dim]"
            ),
            completed=(
                self._stats["completed"]
                + self._stats["failed"]
                + self._stats["skipped"]
            ),
        )

    def get_statistics(self) -> dict:
        return self._stats.copy()

    async def __aenter__(self):
        if self.enabled:
            self.progress.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.enabled:
            await asyncio.sleep(0.1)
            self.progress.stop()
