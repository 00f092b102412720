"""
Dataclass for tracking the counts of a single download run.
"""

import asyncio
from dataclasses import dataclass, field

from img_fetcher.models.target import FetchOutcome, OutcomeStatus


@dataclass
class RunTally:
    """Tracks downloaded/skipped/failed counts for one run."""

    downloaded: int = 0
    skipped: int = 0
    failed: int = 0
    total_size_downloaded: int = 0
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def processed(self) -> int:
        return self.downloaded + self.skipped + self.failed

    async def record(self, outcome: FetchOutcome) -> None:
        """Folds a settled outcome into the counts. Safe to call from concurrent tasks."""
        async with self._lock:
            if outcome.status is OutcomeStatus.SUCCESS:
                self.downloaded += 1
                self.total_size_downloaded += outcome.bytes_written
            elif outcome.status is OutcomeStatus.ALREADY_EXISTS:
                self.skipped += 1
            else:
                self.failed += 1

    async def record_skip(self) -> None:
        async with self._lock:
            self.skipped += 1

    async def record_resolve_failure(self) -> None:
        async with self._lock:
            self.failed += 1

    def summary_line(self) -> str:
        if self.downloaded > 0:
            plural = "s" if self.downloaded > 1 else ""
            head = f"Successfully downloaded {self.downloaded} image{plural}."
        else:
            head = "No images were downloaded."
        return f"{head} Skipped: {self.skipped}, failed: {self.failed}."
