"""
Value types passed between the resolver, the orchestrator and the downloader.
"""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class ResolvedTarget:
    """An absolute image URL and the short name it is deduplicated and saved by."""

    url: str
    name: str


class OutcomeStatus(Enum):
    SUCCESS = "success"
    ALREADY_EXISTS = "already_exists"
    FAILED = "failed"


@dataclass(frozen=True)
class FetchOutcome:
    """Terminal result of a single image retrieval."""

    status: OutcomeStatus
    reason: str | None = None
    bytes_written: int = 0

    @classmethod
    def success(cls, bytes_written: int) -> "FetchOutcome":
        return cls(OutcomeStatus.SUCCESS, bytes_written=bytes_written)

    @classmethod
    def already_exists(cls) -> "FetchOutcome":
        return cls(OutcomeStatus.ALREADY_EXISTS)

    @classmethod
    def failed(cls, reason: str) -> "FetchOutcome":
        return cls(OutcomeStatus.FAILED, reason=reason)

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS
