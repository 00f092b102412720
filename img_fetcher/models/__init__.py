"""
Data Models Layer.

This package contains the data structures used throughout the application,
such as configuration, run statistics and download targets.
"""

from .config import FetchConfig
from .stats import RunTally
from .target import FetchOutcome, OutcomeStatus, ResolvedTarget

__all__ = ["FetchConfig", "FetchOutcome", "OutcomeStatus", "ResolvedTarget", "RunTally"]
