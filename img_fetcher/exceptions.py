"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class ImgFetcherError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(ImgFetcherError):
    """Raised for issues related to configuration loading or validation."""


class ResolveError(ImgFetcherError):
    """
    Raised when a raw image reference cannot be turned into a fetchable URL.
    Counted as a failed item; never aborts a run.
    """


class FatalError(ImgFetcherError):
    """Base class for errors that abort a whole run. No tally is produced."""


class DocumentFetchError(FatalError):
    """Raised when the source page cannot be retrieved."""


class OutputDirectoryError(FatalError):
    """Raised when the output directory cannot be created."""
