"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from urllib.parse import urlsplit

import soupsieve
from pydantic import BaseModel, Field, field_validator

DEFAULT_USER_AGENT = "img-fetcher (+https://pypi.org/project/img-fetcher/)"


class FetchConfig(BaseModel):
    """A validated configuration model for a single run."""

    # Source
    source_url: str
    selector: str
    attribute: str = "src"

    # Output
    output_dir: str = "."
    max_items: int | None = None

    # Scheduling
    max_workers: int = 8
    sequential: bool = False

    # Network
    timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT

    # Internal fields not loaded from INI file
    config_path: str = Field("", repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("source_url")
    @classmethod
    def validate_source_url(cls, v: str) -> str:
        """The page must be reachable over HTTP(S)."""
        parts = urlsplit(v)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"Source URL must be an absolute http(s) URL: {v!r}")
        return v

    @field_validator("selector")
    @classmethod
    def validate_selector(cls, v: str) -> str:
        if not v:
            raise ValueError("Selector cannot be empty.")
        try:
            soupsieve.compile(v)
        except soupsieve.SelectorSyntaxError as e:
            raise ValueError(f"Invalid CSS selector {v!r}: {e}") from e
        return v

    @field_validator("attribute")
    @classmethod
    def validate_attribute(cls, v: str) -> str:
        if not v:
            raise ValueError("Attribute name cannot be empty.")
        return v

    @field_validator("max_items")
    @classmethod
    def validate_max_items(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError("Max items must be a positive number.")
        return v

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        """Ensures a reasonable number of workers."""
        if v < 1 or v > 32:
            raise ValueError("Max workers must be between 1 and 32.")
        return v

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Timeout must be greater than zero.")
        return v

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        run_fields = {"source_url", "selector", "max_items", "config_path"}
        return {key for key in cls.model_fields if key not in run_fields}
