"""
Web Layer.

Fetches the source page and pulls image references out of its markup.
"""

from .page_fetcher import PageFetcher, extract_references

__all__ = ["PageFetcher", "extract_references"]
