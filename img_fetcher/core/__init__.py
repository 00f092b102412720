"""
Core application engine for orchestrating the download process.

The `DownloadManager` drives a run: it resolves each image reference,
claims its name so it is fetched at most once, enforces the item limit and
hands the actual transfers to the `ImageDownloader`.
"""

from .claims import ClaimSet
from .download_manager import DownloadManager, RunState, fetch_images
from .resolver import resolve

__all__ = ["ClaimSet", "DownloadManager", "RunState", "fetch_images", "resolve"]
