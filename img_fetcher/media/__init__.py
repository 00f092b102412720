"""
Media Processing Layer.

This package is responsible for retrieving image files over HTTP and
saving them to disk.
"""

from .downloader import ImageDownloader, create_session

__all__ = ["ImageDownloader", "create_session"]
