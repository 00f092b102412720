"""
Handles the low-level downloading of image files over HTTP, streaming each
body to a temporary file that is only moved into place once complete.
"""

import asyncio
import logging
import os
import uuid
from collections.abc import Callable
from pathlib import Path

import aiofiles
import aiohttp

from img_fetcher.models.config import FetchConfig
from img_fetcher.models.target import FetchOutcome, ResolvedTarget

log = logging.getLogger(__name__)

# Called with (bytes loaded so far, total bytes or None when the server sent no length)
ProgressCallback = Callable[[int, int | None], None]

PART_SUFFIX = ".part"


def create_session(config: FetchConfig) -> aiohttp.ClientSession:
    """
    Creates the HTTP session shared by the page fetch and every image fetch of
    a run. Connections per host are capped at the worker count.
    """
    connector = aiohttp.TCPConnector(
        limit=config.max_workers * 2,
        limit_per_host=config.max_workers,
        ttl_dns_cache=600,
        keepalive_timeout=30,
        enable_cleanup_closed=True,
    )
    timeout = aiohttp.ClientTimeout(
        total=None, sock_connect=min(15.0, config.timeout), sock_read=config.timeout
    )
    log.debug(f"Created HTTP session with limit_per_host={config.max_workers}")
    return aiohttp.ClientSession(
        connector=connector,
        timeout=timeout,
        headers={"User-Agent": config.user_agent},
    )


def part_path_for(destination: Path) -> Path:
    """
    Unique hidden path an in-progress download is written to, next to its
    destination. Never derived from the image name.
    """
    return destination.with_name(f".{uuid.uuid4().hex}{PART_SUFFIX}")


class ImageDownloader:
    """Retrieves one image per call. Failures are returned, never raised."""

    CHUNK_SIZE = 65536  # 64 KB

    def __init__(self, session: aiohttp.ClientSession, chunk_size: int = CHUNK_SIZE):
        self.session = session
        self.chunk_size = chunk_size

    async def fetch(
        self,
        target: ResolvedTarget,
        destination: Path,
        on_progress: ProgressCallback | None = None,
    ) -> FetchOutcome:
        """
        Downloads ``target`` to ``destination``.

        The body is streamed to a hidden ``.part`` file and renamed onto
        ``destination`` only after the full transfer, so a failed or
        cancelled fetch never leaves a truncated file behind. The parent
        directory must already exist.
        """
        temp_path = part_path_for(destination)
        try:
            async with self.session.get(target.url, allow_redirects=True) as response:
                response.raise_for_status()
                total = response.content_length

                bytes_downloaded = 0
                async with aiofiles.open(temp_path, "wb") as f:
                    async for chunk in response.content.iter_chunked(self.chunk_size):
                        await f.write(chunk)
                        bytes_downloaded += len(chunk)
                        if on_progress:
                            on_progress(bytes_downloaded, total)

            await asyncio.to_thread(os.replace, temp_path, destination)
            log.debug(f"Saved '{target.url}' to '{destination}' ({bytes_downloaded} B)")
            return FetchOutcome.success(bytes_downloaded)
        except aiohttp.ClientResponseError as e:
            return FetchOutcome.failed(f"HTTP {e.status} {e.message}".strip())
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            return FetchOutcome.failed(str(e) or type(e).__name__)
        except OSError as e:
            return FetchOutcome.failed(f"Write error: {e}")
        finally:
            try:
                temp_path.unlink(missing_ok=True)
            except OSError as e:
                log.debug(f"Could not remove temporary file '{temp_path}': {e}")
