"""
Fetches the source HTML page and extracts raw image references from it with
a CSS selector.
"""

import asyncio
import logging

import aiohttp
from bs4 import BeautifulSoup

from img_fetcher.exceptions import DocumentFetchError

log = logging.getLogger(__name__)


class PageFetcher:
    """Retrieves the page whose images are to be downloaded."""

    def __init__(self, session: aiohttp.ClientSession):
        self.session = session

    async def fetch(self, url: str) -> tuple[str, str]:
        """
        Downloads the page at ``url``.

        Returns:
            The decoded HTML and the final URL after redirects, which is the
            base relative references must be resolved against.

        Raises:
            DocumentFetchError: On any network error or non-2xx status.
        """
        log.debug(f"Fetching page: {url}")
        try:
            async with self.session.get(url, allow_redirects=True) as response:
                response.raise_for_status()
                html = await response.text(errors="replace")
                final_url = str(response.url)
        except aiohttp.ClientResponseError as e:
            raise DocumentFetchError(
                f"Could not fetch '{url}': HTTP {e.status} {e.message}".strip()
            ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DocumentFetchError(
                f"Could not fetch '{url}': {e or type(e).__name__}"
            ) from e

        log.debug(f"Fetched page ({len(html)} chars) from {final_url}")
        return html, final_url


def extract_references(html: str, selector: str, attribute: str = "src") -> list[str]:
    """
    Returns the ``attribute`` value of every element matching ``selector``,
    in document order. Elements without the attribute, or with an empty
    value, are left out.
    """
    soup = BeautifulSoup(html, "html.parser")
    references = []
    for element in soup.select(selector):
        value = element.get(attribute)
        if isinstance(value, list):
            # Multi-valued attributes such as class come back as lists
            value = " ".join(value)
        if value and value.strip():
            references.append(value)
    return references
