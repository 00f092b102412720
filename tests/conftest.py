"""
Shared fixtures: a small aiohttp site serving a gallery page and its images.
"""

import asyncio
from collections import Counter

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from img_fetcher.models.config import FetchConfig


class ImageSite:
    """
    In-process web site. Pages and images are registered per test; every
    request is counted so tests can assert what was (not) fetched.
    """

    def __init__(self):
        self.pages: dict[str, str] = {}
        self.images: dict[str, bytes] = {}
        self.redirects: dict[str, str] = {}
        self.errors: dict[str, int] = {}
        self.unsized: set[str] = set()
        self.stalled: set[str] = set()
        self.delay = 0.0
        self.hits: Counter = Counter()
        self.in_flight = 0
        self.peak_in_flight = 0
        self.release = asyncio.Event()
        self.server: TestServer | None = None

    def url(self, path: str) -> str:
        return str(self.server.make_url(path))

    def add_gallery(self, *sources: str, path: str = "/gallery/page.html") -> str:
        """Registers a page with one <img> per source and returns its URL."""
        tags = "\n".join(f'<img class="photo" src="{src}">' for src in sources)
        self.pages[path] = f"<html><body>{tags}</body></html>"
        return self.url(path)

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/{tail:.*}", self.handle)
        return app

    async def handle(self, request: web.Request) -> web.StreamResponse:
        path = request.path
        self.hits[path] += 1

        if path in self.redirects:
            raise web.HTTPFound(self.redirects[path])
        if path in self.errors:
            return web.Response(status=self.errors[path], text="error")
        if path in self.pages:
            return web.Response(text=self.pages[path], content_type="text/html")
        if path not in self.images:
            raise web.HTTPNotFound()

        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            body = self.images[path]
            if path not in self.unsized and path not in self.stalled:
                return web.Response(body=body, content_type="image/png")

            response = web.StreamResponse()
            response.content_type = "image/png"
            if path in self.stalled:
                response.content_length = len(body)
            else:
                response.enable_chunked_encoding()
            await response.prepare(request)
            half = len(body) // 2
            await response.write(body[:half])
            if path in self.stalled:
                await asyncio.wait_for(self.release.wait(), timeout=30)
            try:
                await response.write(body[half:])
                await response.write_eof()
            except ConnectionResetError:
                pass
            return response
        finally:
            self.in_flight -= 1


@pytest_asyncio.fixture
async def site():
    image_site = ImageSite()
    server = TestServer(image_site.make_app())
    await server.start_server()
    image_site.server = server
    yield image_site
    image_site.release.set()
    await server.close()


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / "images"


@pytest.fixture
def make_config(output_dir):
    """Builds a FetchConfig for a page URL with test-friendly defaults."""

    def _make(source_url: str, **overrides) -> FetchConfig:
        settings = {
            "source_url": source_url,
            "selector": "img.photo",
            "output_dir": str(output_dir),
            "timeout": 5.0,
        }
        settings.update(overrides)
        return FetchConfig(**settings)

    return _make


def png_bytes(size: int, seed: int = 0) -> bytes:
    """Deterministic fake image payload of ``size`` bytes."""
    return bytes((seed + i) % 251 for i in range(size))
