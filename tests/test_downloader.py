"""
Tests for ImageDownloader: streaming, progress events, and failure handling.
"""

import asyncio

import pytest
from conftest import png_bytes

from img_fetcher.media.downloader import ImageDownloader, create_session, part_path_for
from img_fetcher.models.config import FetchConfig
from img_fetcher.models.target import OutcomeStatus, ResolvedTarget


@pytest.fixture
def session_config():
    return FetchConfig(
        source_url="http://127.0.0.1/", selector="img", timeout=5.0, max_workers=4
    )


def target_for(site, path: str) -> ResolvedTarget:
    return ResolvedTarget(url=site.url(path), name=path.rsplit("/", 1)[-1])


class TestSuccessfulFetch:
    @pytest.mark.asyncio
    async def test_writes_file_and_reports_size(self, site, session_config, tmp_path):
        body = png_bytes(1000)
        site.images["/img/a.png"] = body
        destination = tmp_path / "a.png"

        async with create_session(session_config) as session:
            outcome = await ImageDownloader(session).fetch(
                target_for(site, "/img/a.png"), destination
            )

        assert outcome.status is OutcomeStatus.SUCCESS
        assert outcome.bytes_written == len(body)
        assert destination.read_bytes() == body
        assert not list(destination.parent.glob("*.part"))

    @pytest.mark.asyncio
    async def test_progress_is_cumulative_with_known_total(
        self, site, session_config, tmp_path
    ):
        body = png_bytes(300_000)
        site.images["/img/big.png"] = body
        events = []

        async with create_session(session_config) as session:
            downloader = ImageDownloader(session, chunk_size=65536)
            outcome = await downloader.fetch(
                target_for(site, "/img/big.png"),
                tmp_path / "big.png",
                lambda loaded, total: events.append((loaded, total)),
            )

        assert outcome.ok
        assert events, "expected at least one progress event"
        loaded_values = [loaded for loaded, _ in events]
        assert loaded_values == sorted(loaded_values)
        assert loaded_values[-1] == len(body)
        assert all(total == len(body) for _, total in events)

    @pytest.mark.asyncio
    async def test_progress_with_unknown_total(self, site, session_config, tmp_path):
        body = png_bytes(5000)
        site.images["/img/chunked.png"] = body
        site.unsized.add("/img/chunked.png")
        events = []

        async with create_session(session_config) as session:
            outcome = await ImageDownloader(session).fetch(
                target_for(site, "/img/chunked.png"),
                tmp_path / "chunked.png",
                lambda loaded, total: events.append((loaded, total)),
            )

        assert outcome.ok
        assert (tmp_path / "chunked.png").read_bytes() == body
        assert events[-1] == (len(body), None)
        assert all(total is None for _, total in events)

    @pytest.mark.asyncio
    async def test_name_at_file_system_limit(self, site, session_config, tmp_path):
        name = "p" * 251 + ".png"
        body = png_bytes(2000)
        site.images[f"/img/{name}"] = body
        destination = tmp_path / name

        async with create_session(session_config) as session:
            outcome = await ImageDownloader(session).fetch(
                target_for(site, f"/img/{name}"), destination
            )

        assert outcome.ok
        assert destination.read_bytes() == body
        assert not list(tmp_path.glob("*.part"))


class TestPartPath:
    def test_is_hidden_short_and_beside_destination(self, tmp_path):
        destination = tmp_path / ("p" * 255)
        temp_path = part_path_for(destination)

        assert temp_path.parent == tmp_path
        assert temp_path.name.startswith(".")
        assert temp_path.name.endswith(".part")
        assert len(temp_path.name) < 64

    def test_never_repeats_or_follows_the_image_name(self, tmp_path):
        first = part_path_for(tmp_path / "a.png")
        second = part_path_for(tmp_path / "a.png")

        assert first != second
        assert first.name != "a.png.part"


class TestFailedFetch:
    @pytest.mark.asyncio
    async def test_http_error_is_returned_not_raised(
        self, site, session_config, tmp_path
    ):
        destination = tmp_path / "missing.png"

        async with create_session(session_config) as session:
            outcome = await ImageDownloader(session).fetch(
                target_for(site, "/img/missing.png"), destination
            )

        assert outcome.status is OutcomeStatus.FAILED
        assert "404" in outcome.reason
        assert not destination.exists()
        assert not list(destination.parent.glob("*.part"))

    @pytest.mark.asyncio
    async def test_server_error(self, site, session_config, tmp_path):
        site.errors["/img/broken.png"] = 500

        async with create_session(session_config) as session:
            outcome = await ImageDownloader(session).fetch(
                target_for(site, "/img/broken.png"), tmp_path / "broken.png"
            )

        assert not outcome.ok
        assert "500" in outcome.reason

    @pytest.mark.asyncio
    async def test_connection_refused(self, session_config, tmp_path):
        target = ResolvedTarget(url="http://127.0.0.1:9/x.png", name="x.png")

        async with create_session(session_config) as session:
            outcome = await ImageDownloader(session).fetch(target, tmp_path / "x.png")

        assert outcome.status is OutcomeStatus.FAILED
        assert outcome.reason
        assert not (tmp_path / "x.png").exists()

    @pytest.mark.asyncio
    async def test_write_failure_leaves_nothing_behind(
        self, site, session_config, tmp_path
    ):
        site.images["/img/a.png"] = png_bytes(100)
        destination = tmp_path / "no-such-dir" / "a.png"

        async with create_session(session_config) as session:
            outcome = await ImageDownloader(session).fetch(
                target_for(site, "/img/a.png"), destination
            )

        assert outcome.status is OutcomeStatus.FAILED
        assert outcome.reason.startswith("Write error")
        assert not destination.exists()

    @pytest.mark.asyncio
    async def test_cancelled_fetch_removes_partial_file(
        self, site, session_config, tmp_path
    ):
        site.images["/img/slow.png"] = png_bytes(10_000)
        site.stalled.add("/img/slow.png")
        destination = tmp_path / "slow.png"
        first_bytes = asyncio.Event()

        async with create_session(session_config) as session:
            task = asyncio.create_task(
                ImageDownloader(session).fetch(
                    target_for(site, "/img/slow.png"),
                    destination,
                    lambda loaded, total: first_bytes.set(),
                )
            )
            await asyncio.wait_for(first_bytes.wait(), timeout=5)
            assert len(list(tmp_path.glob("*.part"))) == 1

            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        assert not destination.exists()
        assert not list(destination.parent.glob("*.part"))
