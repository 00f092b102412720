"""
The main orchestrator: fetches the page, extracts image references, decides
in document order what to download, and runs the downloads.
"""

import asyncio
import logging
import time
from enum import Enum
from functools import partial
from pathlib import Path

import aiohttp
from rich.markup import escape

from img_fetcher.cli.progress_manager import ProgressManager
from img_fetcher.exceptions import OutputDirectoryError, ResolveError
from img_fetcher.media import ImageDownloader, create_session
from img_fetcher.models.config import FetchConfig
from img_fetcher.models.stats import RunTally
from img_fetcher.models.target import FetchOutcome, ResolvedTarget
from img_fetcher.utils.formatting import format_duration, shorten
from img_fetcher.utils.path import create_dir, destination_exists, destination_for
from img_fetcher.web import PageFetcher, extract_references

from .claims import ClaimSet
from .resolver import resolve

log = logging.getLogger(__name__)


class RunState(Enum):
    IDLE = "idle"
    FETCHING_DOCUMENT = "fetching_document"
    EXTRACTING = "extracting"
    SCHEDULING = "scheduling"
    DRAINING = "draining"
    SUMMARIZING = "summarizing"
    DONE = "done"


class DownloadManager:
    """
    Orchestrates a single run. An instance runs once; create a new one for
    every run.

    Every skip, claim and resolve decision is made by one loop walking the
    references in document order, before the corresponding fetch starts. In
    concurrent mode only the completion order of fetches interleaves, so the
    item limit and deduplication behave exactly as in sequential mode.
    """

    def __init__(
        self,
        config: FetchConfig,
        progress_manager: ProgressManager | None = None,
        session: aiohttp.ClientSession | None = None,
    ):
        self.config = config
        self.progress_manager = progress_manager
        self.output_dir = Path(config.output_dir)
        self.tally = RunTally()
        self.claims = ClaimSet()
        self.state = RunState.IDLE
        self.semaphore = asyncio.Semaphore(config.max_workers)
        self._session = session
        self._owns_session = session is None
        self._tasks: list[asyncio.Task] = []
        self._decided = 0
        self.start_time = 0.0

    async def run(self) -> RunTally:
        """
        Executes the run and returns its tally.

        Raises:
            DocumentFetchError: If the source page cannot be retrieved.
            OutputDirectoryError: If the output directory cannot be created.
        """
        if self.state is not RunState.IDLE:
            raise RuntimeError("A DownloadManager can only be run once.")

        self.start_time = time.monotonic()

        if self._session is None:
            self._session = create_session(self.config)
        try:
            return await self._run()
        finally:
            if self._owns_session:
                await self._session.close()

    async def _run(self) -> RunTally:
        self.state = RunState.FETCHING_DOCUMENT
        html, base_url = await PageFetcher(self._session).fetch(self.config.source_url)

        self.state = RunState.EXTRACTING
        references = extract_references(html, self.config.selector, self.config.attribute)
        log.info(
            f"Found {len(references)} image reference(s) matching "
            f"[cyan]{escape(self.config.selector)}[/cyan]."
        )

        self.state = RunState.SCHEDULING
        try:
            create_dir(self.output_dir)
        except OSError as e:
            raise OutputDirectoryError(
                f"Cannot create output directory '{self.output_dir}': {e}"
            ) from e

        if self.progress_manager:
            limit = self.config.max_items
            self.progress_manager.initialize_session(
                len(references) if limit is None else min(limit, len(references))
            )

        downloader = ImageDownloader(self._session)
        try:
            await self._schedule(references, base_url, downloader)
            self.state = RunState.DRAINING
            await self._drain()
        except BaseException:
            await self._cancel_in_flight()
            raise

        self.state = RunState.SUMMARIZING
        elapsed = time.monotonic() - self.start_time
        log.info(f"{self.tally.summary_line()} [dim]({format_duration(elapsed)})[/dim]")
        self.state = RunState.DONE
        return self.tally

    async def _schedule(
        self, references: list[str], base_url: str, downloader: ImageDownloader
    ):
        """The decision loop. Walks references strictly in document order."""
        limit = self.config.max_items
        for raw in references:
            if limit is not None and self._decided >= limit:
                log.info(
                    f"[yellow]Reached the limit of {limit} item(s); "
                    "ignoring the remaining references.[/yellow]"
                )
                break
            self._decided += 1

            try:
                target = resolve(raw, base_url)
            except ResolveError as e:
                await self.tally.record_resolve_failure()
                if self.progress_manager:
                    self.progress_manager.record_failure(raw)
                log.error(
                    f"  [red]✗ Failed:[/] {escape(shorten(raw, 80))} ({escape(str(e))})"
                )
                continue

            # Claims are keyed on the file actually written, so names that
            # sanitize to the same file are one image.
            destination = destination_for(self.output_dir, target.name)
            if not await self.claims.claim(destination.name):
                await self.tally.record_skip()
                self._report_skip(target, "already downloaded")
                continue

            if destination_exists(destination):
                await self.tally.record(FetchOutcome.already_exists())
                self._report_skip(target, "already exists")
                continue

            if self.config.sequential:
                await self._fetch_one(downloader, target, destination)
            else:
                self._tasks.append(
                    asyncio.create_task(
                        self._fetch_one(downloader, target, destination),
                        name=f"fetch:{target.name}",
                    )
                )

    async def _drain(self):
        if self._tasks:
            await asyncio.gather(*self._tasks)

    async def _cancel_in_flight(self):
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            log.warning(
                f"[yellow]Run interrupted; stopping {len(pending)} download(s).[/yellow]"
            )
            await asyncio.gather(*pending, return_exceptions=True)

    async def _fetch_one(
        self, downloader: ImageDownloader, target: ResolvedTarget, destination: Path
    ) -> FetchOutcome:
        async with self.semaphore:
            task_id = None
            on_progress = None
            if self.progress_manager:
                task_id = self.progress_manager.start_target(target)
                on_progress = partial(self.progress_manager.advance_target, task_id)

            outcome = await downloader.fetch(target, destination, on_progress)

        await self.tally.record(outcome)
        if self.progress_manager:
            self.progress_manager.finish_target(task_id, outcome)
        if outcome.ok:
            log.info(f"  [green]✓ Downloaded:[/] {escape(target.name)}")
        else:
            log.error(
                f"  [red]✗ Failed:[/] {escape(target.name)} ({escape(outcome.reason or '')})"
            )
        return outcome

    def _report_skip(self, target: ResolvedTarget, reason: str):
        if self.progress_manager:
            self.progress_manager.record_skip(target.name)
        log.info(
            f"  [yellow]○ Skipping:[/] [dim]{escape(target.name)}[/dim] ({reason})"
        )


async def fetch_images(
    source_url: str,
    selector: str,
    output_dir: str | Path,
    max_items: int | None = None,
    progress_manager: ProgressManager | None = None,
    **options,
) -> RunTally:
    """
    Downloads the images ``selector`` picks out of ``source_url`` into
    ``output_dir``. Extra keyword options are FetchConfig fields.

    Raises:
        FatalError: If the page cannot be fetched or the output directory
            cannot be created.
    """
    config = FetchConfig(
        source_url=source_url,
        selector=selector,
        output_dir=str(output_dir),
        max_items=max_items,
        **options,
    )
    return await DownloadManager(config, progress_manager).run()
