"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from img_fetcher import __version__
from img_fetcher.core.download_manager import DownloadManager
from img_fetcher.exceptions import FatalError, ImgFetcherError
from img_fetcher.storage.config_manager import ConfigManager

from .formatters import format_error_with_suggestions, print_config, print_summary_panel
from .progress_manager import ProgressManager

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("img_fetcher")

app = typer.Typer(
    name="img-fetcher",
    help=(
        "Download the images of a web page picked out by a CSS selector. Use"
        " 'img-fetcher <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "img-fetcher"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
):
    """Image Fetcher CLI"""
    if version:
        console.print(f"[bold]img-fetcher[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("img_fetcher").setLevel(log_level)

    if show_config:
        config_manager = ConfigManager(CONFIG_FILE)
        try:
            config_data = config_manager._get_config_as_dict()
        except ImgFetcherError as e:
            console.print(f"[red]✗ {e}[/red]")
            raise typer.Exit(code=1) from e
        print_config(CONFIG_FILE, config_data)
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing file without asking."
    ),
):
    """Write a configuration file with the default settings."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    try:
        ConfigManager(CONFIG_FILE).save_new_config()
    except ImgFetcherError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1) from e
    console.print(f"[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")


@app.command(name="download")
def download_command(
    url: str = typer.Argument(..., help="URL of the page to take images from."),
    selector: str = typer.Argument(
        ..., help="CSS selector matching the image elements, e.g. 'img.photo'."
    ),
    output_dir: str | None = typer.Option(
        None, "-o", "--output", help="Directory to save images into (default '.')."
    ),
    max_items: int | None = typer.Option(
        None,
        "-n",
        "--max-items",
        help="Stop after this many references have been processed.",
    ),
    workers: int | None = typer.Option(
        None,
        "-w",
        "--workers",
        help="Number of simultaneous downloads (default 8, override default in config).",
    ),
    sequential: bool | None = typer.Option(
        None,
        "--sequential/--concurrent",
        help="Download one image at a time instead of concurrently.",
    ),
    attribute: str | None = typer.Option(
        None, "-a", "--attribute", help="Attribute holding the image URL (default 'src')."
    ),
    timeout: float | None = typer.Option(
        None, "--timeout", help="Socket timeout in seconds (default 30)."
    ),
    user_agent: str | None = typer.Option(
        None, "--user-agent", help="User-Agent header sent with every request."
    ),
    no_progress: bool = typer.Option(
        False, "--no-progress", help="Do not display progress bars."
    ),
):
    """Download the images a page references."""
    cli_options = {
        key: value
        for key, value in {
            "source_url": url,
            "selector": selector,
            "output_dir": output_dir,
            "max_items": max_items,
            "max_workers": workers,
            "sequential": sequential,
            "attribute": attribute,
            "timeout": timeout,
            "user_agent": user_agent,
        }.items()
        if value is not None
    }

    try:
        config = ConfigManager(CONFIG_FILE).load_config(cli_options)
    except ImgFetcherError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e

    async def _download_async():
        async with ProgressManager(
            console=console, enabled=not no_progress
        ) as progress_manager:
            manager = DownloadManager(config, progress_manager)
            mode = "sequential" if config.sequential else f"{config.max_workers} workers"
            console.print(
                f"[bold cyan]🖼  Fetching images from {config.source_url} ({mode})...[/bold cyan]"
            )
            tally = await manager.run()
        return tally, progress_manager.get_statistics()

    start_time = time.monotonic()
    try:
        tally, progress_stats = asyncio.run(_download_async())
    except FatalError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e

    print_summary_panel(tally, time.monotonic() - start_time, progress_stats)
