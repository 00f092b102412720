"""
Main entry point for the img-fetcher application.

Runs the Typer app and turns whatever escapes it into a console message and
an exit status: 0 after Ctrl-C, 1 after a fatal or unexpected error.
"""

import asyncio
import logging
import os
import sys

import typer
from rich.console import Console

from img_fetcher.cli.app import app
from img_fetcher.cli.formatters import format_error_with_suggestions
from img_fetcher.exceptions import FatalError, ImgFetcherError

log = logging.getLogger("img_fetcher")


def main() -> None:
    """Main entry point function."""
    if os.name == "nt":
        try:
            sys.stdout.reconfigure(encoding="utf-8")
            sys.stderr.reconfigure(encoding="utf-8")
        except (TypeError, AttributeError):
            pass

    console = Console()

    try:
        app()
    except (typer.Exit, typer.Abort):
        pass
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print(
            "\n[yellow]⚠️  Download interrupted. Finished images were kept; "
            "partial files were removed.[/yellow]"
        )
        sys.exit(0)
    except FatalError as e:
        console.print(f"\n{format_error_with_suggestions(e)}")
        console.print("[dim]The run stopped before any image was saved.[/dim]")
        sys.exit(1)
    except ImgFetcherError as e:
        console.print(f"\n{format_error_with_suggestions(e)}")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n{format_error_with_suggestions(e, {'type': 'Unexpected'})}")
        log.debug("Full traceback:", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
