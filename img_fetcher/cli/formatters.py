"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from img_fetcher.models.stats import RunTally
from img_fetcher.utils.formatting import format_duration, format_size, format_speed


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "DocumentFetchError": [
            "• Check that the URL is correct and reachable in a browser.",
            "• The site may block automated clients; try a different --user-agent.",
            "• Increase --timeout on slow connections.",
        ],
        "OutputDirectoryError": [
            "• Check that you have write permission for the output location.",
            "• Choose another directory with -o/--output.",
        ],
        "ConfigurationError": [
            "• Check the options passed on the command line.",
            "• Inspect the configuration file with `img-fetcher --show-config`.",
            "• Run `img-fetcher init --force` to restore the defaults.",
        ],
        "TimeoutError": [
            "• The server took too long to respond.",
            "• Increase --timeout or reduce --workers.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    suggestion_text = Text("\n".join(suggestions))

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(suggestion_text)

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the current persistent configuration."""
    console = Console()
    content = "\n".join(f"{key} = {value}" for key, value in config_data.items())
    console.print(
        Panel(
            content,
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_summary_panel(
    tally: RunTally, duration_s: float, progress_stats: dict | None = None
):
    """Displays the final summary of a run."""
    console = Console()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=18)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row("✓ Downloaded:", f"[bold green]{tally.downloaded}[/bold green]")
    if tally.skipped > 0:
        stats_table.add_row("○ Skipped:", f"[yellow]{tally.skipped}[/yellow]")
    if tally.failed > 0:
        stats_table.add_row("✗ Failed:", f"[bold red]{tally.failed}[/bold red]")

    stats_table.add_row("", "")
    stats_table.add_row(
        "Total Size:", f"[cyan]{format_size(tally.total_size_downloaded)}[/cyan]"
    )
    stats_table.add_row(
        "Avg. Speed:",
        f"[magenta]{format_speed(tally.total_size_downloaded, duration_s)}[/magenta]",
    )
    stats_table.add_row("Time Elapsed:", f"[blue]{format_duration(duration_s)}[/blue]")

    if progress_stats and progress_stats.get("peak_concurrent"):
        stats_table.add_row(
            "Peak Concurrent:",
            f"[green]{progress_stats['peak_concurrent']}[/green]",
        )

    border_color = "green" if tally.failed == 0 else "yellow"
    console.print()
    console.print(
        Panel(
            stats_table,
            title="🖼  [bold]Download Complete![/bold]",
            border_style=border_color,
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
    console.print()
