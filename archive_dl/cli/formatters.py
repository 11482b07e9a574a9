"""
Functions for formatting and displaying data in the console using Rich.
"""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from archive_dl.models.stats import DownloadStats
from archive_dl.utils.formatting import format_duration, format_size


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "IdentifierError": [
            "• Usage: `archive-dl <identifier> [destination]`.",
            "• It is the last part of https://archive.org/details/<identifier>.",
        ],
        "DestinationError": [
            "• Create the destination directory first.",
            "• Listing modes (--list, --list-urls) do not need a destination.",
        ],
        "MetadataError": [
            "• Check the identifier for typos.",
            "• The item may be dark, removed or not yet public.",
            "• archive.org might be temporarily unavailable. Try again later.",
        ],
        "ConfigurationError": [
            "• Check the values in your config.ini.",
            "• Jobs must be between 1 and 300.",
        ],
        "ClientResponseError": [
            "• A network connection issue occurred.",
            "• Please try again in a few minutes.",
        ],
        "TimeoutError": [
            "• A request timed out, which may indicate network throttling.",
            "• Try reducing the number of `--jobs`.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with --debug for detailed logs."]
    )

    error_text = Text()
    error_text.append("Error: ", style="bold red")
    error_text.append(error_msg)

    suggestion_text = Text("\n".join(suggestions))

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(suggestion_text)

    if context:
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title=f"[bold red]{error_type}[/bold red]",
        border_style="red",
        expand=False,
    )


def print_summary_panel(console: Console, stats: DownloadStats) -> None:
    """Displays the outcome of a download session."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column()

    table.add_row("Files:", str(stats.files_total))
    table.add_row("Downloaded:", f"[green]{stats.files_completed}[/green]")
    if stats.files_resumed:
        table.add_row("Resumed:", f"[cyan]{stats.files_resumed}[/cyan]")
    table.add_row(
        "Already complete:", f"[yellow]{stats.files_already_complete}[/yellow]"
    )
    table.add_row(
        "Failed:",
        f"[red]{stats.files_failed}[/red]" if stats.files_failed else "0",
    )
    table.add_row("Transferred:", format_size(stats.bytes_downloaded))
    table.add_row("Duration:", format_duration(stats.duration))

    border = "red" if stats.files_failed else "green"
    title = (
        "[bold red]✗ Finished with errors[/bold red]"
        if stats.files_failed
        else "[bold green]✓ Download complete[/bold green]"
    )
    console.print(Panel(table, title=title, border_style=border, expand=False))

    if stats.files_failed:
        for output_path, reason in stats.failures:
            console.print(
                f"  [red]✗[/red] {escape(output_path)}: [dim]{escape(reason)}[/dim]"
            )
        console.print(
            "[dim]Run the same command again to resume the failed files.[/dim]"
        )
