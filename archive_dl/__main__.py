"""
Main entry point for the archive-dl application.
This module handles top-level setup, exception handling, and CLI invocation.
"""

import logging
import os
import sys

import click
from rich.console import Console

from archive_dl.cli.app import app
from archive_dl.cli.formatters import format_error_with_suggestions
from archive_dl.exceptions import ArchiveDlError


def main() -> None:
    """Main entry point function. Exits with the run's status code."""
    if os.name == "nt":
        try:
            sys.stdout.reconfigure(encoding="utf-8")
            sys.stderr.reconfigure(encoding="utf-8")
        except (TypeError, AttributeError):
            pass

    log = logging.getLogger("archive_dl")
    console = Console(stderr=True)

    try:
        status = app(standalone_mode=False)
    except click.ClickException as e:
        click.echo(f"Error: {e.format_message()}", err=True)
        sys.exit(1)
    except (KeyboardInterrupt, click.exceptions.Abort):
        console.print("\n[yellow]⚠️  Operation cancelled by user.[/yellow]")
        sys.exit(130)
    except ArchiveDlError as e:
        console.print(format_error_with_suggestions(e))
        sys.exit(1)
    except Exception as e:
        console.print(format_error_with_suggestions(e, {"type": "Unexpected"}))
        log.debug("Full traceback:", exc_info=True)
        sys.exit(1)

    sys.exit(status if isinstance(status, int) else 0)


if __name__ == "__main__":
    main()
