"""
Entry point for ``instrumentify`` and ``python -m instrumentify``.

Errors that escape a command are rendered as a panel with suggestions
instead of a traceback.
"""

import asyncio
import logging
import os
import sys

import typer
from rich.console import Console

from instrumentify.cli.app import app
from instrumentify.cli.formatters import format_error_with_suggestions
from instrumentify.exceptions import InstrumentifyError

log = logging.getLogger("instrumentify")


def _use_utf8_console() -> None:
    # Windows consoles default to a legacy code page that cannot print the status glyphs
    for stream in (sys.stdout, sys.stderr):
        reconfigure = getattr(stream, "reconfigure", None)
        if reconfigure is not None:
            reconfigure(encoding="utf-8")


def main() -> None:
    if os.name == "nt":
        _use_utf8_console()

    console = Console(stderr=True)
    try:
        app()
    except typer.Abort:
        sys.exit(1)
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("\n[yellow]⚠️  Interrupted before the archive was written.[/yellow]")
        sys.exit(130)
    except InstrumentifyError as e:
        console.print(format_error_with_suggestions(e))
        sys.exit(1)
    except Exception as e:
        console.print(format_error_with_suggestions(e, {"type": "Unexpected"}))
        log.debug("Full traceback:", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
