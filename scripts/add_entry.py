#!/usr/bin/env python3
"""
Add a new entry to a Notebookinator notebook.
Usage: python add_entry.py   (run from the notebook's root directory)

1. Asks Typst which entry types each Notebookinator theme defines
2. Reads ./main.typ to find the theme the notebook uses
3. Prompts for the entry's section, title, type, date, author and witness
4. Creates entries/<title>/<leaf>.typ and includes it from entries/entries.typ

Settings can be overridden through the environment or a .env file; see
utils/config.py.
"""

import datetime as dt
import logging
import sys

from dotenv import find_dotenv, load_dotenv
from rich.console import Console
from rich.markup import escape

from utils.errors import AddEntryError
from entries.form import collect_selection
from entries.materializer import materialize, resolve_entry
from entries.themes import load_entry_types
from utils.config import Settings
from utils.dates import format_typst_datetime, normalize_date

console = Console()
err_console = Console(stderr=True, soft_wrap=True)


def setup_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format='%(asctime)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )


def run(settings: Settings) -> int:
    entry_types = load_entry_types(settings)

    today = dt.date.today()
    selection = collect_selection(entry_types, today=today)

    date_literal = format_typst_datetime(normalize_date(selection.date, today=today))
    entry = resolve_entry(selection, date_literal)
    paths = materialize(entry)

    console.print(f"[green]✓ Created {escape(paths.file.as_posix())}[/green]")
    return 0


def main() -> int:
    load_dotenv(find_dotenv(usecwd=True))
    settings = Settings.from_env()
    setup_logging(settings.log_level)

    try:
        return run(settings)
    except AddEntryError as e:
        err_console.print(f"[red]{escape(str(e))}[/red]")
        return 1
    except KeyboardInterrupt:
        err_console.print("[red]Interrupted[/red]")
        return 130


if __name__ == "__main__":
    sys.exit(main())
