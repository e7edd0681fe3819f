"""
Entry form.

Builds the interactive form that collects a new entry's metadata and
reads the submitted values back as a MenuSelection.
"""
import datetime as dt
import logging
import subprocess
from typing import List, Optional

from utils.colors import strip_ansi
from utils.menu import Menu, MenuBuilder

from .models import SECTIONS, EntryType, MenuSelection

logger = logging.getLogger(__name__)


def default_author() -> str:
    """`git config --get user.name`, or "" if git is missing or unset."""
    try:
        result = subprocess.run(
            ["git", "config", "--get", "user.name"],
            capture_output=True,
            text=True,
            errors="replace",
        )
    except OSError as e:
        logger.debug("git author lookup failed: %s", e)
        return ""
    return result.stdout.strip()


def build_entry_menu(entry_types: List[EntryType], today: dt.date, author: str) -> Menu:
    return (
        MenuBuilder()
        .add_label("-----------------")
        .add_label("Make a new entry!")
        .add_label("-----------------")
        .add_scroll("section", SECTIONS)
        .add_string("title", "", allow_empty=False)
        .add_scroll("type", [entry_type.display for entry_type in entry_types])
        .add_string("date", today.strftime("%Y-%m-%d"), allow_empty=False)
        .add_string("author", author, allow_empty=False)
        .add_string("witness", "", allow_empty=True)
        .add_button("enter!")
        .colorize_prev("green")
        .build()
    )


def read_selection(menu: Menu) -> MenuSelection:
    return MenuSelection(
        section=menu.selection_value("section"),
        title=menu.selection_value("title"),
        entry_type_name=strip_ansi(menu.selection_value("type")),
        date=menu.selection_value("date"),
        author=menu.selection_value("author"),
        witness=menu.selection_value("witness"),
    )


def collect_selection(entry_types: List[EntryType], today: Optional[dt.date] = None) -> MenuSelection:
    """Run the entry form until the user submits it."""
    menu = build_entry_menu(entry_types, today or dt.date.today(), default_author())
    menu.run()
    return read_selection(menu)
