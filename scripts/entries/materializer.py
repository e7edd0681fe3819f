"""
Entry materialization.

Turns a submitted form into files: the entry directory chain under
entries/, the new entry .typ file (never overwriting an existing one) and
the `#include` line appended to entries/entries.typ.
"""
import logging
import os
from pathlib import Path

from utils.config import AGGREGATOR, ENTRIES_DIR
from utils.errors import (
    AggregatorAppendFailed,
    EmptyTitle,
    EntryAlreadyExists,
    EntryDirectoryFailed,
    EntryWriteFailed,
)

from .models import EntryPaths, MenuSelection, ResolvedEntry

logger = logging.getLogger(__name__)

ENTRY_TEMPLATE = '''#import "/packages.typ": *
#import components: *
// TODO: add comment
#show: create-entry.with(
    section: "{section}",
    title: "{title}",
    type: "{entry_type}",
    date: {date},
    author: "{author}",
    witness: "{witness}",
)'''


def title_leaf(title: str) -> str:
    """Last `/`-separated segment of the title, ignoring trailing slashes."""
    leaf = title.rstrip("/").split("/")[-1]
    if not leaf:
        raise EmptyTitle("title must be specified!")
    return leaf


def slug_path(title: str) -> str:
    """`My Entry/Sub/` -> `my_entry/sub`"""
    return title.lower().replace(" ", "_").rstrip("/")


def resolve_entry(selection: MenuSelection, date_literal: str) -> ResolvedEntry:
    """Validate the title and derive everything needed to write the entry."""
    return ResolvedEntry(
        section=selection.section,
        title_raw=selection.title,
        title_leaf=title_leaf(selection.title),
        entry_type_name=selection.entry_type_name,
        date_typst_literal=date_literal,
        author=selection.author,
        witness=selection.witness,
        slug_path=slug_path(selection.title),
    )


def entry_paths(slug: str, root: Path = Path(".")) -> EntryPaths:
    relative = ENTRIES_DIR.joinpath(*slug.split("/"))
    file_name = f"{relative.name}.typ"
    return EntryPaths(
        directory=root / relative,
        file=root / relative / file_name,
        include="/" + (relative / file_name).as_posix(),
    )


def create_entry_dirs(directory: Path, root: Path = Path(".")):
    """Create every directory from root down to `directory`, reusing existing ones."""
    current = root
    for part in directory.relative_to(root).parts:
        current = current / part
        try:
            current.mkdir()
        except FileExistsError:
            if not current.is_dir():
                raise EntryDirectoryFailed(
                    f"Failed to make part of entry directory: ({current}) exists and is not a directory"
                )
        except OSError as e:
            raise EntryDirectoryFailed(f"Failed to make part of entry directory: ({current}): {e}") from e
        else:
            logger.debug("Created directory %s", current)


def _typst_string(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def render_entry(entry: ResolvedEntry) -> str:
    return ENTRY_TEMPLATE.format(
        section=_typst_string(entry.section),
        title=_typst_string(entry.title_leaf),
        entry_type=_typst_string(entry.entry_type_name),
        date=entry.date_typst_literal,
        author=_typst_string(entry.author),
        witness=_typst_string(entry.witness),
    )


def write_entry_file(path: Path, content: str):
    """Write a new entry file; an existing file is never touched."""
    try:
        with open(path, "x", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
    except FileExistsError as e:
        raise EntryAlreadyExists(f"Failed to make entry typst file ({path}): it already exists") from e
    except OSError as e:
        raise EntryWriteFailed(f"Failed to write to entry typst file ({path}): {e}") from e
    logger.debug("Wrote %s", path)


def append_include(aggregator: Path, include: str):
    """Append `#include "<include>"` to an existing aggregator file."""
    line = f'\n\n#include "{_typst_string(include)}"'.encode("utf-8")
    try:
        # No O_CREAT: the aggregator belongs to the notebook and must already exist
        fd = os.open(aggregator, os.O_WRONLY | os.O_APPEND)
    except OSError as e:
        raise AggregatorAppendFailed(f"Failed to open {aggregator}: {e}") from e
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(line)
            f.flush()
    except OSError as e:
        raise AggregatorAppendFailed(f"Failed to write to {aggregator}: {e}") from e
    logger.debug("Appended include for %s to %s", include, aggregator)


def materialize(entry: ResolvedEntry, root: Path = Path(".")) -> EntryPaths:
    """Create the entry on disk and register it with the aggregator."""
    paths = entry_paths(entry.slug_path, root)
    create_entry_dirs(paths.directory, root)
    write_entry_file(paths.file, render_entry(entry))
    append_include(root / AGGREGATOR, paths.include)
    return paths
