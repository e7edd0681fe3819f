"""Data types shared by the add-entry pipeline."""
from dataclasses import dataclass
from pathlib import Path

from utils.colors import RGB, ansi_foreground

SECTIONS = ("body", "frontmatter", "appendix")


@dataclass(frozen=True)
class EntryType:
    name: str
    color: RGB

    @property
    def display(self) -> str:
        """Name prefixed with a 24-bit foreground escape in the type's color."""
        return ansi_foreground(self.name, self.color)


@dataclass(frozen=True)
class MenuSelection:
    """Raw field values submitted through the entry form."""
    section: str
    title: str
    entry_type_name: str
    date: str
    author: str
    witness: str


@dataclass(frozen=True)
class ResolvedEntry:
    section: str
    title_raw: str
    title_leaf: str
    entry_type_name: str
    date_typst_literal: str
    author: str
    witness: str
    slug_path: str


@dataclass(frozen=True)
class EntryPaths:
    directory: Path
    file: Path
    include: str  # "/entries/<slug>/<leaf>.typ", as written to the aggregator
