"""
Error kinds raised while adding a notebook entry.

Every fatal failure derives from AddEntryError so the driver can turn it
into a single exit code. Soft failures (theme fallback, unparseable date,
missing git author) never raise; they print a diagnostic and continue.
"""


class AddEntryError(Exception):
    """Base class for fatal add-entry failures."""


class TypstQueryFailed(AddEntryError):
    """The Typst metadata query could not be run or its output was unusable."""


class MainTypReadFailed(AddEntryError):
    """./main.typ could not be read."""


class MainTypParseFailed(AddEntryError):
    """./main.typ could not be parsed into a syntax tree."""


class BadColorLiteral(AddEntryError, ValueError):
    """A theme color was not of the form rgb("#RRGGBB")."""


class NoThemesAvailable(AddEntryError):
    """Notebookinator exposed no theme with entry-type metadata."""


class EmptyTitle(AddEntryError):
    """The entry title has an empty last segment."""


class EntryDirectoryFailed(AddEntryError):
    """Part of the entry directory chain could not be created."""


class EntryAlreadyExists(AddEntryError):
    """The entry file is already on disk."""


class EntryWriteFailed(AddEntryError):
    """The entry file could not be written."""


class AggregatorAppendFailed(AddEntryError):
    """The include line could not be appended to entries/entries.typ."""
