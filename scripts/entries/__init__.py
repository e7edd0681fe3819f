"""
Notebook entry module.

Contains the pieces that turn a notebook into a new entry:
- Themes: extract_user_themes, resolve_palette, load_entry_types
- Form: collect_selection (interactive entry metadata)
- Materializer: resolve_entry, materialize (files on disk)
- Errors: AddEntryError and its fatal kinds, re-exported from utils.errors
"""
from utils.errors import (
    AddEntryError,
    TypstQueryFailed,
    MainTypReadFailed,
    MainTypParseFailed,
    BadColorLiteral,
    NoThemesAvailable,
    EmptyTitle,
    EntryDirectoryFailed,
    EntryAlreadyExists,
    EntryWriteFailed,
    AggregatorAppendFailed,
)

__all__ = [
    'AddEntryError',
    'TypstQueryFailed',
    'MainTypReadFailed',
    'MainTypParseFailed',
    'BadColorLiteral',
    'NoThemesAvailable',
    'EmptyTitle',
    'EntryDirectoryFailed',
    'EntryAlreadyExists',
    'EntryWriteFailed',
    'AggregatorAppendFailed',
]
