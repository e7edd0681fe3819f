"""
Theme discovery.

Reconciles the themes Notebookinator knows about (from the Typst metadata
query) with the theme the notebook's main.typ actually selects, and turns
the winning palette into EntryType values.
"""
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from rich.console import Console

from utils.colors import decode_rgb
from utils.config import MAIN_TYP, Settings
from utils.errors import MainTypParseFailed, MainTypReadFailed, NoThemesAvailable
from utils.typst_syntax import TypstSyntaxError, parse
from utils.typst_utils import ThemeCatalog, query_theme_catalog

from .models import EntryType

logger = logging.getLogger(__name__)
err_console = Console(stderr=True, soft_wrap=True)

Palette = List[Tuple[str, str]]


def extract_user_themes(path: Path = MAIN_TYP) -> List[str]:
    """
    Theme expressions passed to `notebook.with(theme: ...)` show rules.

    Returns the raw source text of every `theme:` argument found in a
    top-level `#show: notebook.<fn>(...)` rule, in document order.
    """
    try:
        source = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise MainTypReadFailed(f"Failed to read {path}: {e}") from e

    try:
        root = parse(source)
    except TypstSyntaxError as e:
        raise MainTypParseFailed(f"Failed to parse {path}'s AST: {e}") from e

    themes = []
    for show_rule in root.children_of_kind("show-rule"):
        transform = show_rule.children[-1]
        if transform.kind != "func-call":
            continue
        callee, args = transform.children
        if callee.kind != "field-access" or callee.children[0].kind != "ident":
            continue
        if callee.children[0].text != "notebook":
            continue
        for arg in args.children_of_kind("named"):
            if arg.name == "theme":
                themes.append(arg.children[0].text)
    logger.debug("Themes referenced in %s: %s", path, themes)
    return themes


def resolve_palette(
    catalog: ThemeCatalog,
    candidates: Iterable[str],
    fallback: str = "radial",
) -> Tuple[str, Palette]:
    """
    Pick the palette of the theme the user selected.

    A candidate selects a theme when the theme name is a substring of the
    candidate's text, so `themes.radial` matches `radial`. Without a match
    the fallback theme is used, then the first theme in the catalog.
    """
    available = {name: palette for name, palette in catalog.items() if palette}
    if not available:
        raise NoThemesAvailable("Failed to find any themes with entry types in notebookinator")

    for candidate in candidates:
        matches = [name for name in available if name in candidate]
        if not matches:
            continue
        if len(matches) > 1:
            logger.warning("Theme %r matches several themes (%s), using %s",
                           candidate, ", ".join(matches), matches[0])
        logger.debug("Using theme %s", matches[0])
        return matches[0], available[matches[0]]

    name = fallback if fallback in available else next(iter(available))
    err_console.print(f"Could not find theme in ./main.typ, defaulting to {name}.", markup=False)
    return name, available[name]


def decode_palette(palette: Palette) -> List[EntryType]:
    return [EntryType(name=name, color=decode_rgb(color)) for name, color in palette]


def load_entry_types(
    settings: Optional[Settings] = None,
    main_typ: Path = MAIN_TYP,
) -> List[EntryType]:
    """Query Notebookinator, read main.typ and decode the selected palette."""
    settings = settings or Settings()
    catalog = query_theme_catalog(settings)
    candidates = extract_user_themes(main_typ)
    _, palette = resolve_palette(catalog, candidates, fallback=settings.fallback_theme)
    return decode_palette(palette)
