"""
Typst metadata query utilities.

Asks the installed Notebookinator package which entry types each theme
defines, by running `typst query` on a small embedded script through bash.
"""
import json
import logging
import re
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from utils.config import Settings
from utils.errors import TypstQueryFailed

logger = logging.getLogger(__name__)

ENTRY_TYPES_LABEL = "<entry-types>"

# theme name -> [(entry type name, color literal), ...]
ThemeCatalog = Dict[str, List[Tuple[str, str]]]

_VERSION_RE = re.compile(r"^\d+(?:\.\d+)*$")

QUERY_TEMPLATE = '''#import "{package}": themes
#metadata(
  dictionary(themes).pairs().map(((name, theme)) => {{
    let entry-metadata = dictionary(theme.components).pairs().find((
      (key, _value),
    ) => key == "entry-type-metadata")
    if (entry-metadata == none) {{
      return (name, entry-metadata)
    }}
    return (name, entry-metadata.at(1).pairs())
  }}),
) {label}'''


def installed_versions(package_dir: Path) -> List[str]:
    """Versions installed under a Typst package directory, oldest first."""
    if not package_dir.is_dir():
        return []
    versions = [p.name for p in package_dir.iterdir() if p.is_dir() and _VERSION_RE.match(p.name)]
    return sorted(versions, key=lambda v: tuple(int(part) for part in v.split(".")))


def resolve_package_spec(settings: Settings) -> str:
    """Package import for the query, resolving NOTEBOOKINATOR_VERSION=auto."""
    if settings.notebookinator_version != "auto":
        return settings.package_spec()
    versions = installed_versions(settings.package_dir())
    if not versions:
        raise TypstQueryFailed(
            f"NOTEBOOKINATOR_VERSION=auto but no version is installed in {settings.package_dir()}"
        )
    return settings.package_spec(versions[-1])


def build_query_script(package: str) -> str:
    """Typst program that exposes every theme's entry-type metadata."""
    return QUERY_TEMPLATE.format(package=package, label=ENTRY_TYPES_LABEL)


def shell_command(script: str, *, typst_cmd: str = "typst", shell: str = "bash") -> List[str]:
    """argv running `typst query` with `script` fed through a here-doc."""
    heredoc = f"{typst_cmd} query - '{ENTRY_TYPES_LABEL}' --field value <<EOF\n{script}\nEOF"
    return [shell, "-c", heredoc]


def _flatten_color(value: Any, where: str) -> str:
    # Themes give either a bare color or an object carrying one
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get("color"), str):
        return value["color"]
    raise TypstQueryFailed(f"unexpected color value for {where}: {value!r}")


def _parse_entry_types(theme_name: str, entries: Any) -> List[Tuple[str, str]]:
    if not isinstance(entries, list):
        raise TypstQueryFailed(f"entry types of theme {theme_name!r} are not a list")
    parsed = []
    for entry in entries:
        if not (isinstance(entry, list) and len(entry) == 2 and isinstance(entry[0], str)):
            raise TypstQueryFailed(f"malformed entry type in theme {theme_name!r}: {entry!r}")
        name, color = entry
        parsed.append((name, _flatten_color(color, f"{theme_name}.{name}")))
    return parsed


def parse_theme_catalog(raw: str) -> ThemeCatalog:
    """
    Parse the JSON printed by `typst query --field value`.

    The output is an array holding the single <entry-types> metadata value,
    itself a list of `[theme_name, entries | null]` pairs. Themes without
    entry-type metadata are left out of the catalog.
    """
    try:
        wrapped = json.loads(f'{{"data": {raw}}}')
    except json.JSONDecodeError as e:
        raise TypstQueryFailed(f"failed to parse metadata: {e}") from e

    data = wrapped.get("data")
    if not (isinstance(data, list) and len(data) == 1 and isinstance(data[0], list)):
        raise TypstQueryFailed(f"expected exactly one {ENTRY_TYPES_LABEL} value, got {data!r}")

    catalog: ThemeCatalog = {}
    for theme in data[0]:
        if not (isinstance(theme, list) and len(theme) == 2 and isinstance(theme[0], str)):
            raise TypstQueryFailed(f"malformed theme metadata: {theme!r}")
        name, entries = theme
        if entries is None:
            logger.debug("Theme %s has no entry-type metadata", name)
            continue
        catalog[name] = _parse_entry_types(name, entries)
    return catalog


def query_theme_catalog(settings: Optional[Settings] = None) -> ThemeCatalog:
    """Run the metadata query and return theme name -> entry types."""
    settings = settings or Settings()
    script = build_query_script(resolve_package_spec(settings))
    cmd = shell_command(script, typst_cmd=settings.typst_cmd, shell=settings.shell)
    logger.debug("Executing: %s", " ".join(cmd[:2]))

    try:
        # stderr is inherited so typst diagnostics reach the user directly
        result = subprocess.run(cmd, stdout=subprocess.PIPE, check=False)
    except OSError as e:
        raise TypstQueryFailed(f"failed to query typst for entry-type-metadata: {e}") from e

    try:
        raw = result.stdout.decode("utf-8")
    except UnicodeDecodeError as e:
        raise TypstQueryFailed(f"typst output is not valid UTF-8: {e}") from e

    if result.returncode != 0 and not raw.strip():
        raise TypstQueryFailed(f"typst query exited with status {result.returncode}")

    catalog = parse_theme_catalog(raw)
    logger.debug("Found entry-type metadata for %d theme(s): %s", len(catalog), ", ".join(catalog))
    return catalog
