#!/usr/bin/env python3
"""
Point packages.typ at the locally installed Notebookinator.
Usage: python prepare_packages.py   (run from the notebook's root directory)

Rewrites every `@local/notebookinator:X.Y.Z` import in ./packages.typ to the
newest version found in Typst's local package directory. Meant to run
whenever a dev container picks up new content.
"""

import re
import sys
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from rich.console import Console

from utils.config import PACKAGES_TYP, Settings
from utils.typst_utils import installed_versions

console = Console()
err_console = Console(stderr=True, soft_wrap=True)


def package_pattern(namespace: str = "local") -> re.Pattern:
    return re.compile(rf"@{re.escape(namespace)}/notebookinator:[0-9]+\.[0-9]+\.[0-9]+")


def sync_packages_file(path: Path, version: str, namespace: str = "local") -> int:
    """Rewrite notebookinator imports in `path` to `version`; returns the number of replacements."""
    content = path.read_text(encoding="utf-8")
    updated, count = package_pattern(namespace).subn(f"@{namespace}/notebookinator:{version}", content)
    if updated != content:
        path.write_text(updated, encoding="utf-8")
    return count


def main() -> int:
    load_dotenv(find_dotenv(usecwd=True))
    settings = Settings.from_env()

    versions = installed_versions(settings.package_dir())
    if not versions:
        err_console.print(f"[red]No notebookinator installed in {settings.package_dir()}[/red]")
        return 1
    if not PACKAGES_TYP.is_file():
        err_console.print(f"[red]{PACKAGES_TYP} not found in {Path.cwd()}[/red]")
        return 1

    version = versions[-1]
    count = sync_packages_file(PACKAGES_TYP, version, settings.namespace)
    console.print(f"[green]✓ {PACKAGES_TYP}: {count} import(s) set to notebookinator {version}[/green]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
