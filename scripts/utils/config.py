"""
Runtime settings for the add-entry tool.

Everything is read from the environment (after `load_dotenv()` in the
driver), so a notebook can pin its own values in a `.env` file:

- NOTEBOOKINATOR_VERSION: version imported by the metadata query
  ("auto" picks the newest locally installed version)
- NOTEBOOKINATOR_NAMESPACE: Typst package namespace (default "local")
- TYPST_CMD: typst executable invoked inside the shell
- ADD_ENTRY_SHELL: shell used to run the query
- ADD_ENTRY_FALLBACK_THEME: theme used when main.typ names none we know
- ADD_ENTRY_LOG_LEVEL: logging level name
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
import platform
from pathlib import Path
from typing import Optional


DEFAULT_NOTEBOOKINATOR_VERSION = "1.0.1"
DEFAULT_NAMESPACE = "local"
DEFAULT_FALLBACK_THEME = "radial"
WINDOWS_BASH = "C:\\Program Files\\Git\\usr\\bin\\bash.exe"

MAIN_TYP = Path("main.typ")
ENTRIES_DIR = Path("entries")
AGGREGATOR = ENTRIES_DIR / "entries.typ"
PACKAGES_TYP = Path("packages.typ")


def default_shell() -> str:
    """Git-for-Windows bash on Windows, plain `bash` everywhere else."""
    if platform.system() == "Windows":
        return WINDOWS_BASH
    return "bash"


def typst_package_root() -> Path:
    """Directory holding Typst's locally installed packages."""
    override = os.getenv("TYPST_PACKAGE_PATH")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".local" / "share" / "typst" / "packages"


@dataclass(frozen=True)
class Settings:
    notebookinator_version: str = DEFAULT_NOTEBOOKINATOR_VERSION
    namespace: str = DEFAULT_NAMESPACE
    typst_cmd: str = "typst"
    shell: str = field(default_factory=default_shell)
    fallback_theme: str = DEFAULT_FALLBACK_THEME
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "Settings":
        def _env(name: str) -> Optional[str]:
            value = (os.getenv(name) or "").strip()
            return value or None

        return cls(
            notebookinator_version=_env("NOTEBOOKINATOR_VERSION") or DEFAULT_NOTEBOOKINATOR_VERSION,
            namespace=_env("NOTEBOOKINATOR_NAMESPACE") or DEFAULT_NAMESPACE,
            typst_cmd=_env("TYPST_CMD") or "typst",
            shell=_env("ADD_ENTRY_SHELL") or default_shell(),
            fallback_theme=_env("ADD_ENTRY_FALLBACK_THEME") or DEFAULT_FALLBACK_THEME,
            log_level=(_env("ADD_ENTRY_LOG_LEVEL") or "WARNING").upper(),
        )

    def package_dir(self) -> Path:
        return typst_package_root() / self.namespace / "notebookinator"

    def package_spec(self, version: Optional[str] = None) -> str:
        """Typst package import, e.g. `@local/notebookinator:1.0.1`."""
        return f"@{self.namespace}/notebookinator:{version or self.notebookinator_version}"
