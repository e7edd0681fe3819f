# tests/conftest.py
import sys
from pathlib import Path

import pytest

# Project root = parent of "tests"
ROOT = Path(__file__).resolve().parents[1]
SCRIPTS = ROOT / "scripts"

# Prepend scripts/ to sys.path so `import add_entry` works without installing
if str(SCRIPTS) not in sys.path:
    sys.path.insert(0, str(SCRIPTS))


RADIAL_METADATA = (
    '[[["radial", [["build", "rgb(\\"#FF0000\\")"], ["notes", {"color": "rgb(\\"#00FF00\\")"}]]],'
    ' ["polar", [["test", "rgb(\\"#0000FF\\")"]]],'
    ' ["default", null]]]'
)


@pytest.fixture
def notebook(tmp_path, monkeypatch):
    """A notebook root selecting the radial theme, with an empty entries.typ, as CWD."""
    (tmp_path / "main.typ").write_text(
        '#import "/packages.typ": notebookinator, themes\n'
        "#show: notebook.with(theme: themes.radial.radial-theme)\n"
        '#include "/entries/entries.typ"\n',
        encoding="utf-8",
    )
    (tmp_path / "entries").mkdir()
    (tmp_path / "entries" / "entries.typ").write_text("", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    return tmp_path
