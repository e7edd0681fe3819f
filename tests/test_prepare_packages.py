import pytest

import prepare_packages


@pytest.fixture
def packages(tmp_path, monkeypatch):
    """Typst package store with several notebookinator versions, and a notebook as CWD."""
    store = tmp_path / "store"
    for version in ("1.0.1", "1.10.0", "1.2.0"):
        (store / "local" / "notebookinator" / version).mkdir(parents=True)
    monkeypatch.setenv("TYPST_PACKAGE_PATH", str(store))
    monkeypatch.delenv("NOTEBOOKINATOR_NAMESPACE", raising=False)

    notebook = tmp_path / "notebook"
    notebook.mkdir()
    monkeypatch.chdir(notebook)
    return store


def test_sync_packages_file_rewrites_every_import(tmp_path):
    path = tmp_path / "packages.typ"
    path.write_text(
        '#import "@local/notebookinator:1.0.1": *\n'
        '#import "@local/notebookinator:0.9.0" as old\n'
        '#import "@preview/notebookinator:1.0.1": *\n',
        encoding="utf-8",
    )

    assert prepare_packages.sync_packages_file(path, "2.0.0") == 2

    assert path.read_text(encoding="utf-8") == (
        '#import "@local/notebookinator:2.0.0": *\n'
        '#import "@local/notebookinator:2.0.0" as old\n'
        '#import "@preview/notebookinator:1.0.1": *\n'
    )


def test_sync_packages_file_other_namespace(tmp_path):
    path = tmp_path / "packages.typ"
    path.write_text('#import "@preview/notebookinator:1.0.1": *\n', encoding="utf-8")

    assert prepare_packages.sync_packages_file(path, "1.0.2", namespace="preview") == 1
    assert "@preview/notebookinator:1.0.2" in path.read_text(encoding="utf-8")


def test_main_picks_newest_version(packages, capsys):
    packages_typ = packages.parent / "notebook" / "packages.typ"
    packages_typ.write_text('#import "@local/notebookinator:1.0.1": *\n', encoding="utf-8")

    assert prepare_packages.main() == 0

    assert packages_typ.read_text(encoding="utf-8") == '#import "@local/notebookinator:1.10.0": *\n'
    assert "1.10.0" in capsys.readouterr().out


def test_main_without_packages_typ(packages, capsys):
    assert prepare_packages.main() == 1
    assert "packages.typ" in capsys.readouterr().err


def test_main_without_installed_versions(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("TYPST_PACKAGE_PATH", str(tmp_path / "empty"))
    monkeypatch.delenv("NOTEBOOKINATOR_NAMESPACE", raising=False)
    monkeypatch.chdir(tmp_path)
    (tmp_path / "packages.typ").write_text('#import "@local/notebookinator:1.0.1": *\n', encoding="utf-8")

    assert prepare_packages.main() == 1
    assert "No notebookinator installed" in capsys.readouterr().err
