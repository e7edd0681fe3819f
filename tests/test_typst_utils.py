import subprocess

import pytest

from conftest import RADIAL_METADATA
from utils.errors import TypstQueryFailed
from utils import config, typst_utils
from utils.config import Settings
from utils.typst_utils import (
    build_query_script,
    installed_versions,
    parse_theme_catalog,
    query_theme_catalog,
    resolve_package_spec,
    shell_command,
)


def test_parse_theme_catalog_flattens_both_color_forms():
    catalog = parse_theme_catalog(RADIAL_METADATA)

    assert catalog == {
        "radial": [("build", 'rgb("#FF0000")'), ("notes", 'rgb("#00FF00")')],
        "polar": [("test", 'rgb("#0000FF")')],
    }


def test_parse_theme_catalog_drops_themes_without_metadata():
    assert parse_theme_catalog('[[["default", null]]]') == {}


def test_parse_theme_catalog_ignores_extra_color_object_fields():
    raw = '[[["radial", [["build", {"color": "rgb(\\"#FF0000\\")", "icon": "x.svg"}]]]]]'
    assert parse_theme_catalog(raw) == {"radial": [("build", 'rgb("#FF0000")')]}


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "not json",
        "[]",                               # no metadata value
        "[[], []]",                         # more than one value
        '[{"radial": null}]',
        '[[["radial"]]]',                   # missing entries slot
        '[[["radial", "build"]]]',          # entries not a list
        '[[["radial", [["build"]]]]]',      # entry without color
        '[[["radial", [["build", 3]]]]]',   # color neither string nor object
        '[[["radial", [["build", {"hue": 1}]]]]]',
    ],
)
def test_parse_theme_catalog_rejects_unexpected_shapes(raw):
    with pytest.raises(TypstQueryFailed):
        parse_theme_catalog(raw)


def test_build_query_script_imports_package_and_labels_metadata():
    script = build_query_script("@local/notebookinator:1.0.1")

    assert script.startswith('#import "@local/notebookinator:1.0.1": themes\n')
    assert '"entry-type-metadata"' in script
    assert script.endswith(") <entry-types>")


def test_shell_command_feeds_script_through_heredoc():
    cmd = shell_command("SCRIPT", typst_cmd="typst", shell="bash")

    assert cmd[:2] == ["bash", "-c"]
    assert cmd[2] == "typst query - '<entry-types>' --field value <<EOF\nSCRIPT\nEOF"


def test_default_shell_is_git_bash_on_windows(monkeypatch):
    monkeypatch.setattr(config.platform, "system", lambda: "Windows")
    assert Settings().shell == "C:\\Program Files\\Git\\usr\\bin\\bash.exe"

    monkeypatch.setattr(config.platform, "system", lambda: "Linux")
    assert Settings().shell == "bash"


def _fake_run(stdout: bytes, returncode: int = 0, calls=None):
    def run(cmd, **kwargs):
        if calls is not None:
            calls.append((cmd, kwargs))
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout)
    return run


def test_query_theme_catalog_runs_typst_through_shell(monkeypatch):
    calls = []
    monkeypatch.setattr(typst_utils.subprocess, "run", _fake_run(RADIAL_METADATA.encode(), calls=calls))

    catalog = query_theme_catalog(Settings(shell="/bin/bash", typst_cmd="typst"))

    assert set(catalog) == {"radial", "polar"}
    (cmd, kwargs), = calls
    assert cmd[0] == "/bin/bash"
    assert '#import "@local/notebookinator:1.0.1": themes' in cmd[2]
    assert kwargs["stdout"] == subprocess.PIPE
    assert "stderr" not in kwargs


def test_query_theme_catalog_spawn_failure(monkeypatch):
    def boom(cmd, **kwargs):
        raise FileNotFoundError(2, "No such file or directory", cmd[0])

    monkeypatch.setattr(typst_utils.subprocess, "run", boom)

    with pytest.raises(TypstQueryFailed, match="failed to query typst"):
        query_theme_catalog(Settings(shell="no-such-shell"))


def test_query_theme_catalog_rejects_invalid_utf8(monkeypatch):
    monkeypatch.setattr(typst_utils.subprocess, "run", _fake_run(b"\xff\xfe["))

    with pytest.raises(TypstQueryFailed, match="UTF-8"):
        query_theme_catalog(Settings())


def test_query_theme_catalog_failed_typst_without_output(monkeypatch):
    monkeypatch.setattr(typst_utils.subprocess, "run", _fake_run(b"", returncode=1))

    with pytest.raises(TypstQueryFailed, match="status 1"):
        query_theme_catalog(Settings())


def test_installed_versions_sorted_numerically(tmp_path):
    for name in ["1.0.1", "0.9.0", "1.0.10", "notes"]:
        (tmp_path / name).mkdir()
    (tmp_path / "2.0.0").write_text("not a directory")

    assert installed_versions(tmp_path) == ["0.9.0", "1.0.1", "1.0.10"]
    assert installed_versions(tmp_path / "missing") == []


def test_resolve_package_spec_auto_uses_newest_install(tmp_path, monkeypatch):
    package_dir = tmp_path / "local" / "notebookinator"
    for name in ["1.0.1", "1.1.0"]:
        (package_dir / name).mkdir(parents=True)
    monkeypatch.setenv("TYPST_PACKAGE_PATH", str(tmp_path))

    assert resolve_package_spec(Settings(notebookinator_version="auto")) == "@local/notebookinator:1.1.0"
    assert resolve_package_spec(Settings(notebookinator_version="0.5.0")) == "@local/notebookinator:0.5.0"


def test_resolve_package_spec_auto_without_install(tmp_path, monkeypatch):
    monkeypatch.setenv("TYPST_PACKAGE_PATH", str(tmp_path))

    with pytest.raises(TypstQueryFailed, match="auto"):
        resolve_package_spec(Settings(notebookinator_version="auto"))
