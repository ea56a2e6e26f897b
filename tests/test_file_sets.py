"""Tests for closurebuild.file_sets."""

from __future__ import annotations

from pathlib import Path

from closurebuild.file_sets import assemble, expand_globs, filter_test_files, is_test_file


def test_assemble_keeps_first_occurrence_order() -> None:
    assert assemble([["a.js", "b.js"], "a.js", "c.js"]) == ["a.js", "b.js", "c.js"]


def test_assemble_dedups_across_nested_groups() -> None:
    assert assemble([["x.js"], ["y.js", "x.js"], "z.js", ["y.js"]]) == ["x.js", "y.js", "z.js"]


def test_assemble_drops_extensionless_entries_by_default() -> None:
    assert assemble(["src/", "src/lib", "src/app.js"]) == ["src/app.js"]


def test_assemble_keeps_extensionless_for_resources() -> None:
    result = assemble(["assets", "assets/logo.png"], keep_all_extensionless=True)
    assert result == ["assets", "assets/logo.png"]


def test_assemble_accepts_single_string_and_empty() -> None:
    assert assemble("main.js") == ["main.js"]
    assert assemble(None) == []
    assert assemble([]) == []


def test_assemble_excludes_tests_when_requested() -> None:
    files = [
        "src/app.js",
        "src/app_test.js",
        "src/helper_testhelper.js",
        "src/demos/demo.js",
        "src/deps.js",
        "src/mydeps.js",
    ]
    assert assemble(files, exclude_tests=True) == ["src/app.js", "src/mydeps.js"]
    assert assemble(files) == files


def test_is_test_file_conventions() -> None:
    assert is_test_file("a/b_test.js")
    assert is_test_file("closure/goog/demos/index.js")
    assert is_test_file("closure\\goog\\deps.js")
    assert not is_test_file("demos.js")
    assert filter_test_files(["x_test.js", "x.js"]) == ["x.js"]


def test_expand_globs_keeps_grouping(tmp_path: Path) -> None:
    (tmp_path / "src").mkdir()
    for name in ("b.js", "a.js", "c.css"):
        (tmp_path / "src" / name).write_text("", encoding="utf-8")

    expanded = expand_globs(["src/*.js", ["src/c.css", "missing.js"]], tmp_path)

    assert expanded[0] == str(tmp_path / "src" / "a.js")
    assert expanded[1] == str(tmp_path / "src" / "b.js")
    assert expanded[2] == [str(tmp_path / "src" / "c.css"), str(tmp_path / "missing.js")]


def test_expand_globs_passes_urls_through(tmp_path: Path) -> None:
    url = "https://example.com/logo.png"
    assert expand_globs([url], tmp_path) == [url]
