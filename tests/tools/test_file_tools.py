"""Tests for closurebuild.tools.files."""

from __future__ import annotations

import os
from pathlib import Path

from closurebuild.models import TextDecoration
from closurebuild.tools.files import (
    TEMP_PREFIX,
    copy_files,
    decorate,
    find_and_replace,
    glob_files,
    is_file_like,
    make_temp_dir,
    save_content,
)


def test_is_file_like() -> None:
    assert is_file_like("dist/app.js")
    assert not is_file_like("dist/")
    assert not is_file_like("dist")
    assert not is_file_like("")


def test_decorate_applies_wrappers_in_order(tmp_path: Path) -> None:
    license_file = tmp_path / "LICENSE"
    license_file.write_text("/* MIT */\n", encoding="utf-8")
    decoration = TextDecoration(
        license_file=str(license_file),
        banner="/* banner */\n",
        prepend="// start",
        append="// end",
        replace=("DEBUG", "RELEASE"),
    )

    assert decorate("var mode = DEBUG;", decoration) == (
        "/* banner */\n/* MIT */\n// start\nvar mode = RELEASE;\n// end"
    )
    assert decorate("plain", None) == "plain"


def test_save_content_creates_parents(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "out.js"

    written = save_content(target, "x", TextDecoration(banner="// b\n"))

    assert written == "// b\nx"
    assert target.read_text(encoding="utf-8") == "// b\nx"
    assert [path.name for path in target.parent.iterdir()] == ["out.js"]


def test_copy_files_renames_duplicate_basenames(tmp_path: Path) -> None:
    for folder in ("a", "b"):
        (tmp_path / folder).mkdir()
        (tmp_path / folder / "view.soy").write_text(folder, encoding="utf-8")

    copied = copy_files([str(tmp_path / "a" / "view.soy"), str(tmp_path / "b" / "view.soy")], tmp_path / "work")

    assert copied[0] == str(tmp_path / "work" / "view.soy")
    assert copied[1] != copied[0]
    assert copied[1].endswith("-view.soy")
    assert Path(copied[1]).read_text(encoding="utf-8") == "b"


def test_find_and_replace_recurses_into_directories(tmp_path: Path) -> None:
    (tmp_path / "sub").mkdir()
    (tmp_path / "top.js").write_text("goog.getMsg('a')", encoding="utf-8")
    (tmp_path / "sub" / "deep.js").write_text("goog.getMsg('b')", encoding="utf-8")

    find_and_replace([tmp_path], r"goog\.getMsg\(", "t(", recursive=True)

    assert (tmp_path / "top.js").read_text(encoding="utf-8") == "t('a')"
    assert (tmp_path / "sub" / "deep.js").read_text(encoding="utf-8") == "t('b')"


def test_glob_files_is_sorted_and_recursive(tmp_path: Path) -> None:
    (tmp_path / "b").mkdir()
    (tmp_path / "b" / "two.js").write_text("", encoding="utf-8")
    (tmp_path / "one.js").write_text("", encoding="utf-8")
    (tmp_path / "skip.css").write_text("", encoding="utf-8")

    found = glob_files(["**/*.js", "one.js"], root=tmp_path)

    assert found == [str(tmp_path / "b" / "two.js"), str(tmp_path / "one.js")]


def test_make_temp_dir_uses_prefix() -> None:
    path = make_temp_dir("demo")
    try:
        assert os.path.isdir(path)
        assert os.path.basename(path).startswith(f"{TEMP_PREFIX}demo-")
    finally:
        os.rmdir(path)
