"""Flattening, deduplication and filtering of declared file groups."""

from __future__ import annotations

import glob
import os
from pathlib import Path, PurePath
from typing import Iterable, List, Optional, Sequence, Union

from .tools.remote import is_url

FileGroup = Union[str, Sequence[str]]

_TEST_SUFFIX_MARKERS = ("_test.js", "_testhelper.js")
_DEMO_DIRECTORY = "demos"
_DEPS_MANIFEST = "deps.js"
_GLOB_CHARS = ("*", "?", "[")


def _has_extension(entry: str) -> bool:
    return bool(PurePath(entry).suffix)


def is_test_file(entry: str) -> bool:
    """Match unit tests, test helpers, demo folders and ``deps.js`` manifests."""
    normalised = entry.replace("\\", "/")
    if any(marker in normalised for marker in _TEST_SUFFIX_MARKERS):
        return True
    parts = normalised.split("/")
    if _DEMO_DIRECTORY in parts[:-1]:
        return True
    return parts[-1] == _DEPS_MANIFEST


def filter_test_files(files: Iterable[str]) -> List[str]:
    return [entry for entry in files if not is_test_file(entry)]


def assemble(
    groups: FileGroup | Sequence[FileGroup] | None,
    *,
    keep_all_extensionless: bool = False,
    exclude_tests: bool = False,
) -> List[str]:
    """Flatten one level of grouping into an ordered list of unique paths.

    The first occurrence of a path wins and keeps its position. Entries without
    an extension are treated as directory markers and dropped unless
    ``keep_all_extensionless`` is set (resources keep them).
    """
    if not groups:
        return []
    if isinstance(groups, (str, os.PathLike)):
        groups = [groups]

    files: List[str] = []
    seen: set[str] = set()

    def _add(entry: object) -> None:
        value = os.fspath(entry) if isinstance(entry, os.PathLike) else str(entry)
        if value in seen:
            return
        if not keep_all_extensionless and not _has_extension(value):
            return
        seen.add(value)
        files.append(value)

    for group in groups:
        if isinstance(group, (list, tuple)):
            for entry in group:
                _add(entry)
        else:
            _add(group)

    if exclude_tests:
        return filter_test_files(files)
    return files


def expand_globs(
    entries: Sequence[FileGroup], root: Optional[str | Path] = None
) -> List[FileGroup]:
    """Resolve relative entries against ``root`` and expand glob patterns.

    The nesting of ``entries`` is preserved so that :func:`assemble` still
    sees the declared grouping. URLs pass through untouched.
    """

    def _expand(entry: str) -> List[str]:
        if is_url(entry):
            return [entry]
        path = entry
        if root is not None and not os.path.isabs(entry):
            path = str(Path(root) / entry)
        if any(char in entry for char in _GLOB_CHARS):
            return sorted(glob.glob(path, recursive=True))
        return [path]

    expanded: List[FileGroup] = []
    for entry in entries:
        if isinstance(entry, (list, tuple)):
            group: List[str] = []
            for item in entry:
                group.extend(_expand(str(item)))
            expanded.append(group)
        else:
            expanded.extend(_expand(str(entry)))
    return expanded


__all__ = ["assemble", "expand_globs", "filter_test_files", "is_test_file"]
