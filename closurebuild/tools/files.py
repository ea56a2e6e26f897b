"""Filesystem helpers: atomic writes, copies, globbing and temp workspaces."""

from __future__ import annotations

import glob
import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from ..logging import get_logger
from ..models import TextDecoration
from .text import random_string, replace_text

_LOGGER = get_logger("files")

TEMP_PREFIX = "closurebuild-"


def mkdir(path: str | Path) -> Path:
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def make_temp_dir(name: str | None = None) -> str:
    """Create and return a fresh private directory under the system temp root."""
    prefix = f"{TEMP_PREFIX}{name}-" if name else TEMP_PREFIX
    return tempfile.mkdtemp(prefix=prefix)


def is_file_like(path: str) -> bool:
    """True when ``path`` carries a file extension (and so names a file, not a folder)."""
    if not path or path.endswith(("/", os.sep)):
        return False
    return bool(Path(path).suffix)


def decorate(content: str, decoration: TextDecoration | None) -> str:
    """Apply replace/prepend/append/license/banner wrapping in that order."""
    if decoration is None or decoration.is_empty():
        return content
    if decoration.replace:
        content = replace_text(content, decoration.replace)
    if decoration.prepend:
        content = f"{decoration.prepend}\n{content}"
    if decoration.append:
        content = f"{content}\n{decoration.append}"
    if decoration.license_file:
        license_text = Path(decoration.license_file).read_text(encoding="utf-8")
        content = license_text + content
    if decoration.banner:
        content = decoration.banner + content
    return content


def write_atomic(path: str | Path, content: str) -> Path:
    """Write ``content`` next to ``path`` and rename it into place."""
    target = Path(path)
    mkdir(target.parent)
    fd, temp_name = tempfile.mkstemp(prefix=f".{target.name}.", dir=str(target.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        os.replace(temp_name, target)
    except BaseException:
        try:
            os.unlink(temp_name)
        except FileNotFoundError:
            pass
        raise
    return target


def save_content(
    path: str | Path, content: str, decoration: TextDecoration | None = None
) -> str:
    """Decorate ``content`` and write it to ``path``; returns the written content."""
    final = decorate(content, decoration)
    write_atomic(path, final)
    _LOGGER.debug("Saved file %s (%d)", path, len(final))
    return final


def copy_files(sources: Sequence[str], dest: str | Path) -> List[str]:
    """Copy ``sources`` into ``dest``; duplicate basenames get a random prefix."""
    dest_path = Path(dest)
    single_target = is_file_like(str(dest))
    mkdir(dest_path.parent if single_target else dest_path)
    written: List[str] = []
    for source in sources:
        target = dest_path if single_target else dest_path / Path(source).name
        if str(target) in written:
            renamed = f"{random_string(7)}-{Path(source).name}"
            _LOGGER.warning("Renamed duplicated filename: %s > %s", source, renamed)
            target = dest_path / renamed
        shutil.copyfile(source, target)
        written.append(str(target))
    return written


def find_and_replace(
    paths: Iterable[str | Path], pattern: str | re.Pattern[str], replacement: str, *, recursive: bool = False
) -> None:
    """Rewrite matching text in files (and directories when ``recursive``)."""
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    for entry in paths:
        path = Path(entry)
        if path.is_symlink():
            _LOGGER.warning("Will not search in symbolic links: %s", path)
        elif path.is_file():
            content = path.read_text(encoding="utf-8")
            updated = regex.sub(lambda _match: replacement, content)
            if updated != content:
                path.write_text(updated, encoding="utf-8")
        elif path.is_dir() and recursive:
            find_and_replace(sorted(path.iterdir()), regex, replacement, recursive=True)


def glob_files(patterns: str | Sequence[str], root: Optional[str | Path] = None) -> List[str]:
    """Expand glob ``patterns`` (``**`` recursive) into a sorted, deduplicated list."""
    if isinstance(patterns, str):
        patterns = [patterns]
    found: List[str] = []
    for pattern in patterns:
        full = str(Path(root) / pattern) if root is not None and not os.path.isabs(pattern) else pattern
        for match in sorted(glob.glob(full, recursive=True)):
            if match not in found and os.path.isfile(match):
                found.append(match)
    return found


__all__ = [
    "TEMP_PREFIX",
    "copy_files",
    "decorate",
    "find_and_replace",
    "glob_files",
    "is_file_like",
    "make_temp_dir",
    "mkdir",
    "save_content",
    "write_atomic",
]
