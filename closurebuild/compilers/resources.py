"""Resource copying for local files and remote URLs."""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..logging import get_logger
from ..models import BuildType, TextDecoration
from ..tools.files import is_file_like, make_temp_dir, mkdir
from ..tools.remote import RemoteUnavailable, download, is_url, url_filename
from .base import CompileCallback, CompileOutcome, CompilerAdapter

Downloader = Callable[..., Path]


@dataclass
class CopyReport:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    files: List[str] = field(default_factory=list)


class ResourceCopier:
    """Copies paths or URLs into a destination directory (created on demand)."""

    def __init__(self, downloader: Downloader | None = None) -> None:
        self._download = downloader or download
        self.logger = get_logger("resources")

    def copy(
        self,
        paths: Sequence[str],
        dest: str,
        on_each: Optional[Callable[[str], None]] = None,
    ) -> CopyReport:
        """Copy everything into a staging directory, then move it to ``dest``.

        Nothing reaches ``dest`` unless every entry copied without an error.
        """
        single_target = is_file_like(dest)
        final_dir = Path(dest).parent if single_target else Path(dest)
        staging = Path(make_temp_dir("resources"))
        staged_dest = str(staging / Path(dest).name) if single_target else str(staging)
        report = CopyReport()
        try:
            for source in paths:
                if is_url(source):
                    self._copy_remote(source, staged_dest, single_target, report)
                else:
                    self._copy_local(source, staged_dest, single_target, report)
            if report.errors:
                return CopyReport(errors=report.errors, warnings=report.warnings)
            report.files = self._commit(report.files, staging, final_dir, on_each)
        finally:
            shutil.rmtree(staging, ignore_errors=True)
        return report

    def _commit(
        self,
        staged: Sequence[str],
        staging: Path,
        final_dir: Path,
        on_each: Optional[Callable[[str], None]],
    ) -> List[str]:
        mkdir(final_dir)
        committed: List[str] = []
        for entry in dict.fromkeys(staged):
            target = final_dir / Path(entry).relative_to(staging)
            if Path(entry).is_dir():
                shutil.copytree(entry, target, dirs_exist_ok=True)
            else:
                shutil.move(entry, target)
            committed.append(str(target))
            if on_each is not None:
                on_each(str(target))
        return committed

    def _copy_local(self, source: str, dest: str, single_target: bool, report: CopyReport) -> None:
        target = Path(dest) if single_target else Path(dest) / Path(source).name
        if not Path(source).exists():
            message = f"No access to resource {source}"
            self.logger.error(message)
            report.errors.append(message)
            return
        try:
            if Path(source).is_dir():
                shutil.copytree(source, target, dirs_exist_ok=True)
            else:
                shutil.copyfile(source, target)
        except OSError as exc:
            message = f"Resource {source} failed to copy: {exc}"
            self.logger.error(message)
            report.errors.append(message)
            return
        report.files.append(str(target))

    def _copy_remote(self, source: str, dest: str, single_target: bool, report: CopyReport) -> None:
        directory, filename = (
            (str(Path(dest).parent), Path(dest).name) if single_target else (dest, url_filename(source) or None)
        )
        try:
            target = self._download(source, directory, filename)
        except RemoteUnavailable as exc:
            message = (
                f"{exc}\nPlease make sure you are online and that the name is correct!\n"
                "(This message could be ignored if you are working offline!)"
            )
            self.logger.warning(message)
            report.warnings.append(message)
            return
        except (RuntimeError, OSError) as exc:
            message = f"Remote resource {source} failed to download: {exc}"
            self.logger.error(message)
            report.errors.append(message)
            return
        report.files.append(str(target))


class ResourcesAdapter(CompilerAdapter):
    """Exposes :class:`ResourceCopier` through the compiler adapter contract."""

    name = "resources"
    build_types = (BuildType.RESOURCES,)

    def __init__(self, copier: ResourceCopier | None = None) -> None:
        self.copier = copier or ResourceCopier()
        self.logger = get_logger("compilers.resources")

    def compile(
        self,
        files: Sequence[str],
        out: str,
        options: Dict[str, Any],
        callback: CompileCallback,
        *,
        decoration: TextDecoration | None = None,
    ) -> None:
        report = self.copier.copy(
            list(files),
            out,
            on_each=lambda path: self.logger.debug("Copied resource %s", path),
        )
        if report.errors:
            callback(*CompileOutcome.failure(report.errors, report.warnings or None))
            return
        callback(*CompileOutcome(warnings=report.warnings or None, output_path=out))


__all__ = ["CopyReport", "ResourceCopier", "ResourcesAdapter"]
