"""Source classification: file lists to typed buckets and capability flags."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from . import sniffers
from .errors import ClassificationReadError
from .logging import get_logger, trace
from .models import CapabilityFlags, ClassifiedFileSet

ContentReader = Callable[[str], str]


def read_source(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ClassificationReadError(path, str(exc)) from exc


@dataclass
class _Buckets:
    files: Dict[str, List[str]] = field(
        default_factory=lambda: {name: [] for name in ClassifiedFileSet.BUCKETS}
    )
    flags: Dict[str, bool] = field(default_factory=dict)
    entry_point: str = ""

    def add(self, bucket: str, path: str) -> None:
        self.files[bucket].append(path)

    def flag(self, name: str) -> None:
        self.flags[name] = True

    def freeze(self) -> ClassifiedFileSet:
        return ClassifiedFileSet(
            **{name: tuple(paths) for name, paths in self.files.items()},
            flags=CapabilityFlags(**self.flags),
            entry_point=self.entry_point,
        )


class SourceClassifier:
    """Sorts paths into buckets by extension and content sniffing."""

    def __init__(self, reader: ContentReader | None = None) -> None:
        self._read = reader or read_source
        self.logger = get_logger("classifier")

    def classify(
        self, paths: Iterable[str], entry_point: Optional[str] = None
    ) -> ClassifiedFileSet:
        """Classify ``paths`` in declaration order; the first matching rule wins."""
        buckets = _Buckets()
        seen: set[str] = set()
        for path in paths:
            if path in seen:
                continue
            seen.add(path)
            self._classify_path(path, buckets, entry_point)
        result = buckets.freeze()
        trace(self.logger, "Classified %d files: %s", len(seen), result.buckets())
        return result

    def _classify_path(
        self, path: str, buckets: _Buckets, entry_point: Optional[str]
    ) -> None:
        if sniffers.is_template_source(path):
            content = self._read(path)
            buckets.add("template_files", path)
            buckets.flag("needs_template_runtime")
            if sniffers.has_i18n_blocks(content):
                buckets.flag("needs_i18n_template_support")
            return

        if sniffers.is_script(path):
            content = self._read(path)
            buckets.add(self._script_bucket(content), path)
            self._script_requirements(content, buckets)
            if entry_point and not buckets.entry_point:
                if sniffers.provides_namespace(content, entry_point):
                    buckets.entry_point = entry_point
            return

        if sniffers.is_stylesheet(path):
            buckets.add("stylesheet_files", path)
        elif sniffers.is_markdown(path):
            buckets.add("markdown_files", path)
        else:
            buckets.add("other_files", path)

    @staticmethod
    def _script_bucket(content: str) -> str:
        for bucket, predicate in sniffers.SCRIPT_RULES:
            if predicate(content):
                return bucket
        return "script_files"

    @staticmethod
    def _script_requirements(content: str, buckets: _Buckets) -> None:
        if sniffers.declares_closure_module(content) and sniffers.has_export_annotation(content):
            buckets.flag("needs_export_support")
        if sniffers.requires_base_library(content):
            buckets.flag("needs_base_library")
            if sniffers.requires_base_library_ui(content):
                buckets.flag("needs_base_library_ui")
        if sniffers.requires_template_runtime(content):
            buckets.flag("needs_template_runtime")
        if sniffers.uses_block_scoped_declarations(content):
            buckets.flag("needs_es6_transpilation")


def merge_file_sets(parts: Sequence[ClassifiedFileSet]) -> ClassifiedFileSet:
    """Union independently classified groups; buckets concatenate, flags OR."""
    merged = _Buckets()
    seen: set[str] = set()
    flags = CapabilityFlags()
    for part in parts:
        for name, paths in part.buckets().items():
            for path in paths:
                if path in seen:
                    continue
                seen.add(path)
                merged.add(name, path)
        flags = flags | part.flags
        if part.entry_point and not merged.entry_point:
            merged.entry_point = part.entry_point
    frozen = merged.freeze()
    return ClassifiedFileSet(
        **{name: getattr(frozen, name) for name in ClassifiedFileSet.BUCKETS},
        flags=flags,
        entry_point=frozen.entry_point,
    )


def classify_build(
    deps: Sequence[str],
    srcs: Sequence[str],
    templates: Sequence[str] = (),
    *,
    markdown: Sequence[str] = (),
    css: Sequence[str] = (),
    resources: Sequence[str] = (),
    entry_point: Optional[str] = None,
    classifier: SourceClassifier | None = None,
) -> ClassifiedFileSet:
    """Classify every group of a build and combine the results.

    ``css`` groups are stylesheet-only and are never opened; ``resources``
    pass through unclassified.
    """
    classifier = classifier or SourceClassifier()
    parts = [
        classifier.classify(deps),
        classifier.classify(srcs, entry_point=entry_point),
        classifier.classify(templates),
        classifier.classify(markdown),
        ClassifiedFileSet(stylesheet_files=tuple(css)),
    ]
    merged = merge_file_sets(parts)
    return ClassifiedFileSet(
        **{name: getattr(merged, name) for name in ClassifiedFileSet.BUCKETS},
        resource_files=tuple(resources),
        flags=merged.flags,
        entry_point=merged.entry_point,
    )


__all__ = ["SourceClassifier", "classify_build", "merge_file_sets", "read_source"]
