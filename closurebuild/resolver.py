"""Decision table mapping classified file sets to a build type."""

from __future__ import annotations

from typing import Callable, Optional, Tuple

from .models import BuildType, ClassifiedFileSet

MODULE_FORMATS = frozenset({"amd", "cjs", "es", "iife", "umd"})

# Checked top to bottom after the override and module-bundle rules.
_PRECEDENCE: Tuple[Tuple[Callable[[ClassifiedFileSet], bool], Callable[[ClassifiedFileSet], BuildType]], ...] = (
    (
        lambda files: bool(files.template_files),
        lambda files: BuildType.TEMPLATE_THEN_FRAMEWORK
        if files.closure_files
        else BuildType.TEMPLATE,
    ),
    (lambda files: bool(files.closure_files), lambda _: BuildType.SCRIPT_FRAMEWORK),
    (lambda files: bool(files.commonjs_files), lambda _: BuildType.COMMONJS_SCRIPT),
    (lambda files: bool(files.script_files), lambda _: BuildType.PLAIN_SCRIPT),
    (lambda files: bool(files.stylesheet_files), lambda _: BuildType.STYLESHEET),
    (lambda files: bool(files.markdown_files), lambda _: BuildType.MARKDOWN),
    (lambda files: bool(files.resource_files), lambda _: BuildType.RESOURCES),
)


def is_module_format(value: Optional[str]) -> bool:
    return bool(value) and str(value).lower() in MODULE_FORMATS


def resolve_type(
    file_set: ClassifiedFileSet,
    override: Optional[BuildType] = None,
    module_format: Optional[str] = None,
) -> BuildType:
    """Pick the pipeline for ``file_set``; an explicit override always wins."""
    if override is not None and override is not BuildType.UNKNOWN:
        return override
    if len(file_set.script_files) == 1 and is_module_format(module_format):
        return BuildType.MODULE_BUNDLE
    for matches, build_type in _PRECEDENCE:
        if matches(file_set):
            return build_type(file_set)
    return BuildType.UNKNOWN


__all__ = ["MODULE_FORMATS", "is_module_format", "resolve_type"]
