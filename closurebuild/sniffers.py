"""Content sniffers that classify sources without parsing them.

Every check here is a plain textual predicate. They are cheap and deliberately
imprecise: a file that uses an idiom in a form the patterns below do not
match is treated as not needing the capability.
"""

from __future__ import annotations

import re
from pathlib import PurePath
from typing import Callable, Tuple

TEMPLATE_SUFFIX = ".soy"
GENERATED_TEMPLATE_SUFFIX = ".soy.js"
SCRIPT_SUFFIX = ".js"
STYLESHEET_SUFFIX = ".css"
MARKDOWN_SUFFIX = ".md"

_CLOSURE_DECLARATIONS = ("goog.provide(", "goog.require(", "goog.module(")
_EXPORT_MARKER = " * @export"
_BASE_LIBRARY_REQUIRES = ("goog.require('goog.", 'goog.require("goog.')
_BASE_LIBRARY_UI_REQUIRES = ("goog.require('goog.ui", 'goog.require("goog.ui')
_TEMPLATE_RUNTIME_REQUIRES = ("goog.require('soy", 'goog.require("soy')
_BLOCK_SCOPED = re.compile(r"(let|const)\s+\w+\s?=")
_ES2017_MARKERS = (
    " await ",
    "async function",
    ".padStart(",
    ".padEnd(",
    "Object.getOwnPropertyDescriptors(",
    "Object.getPrototypeOf(async function(){}).construct",
)
_ES2017_CALLS = re.compile(r"\w+\.(?:values|entries)\(")
_ES2016_CALLS = re.compile(r"\w+\.includes\(")


def _suffix(path: str) -> str:
    return PurePath(path).suffix.lower()


# Path predicates


def is_generated_template_output(path: str) -> bool:
    """Compiled template output (``foo.soy.js``) is a script, never a template."""
    return path.lower().endswith(GENERATED_TEMPLATE_SUFFIX)


def is_template_source(path: str) -> bool:
    return _suffix(path) == TEMPLATE_SUFFIX and not is_generated_template_output(path)


def is_script(path: str) -> bool:
    return _suffix(path) == SCRIPT_SUFFIX


def is_stylesheet(path: str) -> bool:
    return _suffix(path) == STYLESHEET_SUFFIX


def is_markdown(path: str) -> bool:
    return _suffix(path) == MARKDOWN_SUFFIX


# Content predicates


def declares_closure_module(content: str) -> bool:
    return any(marker in content for marker in _CLOSURE_DECLARATIONS)


def has_export_annotation(content: str) -> bool:
    return _EXPORT_MARKER in content


def requires_base_library(content: str) -> bool:
    return any(marker in content for marker in _BASE_LIBRARY_REQUIRES)


def requires_base_library_ui(content: str) -> bool:
    return any(marker in content for marker in _BASE_LIBRARY_UI_REQUIRES)


def requires_template_runtime(content: str) -> bool:
    return any(marker in content for marker in _TEMPLATE_RUNTIME_REQUIRES)


def is_commonjs_module(content: str) -> bool:
    return "require(" in content and "module.exports" in content


def uses_block_scoped_declarations(content: str) -> bool:
    return bool(_BLOCK_SCOPED.search(content))


def detect_ecmascript_version(content: str) -> str:
    """Return the newest ECMAScript edition ``content`` appears to use, or ``""``."""
    if any(marker in content for marker in _ES2017_MARKERS) or _ES2017_CALLS.search(content):
        return "ECMASCRIPT_2017"
    if _ES2016_CALLS.search(content):
        return "ECMASCRIPT_2016"
    if uses_block_scoped_declarations(content):
        return "ECMASCRIPT_2015"
    return ""


def has_i18n_blocks(content: str) -> bool:
    return "{i18n}" in content and "{/i18n}" in content


def provides_namespace(content: str, namespace: str) -> bool:
    """True when ``content`` provides or declares the module ``namespace``."""
    if not namespace:
        return False
    candidates = (
        f"goog.provide('{namespace}'",
        f'goog.provide("{namespace}"',
        f"goog.module('{namespace}'",
        f'goog.module("{namespace}"',
    )
    return any(candidate in content for candidate in candidates)


# Ordered script rules: the first matching predicate picks the bucket.
SCRIPT_RULES: Tuple[Tuple[str, Callable[[str], bool]], ...] = (
    ("closure_files", declares_closure_module),
    ("commonjs_files", is_commonjs_module),
)


__all__ = [
    "SCRIPT_RULES",
    "declares_closure_module",
    "detect_ecmascript_version",
    "has_export_annotation",
    "has_i18n_blocks",
    "is_commonjs_module",
    "is_generated_template_output",
    "is_markdown",
    "is_script",
    "is_stylesheet",
    "is_template_source",
    "provides_namespace",
    "requires_base_library",
    "requires_base_library_ui",
    "requires_template_runtime",
    "uses_block_scoped_declarations",
]
