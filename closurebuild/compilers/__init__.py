"""Compiler adapter implementations and discovery utilities."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Dict, Iterable, Optional

from ..config import ToolchainConfig
from ..logging import get_logger
from ..models import BuildType
from .base import CompileCallback, CompileOutcome, CompilerAdapter, ExternalCompiler
from .bundlers import BrowserifyAdapter, RollupAdapter
from .closure import ClosureCompilerAdapter
from .markdown import MarkdownAdapter
from .resources import ResourceCopier, ResourcesAdapter
from .stylesheets import StylesheetAdapter
from .templates import TemplatesCompilerAdapter

_ENTRY_POINT_GROUP = "closurebuild.compilers"

_LOGGER = get_logger("compilers")

AdapterRegistry = Dict[BuildType, CompilerAdapter]


def default_adapters(toolchain: Optional[ToolchainConfig] = None) -> AdapterRegistry:
    """Return the built-in adapters keyed by the build type they serve."""
    toolchain = toolchain or ToolchainConfig()
    builtins: Iterable[CompilerAdapter] = (
        TemplatesCompilerAdapter(toolchain.templates_compiler_jar, java=toolchain.java),
        ClosureCompilerAdapter(toolchain.closure_compiler_jar, java=toolchain.java),
        BrowserifyAdapter(toolchain.browserify),
        RollupAdapter(toolchain.rollup),
        StylesheetAdapter(),
        MarkdownAdapter(),
        ResourcesAdapter(),
    )
    registry: AdapterRegistry = {}
    for adapter in builtins:
        for build_type in adapter.build_types:
            registry[build_type] = adapter
    return registry


def discover_adapters(toolchain: Optional[ToolchainConfig] = None) -> AdapterRegistry:
    """Built-in adapters plus any registered under the ``closurebuild.compilers`` group.

    Plugins replace the built-in adapter for the build types they declare.
    """
    registry = default_adapters(toolchain)
    for entry in _iter_entry_points():
        name = entry.name
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover
            raise RuntimeError(f"Failed to load compiler entry point '{name}': {exc}") from exc
        adapter = _coerce_adapter(loaded)
        for build_type in adapter.build_types:
            _LOGGER.debug("Using compiler plugin '%s' for %s", name, build_type)
            registry[build_type] = adapter
    return registry


def _coerce_adapter(obj: object) -> CompilerAdapter:
    if isinstance(obj, CompilerAdapter):
        return obj
    if isinstance(obj, type) and issubclass(obj, CompilerAdapter):
        return obj()
    if callable(obj):
        factory: Callable[[], object] = obj  # type: ignore[assignment]
        instance = factory()
        if isinstance(instance, CompilerAdapter):
            return instance
    raise TypeError("Compiler entry point must be a CompilerAdapter subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    try:
        entry_points = metadata.entry_points()
    except Exception:  # pragma: no cover
        return []

    if hasattr(entry_points, "select"):
        return entry_points.select(group=_ENTRY_POINT_GROUP)  # type: ignore[return-value]

    return entry_points.get(_ENTRY_POINT_GROUP, [])  # type: ignore[return-value]


__all__ = [
    "AdapterRegistry",
    "BrowserifyAdapter",
    "ClosureCompilerAdapter",
    "CompileCallback",
    "CompileOutcome",
    "CompilerAdapter",
    "ExternalCompiler",
    "MarkdownAdapter",
    "ResourceCopier",
    "ResourcesAdapter",
    "RollupAdapter",
    "StylesheetAdapter",
    "TemplatesCompilerAdapter",
    "default_adapters",
    "discover_adapters",
]
