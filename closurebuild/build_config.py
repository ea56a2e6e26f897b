"""Per-build aggregate of descriptor, classified files, type and output paths."""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .classifier import SourceClassifier, classify_build
from .file_sets import assemble
from .logging import get_logger, trace
from .models import BuildDescriptor, BuildType, ClassifiedFileSet, TextDecoration
from .progress import ProgressHandle
from .resolver import resolve_type
from .tools.files import is_file_like, make_temp_dir
from .tools.text import random_string

TokenFactory = Callable[[], str]

DEFAULT_CLOSURE_OPTIONS: Dict[str, Any] = {"compilation_level": "SIMPLE_OPTIMIZATIONS"}
DEFAULT_SOY_OPTIONS: Dict[str, Any] = {"shouldProvideRequireSoyNamespaces": True}


@dataclass(frozen=True)
class OutputLocation:
    directory: str
    file: str

    @property
    def path(self) -> str:
        return os.path.join(self.directory, self.file)


def resolve_output(
    raw: Optional[str],
    *,
    workspace: Optional[str] = None,
    token_factory: TokenFactory = random_string,
) -> OutputLocation:
    """Split ``raw`` into directory and file name.

    A file-like target is split as-is. A bare directory (or nothing at all)
    keeps the directory, falling back to ``workspace`` or else a fresh private
    temp directory, and gets a generated file name from ``token_factory``.
    """
    if raw and is_file_like(raw):
        directory, filename = os.path.split(raw)
        return OutputLocation(directory=directory or os.curdir, file=filename)
    directory = raw or workspace or make_temp_dir()
    return OutputLocation(directory=directory, file=token_factory())


class ResolvedBuildConfig:
    """Everything the dispatcher needs to run one build.

    Construction assembles and classifies the declared files and resolves the
    build type; afterwards only the progress handle changes.
    """

    def __init__(
        self,
        descriptor: BuildDescriptor,
        file_set: ClassifiedFileSet,
        build_type: BuildType,
        *,
        externs: Optional[List[str]] = None,
        token_factory: TokenFactory = random_string,
        progress: Optional[ProgressHandle] = None,
    ) -> None:
        self._descriptor = descriptor
        self._file_set = file_set
        self._build_type = build_type
        self._externs = list(externs or [])
        self._token_factory = token_factory
        self._output: Optional[OutputLocation] = None
        self._temp_path: Optional[str] = None
        self._lazy_lock = threading.RLock()
        self.progress = progress or ProgressHandle(name=descriptor.name)

    @classmethod
    def from_descriptor(
        cls,
        descriptor: BuildDescriptor,
        *,
        classifier: SourceClassifier | None = None,
        token_factory: TokenFactory | None = None,
        progress: ProgressHandle | None = None,
    ) -> "ResolvedBuildConfig":
        logger = get_logger("config")
        deps = assemble(descriptor.deps)
        srcs = assemble(descriptor.srcs, exclude_tests=descriptor.exclude_test)
        templates = assemble(descriptor.soy)
        markdown = assemble(descriptor.markdown)
        css = assemble(descriptor.css)
        resources = assemble(descriptor.resources, keep_all_extensionless=True)
        externs = assemble(descriptor.externs)
        trace(logger, "Dependencies: %s", deps)
        trace(logger, "Sources: %s", srcs)
        trace(logger, "Templates: %s", templates)

        file_set = classify_build(
            deps,
            srcs,
            templates,
            markdown=markdown,
            css=css,
            resources=resources,
            entry_point=descriptor.entry_point or descriptor.name or None,
            classifier=classifier,
        )
        if file_set.stylesheet_files and file_set.resource_files:
            logger.warning(
                "Build %s declares stylesheets and resources; compiling stylesheets.",
                descriptor.name,
            )
        build_type = resolve_type(file_set, descriptor.type, descriptor.format or None)
        logger.debug("Build %s resolved to type %s", descriptor.name, build_type)
        return cls(
            descriptor,
            file_set,
            build_type,
            externs=externs,
            token_factory=token_factory or random_string,
            progress=progress,
        )

    @property
    def name(self) -> str:
        return self._descriptor.name

    @property
    def descriptor(self) -> BuildDescriptor:
        return self._descriptor

    @property
    def file_set(self) -> ClassifiedFileSet:
        return self._file_set

    @property
    def build_type(self) -> BuildType:
        return self._build_type

    @property
    def externs(self) -> List[str]:
        return list(self._externs)

    @property
    def temp_path(self) -> str:
        """Private workspace, created on first access."""
        with self._lazy_lock:
            if self._temp_path is None:
                self._temp_path = make_temp_dir(self.name or None)
            return self._temp_path

    @property
    def output(self) -> OutputLocation:
        """Output location; a build without ``out`` writes into :attr:`temp_path`."""
        with self._lazy_lock:
            if self._output is None:
                raw = self._descriptor.out
                self._output = resolve_output(
                    raw,
                    workspace=None if raw else self.temp_path,
                    token_factory=self._token_factory,
                )
            return self._output

    @property
    def out_path(self) -> str:
        return self.output.directory

    @property
    def out_file(self) -> str:
        return self.output.file

    @property
    def out_file_path(self) -> str:
        return self.output.path

    @property
    def out_target(self) -> str:
        """Output as declared: the file path when one was given, else the directory."""
        if self._descriptor.out and is_file_like(self._descriptor.out):
            return self.out_file_path
        return self.out_path

    @property
    def entry_point(self) -> str:
        return self._descriptor.entry_point or self._file_set.entry_point

    @property
    def decoration(self) -> TextDecoration:
        descriptor = self._descriptor
        return TextDecoration(
            license_file=descriptor.license,
            banner=descriptor.banner,
            prepend=descriptor.prepend,
            append=descriptor.append,
            replace=descriptor.replace,
        )

    @property
    def closure_options(self) -> Dict[str, Any]:
        if self._descriptor.closure_options is not None:
            return dict(self._descriptor.closure_options)
        return dict(DEFAULT_CLOSURE_OPTIONS)

    @property
    def soy_options(self) -> Dict[str, Any]:
        options = dict(DEFAULT_SOY_OPTIONS)
        options.update(self._descriptor.soy_options or {})
        return options

    def describe(self) -> Dict[str, Any]:
        """Summary used for debug logging and the ``classify`` command."""
        return {
            "name": self.name,
            "type": str(self.build_type),
            "entry_point": self.entry_point,
            "flags": self._file_set.flags.enabled(),
            "files": {
                name: list(paths)
                for name, paths in self._file_set.buckets().items()
                if paths
            },
            "resources": list(self._file_set.resource_files),
            "out": self.out_file_path if self._descriptor.out else None,
        }

    def __repr__(self) -> str:
        return f"ResolvedBuildConfig(name={self.name!r}, type={self.build_type!s}, out={self._descriptor.out!r})"


__all__ = [
    "DEFAULT_CLOSURE_OPTIONS",
    "DEFAULT_SOY_OPTIONS",
    "OutputLocation",
    "ResolvedBuildConfig",
    "resolve_output",
]
