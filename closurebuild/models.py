"""Core data models shared across closurebuild components."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class BuildType(str, Enum):
    """Pipeline selected for a build."""

    UNKNOWN = "unknown"
    TEMPLATE = "template"
    SCRIPT_FRAMEWORK = "script_framework"
    TEMPLATE_THEN_FRAMEWORK = "template_then_framework"
    PLAIN_SCRIPT = "plain_script"
    COMMONJS_SCRIPT = "commonjs_script"
    STYLESHEET = "stylesheet"
    MARKDOWN = "markdown"
    RESOURCES = "resources"
    MODULE_BUNDLE = "module_bundle"

    @classmethod
    def parse(cls, value: object) -> Optional["BuildType"]:
        """Map a config value (enum, value or member name) onto a BuildType."""
        if value is None or value == "":
            return None
        if isinstance(value, BuildType):
            return value
        text = str(value).strip()
        for member in cls:
            if text.lower() == member.value or text.upper() == member.name:
                return member
        raise ValueError(f"Unknown build type: {value}")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class CapabilityFlags:
    """Cross-cutting requirements aggregated over a file set."""

    needs_base_library: bool = False
    needs_base_library_ui: bool = False
    needs_template_runtime: bool = False
    needs_export_support: bool = False
    needs_es6_transpilation: bool = False
    needs_i18n_template_support: bool = False

    def __or__(self, other: "CapabilityFlags") -> "CapabilityFlags":
        return CapabilityFlags(
            **{
                item.name: getattr(self, item.name) or getattr(other, item.name)
                for item in fields(self)
            }
        )

    def enabled(self) -> List[str]:
        return [item.name for item in fields(self) if getattr(self, item.name)]


@dataclass(frozen=True)
class ClassifiedFileSet:
    """Disjoint file buckets plus the capability flags they imply."""

    closure_files: Tuple[str, ...] = ()
    script_files: Tuple[str, ...] = ()
    commonjs_files: Tuple[str, ...] = ()
    stylesheet_files: Tuple[str, ...] = ()
    template_files: Tuple[str, ...] = ()
    markdown_files: Tuple[str, ...] = ()
    other_files: Tuple[str, ...] = ()
    resource_files: Tuple[str, ...] = ()
    flags: CapabilityFlags = field(default_factory=CapabilityFlags)
    entry_point: str = ""

    BUCKETS = (
        "closure_files",
        "script_files",
        "commonjs_files",
        "stylesheet_files",
        "template_files",
        "markdown_files",
        "other_files",
    )

    def buckets(self) -> Dict[str, Tuple[str, ...]]:
        """Return the classified buckets keyed by name (resources excluded)."""
        return {name: getattr(self, name) for name in self.BUCKETS}

    def all_files(self) -> List[str]:
        files: List[str] = []
        for name in self.BUCKETS:
            files.extend(getattr(self, name))
        return files

    def is_empty(self) -> bool:
        return not self.all_files() and not self.resource_files


@dataclass(frozen=True)
class TextDecoration:
    """Text wrapping applied to compiled content before it is written."""

    license_file: str = ""
    banner: str = ""
    prepend: str = ""
    append: str = ""
    replace: Optional[Tuple[str, str]] = None

    def is_empty(self) -> bool:
        return not (
            self.license_file or self.banner or self.prepend or self.append or self.replace
        )


@dataclass(frozen=True)
class BuildDescriptor:
    """Caller-supplied description of one build."""

    name: str = ""
    enabled: bool = True
    debug: bool = False
    trace: bool = False
    warn: bool = True
    compress: bool = False
    exclude_test: bool = False
    options: Dict[str, Any] = field(default_factory=dict)
    deps: List[Any] = field(default_factory=list)
    srcs: List[Any] = field(default_factory=list)
    soy: List[Any] = field(default_factory=list)
    externs: List[Any] = field(default_factory=list)
    resources: List[Any] = field(default_factory=list)
    css: List[Any] = field(default_factory=list)
    markdown: List[Any] = field(default_factory=list)
    out: str = ""
    license: str = ""
    banner: str = ""
    prepend: str = ""
    append: str = ""
    replace: Optional[Tuple[str, str]] = None
    closure_options: Optional[Dict[str, Any]] = None
    soy_options: Optional[Dict[str, Any]] = None
    jscomp_off: List[str] = field(default_factory=list)
    jscomp_warning: List[str] = field(default_factory=list)
    jscomp_error: List[str] = field(default_factory=list)
    out_source_map: str = ""
    i18n: str = ""
    format: str = ""
    plugins: List[Any] = field(default_factory=list)
    type: Optional[BuildType] = None
    entry_point: str = ""


@dataclass
class BuildResult:
    """Terminal outcome of a dispatched build."""

    name: str
    build_type: BuildType
    errors: Any = None
    warnings: Any = None
    output_path: Optional[str] = None
    content: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.errors
