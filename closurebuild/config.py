"""Configuration loading for closurebuild (.closurebuild.yml)."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import yaml

from .file_sets import expand_globs, filter_test_files
from .models import BuildDescriptor, BuildType, CapabilityFlags

DEFAULT_FILENAME = ".closurebuild.yml"

_FILE_GROUP_KEYS = ("deps", "srcs", "soy", "externs", "resources", "css", "markdown")


class ConfigError(RuntimeError):
    """Raised when a build file cannot be read or parsed."""


@dataclass
class ToolchainConfig:
    """Locations of the external compilers and runtime libraries."""

    java: str = "java"
    closure_compiler_jar: Optional[str] = None
    templates_compiler_jar: Optional[str] = None
    closure_library: Optional[str] = None
    template_runtime: Optional[str] = None
    browserify: str = "browserify"
    rollup: str = "rollup"

    ENV_PREFIXES = ("CLOSUREBUILD_",)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None, root: Path | None = None) -> "ToolchainConfig":
        """Build from a ``toolchain:`` mapping; environment variables win over the file."""
        values: Dict[str, Any] = {}
        data = data or {}
        for item in fields(cls):
            raw = _as_str(data.get(item.name))
            env_value = _first_env_value(
                [f"{prefix}{item.name.upper()}" for prefix in cls.ENV_PREFIXES]
            )
            value = env_value or raw
            if value is None:
                continue
            if item.name.endswith(("_jar", "_library", "_runtime")) and root is not None:
                value = str(_resolve_path(value, root))
            values[item.name] = value
        return cls(**values)

    def base_library_file(self) -> Optional[str]:
        if not self.closure_library:
            return None
        return str(Path(self.closure_library) / "closure" / "goog" / "base.js")

    def runtime_files(self, flags: CapabilityFlags) -> List[str]:
        """Library files the script compiler needs for the given capability flags.

        The template runtime comes first, then ``base.js`` and the rest of the
        Closure Library. ``goog/ui`` is only included when a source asked for it.
        Test files and missing locations are skipped.
        """
        files: List[str] = []
        if flags.needs_template_runtime and self.template_runtime:
            runtime = Path(self.template_runtime)
            if runtime.is_dir():
                files.extend(str(path) for path in sorted(runtime.rglob("*.js")))
            elif runtime.exists():
                files.append(str(runtime))

        needs_library = flags.needs_base_library or flags.needs_template_runtime
        if not needs_library or not self.closure_library:
            return filter_test_files(files)

        base = self.base_library_file()
        if base and Path(base).exists():
            files.append(base)
        goog = Path(self.closure_library) / "closure" / "goog"
        ui_dir = goog / "ui"
        if goog.is_dir():
            for path in sorted(goog.rglob("*.js")):
                if not flags.needs_base_library_ui and ui_dir in path.parents:
                    continue
                files.append(str(path))
        return filter_test_files(list(dict.fromkeys(files)))


@dataclass
class BuildFile:
    """Parsed content of a build file."""

    path: Path
    builds: List[BuildDescriptor] = field(default_factory=list)
    toolchain: ToolchainConfig = field(default_factory=ToolchainConfig)

    def select(self, names: Sequence[str] | None) -> List[BuildDescriptor]:
        if not names:
            return list(self.builds)
        wanted = set(names)
        missing = wanted - {build.name for build in self.builds}
        if missing:
            raise ConfigError(f"Unknown build names requested: {', '.join(sorted(missing))}")
        return [build for build in self.builds if build.name in wanted]


def load_build_file(config_path: Path) -> BuildFile:
    """Load builds and toolchain settings from disk."""
    config_file = _resolve_config_path(config_path)
    if not config_file.exists():
        raise ConfigError(f"Build file not found: {config_file}")
    root = config_file.parent

    data = _read_config(config_file)
    if isinstance(data, list):
        build_entries: Any = data
        toolchain_data: Mapping[str, Any] = {}
    elif isinstance(data, dict):
        if "builds" in data:
            build_entries = data.get("builds")
        else:
            build_entries = [data]
        toolchain_data = _as_dict(data.get("toolchain"))
    else:
        raise ConfigError(f"{config_file.name} must contain a mapping or a list of builds")

    if not isinstance(build_entries, list):
        raise ConfigError("'builds' must be a list of build mappings")

    builds: List[BuildDescriptor] = []
    for index, entry in enumerate(build_entries):
        if not isinstance(entry, dict):
            raise ConfigError(f"Build #{index + 1} must be a mapping")
        builds.append(parse_descriptor(entry, root=root))

    return BuildFile(
        path=config_file,
        builds=builds,
        toolchain=ToolchainConfig.from_mapping(toolchain_data, root=root),
    )


def parse_descriptor(data: Mapping[str, Any], root: Path | None = None) -> BuildDescriptor:
    """Turn a build mapping into a :class:`BuildDescriptor`.

    Relative file entries resolve against ``root`` and glob patterns are
    expanded when a root is given.
    """
    options = dict(_as_dict(data.get("options")))
    groups: Dict[str, List[Any]] = {}
    for key in _FILE_GROUP_KEYS:
        entries = _as_group_list(data.get(key))
        if key == "srcs" and not entries:
            entries = _as_group_list(data.get("sources"))
        groups[key] = expand_globs(entries, root) if root is not None else entries

    try:
        build_type = BuildType.parse(data.get("type"))
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc

    out = _as_str(data.get("out")) or ""
    if out and root is not None:
        trailing = out.endswith(("/", os.sep))
        out = str(_resolve_path(out, root)) + (os.sep if trailing else "")

    license_file = _as_str(data.get("license")) or ""
    if license_file and root is not None:
        license_file = str(_resolve_path(license_file, root))

    replace = data.get("replace")
    replace_pair: Optional[Tuple[str, str]] = None
    if replace:
        if not isinstance(replace, (list, tuple)) or len(replace) != 2:
            raise ConfigError("'replace' must be a [pattern, replacement] pair")
        replace_pair = (str(replace[0]), str(replace[1]))

    closure_options = _as_optional_dict(options.pop("closure", None))
    soy_options = _as_optional_dict(options.pop("soy", None))
    exclude_test = _as_bool(options.get("exclude_test"))
    if exclude_test is None:
        exclude_test = _as_bool(data.get("exclude_test"))

    return BuildDescriptor(
        name=_as_str(data.get("name")) or "",
        enabled=_bool_or(data.get("enabled"), True),
        debug=_bool_or(data.get("debug"), False),
        trace=_bool_or(data.get("trace"), False),
        warn=_bool_or(data.get("warn"), True),
        compress=_bool_or(data.get("compress"), False),
        exclude_test=bool(exclude_test),
        options=options,
        deps=groups["deps"],
        srcs=groups["srcs"],
        soy=groups["soy"],
        externs=groups["externs"],
        resources=groups["resources"],
        css=groups["css"],
        markdown=groups["markdown"],
        out=out,
        license=license_file,
        banner=_as_str(data.get("banner")) or "",
        prepend=_as_str(data.get("prepend")) or "",
        append=_as_str(data.get("append")) or "",
        replace=replace_pair,
        closure_options=closure_options,
        soy_options=soy_options,
        jscomp_off=_as_str_list(data.get("jscomp_off")),
        jscomp_warning=_as_str_list(data.get("jscomp_warning")),
        jscomp_error=_as_str_list(data.get("jscomp_error")),
        out_source_map=_as_str(data.get("out_source_map")) or "",
        i18n=_as_str(data.get("i18n")) or "",
        format=_as_str(data.get("format")) or "",
        plugins=list(data.get("plugins") or []),
        type=build_type,
        entry_point=_as_str(data.get("entry_point") or data.get("entryPoint")) or "",
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / DEFAULT_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to read {path}: {exc}") from exc
    if not text.strip():
        return {}

    if path.suffix.lower() == ".json":
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc

    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _resolve_path(value: str, root: Path) -> Path:
    path = Path(value).expanduser()
    if path.is_absolute():
        return path
    return root / path


def _first_env_value(keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        value = os.getenv(key)
        if value:
            return value
    return None


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_optional_dict(value: Any) -> Optional[Dict[str, Any]]:
    return dict(value) if isinstance(value, dict) else None


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _bool_or(value: Any, default: bool) -> bool:
    parsed = _as_bool(value)
    return default if parsed is None else parsed


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


def _as_group_list(value: Any) -> List[Any]:
    """Keep one level of nesting so grouped entries survive until assembly."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        groups: List[Any] = []
        for item in value:
            if isinstance(item, (list, tuple)):
                groups.append(_as_str_list(item))
            elif isinstance(item, (str, int, float)):
                groups.append(str(item))
        return groups
    return []


__all__ = [
    "BuildFile",
    "ConfigError",
    "DEFAULT_FILENAME",
    "ToolchainConfig",
    "load_build_file",
    "parse_descriptor",
]
