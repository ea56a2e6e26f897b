"""Error taxonomy for classification and dispatch failures."""

from __future__ import annotations

from typing import Any


class BuildError(RuntimeError):
    """Base class for failures reported by closurebuild."""


class ClassificationReadError(BuildError):
    """Raised when a declared source file cannot be read for inspection."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Unable to read source file {path}: {reason}")
        self.path = path
        self.reason = reason


class UnresolvedTypeError(BuildError):
    """Reported when no file bucket is populated and no type override was given."""

    def __init__(self, name: str) -> None:
        label = f"'{name}'" if name else "(unnamed)"
        super().__init__(
            f"Unknown build type for {label}. Set the type or check the build config."
        )
        self.name = name


class UnsupportedTypeError(BuildError):
    """Reported when no compiler adapter is registered for the resolved type."""

    def __init__(self, build_type: str) -> None:
        super().__init__(f"Type {build_type} is unsupported!")
        self.build_type = build_type


class ConcurrencyGuardError(BuildError):
    """Reported when a template stage is requested while another one is in flight."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Template compilation for '{name}' rejected: another template stage is still running."
        )
        self.name = name


class CompilerAdapterError(BuildError):
    """Wraps the error payload an external compiler adapter reported."""

    def __init__(self, payload: Any, *, adapter: str | None = None) -> None:
        prefix = f"[{adapter}] " if adapter else ""
        super().__init__(f"{prefix}{payload}")
        self.payload = payload
        self.adapter = adapter


__all__ = [
    "BuildError",
    "ClassificationReadError",
    "CompilerAdapterError",
    "ConcurrencyGuardError",
    "UnresolvedTypeError",
    "UnsupportedTypeError",
]
