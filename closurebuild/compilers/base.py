"""Base classes for compiler adapters."""

from __future__ import annotations

import re
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from ..logging import get_logger
from ..models import BuildType, TextDecoration

CompileCallback = Callable[[Any, Any, Optional[str], Optional[str]], None]

_SUMMARY_PATTERN = re.compile(r"(\d+) error\(s\), (\d+) warning\(s\)")


class CompileOutcome(NamedTuple):
    """Arguments handed to a :data:`CompileCallback`."""

    errors: Any = None
    warnings: Any = None
    output_path: Optional[str] = None
    content: Optional[str] = None

    @classmethod
    def failure(cls, errors: Any, warnings: Any = None) -> "CompileOutcome":
        return cls(errors=errors or "Unknown compiler error", warnings=warnings)


def count_diagnostics(message: str) -> Tuple[int, int]:
    """Return ``(errors, warnings)`` from a compiler's summary line.

    Messages without a summary count as one error when they mention an
    error or exception, as one warning when they mention a warning, and
    as clean otherwise.
    """
    if not message:
        return 0, 0
    match = _SUMMARY_PATTERN.search(message)
    if match:
        return int(match.group(1)), int(match.group(2))
    lowered = message.lower()
    if "error" in lowered or "exception" in lowered:
        return 1, 0
    if "warning" in lowered:
        return 0, 1
    return 0, 0


def option_arguments(options: Mapping[str, Any]) -> List[str]:
    """Render remaining compiler options as ``--name value`` pairs."""
    args: List[str] = []
    for name, value in options.items():
        if value is None or value is False:
            continue
        if value is True:
            args.append(f"--{name}")
        elif isinstance(value, (list, tuple)):
            for item in value:
                args.extend([f"--{name}", str(item)])
        else:
            args.extend([f"--{name}", str(value)])
    return args


class CompilerAdapter(ABC):
    """Contract for the external compilers driven by the dispatcher."""

    name: str = "compiler"
    build_types: Tuple[BuildType, ...] = ()

    @abstractmethod
    def compile(
        self,
        files: Sequence[str],
        out: str,
        options: Dict[str, Any],
        callback: CompileCallback,
        *,
        decoration: TextDecoration | None = None,
    ) -> None:
        """Compile ``files`` into ``out`` and report through ``callback``."""


class ExternalCompiler(CompilerAdapter):
    """Adapter that runs its work off the calling thread and reports once."""

    label = "Compiler"

    def __init__(self, *, background: bool = True) -> None:
        self.background = background
        self.logger = get_logger(f"compilers.{self.name}")

    def compile(
        self,
        files: Sequence[str],
        out: str,
        options: Dict[str, Any],
        callback: CompileCallback,
        *,
        decoration: TextDecoration | None = None,
    ) -> None:
        if not files:
            self.logger.error("[%s Error] No valid files are provided!", self.label)
            callback(*CompileOutcome.failure("No valid files are provided!"))
            return
        files = list(dict.fromkeys(files))
        options = dict(options or {})

        def _work() -> CompileOutcome:
            return self.run(files, out, options, decoration)

        self._submit(_work, callback)

    @abstractmethod
    def run(
        self,
        files: List[str],
        out: str,
        options: Dict[str, Any],
        decoration: TextDecoration | None,
    ) -> CompileOutcome:
        """Do the actual compilation; called on the worker thread."""

    def _submit(self, work: Callable[[], CompileOutcome], callback: CompileCallback) -> None:
        def _run() -> None:
            try:
                outcome = work()
            except Exception as exc:
                self.logger.error("[%s Error] %s", self.label, exc)
                outcome = CompileOutcome.failure(str(exc))
            else:
                if outcome.errors:
                    self.logger.error("[%s Error] %s", self.label, outcome.errors)
                elif outcome.warnings:
                    self.logger.warning("[%s Warn] %s", self.label, outcome.warnings)
            callback(*outcome)

        if self.background:
            thread = threading.Thread(
                target=_run, name=f"closurebuild-{self.name}", daemon=True
            )
            thread.start()
        else:
            _run()


__all__ = [
    "CompileCallback",
    "CompileOutcome",
    "CompilerAdapter",
    "ExternalCompiler",
    "count_diagnostics",
    "option_arguments",
]
