"""Helpers for invoking the Java runtime that hosts the Closure toolchain."""

from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

from ..logging import get_logger, trace

_LOGGER = get_logger("java")

_VERSION_PATTERNS = (
    re.compile(r'(?:java|openjdk|jdk) version "?([0-9_.\-]+)"?'),
    re.compile(r"openjdk ([0-9_.\-]+)"),
)

_JVM_FLAGS = ("-XX:+TieredCompilation", "-XX:TieredStopAtLevel=1")


@dataclass
class ProcessOutput:
    """Captured result of an external compiler process."""

    returncode: int
    stdout: str
    stderr: str


def java_version_string(java: str = "java") -> str:
    """Return the raw ``java -version`` banner (printed on stderr)."""
    try:
        completed = subprocess.run(
            [java, "-version"], capture_output=True, text=True, check=False
        )
    except OSError as exc:
        _LOGGER.debug("Unable to execute %s: %s", java, exc)
        return ""
    return (completed.stderr or completed.stdout or "").strip()


def has_java(java: str = "java", version_string: Optional[str] = None) -> bool:
    banner = version_string if version_string is not None else java_version_string(java)
    lowered = banner.lower()
    if "java" in lowered or "jdk" in lowered:
        return True
    _LOGGER.error("Unknown Java version: %s", banner or "(no output)")
    return False


def java_version(java: str = "java", version_string: Optional[str] = None) -> str:
    """Return the parsed Java version, ``"unknown"`` or ``""`` when Java is missing."""
    banner = version_string if version_string is not None else java_version_string(java)
    if not has_java(java, banner):
        return ""
    lowered = banner.lower()
    for pattern in _VERSION_PATTERNS:
        match = pattern.search(lowered)
        if match:
            return match.group(1)
    return "unknown"


def run_jar(jar: str, args: Sequence[str], *, java: str = "java") -> ProcessOutput:
    """Run ``java -jar <jar> <args>`` and capture its output."""
    command = [java, *_JVM_FLAGS, "-jar", jar, *args]
    trace(_LOGGER, "Executing %s", " ".join(command))
    try:
        completed = subprocess.run(command, capture_output=True, text=True, check=False)
    except FileNotFoundError as exc:
        raise RuntimeError(
            f"Unable to locate '{java}'. Install a Java runtime (JRE) or configure toolchain.java."
        ) from exc
    return ProcessOutput(
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )


def run_command(command: Sequence[str]) -> ProcessOutput:
    """Run a non-Java tool (Node CLIs) and capture its output."""
    trace(_LOGGER, "Executing %s", " ".join(command))
    try:
        completed = subprocess.run(list(command), capture_output=True, text=True, check=False)
    except FileNotFoundError as exc:
        raise RuntimeError(f"Unable to locate '{command[0]}'.") from exc
    return ProcessOutput(
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )


__all__ = [
    "ProcessOutput",
    "has_java",
    "java_version",
    "java_version_string",
    "run_command",
    "run_jar",
]
