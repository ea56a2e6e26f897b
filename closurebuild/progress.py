"""Bounded progress accounting for a single build."""

from __future__ import annotations

import logging
import threading
import time
from typing import List, Optional, Tuple

from .logging import get_logger


class ProgressHandle:
    """Monotonic counter capped at ``total``; only ever logged, never read by build logic."""

    def __init__(self, name: str = "", total: int = 100, logger: logging.Logger | None = None) -> None:
        self.name = name
        self.total = total
        self.logger = logger or get_logger("progress")
        self._current = 0
        self._lock = threading.Lock()
        self._started = time.monotonic()
        self.history: List[Tuple[int, Optional[str]]] = []

    @property
    def current(self) -> int:
        return self._current

    @property
    def completed(self) -> bool:
        return self._current >= self.total

    def tick(self, amount: int = 0, label: Optional[str] = None) -> int:
        """Advance by ``amount`` (clamped at ``total``) and log ``label``."""
        with self._lock:
            step = max(0, min(amount, self.total - self._current))
            self._current += step
            current = self._current
            self.history.append((step, label))
        if label:
            elapsed = time.monotonic() - self._started
            self.logger.debug(
                "[%3d%%] %s %s (%.1f sec)",
                current * 100 // self.total if self.total else 100,
                self.name,
                label,
                elapsed,
            )
        return step

    def complete(self, label: Optional[str] = None) -> int:
        """Fill the remainder; a second call adds nothing."""
        return self.tick(self.total, label)


__all__ = ["ProgressHandle"]
