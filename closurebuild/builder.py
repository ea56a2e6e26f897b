"""High level entry point: descriptor in, dispatched build out."""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Any, Iterable, List, Mapping, Optional, Union

from .build_config import ResolvedBuildConfig
from .classifier import SourceClassifier
from .config import ToolchainConfig, parse_descriptor
from .dispatcher import BuildCallback, Dispatcher
from .errors import ClassificationReadError
from .logging import TRACE, get_level, get_logger, set_level
from .models import BuildDescriptor, BuildResult, BuildType

DescriptorLike = Union[BuildDescriptor, Mapping[str, Any]]

_TEMPLATE_TYPES = (BuildType.TEMPLATE, BuildType.TEMPLATE_THEN_FRAMEWORK)


class ClosureBuilder:
    """Prepares builds from descriptors and hands them to a :class:`Dispatcher`."""

    def __init__(
        self,
        dispatcher: Dispatcher | None = None,
        *,
        toolchain: ToolchainConfig | None = None,
        classifier: SourceClassifier | None = None,
    ) -> None:
        self.dispatcher = dispatcher or Dispatcher(toolchain=toolchain)
        self.classifier = classifier or SourceClassifier()
        self.logger = get_logger("builder")

    def prepare(self, descriptor: DescriptorLike) -> Optional[ResolvedBuildConfig]:
        """Classify and resolve ``descriptor``; ``None`` for a disabled build.

        Raises :class:`ClassificationReadError` when a source cannot be read.
        A ``trace`` or ``debug`` build raises the package log level; :meth:`build`
        and :meth:`build_all` put it back once that build finished.
        """
        if not isinstance(descriptor, BuildDescriptor):
            descriptor = parse_descriptor(descriptor)
        if not descriptor.enabled:
            self.logger.info("Skipping disabled build %s", descriptor.name or "(unnamed)")
            return None
        previous_level = get_level()
        if descriptor.trace:
            set_level(TRACE)
        elif descriptor.debug:
            set_level(logging.DEBUG)

        try:
            config = ResolvedBuildConfig.from_descriptor(descriptor, classifier=self.classifier)
        except ClassificationReadError:
            set_level(previous_level)
            raise
        self.logger.debug("Prepared build %s", config.describe())
        return config

    def build(
        self, descriptor: DescriptorLike, callback: BuildCallback | None = None
    ) -> "Optional[Future[BuildResult]]":
        """Dispatch one build. Returns ``None`` when the build is disabled."""
        previous_level = get_level()
        config = self.prepare(descriptor)
        if config is None:
            return None
        return self._dispatch(config, callback, previous_level)

    def build_all(self, descriptors: Iterable[DescriptorLike]) -> List[BuildResult]:
        """Run every enabled build and wait for all of them.

        Failures never stop the batch. Builds with a template stage wait for
        the previous one so they do not trip the template guard.
        """
        outcomes: List[Union[BuildResult, "Future[BuildResult]"]] = []
        pending_template: "Optional[Future[BuildResult]]" = None

        for descriptor in descriptors:
            previous_level = get_level()
            try:
                config = self.prepare(descriptor)
            except ClassificationReadError as exc:
                name = descriptor.name if isinstance(descriptor, BuildDescriptor) else str(descriptor.get("name", ""))
                self.logger.error("Failed build %s: %s", name or "(unnamed)", exc)
                outcomes.append(BuildResult(name=name, build_type=BuildType.UNKNOWN, errors=exc))
                continue
            if config is None:
                continue
            if config.build_type in _TEMPLATE_TYPES and pending_template is not None:
                pending_template.result()
            future = self._dispatch(config, None, previous_level)
            if config.build_type in _TEMPLATE_TYPES:
                pending_template = future
            outcomes.append(future)

        return [
            outcome.result() if isinstance(outcome, Future) else outcome
            for outcome in outcomes
        ]

    def _dispatch(
        self, config: ResolvedBuildConfig, callback: BuildCallback | None, previous_level: int
    ) -> "Future[BuildResult]":
        future = self.dispatcher.dispatch(config, callback)
        if get_level() != previous_level:
            future.add_done_callback(lambda _done: set_level(previous_level))
        return future


__all__ = ["ClosureBuilder", "DescriptorLike"]
