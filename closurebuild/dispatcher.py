"""Pipeline dispatch: run the compiler adapter(s) for a resolved build."""

from __future__ import annotations

import os
import threading
from concurrent.futures import Future
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .build_config import ResolvedBuildConfig
from .compilers import AdapterRegistry, CompileCallback, CompilerAdapter, discover_adapters
from .config import ToolchainConfig
from .errors import (
    CompilerAdapterError,
    ConcurrencyGuardError,
    UnresolvedTypeError,
    UnsupportedTypeError,
)
from .logging import get_logger, trace
from .models import BuildResult, BuildType
from .tools.files import glob_files
from .tools.text import truncate_text

BuildCallback = Callable[[Any, Any, Optional[str], Optional[str]], None]

TEMPLATE_OUTPUT_DIR = "templates"

# Progress units; ``complete`` fills whatever is left.
_TICK_STARTED = 10
_TICK_TEMPLATES_DONE = 40


class Dispatcher:
    """Selects and drives the compiler pipeline for each resolved build.

    Builds of different types may run concurrently. The template stage is
    limited to one invocation in flight per dispatcher; a second request
    fails with :class:`ConcurrencyGuardError` while the first is running.
    """

    def __init__(
        self,
        adapters: Optional[Mapping[BuildType, CompilerAdapter]] = None,
        toolchain: ToolchainConfig | None = None,
    ) -> None:
        self.toolchain = toolchain or ToolchainConfig.from_mapping(None)
        self.adapters: AdapterRegistry = (
            dict(adapters) if adapters is not None else discover_adapters(self.toolchain)
        )
        self.logger = get_logger("dispatcher")
        self._template_slot = threading.Lock()

    @property
    def template_stage_active(self) -> bool:
        return self._template_slot.locked()

    def dispatch(
        self, config: ResolvedBuildConfig, callback: BuildCallback | None = None
    ) -> "Future[BuildResult]":
        """Start the pipeline for ``config``.

        The returned future resolves with the :class:`BuildResult` once the
        last stage reported; ``callback`` receives the same values as
        ``(errors, warnings, output_path, content)``.
        """
        future: "Future[BuildResult]" = Future()
        future.set_running_or_notify_cancel()
        finish = self._finisher(config, future, callback)
        build_type = config.build_type
        config.progress.tick(_TICK_STARTED, f"Dispatching {build_type} build")

        if build_type is BuildType.UNKNOWN:
            finish(UnresolvedTypeError(config.name), None, None, None)
        elif build_type is BuildType.TEMPLATE:
            self._run_templates(config, lambda: config.out_path, finish)
        elif build_type is BuildType.TEMPLATE_THEN_FRAMEWORK:
            self._run_templates_then_framework(config, finish)
        else:
            self._run_single(config, finish)
        return future

    def _finisher(
        self,
        config: ResolvedBuildConfig,
        future: "Future[BuildResult]",
        callback: BuildCallback | None,
    ) -> CompileCallback:
        def _finish(errors: Any, warnings: Any, output_path: Optional[str], content: Optional[str]) -> None:
            if future.done():
                return
            if errors:
                self.logger.error("Failed build %s: %s", config.name or "(unnamed)", errors)
                output_path = None
                content = None
            else:
                config.progress.complete("Done")
                if warnings:
                    self.logger.warning("Build %s finished with warnings: %s", config.name, warnings)
                self.logger.info(
                    "Compiled %s to %s (%d)",
                    config.name or "(unnamed)",
                    truncate_text(output_path or "", 60),
                    len(content or ""),
                )
            result = BuildResult(
                name=config.name,
                build_type=config.build_type,
                errors=errors,
                warnings=warnings,
                output_path=output_path,
                content=content,
            )
            try:
                if callback is not None:
                    callback(errors, warnings, output_path, content)
            finally:
                future.set_result(result)

        return _finish

    def _adapter_for(self, build_type: BuildType) -> Optional[CompilerAdapter]:
        return self.adapters.get(build_type)

    def _invoke(
        self,
        adapter: CompilerAdapter,
        files: Sequence[str],
        out: str,
        options: Dict[str, Any],
        callback: CompileCallback,
        config: ResolvedBuildConfig,
        *,
        decorate: bool = True,
    ) -> None:
        trace(self.logger, "%s <- %s %s", adapter.name, list(files), options)

        def _on_result(errors: Any, warnings: Any, output_path: Optional[str], content: Optional[str]) -> None:
            if errors and not isinstance(errors, CompilerAdapterError):
                errors = CompilerAdapterError(errors, adapter=adapter.name)
            callback(errors, warnings, output_path, content)

        try:
            adapter.compile(
                list(files),
                out,
                options,
                _on_result,
                decoration=config.decoration if decorate else None,
            )
        except Exception as exc:
            self.logger.debug("Adapter %s raised", adapter.name, exc_info=True)
            callback(CompilerAdapterError(str(exc), adapter=adapter.name), None, None, None)

    def _run_single(self, config: ResolvedBuildConfig, finish: CompileCallback) -> None:
        build_type = config.build_type
        adapter = self._adapter_for(build_type)
        if adapter is None:
            finish(UnsupportedTypeError(str(build_type)), None, None, None)
            return
        files = self._files_for(config)
        out = self._out_for(config)
        options = self._options_for(config)
        self.logger.debug("Compiling %d files to %s ...", len(files), truncate_text(out, 60))
        self._invoke(adapter, files, out, options, finish, config)

    def _run_templates(
        self,
        config: ResolvedBuildConfig,
        out_dir: Callable[[], str],
        on_done: CompileCallback,
    ) -> None:
        """Run the template stage once the slot is held.

        ``out_dir`` is only evaluated after the slot is taken, so a rejected
        build never creates its workspace.
        """
        adapter = self._adapter_for(BuildType.TEMPLATE)
        if adapter is None:
            on_done(UnsupportedTypeError(str(BuildType.TEMPLATE)), None, None, None)
            return
        if not self._template_slot.acquire(blocking=False):
            self.logger.error("Template compiler is busy, rejecting %s", config.name)
            on_done(ConcurrencyGuardError(config.name), None, None, None)
            return

        released = threading.Event()

        def _release_then(errors: Any, warnings: Any, output_path: Optional[str], content: Optional[str]) -> None:
            if released.is_set():
                return
            released.set()
            self._template_slot.release()
            on_done(errors, warnings, output_path, content)

        options = self._template_options(config)
        files = list(config.file_set.template_files)
        try:
            target = out_dir()
        except OSError as exc:
            _release_then(exc, None, None, None)
            return
        self.logger.debug("Compiling %d soy files to %s", len(files), truncate_text(target, 60))
        self._invoke(adapter, files, target, options, _release_then, config, decorate=False)

    def _run_templates_then_framework(
        self, config: ResolvedBuildConfig, finish: CompileCallback
    ) -> None:
        script_adapter = self._adapter_for(BuildType.SCRIPT_FRAMEWORK)
        if script_adapter is None:
            finish(UnsupportedTypeError(str(BuildType.SCRIPT_FRAMEWORK)), None, None, None)
            return

        def _template_dir() -> str:
            return os.path.join(config.temp_path, TEMPLATE_OUTPUT_DIR)

        def _after_templates(errors: Any, warnings: Any, output_path: Optional[str], content: Optional[str]) -> None:
            if errors:
                finish(errors, warnings, None, None)
                return
            config.progress.tick(_TICK_TEMPLATES_DONE, "Compiled templates")
            # Listed only now, after the template stage has written its files.
            generated = glob_files("**/*.js", root=_template_dir())
            files = self._script_files(config, generated)
            self.logger.debug(
                "Compiling %d files with %d generated templates to %s ...",
                len(files),
                len(generated),
                truncate_text(config.out_file_path, 60),
            )
            self._invoke(
                script_adapter,
                files,
                config.out_file_path,
                self._script_options(config),
                finish,
                config,
            )

        self._run_templates(config, _template_dir, _after_templates)

    def _script_files(self, config: ResolvedBuildConfig, generated: Sequence[str] = ()) -> List[str]:
        file_set = config.file_set
        files: List[str] = list(self.toolchain.runtime_files(file_set.flags))
        files.extend(file_set.closure_files)
        files.extend(generated)
        files.extend(file_set.script_files)
        return list(dict.fromkeys(files))

    def _files_for(self, config: ResolvedBuildConfig) -> List[str]:
        file_set = config.file_set
        build_type = config.build_type
        if build_type in (BuildType.SCRIPT_FRAMEWORK, BuildType.PLAIN_SCRIPT):
            return self._script_files(config)
        if build_type is BuildType.COMMONJS_SCRIPT:
            return list(file_set.commonjs_files) + list(file_set.script_files)
        if build_type is BuildType.MODULE_BUNDLE:
            return list(file_set.script_files)
        if build_type is BuildType.STYLESHEET:
            return list(file_set.stylesheet_files)
        if build_type is BuildType.MARKDOWN:
            return list(file_set.markdown_files)
        if build_type is BuildType.RESOURCES:
            return list(file_set.resource_files)
        return file_set.all_files()

    def _out_for(self, config: ResolvedBuildConfig) -> str:
        if config.build_type in (BuildType.MARKDOWN, BuildType.RESOURCES):
            return config.out_target
        return config.out_file_path

    def _options_for(self, config: ResolvedBuildConfig) -> Dict[str, Any]:
        descriptor = config.descriptor
        build_type = config.build_type
        if build_type in (BuildType.SCRIPT_FRAMEWORK, BuildType.PLAIN_SCRIPT):
            return self._script_options(config)
        if build_type is BuildType.COMMONJS_SCRIPT:
            options = dict(descriptor.options)
            if descriptor.debug:
                options["debug"] = True
            return options
        if build_type is BuildType.MODULE_BUNDLE:
            options = dict(descriptor.options)
            options.setdefault("name", descriptor.name)
            options.setdefault("format", descriptor.format)
            if descriptor.banner:
                options.setdefault("banner", descriptor.banner)
            if descriptor.plugins:
                options["plugins"] = list(descriptor.plugins)
            return options
        return dict(descriptor.options)

    def _template_options(self, config: ResolvedBuildConfig) -> Dict[str, Any]:
        descriptor = config.descriptor
        options = config.soy_options
        if descriptor.i18n:
            options["i18n"] = descriptor.i18n
        if config.file_set.flags.needs_i18n_template_support:
            options["use_i18n"] = True
        if not descriptor.warn:
            options["no_warnings"] = True
        return options

    def _script_options(self, config: ResolvedBuildConfig) -> Dict[str, Any]:
        """Closure Compiler options derived from the descriptor and capability flags."""
        descriptor = config.descriptor
        flags = config.file_set.flags
        options = config.closure_options
        if config.entry_point:
            options["entry_point"] = config.entry_point
            options["dependency_mode"] = "PRUNE"
        if flags.needs_es6_transpilation:
            options.setdefault("language_in", "ECMASCRIPT_2015")
            options.setdefault("language_out", "ECMASCRIPT5_STRICT")
        if flags.needs_export_support:
            options["generate_exports"] = True
        if descriptor.compress:
            options["compilation_level"] = "ADVANCED_OPTIMIZATIONS"
        if config.externs:
            options["externs"] = config.externs
        if not descriptor.warn:
            options["no_warnings"] = True
        if descriptor.out_source_map:
            options["create_source_map"] = descriptor.out_source_map
        if descriptor.jscomp_off:
            options["jscomp_off"] = list(descriptor.jscomp_off)
        if descriptor.jscomp_warning:
            options["jscomp_warning"] = list(descriptor.jscomp_warning)
        if descriptor.jscomp_error:
            options["jscomp_error"] = list(descriptor.jscomp_error)
        return options


__all__ = ["Dispatcher", "TEMPLATE_OUTPUT_DIR"]
