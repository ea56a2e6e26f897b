"""Tests for closurebuild.dispatcher."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, List, Tuple

from closurebuild.build_config import ResolvedBuildConfig
from closurebuild.compilers import CompilerAdapter
from closurebuild.config import ToolchainConfig
from closurebuild.dispatcher import TEMPLATE_OUTPUT_DIR, Dispatcher
from closurebuild.errors import (
    CompilerAdapterError,
    ConcurrencyGuardError,
    UnresolvedTypeError,
    UnsupportedTypeError,
)
from closurebuild.models import BuildDescriptor, BuildType, CapabilityFlags, ClassifiedFileSet
from tests._fixtures.source_tree import RecordingAdapter


def _config(
    build_type: BuildType,
    file_set: ClassifiedFileSet | None = None,
    *,
    out: str = "",
    **descriptor_fields: Any,
) -> ResolvedBuildConfig:
    descriptor = BuildDescriptor(name=descriptor_fields.pop("name", "demo"), out=out, **descriptor_fields)
    return ResolvedBuildConfig(
        descriptor,
        file_set or ClassifiedFileSet(),
        build_type,
        token_factory=lambda: "generated",
    )


def _dispatcher(*adapters: RecordingAdapter) -> Dispatcher:
    registry = {}
    for adapter in adapters:
        for build_type in adapter.build_types:
            registry[build_type] = adapter
    return Dispatcher(adapters=registry, toolchain=ToolchainConfig())


class _RaisingAdapter(CompilerAdapter):
    name = "raising"
    build_types = (BuildType.TEMPLATE,)

    def compile(self, files, out, options, callback, *, decoration=None) -> None:
        raise RuntimeError("jar exploded")


def test_unknown_type_reports_error_without_output(tmp_path: Path) -> None:
    adapter = RecordingAdapter(build_types=[BuildType.PLAIN_SCRIPT])
    dispatcher = _dispatcher(adapter)
    received: List[Tuple[Any, ...]] = []
    config = _config(BuildType.UNKNOWN, out=str(tmp_path / "out") + os.sep)

    result = dispatcher.dispatch(config, lambda *args: received.append(args)).result(timeout=5)

    assert isinstance(result.errors, UnresolvedTypeError)
    assert result.output_path is None
    assert adapter.calls == []
    assert received == [(result.errors, None, None, None)]
    assert not (tmp_path / "out").exists()
    assert not config.progress.completed


def test_missing_adapter_is_unsupported() -> None:
    dispatcher = _dispatcher()
    config = _config(BuildType.STYLESHEET, ClassifiedFileSet(stylesheet_files=("a.css",)))

    result = dispatcher.dispatch(config).result(timeout=5)

    assert isinstance(result.errors, UnsupportedTypeError)
    assert "stylesheet is unsupported" in str(result.errors)


def test_script_framework_options_follow_flags_and_descriptor() -> None:
    adapter = RecordingAdapter(build_types=[BuildType.SCRIPT_FRAMEWORK])
    dispatcher = _dispatcher(adapter)
    file_set = ClassifiedFileSet(
        closure_files=("app.js", "lib.js"),
        script_files=("plain.js",),
        flags=CapabilityFlags(needs_es6_transpilation=True, needs_export_support=True),
        entry_point="app",
    )
    config = _config(
        BuildType.SCRIPT_FRAMEWORK,
        file_set,
        out="dist/app.js",
        compress=True,
        warn=False,
        jscomp_off=["checkVars"],
        out_source_map="dist/app.map",
    )

    result = dispatcher.dispatch(config).result(timeout=5)

    assert result.ok
    assert result.output_path == os.path.join("dist", "app.js")
    assert result.content == "compiled"
    call = adapter.calls[0]
    assert call["files"] == ["app.js", "lib.js", "plain.js"]
    assert call["out"] == os.path.join("dist", "app.js")
    options = call["options"]
    assert options["entry_point"] == "app"
    assert options["dependency_mode"] == "PRUNE"
    assert options["language_in"] == "ECMASCRIPT_2015"
    assert options["language_out"] == "ECMASCRIPT5_STRICT"
    assert options["generate_exports"] is True
    assert options["compilation_level"] == "ADVANCED_OPTIMIZATIONS"
    assert options["no_warnings"] is True
    assert options["jscomp_off"] == ["checkVars"]
    assert options["create_source_map"] == "dist/app.map"
    assert call["decoration"] is not None
    assert config.progress.completed


def test_adapter_errors_are_wrapped_and_forwarded() -> None:
    adapter = RecordingAdapter(build_types=[BuildType.PLAIN_SCRIPT], errors="2 error(s), 0 warning(s)")
    dispatcher = _dispatcher(adapter)
    received: List[Tuple[Any, ...]] = []
    config = _config(BuildType.PLAIN_SCRIPT, ClassifiedFileSet(script_files=("a.js",)))

    result = dispatcher.dispatch(config, lambda *args: received.append(args)).result(timeout=5)

    assert isinstance(result.errors, CompilerAdapterError)
    assert result.errors.payload == "2 error(s), 0 warning(s)"
    assert result.errors.adapter == "recording"
    assert result.output_path is None
    assert result.content is None
    assert received[0][0] is result.errors
    assert not config.progress.completed


def test_warnings_still_count_as_success() -> None:
    adapter = RecordingAdapter(build_types=[BuildType.PLAIN_SCRIPT], warnings="0 error(s), 1 warning(s)")
    dispatcher = _dispatcher(adapter)
    config = _config(BuildType.PLAIN_SCRIPT, ClassifiedFileSet(script_files=("a.js",)))

    result = dispatcher.dispatch(config).result(timeout=5)

    assert result.ok
    assert result.warnings == "0 error(s), 1 warning(s)"
    assert result.output_path == config.out_file_path


def test_template_guard_rejects_overlapping_template_builds(tmp_path: Path) -> None:
    templates = RecordingAdapter(build_types=[BuildType.TEMPLATE], hold=True, content=None)
    dispatcher = _dispatcher(templates)
    files = ClassifiedFileSet(template_files=("a.soy",))
    first = _config(BuildType.TEMPLATE, files, out=str(tmp_path / "first") + os.sep, name="first")
    second = _config(BuildType.TEMPLATE, files, out=str(tmp_path / "second") + os.sep, name="second")

    first_future = dispatcher.dispatch(first)
    second_future = dispatcher.dispatch(second)

    assert not first_future.done()
    assert dispatcher.template_stage_active
    second_result = second_future.result(timeout=5)
    assert isinstance(second_result.errors, ConcurrencyGuardError)
    assert len(templates.calls) == 1

    templates.release()

    first_result = first_future.result(timeout=5)
    assert first_result.ok
    assert first_result.output_path == str(tmp_path / "first") + os.sep
    assert not dispatcher.template_stage_active


def test_template_slot_is_released_after_failure() -> None:
    templates = RecordingAdapter(build_types=[BuildType.TEMPLATE], errors="INTERNAL COMPILER ERROR")
    dispatcher = _dispatcher(templates)
    config = _config(BuildType.TEMPLATE, ClassifiedFileSet(template_files=("a.soy",)))

    assert not dispatcher.dispatch(config).result(timeout=5).ok
    assert not dispatcher.template_stage_active
    assert not dispatcher.dispatch(config).result(timeout=5).ok
    assert len(templates.calls) == 2


def test_adapter_exception_is_reported_and_releases_slot() -> None:
    dispatcher = Dispatcher(adapters={BuildType.TEMPLATE: _RaisingAdapter()}, toolchain=ToolchainConfig())
    config = _config(BuildType.TEMPLATE, ClassifiedFileSet(template_files=("a.soy",)))

    result = dispatcher.dispatch(config).result(timeout=5)

    assert isinstance(result.errors, CompilerAdapterError)
    assert "jar exploded" in str(result.errors)
    assert not dispatcher.template_stage_active


def test_two_stage_pipeline_globs_generated_templates(tmp_path: Path) -> None:
    templates = RecordingAdapter(
        build_types=[BuildType.TEMPLATE],
        content=None,
        write={"src/page.soy.js": "goog.provide('app.page');", "src/page.soy": "ignored"},
    )
    scripts = RecordingAdapter(build_types=[BuildType.SCRIPT_FRAMEWORK])
    dispatcher = _dispatcher(templates, scripts)
    file_set = ClassifiedFileSet(
        template_files=("page.soy",),
        closure_files=("app.js",),
        flags=CapabilityFlags(needs_template_runtime=True),
    )
    config = _config(
        BuildType.TEMPLATE_THEN_FRAMEWORK, file_set, out=str(tmp_path / "dist" / "app.js"), banner="/* hi */"
    )

    result = dispatcher.dispatch(config).result(timeout=5)

    template_dir = os.path.join(config.temp_path, TEMPLATE_OUTPUT_DIR)
    assert templates.calls[0]["out"] == template_dir
    assert templates.calls[0]["files"] == ["page.soy"]
    assert templates.calls[0]["decoration"] is None
    assert templates.calls[0]["options"]["shouldProvideRequireSoyNamespaces"] is True
    generated = os.path.join(template_dir, "src", "page.soy.js")
    assert scripts.calls[0]["files"] == ["app.js", generated]
    assert scripts.calls[0]["out"] == str(tmp_path / "dist" / "app.js")
    assert scripts.calls[0]["decoration"].banner == "/* hi */"
    assert result.ok
    assert config.progress.completed
    assert [label for _, label in config.progress.history][-1] == "Done"


def test_failed_template_stage_skips_script_stage() -> None:
    templates = RecordingAdapter(build_types=[BuildType.TEMPLATE], errors="boom")
    scripts = RecordingAdapter(build_types=[BuildType.SCRIPT_FRAMEWORK])
    dispatcher = _dispatcher(templates, scripts)
    config = _config(
        BuildType.TEMPLATE_THEN_FRAMEWORK,
        ClassifiedFileSet(template_files=("a.soy",), closure_files=("a.js",)),
    )

    result = dispatcher.dispatch(config).result(timeout=5)

    assert not result.ok
    assert scripts.calls == []
    assert not dispatcher.template_stage_active


def test_i18n_templates_request_tag_conversion() -> None:
    templates = RecordingAdapter(build_types=[BuildType.TEMPLATE], content=None)
    dispatcher = _dispatcher(templates)
    config = _config(
        BuildType.TEMPLATE,
        ClassifiedFileSet(
            template_files=("a.soy",), flags=CapabilityFlags(needs_i18n_template_support=True)
        ),
        i18n="MSG_",
    )

    dispatcher.dispatch(config).result(timeout=5)

    options = templates.calls[0]["options"]
    assert options["use_i18n"] is True
    assert options["i18n"] == "MSG_"


def test_module_bundle_options() -> None:
    bundler = RecordingAdapter(build_types=[BuildType.MODULE_BUNDLE])
    dispatcher = _dispatcher(bundler)
    config = _config(
        BuildType.MODULE_BUNDLE,
        ClassifiedFileSet(script_files=("main.js",)),
        name="lib",
        format="umd",
        plugins=["node-resolve"],
    )

    dispatcher.dispatch(config).result(timeout=5)

    call = bundler.calls[0]
    assert call["files"] == ["main.js"]
    assert call["options"] == {"name": "lib", "format": "umd", "plugins": ["node-resolve"]}


def test_resources_target_directory(tmp_path: Path) -> None:
    copier = RecordingAdapter(build_types=[BuildType.RESOURCES], content=None)
    dispatcher = _dispatcher(copier)
    out_dir = str(tmp_path / "assets") + os.sep
    config = _config(BuildType.RESOURCES, ClassifiedFileSet(resource_files=("logo.png",)), out=out_dir)

    result = dispatcher.dispatch(config).result(timeout=5)

    assert copier.calls[0]["out"] == out_dir
    assert result.ok


def test_rejected_composite_build_does_no_work(tmp_path: Path) -> None:
    templates = RecordingAdapter(
        build_types=[BuildType.TEMPLATE],
        hold=True,
        content=None,
        write={"page.soy.js": "goog.provide('app.page');"},
    )
    scripts = RecordingAdapter(build_types=[BuildType.SCRIPT_FRAMEWORK])
    dispatcher = _dispatcher(templates, scripts)
    file_set = ClassifiedFileSet(template_files=("page.soy",), closure_files=("app.js",))
    first = _config(
        BuildType.TEMPLATE_THEN_FRAMEWORK, file_set, out=str(tmp_path / "first" / "app.js"), name="first"
    )
    second = _config(
        BuildType.TEMPLATE_THEN_FRAMEWORK, file_set, out=str(tmp_path / "second" / "app.js"), name="second"
    )

    first_future = dispatcher.dispatch(first)
    second_result = dispatcher.dispatch(second).result(timeout=5)

    assert isinstance(second_result.errors, ConcurrencyGuardError)
    assert second_result.output_path is None
    assert second._temp_path is None
    assert len(templates.calls) == 1
    assert scripts.calls == []
    assert not (tmp_path / "second").exists()
    assert not second.progress.completed

    templates.release()

    first_result = first_future.result(timeout=5)
    assert first_result.ok
    assert first_result.output_path == str(tmp_path / "first" / "app.js")
    assert scripts.calls[0]["files"] == ["app.js", os.path.join(first.temp_path, TEMPLATE_OUTPUT_DIR, "page.soy.js")]
    assert os.path.isfile(os.path.join(first.temp_path, TEMPLATE_OUTPUT_DIR, "page.soy.js"))


def test_template_build_without_out_stays_in_its_workspace() -> None:
    templates = RecordingAdapter(build_types=[BuildType.TEMPLATE], content=None)
    dispatcher = _dispatcher(templates)
    config = _config(BuildType.TEMPLATE, ClassifiedFileSet(template_files=("a.soy",)), i18n="MSG_")

    result = dispatcher.dispatch(config).result(timeout=5)

    assert result.ok
    assert templates.calls[0]["out"] == config.temp_path
    assert result.output_path == config.temp_path
