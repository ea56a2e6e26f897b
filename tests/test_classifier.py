"""Tests for closurebuild.classifier."""

from __future__ import annotations

from typing import Dict

import pytest

from closurebuild.classifier import SourceClassifier, classify_build, merge_file_sets
from closurebuild.errors import ClassificationReadError
from closurebuild.models import CapabilityFlags, ClassifiedFileSet
from tests._fixtures.source_tree import SourceTree


def _reader(contents: Dict[str, str]):
    def _read(path: str) -> str:
        return contents[path]

    return _read


def test_classify_sorts_files_into_buckets(source_tree: SourceTree) -> None:
    paths = source_tree.write(
        {
            "src/main.js": "goog.provide('app.main');\ngoog.require('goog.dom');\n",
            "src/node.js": "var fs = require('fs');\nmodule.exports = fs;\n",
            "src/plain.js": "var x = 1;\n",
            "src/page.soy": "{namespace app.page}\n",
            "src/page.soy.js": "// generated\n",
            "src/style.css": "body { color: red; }\n",
            "docs/intro.md": "# Intro\n",
            "assets/logo.png": "png",
        }
    )

    result = SourceClassifier().classify(list(paths.values()))

    assert result.closure_files == (paths["src/main.js"],)
    assert result.commonjs_files == (paths["src/node.js"],)
    assert result.script_files == (paths["src/plain.js"], paths["src/page.soy.js"])
    assert result.template_files == (paths["src/page.soy"],)
    assert result.stylesheet_files == (paths["src/style.css"],)
    assert result.markdown_files == (paths["docs/intro.md"],)
    assert result.other_files == (paths["assets/logo.png"],)
    assert result.flags.needs_base_library
    assert result.flags.needs_template_runtime


def test_classification_is_a_partition() -> None:
    contents = {
        "a.js": "goog.provide('a');",
        "b.js": "let b = 1;",
        "c.js": "require('x'); module.exports = 1;",
        "d.soy": "{template .d}{/template}",
        "e.css": "",
        "f.md": "",
        "g.txt": "",
    }
    inputs = list(contents) + ["a.js", "b.js"]

    result = SourceClassifier(reader=_reader(contents)).classify(inputs)

    buckets = result.buckets()
    union = [path for paths in buckets.values() for path in paths]
    assert sorted(union) == sorted(set(inputs))
    assert len(union) == len(set(union))


def test_es6_flag_set_for_any_script_bucket() -> None:
    contents = {"node.js": "const a = require('a');\nmodule.exports = a;"}

    result = SourceClassifier(reader=_reader(contents)).classify(["node.js"])

    assert result.commonjs_files == ("node.js",)
    assert result.flags.needs_es6_transpilation


def test_export_flag_only_for_closure_scripts() -> None:
    contents = {
        "plain.js": "/**\n * @export\n */\nvar x;",
        "closure.js": "goog.provide('x');\n/**\n * @export\n */\nx.y = 1;",
    }
    classifier = SourceClassifier(reader=_reader(contents))

    assert not classifier.classify(["plain.js"]).flags.needs_export_support
    assert classifier.classify(["closure.js"]).flags.needs_export_support


def test_i18n_flag_from_template_content() -> None:
    contents = {"msg.soy": "{template .a}{i18n}Hello{/i18n}{/template}"}

    result = SourceClassifier(reader=_reader(contents)).classify(["msg.soy"])

    assert result.flags.needs_i18n_template_support
    assert result.flags.needs_template_runtime


def test_entry_point_detected_from_provide() -> None:
    contents = {"a.js": "goog.provide('app.other');", "b.js": "goog.provide('app.main');"}

    result = SourceClassifier(reader=_reader(contents)).classify(["a.js", "b.js"], entry_point="app.main")

    assert result.entry_point == "app.main"


def test_unreadable_file_raises(source_tree: SourceTree) -> None:
    missing = str(source_tree.path("missing.js"))

    with pytest.raises(ClassificationReadError) as excinfo:
        SourceClassifier().classify([missing])

    assert excinfo.value.path == missing


def test_stylesheets_are_never_read() -> None:
    def _fail(path: str) -> str:
        raise AssertionError(f"unexpected read of {path}")

    result = SourceClassifier(reader=_fail).classify(["a.css", "b.md", "c.png"])

    assert result.stylesheet_files == ("a.css",)


def test_merge_file_sets_unions_flags_and_dedups() -> None:
    first = ClassifiedFileSet(
        closure_files=("a.js",), flags=CapabilityFlags(needs_base_library=True)
    )
    second = ClassifiedFileSet(
        closure_files=("a.js", "b.js"), flags=CapabilityFlags(needs_es6_transpilation=True)
    )

    merged = merge_file_sets([first, second])

    assert merged.closure_files == ("a.js", "b.js")
    assert merged.flags.enabled() == ["needs_base_library", "needs_es6_transpilation"]


def test_classify_build_ors_flags_across_deps_and_srcs(source_tree: SourceTree) -> None:
    paths = source_tree.write(
        {
            "deps/lib.js": "goog.provide('lib');\ngoog.require('goog.array');\n",
            "src/app.js": "goog.provide('app');\nlet x = 1;\n",
        }
    )

    result = classify_build(
        [paths["deps/lib.js"]],
        [paths["src/app.js"]],
        css=["theme.css"],
        resources=["assets/logo.png"],
        entry_point="app",
    )

    assert result.closure_files == (paths["deps/lib.js"], paths["src/app.js"])
    assert result.stylesheet_files == ("theme.css",)
    assert result.resource_files == ("assets/logo.png",)
    assert result.flags.needs_base_library
    assert result.flags.needs_es6_transpilation
    assert result.entry_point == "app"
