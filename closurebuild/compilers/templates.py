"""Closure Templates (Soy) adapter."""

from __future__ import annotations

import os
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..models import BuildType, TextDecoration
from ..tools.files import copy_files, find_and_replace, glob_files, mkdir
from ..tools.java import ProcessOutput, has_java, run_jar
from .base import CompileOutcome, ExternalCompiler, option_arguments

JarRunner = Callable[[str, Sequence[str]], ProcessOutput]

OUTPUT_PATH_FORMAT = "{INPUT_DIRECTORY}{INPUT_FILE_NAME}.js"

_HARD_FAILURES = ("INTERNAL COMPILER ERROR", "NullPointerException", "java.lang.NoSuchMethodError")
_JVM_WARNING = "Java HotSpot(TM) Client VM warning"
_GET_MSG = re.compile(r"goog\.getMsg\(")


def count_template_diagnostics(message: str) -> Tuple[int, int]:
    """Count errors and warnings in the template compiler output.

    The templates compiler prints no summary line, so this counts the
    words ``error`` and ``warning`` instead. A lone JVM warning is ignored
    and any other unexplained output counts as one error.
    """
    if not message:
        return 0, 0
    lowered = message.lower()
    if any(marker in message for marker in _HARD_FAILURES) or "exception" in lowered:
        return 1, 0
    if "error" in lowered:
        return lowered.count("error"), 0
    if "warning" in lowered:
        count = lowered.count("warning")
        if _JVM_WARNING in message and count == 1:
            return 0, 0
        return 0, count
    return 1, 0


def build_arguments(
    files: Sequence[str], out_dir: str, options: Dict[str, Any]
) -> Tuple[List[str], Optional[str]]:
    """Return the jar arguments and the custom ``i18n`` message function, if any."""
    options = dict(options)
    options.setdefault("shouldProvideRequireSoyNamespaces", True)
    options.setdefault("shouldGenerateJsdoc", True)
    options.setdefault("outputPathFormat", os.path.join(out_dir, OUTPUT_PATH_FORMAT))

    i18n_function = options.pop("i18n", None)
    if i18n_function:
        options["shouldGenerateGoogMsgDefs"] = True
        options["shouldProvideRequireSoyNamespaces"] = True
        options["googMsgsAreExternal"] = True
        options["bidiGlobalDir"] = 1

    args: List[str] = []
    for path in dict.fromkeys(files):
        args.extend(["--srcs", path])
    args.extend(option_arguments(options))
    return args, i18n_function if isinstance(i18n_function, str) else None


def convert_i18n_tags(files: Sequence[str], work_dir: str) -> List[str]:
    """Copy templates to ``work_dir`` and rewrite ``{i18n}`` blocks to ``{msg}``."""
    copied = copy_files(files, work_dir)
    find_and_replace(copied, r"\{i18n\}", '{msg desc=""}')
    find_and_replace(copied, r"\{/i18n\}", "{/msg}")
    return copied


class TemplatesCompilerAdapter(ExternalCompiler):
    """Compiles ``.soy`` files into one generated script per template file."""

    name = "closure-templates"
    label = "Closure Templates"
    build_types = (BuildType.TEMPLATE,)

    def __init__(
        self,
        jar: Optional[str] = None,
        *,
        java: str = "java",
        runner: JarRunner | None = None,
        background: bool = True,
    ) -> None:
        super().__init__(background=background)
        self.jar = jar
        self.java = java
        self._runner = runner or (lambda jar, args: run_jar(jar, args, java=self.java))
        self._check_java = runner is None

    def run(
        self,
        files: List[str],
        out: str,
        options: Dict[str, Any],
        decoration: TextDecoration | None,
    ) -> CompileOutcome:
        if not self.jar:
            return CompileOutcome.failure(
                "Closure Templates jar is not configured (toolchain.templates_compiler_jar)."
            )
        if self._check_java and not has_java(self.java):
            return CompileOutcome.failure("Java (JRE) is required to run the Closure Templates compiler.")
        mkdir(out)
        show_warnings = not options.pop("no_warnings", False)
        if options.pop("use_i18n", False):
            files = convert_i18n_tags(files, os.path.join(out, "_i18n"))

        args, i18n_function = build_arguments(files, out, options)
        self.logger.debug("Compiling %d soy files to %s", len(files), out)
        output = self._runner(self.jar, args)

        message = output.stderr or output.stdout
        if output.returncode != 0 and not message:
            message = f"Exit code {output.returncode}"
        errors, warnings = count_template_diagnostics(message)
        if errors:
            return CompileOutcome.failure(message)

        generated = glob_files("**/*.js", root=out)
        if i18n_function:
            find_and_replace(generated, _GET_MSG, f"{i18n_function}(")
        self.logger.debug("Compiled %d soy files to %s", len(files), out)
        reported = message if warnings and show_warnings else None
        return CompileOutcome(warnings=reported, output_path=out)


__all__ = [
    "OUTPUT_PATH_FORMAT",
    "TemplatesCompilerAdapter",
    "build_arguments",
    "convert_i18n_tags",
    "count_template_diagnostics",
]
