"""Closure Compiler adapter (local ``java -jar`` invocation)."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..models import BuildType, TextDecoration
from ..tools.files import save_content
from ..tools.java import ProcessOutput, has_java, run_jar
from ..tools.text import filter_lines
from .base import CompileOutcome, ExternalCompiler, count_diagnostics, option_arguments

JarRunner = Callable[[str, Sequence[str]], ProcessOutput]

DEFAULT_COMPILATION_LEVEL = "SIMPLE_OPTIMIZATIONS"

DEFAULT_JSCOMP_WARNINGS = (
    "checkVars",
    "conformanceViolations",
    "deprecated",
    "externsValidation",
    "fileoverviewTags",
    "globalThis",
    "misplacedTypeAnnotation",
    "missingProvide",
    "missingRequire",
    "missingReturn",
    "nonStandardJsDocs",
    "typeInvalidation",
    "uselessCode",
)

# JVM and pass-skipping chatter that is not a real compiler diagnostic.
IGNORED_WARNINGS = (
    "Java HotSpot(TM) Client VM warning",
    "com.google.javascript.jscomp.PhaseOptimizer$NamedPass",
    "Skipping pass ambiguateProperties",
    "Skipping pass checkAccessControls",
    "Skipping pass checkConformance",
    "Skipping pass checkTypes",
    "Skipping pass devirtualizePrototypeMethods",
    "Skipping pass disambiguateProperties",
    "Skipping pass inferTypes",
    "Skipping pass inlineProperties",
    "Skipping pass resolveTypes",
)


def build_arguments(files: Sequence[str], options: Dict[str, Any]) -> Tuple[List[str], bool]:
    """Translate ``options`` into command line flags.

    Returns the arguments and whether warnings should be reported.
    """
    options = dict(options)
    options.setdefault("compilation_level", DEFAULT_COMPILATION_LEVEL)
    show_warnings = not options.pop("no_warnings", False)

    jscomp_error = list(options.pop("jscomp_error", None) or [])
    jscomp_off = list(options.pop("jscomp_off", None) or [])
    jscomp_warning = list(options.pop("jscomp_warning", None) or [])
    if show_warnings and not (jscomp_error or jscomp_off or jscomp_warning):
        jscomp_warning = list(DEFAULT_JSCOMP_WARNINGS)

    args: List[str] = []
    for check in jscomp_error:
        args.extend(["--jscomp_error", check])
    for check in jscomp_off:
        args.extend(["--jscomp_off", check])
    if show_warnings:
        for check in jscomp_warning:
            args.extend(["--jscomp_warning", check])

    for path in dict.fromkeys(files):
        args.extend(["--js", path])
    for path in options.pop("externs", None) or []:
        args.extend(["--externs", path])

    args.extend(option_arguments(options))
    return args, show_warnings


class ClosureCompilerAdapter(ExternalCompiler):
    """Runs the Closure Compiler jar and writes the decorated result."""

    name = "closure-compiler"
    label = "Closure Compiler"
    build_types = (BuildType.SCRIPT_FRAMEWORK, BuildType.PLAIN_SCRIPT)

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
                "Closure Compiler jar is not configured (toolchain.closure_compiler_jar)."
            )
        if self._check_java and not has_java(self.java):
            return CompileOutcome.failure("Java (JRE) is required to run the Closure Compiler.")
        args, show_warnings = build_arguments(files, options)
        self.logger.debug("Compiling %d files to %s ...", len(files), out)
        output = self._runner(self.jar, args)

        message = filter_lines(output.stderr, IGNORED_WARNINGS)
        errors, warnings = count_diagnostics(message)
        if errors or (output.returncode != 0 and not warnings):
            return CompileOutcome.failure(message or f"Exit code {output.returncode}")

        reported = message if warnings and show_warnings else None
        if not output.stdout:
            return CompileOutcome(warnings=reported)
        content = save_content(out, output.stdout, decoration)
        return CompileOutcome(warnings=reported, output_path=out, content=content)


__all__ = [
    "ClosureCompilerAdapter",
    "DEFAULT_JSCOMP_WARNINGS",
    "IGNORED_WARNINGS",
    "build_arguments",
]
