"""Node.js bundler adapters: browserify for CommonJS, rollup for module bundles."""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Callable, Dict, List, Sequence

from ..models import BuildType, TextDecoration
from ..resolver import is_module_format
from ..tools.files import save_content
from ..tools.java import ProcessOutput, run_command
from .base import CompileOutcome, ExternalCompiler

CommandRunner = Callable[[Sequence[str]], ProcessOutput]


class _NodeBundler(ExternalCompiler):
    """Runs a Node CLI that prints the bundle on stdout."""

    def __init__(
        self,
        executable: str,
        *,
        runner: CommandRunner | None = None,
        background: bool = True,
    ) -> None:
        super().__init__(background=background)
        self.executable = executable
        self._runner = runner or run_command

    @abstractmethod
    def command(self, files: List[str], options: Dict[str, Any]) -> List[str]:
        """Return the command line for bundling ``files``."""

    def run(
        self,
        files: List[str],
        out: str,
        options: Dict[str, Any],
        decoration: TextDecoration | None,
    ) -> CompileOutcome:
        command = self.command(files, options)
        self.logger.debug("Compiling %d files to %s ...", len(files), out)
        output = self._runner(command)
        if output.returncode != 0:
            return CompileOutcome.failure(
                f"Was not able to write file {out}: {output.stderr.strip() or output.returncode}"
            )
        warnings = output.stderr.strip() or None
        content = save_content(out, output.stdout, decoration)
        return CompileOutcome(warnings=warnings, output_path=out, content=content)


class BrowserifyAdapter(_NodeBundler):
    name = "browserify"
    label = "Node.js Compiler"
    build_types = (BuildType.COMMONJS_SCRIPT,)

    def __init__(self, executable: str = "browserify", **kwargs: Any) -> None:
        super().__init__(executable, **kwargs)

    def command(self, files: List[str], options: Dict[str, Any]) -> List[str]:
        command = [self.executable, *files]
        if options.get("debug"):
            command.append("--debug")
        if options.get("standalone"):
            command.extend(["--standalone", str(options["standalone"])])
        return command


class RollupAdapter(_NodeBundler):
    """Bundles exactly one entry file into the requested module format."""

    name = "rollup"
    label = "Rollup Compiler"
    build_types = (BuildType.MODULE_BUNDLE,)

    def __init__(self, executable: str = "rollup", **kwargs: Any) -> None:
        super().__init__(executable, **kwargs)

    def command(self, files: List[str], options: Dict[str, Any]) -> List[str]:
        if len(files) > 1:
            raise ValueError("Please only provide one input file!")
        module_format = str(options.get("format") or "es")
        if not is_module_format(module_format):
            raise ValueError(f"Unsupported module format: {module_format}")
        command = [self.executable, files[0], "--format", module_format]
        if options.get("name"):
            command.extend(["--name", str(options["name"])])
        if options.get("banner"):
            command.extend(["--banner", str(options["banner"])])
        for plugin in options.get("plugins") or []:
            command.extend(["--plugin", str(plugin)])
        return command


__all__ = ["BrowserifyAdapter", "RollupAdapter"]
