"""CLI entrypoints for closurebuild commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from . import __version__
from .build_config import ResolvedBuildConfig
from .builder import ClosureBuilder
from .config import ConfigError, load_build_file
from .errors import ClassificationReadError
from .logging import configure_logging, get_logger
from .models import BuildDescriptor, BuildType
from .tools.java import java_version


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="closurebuild",
        description="Classify sources and compile them with the matching Closure toolchain.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build",
        help="Run the builds declared in a build file.",
    )
    _add_verbose_option(build_parser, suppress_default=True)
    build_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Build file or directory containing .closurebuild.yml (defaults to current directory).",
    )
    build_parser.add_argument(
        "--name",
        dest="names",
        action="append",
        default=[],
        help="Only run the named build (repeatable).",
    )
    build_parser.add_argument(
        "--trace",
        action="store_true",
        help="Log file listings and raw compiler arguments.",
    )
    build_parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs to this file.",
    )

    classify_parser = subparsers.add_parser(
        "classify",
        help="Show how files would be classified without compiling them.",
    )
    _add_verbose_option(classify_parser, suppress_default=True)
    classify_parser.add_argument("files", nargs="+", help="Source files to inspect.")
    classify_parser.add_argument("--name", default="", help="Build name used as entry point hint.")
    classify_parser.add_argument("--format", default="", help="Module format hint (amd, cjs, es, iife, umd).")
    classify_parser.add_argument(
        "--type",
        dest="build_type",
        default=None,
        choices=[member.value for member in BuildType],
        help="Explicit build type override.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for closurebuild commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        trace=bool(getattr(args, "trace", False)),
        log_file=getattr(args, "log_file", None),
    )

    if args.command == "build":
        try:
            build_file = load_build_file(Path(args.path))
            descriptors = build_file.select(args.names)
        except ConfigError as exc:
            parser.exit(1, f"{exc}\n")
        if not descriptors:
            parser.exit(1, f"No builds declared in {build_file.path}\n")

        if args.verbose:
            get_logger("cli").debug("Using Java %s", java_version(build_file.toolchain.java) or "(not found)")
        builder = ClosureBuilder(toolchain=build_file.toolchain)
        try:
            results = builder.build_all(descriptors)
        except Exception as exc:  # pragma: no cover
            parser.exit(1, f"closurebuild build failed: {exc}\nRun with --verbose for more details.\n")

        failed = [result for result in results if not result.ok]
        for result in results:
            if result.ok:
                target = _relativize(Path(result.output_path)) if result.output_path else "(no output)"
                print(f"{result.name or '(unnamed)'}: {result.build_type} -> {target}")
        if failed:
            names = ", ".join(result.name or "(unnamed)" for result in failed)
            parser.exit(1, f"{len(failed)} build(s) failed: {names}\n")
    elif args.command == "classify":
        descriptor = BuildDescriptor(
            name=args.name,
            srcs=list(args.files),
            format=args.format,
            type=BuildType.parse(args.build_type),
        )
        try:
            config = ResolvedBuildConfig.from_descriptor(descriptor)
        except ClassificationReadError as exc:
            parser.exit(1, f"{exc}\n")
        summary = config.describe()
        summary.pop("out", None)
        print(json.dumps(summary, indent=2))
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
