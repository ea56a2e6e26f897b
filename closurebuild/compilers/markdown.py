"""Markdown to HTML conversion."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List

import markdown

from ..models import BuildType, TextDecoration
from ..tools.files import decorate, write_atomic
from .base import CompileOutcome, ExternalCompiler


def html_filename(path: str) -> str:
    return Path(path).with_suffix(".html").name


class MarkdownAdapter(ExternalCompiler):
    """Converts each markdown file into ``<out>/<name>.html``."""

    name = "markdown"
    label = "Markdown"
    build_types = (BuildType.MARKDOWN,)

    def __init__(self, *, background: bool = False) -> None:
        super().__init__(background=background)

    def run(
        self,
        files: List[str],
        out: str,
        options: Dict[str, Any],
        decoration: TextDecoration | None,
    ) -> CompileOutcome:
        extensions = list(options.get("extensions") or [])
        # Everything is rendered before the first file is written.
        rendered: Dict[str, str] = {}
        for path in files:
            text = Path(path).read_text(encoding="utf-8")
            html = markdown.markdown(text, extensions=extensions)
            rendered[os.path.join(out, html_filename(path))] = decorate(html, decoration)
        written: List[str] = []
        for target, html in rendered.items():
            self.logger.debug("Convert markdown file to %s ...", target)
            write_atomic(target, html)
            written.append(target)
        output_path = written[0] if len(written) == 1 else out
        return CompileOutcome(output_path=output_path)


__all__ = ["MarkdownAdapter", "html_filename"]
