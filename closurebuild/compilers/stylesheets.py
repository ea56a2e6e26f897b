"""Stylesheet minifier adapter backed by rcssmin."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import rcssmin

from ..models import BuildType, TextDecoration
from ..tools.files import save_content
from .base import CompileOutcome, ExternalCompiler


class StylesheetAdapter(ExternalCompiler):
    """Concatenates and minifies CSS files into a single output file."""

    name = "stylesheets"
    label = "Css Compiler"
    build_types = (BuildType.STYLESHEET,)

    def __init__(self, *, background: bool = False) -> None:
        super().__init__(background=background)

    def run(
        self,
        files: List[str],
        out: str,
        options: Dict[str, Any],
        decoration: TextDecoration | None,
    ) -> CompileOutcome:
        sources = []
        for path in files:
            try:
                sources.append(Path(path).read_text(encoding="utf-8"))
            except OSError as exc:
                return CompileOutcome.failure(f"Failed for {out}: {exc}")
        minified = rcssmin.cssmin(
            "\n".join(sources), keep_bang_comments=bool(options.get("keep_bang_comments"))
        )
        content = save_content(out, minified, decoration)
        return CompileOutcome(output_path=out, content=content)


__all__ = ["StylesheetAdapter"]
