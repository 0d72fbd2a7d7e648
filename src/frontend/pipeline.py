"""
Front-end integration utilities stitching together dialect compilation,
parsing and scope analysis.

The `run_frontend` function accepts raw source text, compiles it to
JavaScript first when it is written in the CoffeeScript dialect, invokes the
parser to obtain an AST plus comment/token side-tables, optionally runs scope
analysis, and persists cached artefacts when requested.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from analyzer import AnalysisResult, analyze_bindings
from parser import JsSyntaxError, ParseResult, parse_js

logger = logging.getLogger(__name__)

DIALECTS = ("es6", "coffee")

Compiler = Callable[[str], str]


@dataclass(frozen=True)
class FrontEndResult:
    """Combined output from the compile, parse and analysis steps."""

    parse: ParseResult
    analysis: Optional[AnalysisResult]
    dialect: str = "es6"

    @property
    def source(self) -> str:
        """The JavaScript text the tree was built from."""
        return self.parse.source

    @property
    def diagnostics(self):
        """Semantic issues found by scope analysis."""
        if self.analysis:
            return list(self.analysis.issues)
        return []


def coffee_compile(source: str) -> str:
    """Compile CoffeeScript to JavaScript with the `coffeescript` package."""
    import coffeescript

    return coffeescript.compile(source)


def dialect_for_path(path: Union[str, Path]) -> str:
    """Pick the dialect from a file name: `.coffee` files compile first."""
    return "coffee" if Path(path).suffix == ".coffee" else "es6"


def compile_dialect(
    source: str,
    *,
    dialect: str = "es6",
    compiler: Optional[Compiler] = None,
    source_name: str = "<input>",
) -> str:
    """
    Turn dialect source into plain JavaScript text.

    The alternate front end is a black box; whatever it raises is reported as
    a `JsSyntaxError` so callers only have one failure kind to handle.
    """
    if dialect not in DIALECTS:
        raise ValueError(f"Unknown dialect: {dialect!r}")
    if dialect == "es6":
        return source

    compile_fn = compiler or coffee_compile
    logger.debug("Compiling %s from the %s dialect", source_name, dialect)
    try:
        return compile_fn(source)
    except Exception as exc:
        raise JsSyntaxError(
            f"{dialect} compilation failed: {exc}", source_name=source_name
        ) from exc


def run_frontend(
    source: str,
    *,
    source_name: str = "<input>",
    dialect: str = "es6",
    source_type: str = "script",
    compiler: Optional[Compiler] = None,
    analyze: bool = False,
    cache_dir: Optional[Union[str, Path]] = None,
) -> FrontEndResult:
    """
    Execute dialect compilation, parsing and optional scope analysis.

    Args:
        source: Raw source text.
        source_name: Identifier used in diagnostics, e.g. file path.
        dialect: `"es6"` or `"coffee"`.
        source_type: `"script"` or `"module"` to control parsing of import/export.
        compiler: Replacement for the CoffeeScript compiler (`text -> text`).
        analyze: Toggle scope analysis on for diagnostics.
        cache_dir: Optional directory to write parse artefacts (`None` disables).

    Returns:
        FrontEndResult containing the parser output and optional analysis result.

    Raises:
        JsSyntaxError: If compilation or parsing fails.
    """
    javascript = compile_dialect(
        source, dialect=dialect, compiler=compiler, source_name=source_name
    )
    parse_result = parse_js(javascript, source_name=source_name, source_type=source_type)

    analysis_result: Optional[AnalysisResult] = None
    if analyze:
        analysis_result = analyze_bindings(parse_result.ast, source_name=source_name)

    if cache_dir is not None:
        _persist_parse(cache_dir, parse_result)

    return FrontEndResult(parse=parse_result, analysis=analysis_result, dialect=dialect)


def _persist_parse(cache_dir: Union[str, Path], parse_result: ParseResult) -> None:
    """Store the raw parse output to disk for reuse in subsequent runs."""
    path = Path(cache_dir)
    path.mkdir(parents=True, exist_ok=True)
    cache_file = path / f"{parse_result.source_hash}.json"
    cache_file.write_text(parse_result.to_json(), encoding="utf-8")


__all__ = [
    "DIALECTS",
    "Compiler",
    "FrontEndResult",
    "coffee_compile",
    "compile_dialect",
    "dialect_for_path",
    "run_frontend",
]
