"""
JavaScript parsing utilities built on top of the Python `esprima` port.

The module exposes `parse_js`, which returns the JSON-compatible ESTree AST
together with the comment and token side-tables esprima collects while
parsing. JSX is accepted in both source types. The side-tables are detached from the program node so the tree only
holds syntax; the text emitter consumes them later to reattach comments.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import esprima

SOURCE_TYPES = ("script", "module")


class JsSyntaxError(ValueError):
    """Raised when source text is not valid in the selected dialect."""

    def __init__(
        self,
        description: str,
        *,
        source_name: str = "<input>",
        line: Optional[int] = None,
        column: Optional[int] = None,
        index: Optional[int] = None,
    ):
        loc = ""
        if line is not None:
            loc = f":{line}" if column is None else f":{line}:{column}"
        super().__init__(f"{source_name}{loc}: {description}")
        self.description = description
        self.source_name = source_name
        self.line = line
        self.column = column
        self.index = index

    @property
    def range(self) -> Optional[List[int]]:
        """Offending source range, when esprima reported an offset."""
        if self.index is None:
            return None
        return [self.index, self.index + 1]


@dataclass(frozen=True)
class ParseResult:
    """Aggregate of the output AST, its side-tables and metadata."""

    ast: Dict[str, Any]
    source: str
    source_hash: str
    source_name: str
    comments: List[Dict[str, Any]] = field(default_factory=list)
    tokens: List[Dict[str, Any]] = field(default_factory=list)

    def to_json(self) -> str:
        """Serialise the parse result to JSON for debugging or caching."""
        payload = {
            "ast": self.ast,
            "comments": self.comments,
            "tokens": self.tokens,
            "source_hash": self.source_hash,
            "source_name": self.source_name,
        }
        return json.dumps(payload, ensure_ascii=False, indent=2)


def _hash_source(source: str) -> str:
    """Create a deterministic hash for cache keying."""
    return hashlib.sha256(source.encode("utf-8")).hexdigest()


def parse_js(
    source: str,
    *,
    source_name: str = "<input>",
    source_type: str = "script",
) -> ParseResult:
    """
    Parse JavaScript source text into an esprima AST.

    Args:
        source: Raw JavaScript source code.
        source_name: Optional label used for diagnostics (defaults to `<input>`).
        source_type: `"script"` or `"module"`; modules enable import/export.

    Returns:
        ParseResult containing the AST and the comment/token side-tables.

    Raises:
        JsSyntaxError: If the text does not parse.
    """
    if source_type not in SOURCE_TYPES:
        raise ValueError(f"Unknown source type: {source_type!r}")

    options = dict(loc=True, range=True, comment=True, tokens=True, jsx=True)
    parser = esprima.parseModule if source_type == "module" else esprima.parseScript
    try:
        program = parser(source, **options)
    except esprima.Error as exc:
        raise JsSyntaxError(
            getattr(exc, "description", None) or str(exc),
            source_name=source_name,
            line=getattr(exc, "lineNumber", None),
            column=getattr(exc, "column", None),
            index=getattr(exc, "index", None),
        ) from exc

    raw_ast = program.toDict() if hasattr(program, "toDict") else program
    # The side-tables travel next to the tree, not inside it.
    comments = raw_ast.pop("comments", None) or []
    tokens = raw_ast.pop("tokens", None) or []

    return ParseResult(
        ast=raw_ast,
        source=source,
        source_hash=_hash_source(source),
        source_name=source_name,
        comments=comments,
        tokens=tokens,
    )


__all__ = ["JsSyntaxError", "ParseResult", "SOURCE_TYPES", "parse_js"]
