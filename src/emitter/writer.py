"""
Serialize lowered ESTree programs to JavaScript text, ready for writing to disk.

Generation is done by `CodeGenerator`; when a formatter configuration is
given the generated text is additionally passed through `jsbeautifier`. The
beautifier only re-indents and re-wraps, it never adds or removes statements.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional

import jsbeautifier

from .codegen import CodeGenerator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmitOptions:
    # None disables the cosmetic formatter; a mapping enables it with those options.
    formatter: Optional[Mapping[str, Any]] = None
    indent: str = "  "
    trailing_newline: bool = True


@dataclass(frozen=True)
class EmitResult:
    source: str
    formatted: bool = False


def format_source(text: str, options: Optional[Mapping[str, Any]] = None) -> str:
    """
    Run `jsbeautifier` over `text`.

    Option names follow jsbeautifier (`indent_size`, `brace_style`, ...);
    dashes are accepted in place of underscores and unknown names are ignored.
    """
    beautifier_options = jsbeautifier.default_options()
    for key, value in (options or {}).items():
        attribute = key.replace("-", "_")
        if hasattr(beautifier_options, attribute):
            setattr(beautifier_options, attribute, value)
        else:
            logger.debug("Ignoring unknown formatter option %r", key)
    return jsbeautifier.beautify(text, beautifier_options)


def emit_program(
    tree: Dict[str, Any],
    source: str = "",
    comments: Iterable[Dict[str, Any]] = (),
    tokens: Iterable[Dict[str, Any]] = (),
    options: Optional[EmitOptions] = None,
) -> EmitResult:
    """
    Render `tree` to JavaScript text.

    `source`, `comments` and `tokens` are the original text and the side-tables
    from the parse; they drive comment placement and blank-line preservation.
    """
    options = options or EmitOptions()
    generator = CodeGenerator(source, comments, tokens, indent=options.indent)
    text = generator.generate(tree)

    formatted = options.formatter is not None
    if formatted:
        text = format_source(text, options.formatter)

    text = text.rstrip("\n")
    if options.trailing_newline and text:
        text += "\n"
    logger.debug("Emitted %d characters (formatted=%s)", len(text), formatted)
    return EmitResult(source=text, formatted=formatted)


__all__ = ["EmitOptions", "EmitResult", "emit_program", "format_source"]
