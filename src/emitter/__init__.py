"""Utilities for emitting JavaScript source code from ESTree programs."""

from .codegen import CodeGenerationError, CodeGenerator, Precedence
from .comments import CommentQueue
from .writer import EmitOptions, EmitResult, emit_program, format_source

__all__ = [
    "CodeGenerationError",
    "CodeGenerator",
    "CommentQueue",
    "EmitOptions",
    "EmitResult",
    "Precedence",
    "emit_program",
    "format_source",
]
