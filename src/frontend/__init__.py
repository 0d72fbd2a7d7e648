"""Front-end pipeline glue for dialect compilation, parsing and analysis."""

from .pipeline import (
    DIALECTS,
    Compiler,
    FrontEndResult,
    coffee_compile,
    compile_dialect,
    dialect_for_path,
    run_frontend,
)

__all__ = [
    "DIALECTS",
    "Compiler",
    "FrontEndResult",
    "coffee_compile",
    "compile_dialect",
    "dialect_for_path",
    "run_frontend",
]
