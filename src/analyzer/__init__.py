"""Semantic analysis helpers for ES2015+ JavaScript."""

from .scope_tracker import (
    BLOCK_SCOPED_KINDS,
    FUNCTION_SCOPE_TYPES,
    LOOP_TYPES,
    AnalysisIssue,
    AnalysisResult,
    Binding,
    BindingKind,
    Reference,
    Scope,
    ScopeType,
    analyze_bindings,
)

__all__ = [
    "AnalysisIssue",
    "AnalysisResult",
    "BLOCK_SCOPED_KINDS",
    "Binding",
    "BindingKind",
    "FUNCTION_SCOPE_TYPES",
    "LOOP_TYPES",
    "Reference",
    "Scope",
    "ScopeType",
    "analyze_bindings",
]
