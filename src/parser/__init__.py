"""Interfaces for parsing JavaScript source code."""

from .es6_parser import SOURCE_TYPES, JsSyntaxError, ParseResult, parse_js

__all__ = ["JsSyntaxError", "ParseResult", "SOURCE_TYPES", "parse_js"]
