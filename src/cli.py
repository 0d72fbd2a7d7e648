"""
Command-line interface for lowering ES2015+ JavaScript files to ES5.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List

from analyzer import analyze_bindings
from parser import JsSyntaxError
from pipeline import Pipeline, PipelineConfig, SourceIOError
from transformer import PASS_NAMES


def _format_location(line: int | None, column: int | None) -> str:
    if line is None:
        return ""
    if column is None:
        return f":{line}"
    return f":{line}:{column}"


def _print_diagnostics(messages: List[str]) -> None:
    for message in messages:
        sys.stderr.write(message + "\n")


def _build_config(args: argparse.Namespace) -> PipelineConfig:
    disabled = set(args.disable or [])
    formatter = {"indent_size": args.indent_size} if args.format else None
    return PipelineConfig(
        **{name: name not in disabled for name in PASS_NAMES},
        formatter=formatter,
        source_type="module" if args.module else "script",
    )


def convert_command(args: argparse.Namespace) -> int:
    input_path = Path(args.input)
    if not input_path.exists():
        sys.stderr.write(f"ERROR: Input file not found: {input_path}\n")
        return 1

    source_name = str(input_path)
    pipeline = Pipeline(_build_config(args))
    try:
        pipeline.read_file(input_path, dialect="coffee" if args.coffee else None)
    except SourceIOError as exc:
        sys.stderr.write(f"ERROR: {exc}\n")
        return 1
    except JsSyntaxError as exc:
        loc = _format_location(exc.line, exc.column)
        sys.stderr.write(f"ERROR {source_name}{loc}: {exc.description}\n")
        return 1

    diagnostics: List[str] = []
    analysis = analyze_bindings(pipeline.tree, source_name=source_name)
    for issue in analysis.issues:
        loc = _format_location(issue.loc.line, issue.loc.column)
        diagnostics.append(f"WARNING {source_name}{loc}: {issue.message}")

    pipeline.apply_transformations()
    for diagnostic in pipeline.diagnostics:
        loc = _format_location(diagnostic.line, diagnostic.column)
        diagnostics.append(f"INFO {source_name}{loc}: [{diagnostic.pass_name}] {diagnostic.message}")

    if args.out:
        try:
            pipeline.write_file(args.out)
        except SourceIOError as exc:
            sys.stderr.write(f"ERROR: {exc}\n")
            return 1
    else:
        sys.stdout.write(pipeline.out())

    _print_diagnostics(diagnostics)

    if args.strict and diagnostics:
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="es6to5", description="Lower ES2015+ JavaScript to ES5")
    subparsers = parser.add_subparsers(dest="command")

    convert_parser = subparsers.add_parser("convert", help="Lower a single JavaScript file")
    convert_parser.add_argument("input", help="Path to the ES2015+ (or CoffeeScript) file")
    convert_parser.add_argument(
        "--out",
        help="Output file path (defaults to standard output)",
    )
    convert_parser.add_argument(
        "--module",
        action="store_true",
        help="Parse the input as an ES module (enables import/export syntax).",
    )
    convert_parser.add_argument(
        "--coffee",
        action="store_true",
        help="Compile the input from CoffeeScript first (implied for .coffee files).",
    )
    convert_parser.add_argument(
        "--disable",
        nargs="+",
        choices=PASS_NAMES,
        metavar="PASS",
        help=f"Lowering passes to skip: {', '.join(PASS_NAMES)}.",
    )
    convert_parser.add_argument(
        "--format",
        action="store_true",
        help="Run the output through jsbeautifier.",
    )
    convert_parser.add_argument(
        "--indent-size",
        type=int,
        default=2,
        help="Indent size used by --format (default: 2).",
    )
    convert_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 when any warning or unsupported shape is reported.",
    )
    convert_parser.add_argument(
        "--verbose", action="store_true", help="Log pipeline progress at DEBUG level."
    )
    convert_parser.set_defaults(func=convert_command)

    return parser


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if getattr(args, "verbose", False) else logging.ERROR,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if not hasattr(args, "func"):
        parser.print_help()
        return 1
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
