"""
The pipeline orchestrator: read → lower → emit, as an explicit state machine.

    pipeline = Pipeline({"transformers": {"arrowFunctions": False}})
    pipeline.read(source)
    pipeline.apply_transformations()
    text = pipeline.out()

States only move forward (UNCONFIGURED → CONFIGURED → PARSED → LOWERED →
EMITTED); calling an operation from the wrong state raises `StateError`.
The tree produced by `read` is owned by the run and shared, in place, by
every pass applied to it.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from emitter import EmitOptions, emit_program
from frontend import Compiler, dialect_for_path, run_frontend
from transformer import (
    PASSES_BY_NAME,
    LoweringPass,
    TransformContext,
    UnsupportedShapeDiagnostic,
)

from .config import PipelineConfig
from .io import PathLike, WriteCallback, read_text, read_text_async, write_text

logger = logging.getLogger(__name__)


class StateError(RuntimeError):
    """A pipeline operation was called out of order."""


class PipelineState(str, Enum):
    UNCONFIGURED = "unconfigured"
    CONFIGURED = "configured"
    PARSED = "parsed"
    LOWERED = "lowered"
    EMITTED = "emitted"


@dataclass
class PipelineRun:
    """Per-request state: the tree, its side-tables and the collected diagnostics."""

    source_text: str
    tree: Dict[str, Any]
    source_name: str = "<input>"
    dialect: str = "es6"
    comments: List[Dict[str, Any]] = field(default_factory=list)
    tokens: List[Dict[str, Any]] = field(default_factory=list)
    applied: List[str] = field(default_factory=list)
    diagnostics: List[UnsupportedShapeDiagnostic] = field(default_factory=list)


@dataclass(frozen=True)
class TransformResult:
    source: str
    diagnostics: Tuple[UnsupportedShapeDiagnostic, ...] = ()


class Pipeline:
    def __init__(
        self,
        config: Union[PipelineConfig, Mapping[str, Any], None] = None,
        *,
        compiler: Optional[Compiler] = None,
    ):
        self.state = PipelineState.UNCONFIGURED
        if isinstance(config, PipelineConfig):
            self.config = config
        else:
            self.config = PipelineConfig.from_mapping(config)
        self._compiler = compiler
        self.passes: Tuple[str, ...] = self.config.enabled_passes
        self.run: Optional[PipelineRun] = None
        self._output: Optional[str] = None
        self.state = PipelineState.CONFIGURED
        logger.debug("Pipeline configured with passes: %s", ", ".join(self.passes) or "(none)")

    # ------------------------------------------------------------------ state

    def _require(self, operation: str, *states: PipelineState) -> None:
        if self.state not in states:
            expected = " or ".join(state.value for state in states)
            raise StateError(
                f"{operation}() requires state {expected}, pipeline is {self.state.value}"
            )

    @property
    def diagnostics(self) -> List[UnsupportedShapeDiagnostic]:
        return list(self.run.diagnostics) if self.run else []

    @property
    def tree(self) -> Optional[Dict[str, Any]]:
        return self.run.tree if self.run else None

    # ----------------------------------------------------------------- reading

    def read(
        self, text: str, *, dialect: Optional[str] = None, source_name: str = "<input>"
    ) -> PipelineRun:
        """Parse `text` into the run's tree. Raises `JsSyntaxError` on invalid input."""
        self._require("read", PipelineState.CONFIGURED)
        frontend = run_frontend(
            text,
            source_name=source_name,
            dialect=dialect or "es6",
            source_type=self.config.source_type,
            compiler=self._compiler,
        )
        parse = frontend.parse
        self.run = PipelineRun(
            source_text=parse.source,
            tree=parse.ast,
            source_name=source_name,
            dialect=frontend.dialect,
            comments=list(parse.comments),
            tokens=list(parse.tokens),
        )
        self.state = PipelineState.PARSED
        logger.debug(
            "Parsed %s (%d comments, %d tokens)",
            source_name,
            len(self.run.comments),
            len(self.run.tokens),
        )
        return self.run

    def read_file(self, path: PathLike, *, dialect: Optional[str] = None) -> PipelineRun:
        self._require("read_file", PipelineState.CONFIGURED)
        text = read_text(path)
        return self.read(text, dialect=dialect or dialect_for_path(path), source_name=str(path))

    async def read_file_async(
        self, path: PathLike, *, dialect: Optional[str] = None
    ) -> PipelineRun:
        """Read `path` without blocking the event loop, then parse synchronously."""
        self._require("read_file_async", PipelineState.CONFIGURED)
        text = await read_text_async(path)
        return self.read(text, dialect=dialect or dialect_for_path(path), source_name=str(path))

    # ---------------------------------------------------------------- lowering

    def apply_transformation(self, lowering_pass: Union[LoweringPass, str]) -> List[UnsupportedShapeDiagnostic]:
        """Apply a single pass to the run's tree and return its diagnostics."""
        self._require("apply_transformation", PipelineState.PARSED, PipelineState.LOWERED)
        if isinstance(lowering_pass, str):
            try:
                pass_class = PASSES_BY_NAME[lowering_pass]
            except KeyError:
                raise ValueError(f"Unknown lowering pass: {lowering_pass!r}") from None
            lowering_pass = pass_class(context=TransformContext(source_name=self.run.source_name))

        logger.debug("Applying %s to %s", lowering_pass.name, self.run.source_name)
        lowering_pass.apply(self.run.tree)
        self.run.applied.append(lowering_pass.name)
        for diagnostic in lowering_pass.diagnostics:
            logger.warning("%s: %s", self.run.source_name, diagnostic)
        self.run.diagnostics.extend(lowering_pass.diagnostics)
        self.state = PipelineState.LOWERED
        return list(lowering_pass.diagnostics)

    def apply_transformations(self) -> List[UnsupportedShapeDiagnostic]:
        """Apply every enabled pass once, in the fixed order."""
        self._require("apply_transformations", PipelineState.PARSED)
        for name in self.passes:
            self.apply_transformation(name)
        self.state = PipelineState.LOWERED
        return self.diagnostics

    # ---------------------------------------------------------------- emitting

    def out(self) -> str:
        """Emit the lowered tree as text (cached after the first call)."""
        self._require("out", PipelineState.LOWERED, PipelineState.EMITTED)
        if self._output is None:
            result = emit_program(
                self.run.tree,
                self.run.source_text,
                self.run.comments,
                self.run.tokens,
                EmitOptions(formatter=self.config.formatter),
            )
            self._output = result.source
        self.state = PipelineState.EMITTED
        return self._output

    def write_file(self, path: PathLike, callback: Optional[WriteCallback] = None) -> Optional[Future]:
        """
        Emit and write to `path`.

        Synchronous without `callback`. With one, the write happens on a
        worker thread, `callback(error_or_None)` is invoked exactly once and
        the returned future can be waited on.
        """
        text = self.out()
        return write_text(path, text, callback)


def transform(
    source: str,
    config: Union[PipelineConfig, Mapping[str, Any], None] = None,
    *,
    source_name: str = "<input>",
    dialect: Optional[str] = None,
    compiler: Optional[Compiler] = None,
) -> TransformResult:
    """Run read → apply_transformations → out in one call."""
    pipeline = Pipeline(config, compiler=compiler)
    pipeline.read(source, dialect=dialect, source_name=source_name)
    pipeline.apply_transformations()
    return TransformResult(source=pipeline.out(), diagnostics=tuple(pipeline.diagnostics))


__all__ = [
    "Pipeline",
    "PipelineRun",
    "PipelineState",
    "StateError",
    "TransformResult",
    "transform",
]
