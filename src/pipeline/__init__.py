"""Pipeline orchestration: configuration, pass ordering, state machine and file I/O."""

from .config import DEFAULT_CONFIG, PipelineConfig
from .io import SourceIOError
from .orchestrator import (
    Pipeline,
    PipelineRun,
    PipelineState,
    StateError,
    TransformResult,
    transform,
)

__all__ = [
    "DEFAULT_CONFIG",
    "Pipeline",
    "PipelineConfig",
    "PipelineRun",
    "PipelineState",
    "SourceIOError",
    "StateError",
    "TransformResult",
    "transform",
]
