"""
Pipeline configuration.

Callers describe a run with a mapping such as

    {
        "transformers": {"classes": True, "arrowFunctions": False},
        "formatter": {"indent_size": 2},
        "sourceType": "module",
    }

`PipelineConfig.from_mapping` merges it over the compiled-in defaults: every
pass enabled, formatter disabled, script source type. Unknown keys are
ignored and omitted keys keep their default.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional, Tuple

from parser import SOURCE_TYPES
from transformer import PASS_NAMES

logger = logging.getLogger(__name__)

# Mapping keys accepted under "transformers", per pass name.
TRANSFORMER_KEYS: Dict[str, Tuple[str, ...]] = {
    "classes": ("classes",),
    "string_templates": ("stringTemplates", "string_templates"),
    "arrow_functions": ("arrowFunctions", "arrow_functions"),
    "block_scoped_bindings": ("blockScopedBindings", "block_scoped_bindings", "let"),
    "default_arguments": ("defaultArguments", "default_arguments"),
    "object_methods": ("objectMethods", "object_methods"),
}


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable settings for one pipeline: enabled passes, formatter and source type."""

    classes: bool = True
    string_templates: bool = True
    arrow_functions: bool = True
    block_scoped_bindings: bool = True
    default_arguments: bool = True
    object_methods: bool = True
    formatter: Optional[Mapping[str, Any]] = None
    source_type: str = "script"

    def __post_init__(self) -> None:
        if self.source_type not in SOURCE_TYPES:
            raise ValueError(
                f"source_type must be one of {SOURCE_TYPES}, got {self.source_type!r}"
            )

    @property
    def enabled_passes(self) -> Tuple[str, ...]:
        """Names of the enabled passes, in application order."""
        return tuple(name for name in PASS_NAMES if getattr(self, name))

    def with_passes(self, **flags: bool) -> "PipelineConfig":
        unknown = set(flags) - set(PASS_NAMES)
        if unknown:
            raise ValueError(f"Unknown lowering pass: {sorted(unknown)[0]!r}")
        return replace(self, **flags)

    @classmethod
    def only(cls, *names: str, **overrides: Any) -> "PipelineConfig":
        """A configuration with just the named passes enabled."""
        flags = {name: name in names for name in PASS_NAMES}
        unknown = set(names) - set(PASS_NAMES)
        if unknown:
            raise ValueError(f"Unknown lowering pass: {sorted(unknown)[0]!r}")
        return cls(**flags, **overrides)

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, Any]] = None) -> "PipelineConfig":
        mapping = mapping or {}
        flags: Dict[str, bool] = {}
        transformers = mapping.get("transformers") or {}
        for name, keys in TRANSFORMER_KEYS.items():
            for key in keys:
                if key in transformers:
                    flags[name] = bool(transformers[key])
                    break
        known = {key for keys in TRANSFORMER_KEYS.values() for key in keys}
        for key in transformers:
            if key not in known:
                logger.debug("Ignoring unknown transformer key %r", key)

        formatter = mapping.get("formatter", False)
        if formatter is False or formatter is None:
            formatter_options: Optional[Mapping[str, Any]] = None
        elif formatter is True:
            formatter_options = {}
        else:
            formatter_options = dict(formatter)

        source_type = mapping.get("sourceType", mapping.get("source_type", "script"))
        return cls(
            **flags,
            formatter=formatter_options,
            source_type=source_type,
        )


DEFAULT_CONFIG = PipelineConfig()

__all__ = ["DEFAULT_CONFIG", "PipelineConfig", "TRANSFORMER_KEYS"]
