"""ES2015 to ES5 lowering passes over esprima ESTree dictionaries."""

from typing import Dict, Tuple, Type

from .arrow_functions import ArrowFunctionPass
from .block_scoping import BlockScopingPass
from .classes import ClassPass
from .core import (
    LoweringPass,
    NodeTransformer,
    TransformContext,
    UnsupportedShapeDiagnostic,
)
from .default_arguments import DefaultArgumentPass
from .object_methods import ObjectMethodPass
from .template_strings import TemplateStringPass

# Fixed application order. Classes come first so that their `let` bindings and
# method bodies are seen by the later passes.
LOWERING_PASSES: Tuple[Type[LoweringPass], ...] = (
    ClassPass,
    TemplateStringPass,
    ArrowFunctionPass,
    BlockScopingPass,
    DefaultArgumentPass,
    ObjectMethodPass,
)

PASSES_BY_NAME: Dict[str, Type[LoweringPass]] = {
    lowering_pass.name: lowering_pass for lowering_pass in LOWERING_PASSES
}

PASS_NAMES: Tuple[str, ...] = tuple(PASSES_BY_NAME)

__all__ = [
    "ArrowFunctionPass",
    "BlockScopingPass",
    "ClassPass",
    "DefaultArgumentPass",
    "LOWERING_PASSES",
    "LoweringPass",
    "NodeTransformer",
    "ObjectMethodPass",
    "PASSES_BY_NAME",
    "PASS_NAMES",
    "TemplateStringPass",
    "TransformContext",
    "UnsupportedShapeDiagnostic",
]
