"""
Core machinery shared by the lowering passes.

Trees are the ESTree dictionaries produced by `esprima`. `NodeTransformer`
walks them the way `ast.NodeTransformer` walks Python trees: it dispatches on
the node `type` to a `visit_<Type>` method and writes whatever the visitor
returns back into the parent slot, so a visitor can keep, replace, remove
(`None`) or expand (a list) a node in place. `LoweringPass` adds the
bookkeeping every pass needs: a name, an `apply(tree)` entry point and a list
of non-fatal diagnostics for occurrences the pass declined to rewrite.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Set, Tuple

from .builders import Node, block_statement

logger = logging.getLogger(__name__)

_SKIPPED_KEYS = frozenset({"type", "loc", "range"})

FUNCTION_TYPES = frozenset(
    {"FunctionDeclaration", "FunctionExpression", "ArrowFunctionExpression"}
)
NON_ARROW_FUNCTION_TYPES = frozenset({"FunctionDeclaration", "FunctionExpression"})
CLASS_TYPES = frozenset({"ClassDeclaration", "ClassExpression"})


def is_node(value: Any) -> bool:
    return isinstance(value, dict) and "type" in value


@dataclass(frozen=True)
class UnsupportedShapeDiagnostic:
    """A pass matched a node it could not safely rewrite and left it untouched."""

    pass_name: str
    message: str
    line: Optional[int] = None
    column: Optional[int] = None

    def __str__(self) -> str:
        loc = ""
        if self.line is not None and self.column is not None:
            loc = f" (line {self.line}, column {self.column})"
        return f"[{self.pass_name}] {self.message}{loc}"


@dataclass(frozen=True)
class TransformContext:
    """Contextual information available during node transformation."""

    source_name: str = "<input>"


class NodeTransformer:
    """Visitor rewriting ESTree nodes in place."""

    def visit(self, node: Node) -> Any:
        handler = getattr(self, f"visit_{node.get('type')}", None)
        if handler is None:
            return self.generic_visit(node)
        return handler(node)

    def generic_visit(self, node: Node) -> Node:
        for key, value in list(node.items()):
            if key in _SKIPPED_KEYS:
                continue
            if isinstance(value, list):
                self._visit_list(value)
            elif is_node(value):
                result = self.visit(value)
                if result is None:
                    del node[key]
                elif isinstance(result, list):
                    # Several statements in a single-statement slot.
                    node[key] = block_statement(result, source=value)
                else:
                    node[key] = result
        return node

    def _visit_list(self, values: List[Any]) -> None:
        rewritten: List[Any] = []
        for item in values:
            if not is_node(item):
                rewritten.append(item)
                continue
            result = self.visit(item)
            if result is None:
                continue
            if isinstance(result, list):
                rewritten.extend(result)
            else:
                rewritten.append(result)
        values[:] = rewritten


class LoweringPass(NodeTransformer):
    """Base class of the six lowering passes."""

    name = "lowering"

    def __init__(self, *, context: Optional[TransformContext] = None):
        self.context = context or TransformContext()
        self.diagnostics: List[UnsupportedShapeDiagnostic] = []

    def apply(self, tree: Node) -> None:
        """Rewrite every matching node of `tree` in place."""
        self.visit(tree)

    def _decline(self, message: str, node: Optional[Node] = None) -> None:
        line, column = node_position(node)
        diagnostic = UnsupportedShapeDiagnostic(
            pass_name=self.name, message=message, line=line, column=column
        )
        self.diagnostics.append(diagnostic)
        logger.debug("%s: %s", self.context.source_name, diagnostic)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


# ---------------------------------------------------------------------- helpers


def node_position(node: Optional[Node]) -> Tuple[Optional[int], Optional[int]]:
    if not node or not isinstance(node, dict):
        return None, None
    start = (node.get("loc") or {}).get("start") or {}
    return start.get("line"), start.get("column")


def iter_nodes(
    node: Any, *, stop_at: frozenset = frozenset(), parent: Optional[Node] = None
) -> Iterator[Tuple[Node, Optional[Node]]]:
    """
    Yield `(node, parent)` pairs depth-first.

    Nodes whose type is in `stop_at` are yielded but not descended into,
    except for the starting node itself.
    """
    stack: List[Tuple[Any, Optional[Node], bool]] = [(node, parent, True)]
    while stack:
        current, current_parent, is_root = stack.pop()
        if isinstance(current, list):
            stack.extend((item, current_parent, False) for item in reversed(current))
            continue
        if not is_node(current):
            continue
        yield current, current_parent
        if not is_root and current.get("type") in stop_at:
            continue
        children = [
            value for key, value in current.items() if key not in _SKIPPED_KEYS
        ]
        stack.extend((child, current, False) for child in reversed(children))


def uses_super(node: Node) -> bool:
    """True when `node` references `super` outside nested ordinary functions."""
    return any(
        child.get("type") == "Super"
        for child, _ in iter_nodes(node, stop_at=NON_ARROW_FUNCTION_TYPES | CLASS_TYPES)
    )


def uses_this(node: Node) -> bool:
    return any(
        child.get("type") == "ThisExpression"
        for child, _ in iter_nodes(node, stop_at=NON_ARROW_FUNCTION_TYPES | CLASS_TYPES)
    )


def uses_new_target(node: Node) -> bool:
    for child, _ in iter_nodes(node, stop_at=NON_ARROW_FUNCTION_TYPES):
        if child.get("type") == "MetaProperty":
            meta = child.get("meta") or {}
            if meta.get("name") == "new":
                return True
    return False


def pattern_names(pattern: Optional[Node]) -> List[str]:
    """Names bound by a declaration or parameter pattern, in source order."""
    return [identifier.get("name") for identifier in pattern_identifiers(pattern)]


def pattern_identifiers(pattern: Optional[Node]) -> List[Node]:
    if not is_node(pattern):
        return []
    pattern_type = pattern["type"]
    if pattern_type == "Identifier":
        return [pattern]
    if pattern_type == "ObjectPattern":
        found: List[Node] = []
        for prop in pattern.get("properties", []):
            target = prop.get("argument") if prop.get("type") == "RestElement" else prop.get("value")
            found.extend(pattern_identifiers(target))
        return found
    if pattern_type == "ArrayPattern":
        found = []
        for element in pattern.get("elements", []):
            found.extend(pattern_identifiers(element))
        return found
    if pattern_type == "AssignmentPattern":
        return pattern_identifiers(pattern.get("left"))
    if pattern_type == "RestElement":
        return pattern_identifiers(pattern.get("argument"))
    return []


def declared_var_names(body: Any) -> Set[str]:
    """Names a function body declares with `var` or `function`."""
    names: Set[str] = set()
    for child, _ in iter_nodes(body, stop_at=FUNCTION_TYPES | CLASS_TYPES):
        child_type = child.get("type")
        if child_type == "VariableDeclaration" and child.get("kind") == "var":
            for declarator in child.get("declarations", []):
                names.update(pattern_names(declarator.get("id")))
        elif child_type == "FunctionDeclaration" and child.get("id"):
            names.add(child["id"].get("name"))
    return names


def referenced_names(expression: Any) -> Set[str]:
    return {
        child.get("name")
        for child, _ in iter_nodes(expression)
        if child.get("type") == "Identifier"
    }


def is_directive(statement: Node) -> bool:
    return statement.get("type") == "ExpressionStatement" and "directive" in statement


def is_capture_alias(statement: Node) -> bool:
    """`var _this = this;` / `var _arguments = arguments;` emitted for arrows."""
    if statement.get("type") != "VariableDeclaration" or statement.get("kind") != "var":
        return False
    declarations = statement.get("declarations") or []
    if not declarations:
        return False
    for declarator in declarations:
        init = declarator.get("init") or {}
        if init.get("type") == "ThisExpression":
            continue
        if init.get("type") == "Identifier" and init.get("name") == "arguments":
            continue
        return False
    return True


def prologue_length(statements: List[Node], *, include_aliases: bool = False) -> int:
    """Number of leading statements new code must be inserted after."""
    index = 0
    while index < len(statements) and is_directive(statements[index]):
        index += 1
    if include_aliases:
        while index < len(statements) and is_capture_alias(statements[index]):
            index += 1
    return index


class NameGenerator:
    """Hands out identifiers that do not clash with any name in the tree."""

    def __init__(self, tree: Node):
        self._used: Set[str] = {
            node.get("name")
            for node, _ in iter_nodes(tree)
            if node.get("type") in ("Identifier", "JSXIdentifier")
        }

    def fresh(self, hint: str) -> str:
        base = hint if hint.startswith("_") else f"_{hint}"
        candidate = base
        counter = 2
        while candidate in self._used:
            candidate = f"{base}{counter}"
            counter += 1
        self._used.add(candidate)
        return candidate

    def reserve(self, name: str) -> None:
        self._used.add(name)


__all__ = [
    "CLASS_TYPES",
    "FUNCTION_TYPES",
    "LoweringPass",
    "NameGenerator",
    "Node",
    "NodeTransformer",
    "NON_ARROW_FUNCTION_TYPES",
    "TransformContext",
    "UnsupportedShapeDiagnostic",
    "declared_var_names",
    "is_capture_alias",
    "is_directive",
    "is_node",
    "iter_nodes",
    "node_position",
    "pattern_identifiers",
    "pattern_names",
    "prologue_length",
    "referenced_names",
    "uses_new_target",
    "uses_super",
    "uses_this",
]
