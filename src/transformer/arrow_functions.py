"""
Lower arrow functions to ordinary function expressions.

An arrow has no `this` or `arguments` of its own, so every such reference
inside an arrow (including nested arrows) is rewritten to an alias bound
once at the top of the nearest enclosing non-arrow function:

    function f() { return () => this.x; }
    function f() { var _this = this; return function () { return _this.x; }; }

At program level only `this` is aliased; top-level `arguments` is not a
binding and is left alone.

In the constructor of a derived class the aliases go right after the
top-level `super(...)` call. Without such a call, arrows there that use
`this` are declined.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Set

from .builders import (
    Node,
    block_statement,
    function_expression,
    identifier,
    return_statement,
    this_expression,
    var,
)
from .core import (
    LoweringPass,
    NameGenerator,
    prologue_length,
    uses_new_target,
    uses_super,
    uses_this,
)


@dataclass
class _Frame:
    """A `this`-providing scope: a non-arrow function or the program."""

    statements: List[Node]
    allows_arguments: bool
    arrow_depth: int = 0
    uses_this: bool = False
    uses_arguments: bool = False
    super_call_required: bool = False


class ArrowFunctionPass(LoweringPass):
    name = "arrow_functions"

    def apply(self, tree: Node) -> None:
        self._names = NameGenerator(tree)
        self._this_alias: Optional[str] = None
        self._arguments_alias: Optional[str] = None
        self._frames: List[_Frame] = []
        self._derived_constructors: Set[int] = set()
        self.visit(tree)

    # --------------------------------------------------------------- frames

    def visit_Program(self, node: Node) -> Node:
        return self._visit_frame(node, node.setdefault("body", []), allows_arguments=False)

    def visit_FunctionDeclaration(self, node: Node) -> Node:
        body = node.get("body") or {}
        return self._visit_frame(node, body.setdefault("body", []), allows_arguments=True)

    visit_FunctionExpression = visit_FunctionDeclaration

    def _visit_frame(self, node: Node, statements: List[Node], *, allows_arguments: bool) -> Node:
        derived = id(node) in self._derived_constructors
        frame = _Frame(
            statements=statements,
            allows_arguments=allows_arguments,
            super_call_required=derived and _super_call_index(statements) is None,
        )
        self._frames.append(frame)
        self.generic_visit(node)
        self._frames.pop()

        aliases = []
        if frame.uses_this:
            aliases.append(var(self._this_name(), this_expression()))
        if frame.uses_arguments:
            aliases.append(var(self._arguments_name(), identifier("arguments")))
        if aliases:
            index = prologue_length(statements)
            super_index = _super_call_index(statements) if derived else None
            if super_index is not None:
                # `this` is unusable until the superclass constructor returned.
                index = super_index + 1
            statements[index:index] = aliases
        return node

    def visit_ClassDeclaration(self, node: Node) -> Node:
        if node.get("superClass") is not None:
            for method in (node.get("body") or {}).get("body", []):
                if method.get("kind") == "constructor" and method.get("value") is not None:
                    self._derived_constructors.add(id(method["value"]))
        return self.generic_visit(node)

    visit_ClassExpression = visit_ClassDeclaration

    def _this_name(self) -> str:
        if self._this_alias is None:
            self._this_alias = self._names.fresh("this")
        return self._this_alias

    def _arguments_name(self) -> str:
        if self._arguments_alias is None:
            self._arguments_alias = self._names.fresh("arguments")
        return self._arguments_alias

    # --------------------------------------------------------------- arrows

    def visit_ArrowFunctionExpression(self, node: Node) -> Node:
        frame = self._frames[-1]
        if frame.super_call_required and uses_this(node):
            self._decline(
                "Arrow function using `this` in a derived constructor without a "
                "top-level `super()` call left untouched.",
                node,
            )
            return node
        declined = uses_super(node) or uses_new_target(node)

        frame.arrow_depth += 1
        self.generic_visit(node)
        frame.arrow_depth -= 1

        if declined:
            self._decline("Arrow function using `super` or `new.target` left untouched.", node)
            return node

        body = node.get("body") or {}
        if node.get("expression") or body.get("type") != "BlockStatement":
            body = block_statement([return_statement(body, source=body)], source=body)
        return function_expression(
            node.get("params", []),
            body,
            is_async=bool(node.get("async")),
            source=node,
        )

    def visit_ThisExpression(self, node: Node) -> Node:
        frame = self._frames[-1]
        if not frame.arrow_depth:
            return node
        frame.uses_this = True
        return identifier(self._this_name(), source=node)

    def visit_Identifier(self, node: Node) -> Node:
        frame = self._frames[-1]
        if node.get("name") != "arguments" or not frame.arrow_depth:
            return node
        if not frame.allows_arguments:
            return node
        frame.uses_arguments = True
        return identifier(self._arguments_name(), source=node)

    # Property names are not references.

    def visit_MemberExpression(self, node: Node) -> Node:
        node["object"] = self.visit(node["object"])
        if node.get("computed"):
            node["property"] = self.visit(node["property"])
        return node

    def visit_Property(self, node: Node) -> Node:
        if node.get("computed"):
            node["key"] = self.visit(node["key"])
        if node.get("value") is not None:
            node["value"] = self.visit(node["value"])
        return node

    visit_MethodDefinition = visit_Property


def _super_call_index(statements: List[Node]) -> Optional[int]:
    for index, statement in enumerate(statements):
        expression = statement.get("expression") or {}
        callee = expression.get("callee") or {}
        if (
            statement.get("type") == "ExpressionStatement"
            and expression.get("type") == "CallExpression"
            and callee.get("type") == "Super"
        ):
            return index
    return None


__all__ = ["ArrowFunctionPass"]
