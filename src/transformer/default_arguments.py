"""
Lower default parameter values to presence checks in the function body.

    function f(a, b = a + 1) { ... }
    function f(a, b) { if (b === void 0) { b = a + 1; } ... }

Checks run in parameter order, so a default may read any earlier parameter
after that parameter's own default has been applied.
"""

from __future__ import annotations

from .builders import (
    Node,
    assign,
    binary,
    block_statement,
    expression_statement,
    identifier,
    if_statement,
    return_statement,
    void_zero,
)
from .core import LoweringPass, declared_var_names, prologue_length, referenced_names


class DefaultArgumentPass(LoweringPass):
    name = "default_arguments"

    def visit_FunctionDeclaration(self, node: Node) -> Node:
        self.generic_visit(node)
        params = node.get("params", [])
        defaulted = [
            (index, param)
            for index, param in enumerate(params)
            if param.get("type") == "AssignmentPattern"
        ]
        if not defaulted:
            return node

        if any((param.get("left") or {}).get("type") != "Identifier" for _, param in defaulted):
            self._decline("Destructured parameter with a default value left untouched.", node)
            return node

        body = node.get("body") or {}
        if body.get("type") != "BlockStatement":
            body = block_statement([return_statement(body, source=body)], source=body)
            node["body"] = body
            node["expression"] = False
        statements = body.setdefault("body", [])

        redeclared = declared_var_names(statements)
        for _, param in defaulted:
            clash = redeclared & referenced_names(param.get("right"))
            if clash:
                self._decline(
                    f"Default value refers to `{sorted(clash)[0]}`, which the body redeclares.",
                    param,
                )
                return node

        checks = []
        for index, param in defaulted:
            target = param["left"]
            name = target.get("name")
            params[index] = target
            checks.append(
                if_statement(
                    binary("===", identifier(name), void_zero()),
                    block_statement(
                        [expression_statement(assign(identifier(name), param["right"]))]
                    ),
                )
            )

        position = prologue_length(statements, include_aliases=True)
        statements[position:position] = checks
        return node

    visit_FunctionExpression = visit_FunctionDeclaration
    visit_ArrowFunctionExpression = visit_FunctionDeclaration


__all__ = ["DefaultArgumentPass"]
