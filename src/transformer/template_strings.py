"""
Lower template literals to string concatenation.

`` `sum: ${a + b}` `` becomes `"sum: " + (a + b)`: cooked literal segments and
interpolated expressions are chained left to right with `+`, so evaluation
order and segment boundaries are unchanged. Empty segments are dropped, and a
leading `""` is kept whenever the chain would otherwise start with two
non-string operands. Tagged templates depend on the raw strings array and are
left untouched.
"""

from __future__ import annotations

from typing import List

from .builders import Node, binary, literal, located
from .core import LoweringPass


def _is_string_literal(node: Node) -> bool:
    return node.get("type") == "Literal" and isinstance(node.get("value"), str)


class TemplateStringPass(LoweringPass):
    name = "string_templates"

    def visit_TaggedTemplateExpression(self, node: Node) -> Node:
        node["tag"] = self.visit(node["tag"])
        quasi = node.get("quasi") or {}
        # Substitutions may hold untagged templates of their own.
        self._visit_list(quasi.get("expressions", []))
        self._decline("Tagged template literal left untouched.", node)
        return node

    def visit_TemplateLiteral(self, node: Node) -> Node:
        self.generic_visit(node)
        quasis = node.get("quasis", [])
        expressions = node.get("expressions", [])

        parts: List[Node] = []
        for index, quasi in enumerate(quasis):
            cooked = (quasi.get("value") or {}).get("cooked")
            if cooked:
                parts.append(literal(cooked, source=quasi))
            if index < len(expressions):
                parts.append(expressions[index])

        if not parts:
            return literal("", source=node)
        if not _is_string_literal(parts[0]) and (
            len(parts) < 2 or not _is_string_literal(parts[1])
        ):
            parts.insert(0, literal(""))

        result = parts[0]
        for part in parts[1:]:
            result = binary("+", result, part)
        return located(result, node)


__all__ = ["TemplateStringPass"]
