"""Lower object method shorthand (`{ m() {} }`) to `{ m: function () {} }`."""

from __future__ import annotations

from .builders import Node
from .core import LoweringPass, uses_super


class ObjectMethodPass(LoweringPass):
    name = "object_methods"

    def visit_Property(self, node: Node) -> Node:
        self.generic_visit(node)
        if not node.get("method"):
            return node
        value = node.get("value") or {}
        if uses_super(value):
            self._decline("Object method using `super` left as shorthand.", node)
            return node
        # The value stays an anonymous function expression.
        node["method"] = False
        return node


__all__ = ["ObjectMethodPass"]
