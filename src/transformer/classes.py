"""
Lower class declarations and expressions to constructor functions.

    class A extends B { constructor(x) { super(x); } m() { return super.m(); } }

becomes

    let A = (function (_super) {
      function A(x) { _super.call(this, x); }
      A.prototype = Object.create(_super.prototype, {
        constructor: { value: A, writable: true, configurable: true }
      });
      A.prototype.m = function () { return _super.prototype.m.call(this); };
      return A;
    })(B);

The superclass is evaluated once, as the IIFE argument, and must be a plain
identifier or dotted name. Declarations keep block scoping by becoming `let`
bindings; the block-scoped bindings pass lowers those in turn.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from .builders import (
    Node,
    assign,
    call,
    expression_statement,
    function_declaration,
    function_expression,
    identifier,
    literal,
    located,
    member,
    member_path,
    object_expression,
    property_node,
    return_statement,
    this_expression,
    variable_declaration,
    variable_declarator,
)
from .core import (
    CLASS_TYPES,
    NON_ARROW_FUNCTION_TYPES,
    LoweringPass,
    NameGenerator,
    NodeTransformer,
    iter_nodes,
)


def _is_simple_reference(node: Node) -> bool:
    node_type = node.get("type")
    if node_type == "Identifier":
        return True
    if node_type == "MemberExpression" and not node.get("computed"):
        return _is_simple_reference(node.get("object") or {})
    return False


def _is_super_member(node: Optional[Node]) -> bool:
    return (
        isinstance(node, dict)
        and node.get("type") == "MemberExpression"
        and (node.get("object") or {}).get("type") == "Super"
    )


class _SuperRewriter(NodeTransformer):
    """Rewrites `super` inside one method body, stopping at nested functions."""

    def __init__(self, super_name: str, *, is_static: bool):
        self._super_name = super_name
        self._is_static = is_static

    def _stop(self, node: Node) -> Node:
        return node

    visit_FunctionDeclaration = _stop
    visit_FunctionExpression = _stop
    visit_ClassDeclaration = _stop
    visit_ClassExpression = _stop

    def visit_CallExpression(self, node: Node) -> Node:
        callee = node.get("callee") or {}
        arguments = node.get("arguments", [])
        if callee.get("type") == "Super":
            self._visit_list(arguments)
            return call(
                member_path(self._super_name, "call"), [this_expression(), *arguments], source=node
            )
        if _is_super_member(callee):
            method = self._super_member(callee)
            self._visit_list(arguments)
            return call(member(method, "call"), [this_expression(), *arguments], source=node)
        return self.generic_visit(node)

    def visit_MemberExpression(self, node: Node) -> Node:
        if _is_super_member(node):
            return self._super_member(node)
        return self.generic_visit(node)

    def _super_member(self, node: Node) -> Node:
        if self._is_static:
            base = identifier(self._super_name)
        else:
            base = member_path(self._super_name, "prototype")
        prop = node["property"]
        if node.get("computed"):
            prop = self.visit(prop)
        return located(member(base, prop, computed=bool(node.get("computed"))), node)


class ClassPass(LoweringPass):
    name = "classes"

    def apply(self, tree: Node) -> None:
        self._names = NameGenerator(tree)
        self.visit(tree)

    def visit_ClassDeclaration(self, node: Node) -> Node:
        self.generic_visit(node)
        lowered = self._lower(node)
        if lowered is None:
            return node
        class_id = node["id"]
        return variable_declaration(
            "let",
            [variable_declarator(identifier(class_id["name"], source=class_id), lowered)],
            source=node,
        )

    def visit_ClassExpression(self, node: Node) -> Node:
        self.generic_visit(node)
        lowered = self._lower(node)
        if lowered is None:
            return node
        return located(lowered, node)

    def visit_ExportDefaultDeclaration(self, node: Node):
        declaration = node.get("declaration") or {}
        if declaration.get("type") != "ClassDeclaration":
            return self.generic_visit(node)
        self.generic_visit(declaration)
        lowered = self._lower(declaration)
        if lowered is None:
            return node
        class_id = declaration.get("id")
        if class_id is None:
            node["declaration"] = located(lowered, declaration)
            return node
        # `export default let ...` is not valid; declare first, then export.
        binding = variable_declaration(
            "let",
            [variable_declarator(identifier(class_id["name"], source=class_id), lowered)],
            source=declaration,
        )
        export = located(
            {"type": "ExportDefaultDeclaration", "declaration": identifier(class_id["name"])},
            node,
        )
        return [binding, export]

    # ------------------------------------------------------------- lowering

    def _lower(self, node: Node) -> Optional[Node]:
        super_class = node.get("superClass")
        if super_class is not None and not _is_simple_reference(super_class):
            self._decline("Class with a non-reference superclass expression left untouched.", node)
            return None

        methods: List[Node] = (node.get("body") or {}).get("body", [])
        problem = self._find_unsupported(methods, has_superclass=super_class is not None)
        if problem:
            self._decline(problem, node)
            return None

        class_id = node.get("id")
        class_name = class_id["name"] if class_id else self._names.fresh("class")
        super_name = self._names.fresh("super") if super_class is not None else None

        for method in methods:
            if super_name:
                rewriter = _SuperRewriter(super_name, is_static=bool(method.get("static")))
                rewriter.generic_visit(method["value"])

        constructor = next((m for m in methods if m.get("kind") == "constructor"), None)
        statements = [self._constructor(class_name, constructor, super_name)]
        if super_name:
            statements.append(self._inherit(class_name, super_name))

        descriptors: Dict[Tuple[bool, str], Node] = {}
        for method in methods:
            if method is constructor:
                continue
            if method.get("kind") in ("get", "set"):
                statement = self._accessor(class_name, method, descriptors)
            else:
                statement = self._method(class_name, method)
            if statement is not None:
                statements.append(statement)
        statements.append(return_statement(identifier(class_name)))

        params = [identifier(super_name)] if super_name else []
        arguments = [super_class] if super_name else []
        return call(function_expression(params, statements), arguments)

    def _find_unsupported(self, methods: List[Node], *, has_superclass: bool) -> Optional[str]:
        stop_at = NON_ARROW_FUNCTION_TYPES | CLASS_TYPES
        for method in methods:
            for child, parent in iter_nodes(method.get("value"), stop_at=stop_at):
                child_type = child.get("type")
                if child_type == "Super" and not has_superclass:
                    return "`super` used in a class without a superclass."
                if child_type == "CallExpression":
                    callee = child.get("callee") or {}
                    is_super_call = callee.get("type") == "Super" or _is_super_member(callee)
                    if is_super_call and any(
                        arg.get("type") == "SpreadElement" for arg in child.get("arguments", [])
                    ):
                        return "`super` call with spread arguments left untouched."
                if child_type == "AssignmentExpression" and _is_super_member(child.get("left")):
                    return "Assignment to a `super` property left untouched."
                if child_type == "UpdateExpression" and _is_super_member(child.get("argument")):
                    return "Update of a `super` property left untouched."
        return None

    def _constructor(
        self, class_name: str, constructor: Optional[Node], super_name: Optional[str]
    ) -> Node:
        if constructor is not None:
            function = constructor["value"]
            return function_declaration(
                class_name, function.get("params", []), function["body"], source=constructor
            )
        body = []
        if super_name:
            body.append(
                expression_statement(
                    call(
                        member_path(super_name, "apply"),
                        [this_expression(), identifier("arguments")],
                    )
                )
            )
        return function_declaration(class_name, [], body)

    def _inherit(self, class_name: str, super_name: str) -> Node:
        constructor_descriptor = object_expression(
            [
                property_node("value", identifier(class_name)),
                property_node("writable", literal(True)),
                property_node("configurable", literal(True)),
            ]
        )
        prototype = call(
            member_path("Object", "create"),
            [
                member_path(super_name, "prototype"),
                object_expression([property_node("constructor", constructor_descriptor)]),
            ],
        )
        return expression_statement(assign(member_path(class_name, "prototype"), prototype))

    @staticmethod
    def _owner(class_name: str, method: Node) -> Node:
        if method.get("static"):
            return identifier(class_name)
        return member_path(class_name, "prototype")

    @staticmethod
    def _key_name(method: Node) -> Optional[str]:
        key = method.get("key") or {}
        if method.get("computed"):
            return None
        if key.get("type") == "Identifier":
            return key.get("name")
        return str(key.get("value"))

    def _method(self, class_name: str, method: Node) -> Node:
        key = method["key"]
        owner = self._owner(class_name, method)
        if method.get("computed"):
            target = member(owner, key, computed=True)
        elif key.get("type") == "Identifier":
            target = member(owner, key.get("name"))
        else:
            target = member(owner, literal(key.get("value")), computed=True)
        return expression_statement(assign(target, method["value"]), source=method)

    def _accessor(
        self, class_name: str, method: Node, descriptors: Dict[Tuple[bool, str], Node]
    ) -> Optional[Node]:
        kind = method.get("kind")
        key_name = self._key_name(method)
        slot = (bool(method.get("static")), key_name) if key_name is not None else None
        if slot is not None and slot in descriptors:
            properties = descriptors[slot]["properties"]
            # Keep `configurable` last.
            properties.insert(len(properties) - 1, property_node(kind, method["value"]))
            return None

        descriptor = object_expression(
            [
                property_node(kind, method["value"]),
                property_node("configurable", literal(True)),
            ]
        )
        if slot is not None:
            descriptors[slot] = descriptor
        key = method["key"] if method.get("computed") else literal(key_name)
        return expression_statement(
            call(
                member_path("Object", "defineProperty"),
                [self._owner(class_name, method), key, descriptor],
            ),
            source=method,
        )


__all__ = ["ClassPass"]
