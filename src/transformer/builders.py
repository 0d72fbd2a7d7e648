"""Factories for the ESTree nodes the lowering passes synthesise."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

Node = Dict[str, Any]


def located(node: Node, source: Optional[Node]) -> Node:
    """Copy the source range of `source` onto `node` for comment attachment."""
    if source:
        if "range" in source:
            node["range"] = list(source["range"])
        if "loc" in source:
            node["loc"] = source["loc"]
    return node


def identifier(name: str, source: Optional[Node] = None) -> Node:
    return located({"type": "Identifier", "name": name}, source)


def literal(value: Union[str, int, float, bool, None], source: Optional[Node] = None) -> Node:
    return located({"type": "Literal", "value": value}, source)


def void_zero() -> Node:
    return {"type": "UnaryExpression", "operator": "void", "prefix": True, "argument": literal(0)}


def this_expression(source: Optional[Node] = None) -> Node:
    return located({"type": "ThisExpression"}, source)


def member(obj: Node, prop: Union[str, Node], *, computed: bool = False) -> Node:
    if isinstance(prop, str):
        prop = identifier(prop)
    return {"type": "MemberExpression", "computed": computed, "object": obj, "property": prop}


def member_path(root: Union[str, Node], *names: str) -> Node:
    """`member_path("A", "prototype", "m")` builds `A.prototype.m`."""
    node = identifier(root) if isinstance(root, str) else root
    for name in names:
        node = member(node, name)
    return node


def call(callee: Node, arguments: Sequence[Node] = (), source: Optional[Node] = None) -> Node:
    return located(
        {"type": "CallExpression", "callee": callee, "arguments": list(arguments)}, source
    )


def assign(left: Node, right: Node, source: Optional[Node] = None) -> Node:
    return located(
        {"type": "AssignmentExpression", "operator": "=", "left": left, "right": right},
        source,
    )


def binary(operator: str, left: Node, right: Node, source: Optional[Node] = None) -> Node:
    return located(
        {"type": "BinaryExpression", "operator": operator, "left": left, "right": right},
        source,
    )


def unary(operator: str, argument: Node) -> Node:
    return {"type": "UnaryExpression", "operator": operator, "prefix": True, "argument": argument}


def object_expression(properties: Iterable[Node] = ()) -> Node:
    return {"type": "ObjectExpression", "properties": list(properties)}


def property_node(key: Union[str, Node], value: Node, source: Optional[Node] = None) -> Node:
    if isinstance(key, str):
        key = identifier(key)
    return located(
        {
            "type": "Property",
            "key": key,
            "computed": False,
            "value": value,
            "kind": "init",
            "method": False,
            "shorthand": False,
        },
        source,
    )


def expression_statement(expression: Node, source: Optional[Node] = None) -> Node:
    return located({"type": "ExpressionStatement", "expression": expression}, source)


def block_statement(statements: Iterable[Node], source: Optional[Node] = None) -> Node:
    return located({"type": "BlockStatement", "body": list(statements)}, source)


def return_statement(argument: Optional[Node] = None, source: Optional[Node] = None) -> Node:
    node: Node = {"type": "ReturnStatement"}
    if argument is not None:
        node["argument"] = argument
    return located(node, source)


def if_statement(test: Node, consequent: Node, alternate: Optional[Node] = None) -> Node:
    node: Node = {"type": "IfStatement", "test": test, "consequent": consequent}
    if alternate is not None:
        node["alternate"] = alternate
    return node


def break_statement() -> Node:
    return {"type": "BreakStatement"}


def variable_declarator(target: Node, init: Optional[Node] = None) -> Node:
    node: Node = {"type": "VariableDeclarator", "id": target}
    if init is not None:
        node["init"] = init
    return node


def variable_declaration(
    kind: str, declarators: Sequence[Node], source: Optional[Node] = None
) -> Node:
    return located(
        {"type": "VariableDeclaration", "kind": kind, "declarations": list(declarators)},
        source,
    )


def var(name: str, init: Optional[Node] = None, source: Optional[Node] = None) -> Node:
    return variable_declaration("var", [variable_declarator(identifier(name), init)], source)


def function_expression(
    params: Sequence[Node],
    body: Union[Node, List[Node]],
    *,
    name: Optional[str] = None,
    generator: bool = False,
    is_async: bool = False,
    source: Optional[Node] = None,
) -> Node:
    if isinstance(body, list):
        body = block_statement(body)
    node: Node = {
        "type": "FunctionExpression",
        "params": list(params),
        "body": body,
        "generator": generator,
        "expression": False,
        "async": is_async,
    }
    if name is not None:
        node["id"] = identifier(name)
    return located(node, source)


def function_declaration(
    name: str,
    params: Sequence[Node],
    body: Union[Node, List[Node]],
    source: Optional[Node] = None,
) -> Node:
    node = function_expression(params, body, name=name, source=source)
    node["type"] = "FunctionDeclaration"
    return node


__all__ = [
    "Node",
    "assign",
    "binary",
    "block_statement",
    "break_statement",
    "call",
    "expression_statement",
    "function_declaration",
    "function_expression",
    "identifier",
    "if_statement",
    "literal",
    "located",
    "member",
    "member_path",
    "object_expression",
    "property_node",
    "return_statement",
    "this_expression",
    "unary",
    "var",
    "variable_declaration",
    "variable_declarator",
    "void_zero",
]
