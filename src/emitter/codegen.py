"""
Render ESTree dictionaries back to JavaScript source text.

`CodeGenerator` covers the node types esprima produces for ES2017 scripts and
modules. Parentheses are derived from operator precedence rather than copied
from the input, so rewritten trees print correctly. Statements are indented
with two spaces by default.

Comments come from the side-table esprima returns next to the tree and are
placed by source range: pending comments are written before the first
statement that starts after them, a comment on the same line right after a
statement stays on that line, and leftovers are written before the closing
brace of their block or at the end of the program. Blank-line runs between
statements of the same list are copied from the original text.
"""

from __future__ import annotations

import json
import re
from enum import IntEnum
from typing import Any, Dict, Iterable, List, Optional

from .comments import CommentQueue, comment_end, comment_start, comment_text

Node = Dict[str, Any]


class CodeGenerationError(ValueError):
    """The tree contains a node the generator cannot print."""


class Precedence(IntEnum):
    SEQUENCE = 0
    ASSIGNMENT = 1
    CONDITIONAL = 2
    LOGICAL_OR = 3
    LOGICAL_AND = 4
    BITWISE_OR = 5
    BITWISE_XOR = 6
    BITWISE_AND = 7
    EQUALITY = 8
    RELATIONAL = 9
    SHIFT = 10
    ADDITIVE = 11
    MULTIPLICATIVE = 12
    EXPONENTIATION = 13
    UNARY = 14
    POSTFIX = 15
    CALL = 16
    NEW = 17
    TAGGED_TEMPLATE = 18
    MEMBER = 19
    PRIMARY = 20


BINARY_PRECEDENCE = {
    "||": Precedence.LOGICAL_OR,
    "&&": Precedence.LOGICAL_AND,
    "|": Precedence.BITWISE_OR,
    "^": Precedence.BITWISE_XOR,
    "&": Precedence.BITWISE_AND,
    "==": Precedence.EQUALITY,
    "!=": Precedence.EQUALITY,
    "===": Precedence.EQUALITY,
    "!==": Precedence.EQUALITY,
    "<": Precedence.RELATIONAL,
    ">": Precedence.RELATIONAL,
    "<=": Precedence.RELATIONAL,
    ">=": Precedence.RELATIONAL,
    "in": Precedence.RELATIONAL,
    "instanceof": Precedence.RELATIONAL,
    "<<": Precedence.SHIFT,
    ">>": Precedence.SHIFT,
    ">>>": Precedence.SHIFT,
    "+": Precedence.ADDITIVE,
    "-": Precedence.ADDITIVE,
    "*": Precedence.MULTIPLICATIVE,
    "/": Precedence.MULTIPLICATIVE,
    "%": Precedence.MULTIPLICATIVE,
    "**": Precedence.EXPONENTIATION,
}

# Expression statements may not start with these.
_AMBIGUOUS_STATEMENT_START = re.compile(r"^(?:function\b|class\b|\{|let\s*\[|async\s+function\b)")
_WORD_OPERATORS = frozenset({"typeof", "void", "delete"})
_DECIMAL_INTEGER = re.compile(r"^\d+$")


def precedence_of(node: Node) -> int:
    node_type = node.get("type")
    if node_type == "SequenceExpression":
        return Precedence.SEQUENCE
    if node_type in ("AssignmentExpression", "YieldExpression", "ArrowFunctionExpression"):
        return Precedence.ASSIGNMENT
    if node_type == "ConditionalExpression":
        return Precedence.CONDITIONAL
    if node_type in ("BinaryExpression", "LogicalExpression"):
        return BINARY_PRECEDENCE[node["operator"]]
    if node_type in ("UnaryExpression", "AwaitExpression"):
        return Precedence.UNARY
    if node_type == "UpdateExpression":
        return Precedence.UNARY if node.get("prefix") else Precedence.POSTFIX
    if node_type == "CallExpression":
        return Precedence.CALL
    if node_type == "NewExpression":
        return Precedence.NEW
    if node_type == "TaggedTemplateExpression":
        return Precedence.TAGGED_TEMPLATE
    if node_type == "MemberExpression":
        return Precedence.MEMBER
    return Precedence.PRIMARY


def quote_string(value: str) -> str:
    text = json.dumps(value, ensure_ascii=False)
    return text.replace("\u2028", "\\u2028").replace("\u2029", "\\u2029")


def _contains_call(node: Node) -> bool:
    while node.get("type") == "MemberExpression":
        node = node.get("object") or {}
    return node.get("type") == "CallExpression"


class CodeGenerator:
    """Prints one tree. Not reusable: the comment queue is consumed."""

    def __init__(
        self,
        source: str = "",
        comments: Iterable[Node] = (),
        tokens: Iterable[Node] = (),
        *,
        indent: str = "  ",
    ):
        self._source = source or ""
        self._comments = CommentQueue(comments, tokens, self._source)
        self._indent_unit = indent
        self._level = 0

    def generate(self, node: Node) -> str:
        if node.get("type") == "Program":
            return "\n".join(self._statement_list(node.get("body", []), final=True))
        if hasattr(self, f"_stmt_{node.get('type')}"):
            return self._statement(node)
        return self._expression(node)

    # ----------------------------------------------------------- statement lists

    def _indent(self) -> str:
        return self._indent_unit * self._level

    def _blank_lines(self, lines: List[str], last_end: Optional[int], start: Optional[int]) -> None:
        if last_end is None or start is None or not lines:
            return
        count = self._source.count("\n", last_end, start) - 1
        if count > 0:
            lines.extend([""] * count)

    def _write_comments(
        self, comments: List[Node], lines: List[str], last_end: Optional[int]
    ) -> Optional[int]:
        for comment in comments:
            start = comment_start(comment)
            self._blank_lines(lines, last_end, None if start == float("inf") else int(start))
            lines.append(self._indent() + comment_text(comment))
            last_end = comment_end(comment)
        return last_end

    def _statement_list(
        self, statements: List[Node], *, end: Optional[int] = None, final: bool = False
    ) -> List[str]:
        """Lines of `statements` at the current level, with their comments."""
        lines: List[str] = []
        last_end: Optional[int] = None
        for statement in statements:
            rng = statement.get("range")
            if rng:
                last_end = self._write_comments(self._comments.take_before(rng[0]), lines, last_end)
                self._blank_lines(lines, last_end, rng[0])
            text = self._statement(statement)
            if rng:
                # Comments inside the statement that no nested block claimed.
                self._write_comments(self._comments.take_before(rng[1]), lines, None)
                last_end = rng[1]
                trailing = self._comments.take_trailing(rng[1])
                if trailing is not None:
                    text = f"{text} {comment_text(trailing)}"
                    last_end = comment_end(trailing)
            else:
                last_end = None
            lines.append(self._indent() + text)

        if final:
            self._write_comments(self._comments.take_rest(), lines, last_end)
        elif end is not None:
            self._write_comments(self._comments.take_before(end), lines, last_end)
        return lines

    def _braced(self, lines: List[str]) -> str:
        if not lines:
            return "{\n" + self._indent() + "}"
        return "{\n" + "\n".join(lines) + "\n" + self._indent() + "}"

    def _block(self, node: Node) -> str:
        rng = node.get("range")
        self._level += 1
        lines = self._statement_list(node.get("body", []), end=rng[1] if rng else None)
        self._level -= 1
        return self._braced(lines)

    def _substatement(self, node: Node) -> str:
        """A loop or `if` body, on the same line when it is a block."""
        if node.get("type") == "BlockStatement":
            return " " + self._block(node)
        if node.get("type") == "EmptyStatement":
            return ";"
        self._level += 1
        text = "\n" + self._indent() + self._statement(node)
        self._level -= 1
        return text

    # --------------------------------------------------------------- statements

    def _statement(self, node: Node) -> str:
        handler = getattr(self, f"_stmt_{node.get('type')}", None)
        if handler is None:
            raise CodeGenerationError(f"Cannot print statement of type {node.get('type')!r}")
        return handler(node)

    def _stmt_ExpressionStatement(self, node: Node) -> str:
        expression = node["expression"]
        text = self._expression(expression)
        # A bare string statement would read back as a directive.
        is_string = expression.get("type") == "Literal" and isinstance(expression.get("value"), str)
        if is_string and "directive" not in node:
            text = f"({text})"
        elif _AMBIGUOUS_STATEMENT_START.match(text):
            text = f"({text})"
        return text + ";"

    def _stmt_BlockStatement(self, node: Node) -> str:
        return self._block(node)

    def _stmt_EmptyStatement(self, node: Node) -> str:
        return ";"

    def _stmt_DebuggerStatement(self, node: Node) -> str:
        return "debugger;"

    def _declaration(self, node: Node) -> str:
        declarators = []
        for declarator in node.get("declarations", []):
            text = self._expression(declarator["id"])
            if declarator.get("init") is not None:
                text += " = " + self._expression(declarator["init"], Precedence.ASSIGNMENT)
            declarators.append(text)
        return f"{node['kind']} {', '.join(declarators)}"

    def _stmt_VariableDeclaration(self, node: Node) -> str:
        return self._declaration(node) + ";"

    def _stmt_FunctionDeclaration(self, node: Node) -> str:
        return self._function(node)

    def _stmt_ClassDeclaration(self, node: Node) -> str:
        return self._class(node)

    def _stmt_ReturnStatement(self, node: Node) -> str:
        if node.get("argument") is None:
            return "return;"
        return f"return {self._expression(node['argument'])};"

    def _stmt_ThrowStatement(self, node: Node) -> str:
        return f"throw {self._expression(node['argument'])};"

    def _jump(self, keyword: str, node: Node) -> str:
        label = node.get("label")
        if label:
            return f"{keyword} {label['name']};"
        return f"{keyword};"

    def _stmt_BreakStatement(self, node: Node) -> str:
        return self._jump("break", node)

    def _stmt_ContinueStatement(self, node: Node) -> str:
        return self._jump("continue", node)

    def _stmt_LabeledStatement(self, node: Node) -> str:
        return f"{node['label']['name']}: {self._statement(node['body'])}"

    def _stmt_IfStatement(self, node: Node) -> str:
        consequent = node["consequent"]
        alternate = node.get("alternate")
        if alternate is not None and consequent.get("type") == "IfStatement":
            # Keep a following `else` attached to this `if`.
            consequent = {"type": "BlockStatement", "body": [consequent]}
        text = f"if ({self._expression(node['test'])})" + self._substatement(consequent)
        if alternate is None:
            return text
        if consequent.get("type") == "BlockStatement":
            text += " else"
        else:
            text += "\n" + self._indent() + "else"
        if alternate.get("type") == "IfStatement":
            return f"{text} {self._statement(alternate)}"
        return text + self._substatement(alternate)

    def _stmt_ForStatement(self, node: Node) -> str:
        init = node.get("init")
        if init is None:
            init_text = ""
        elif init.get("type") == "VariableDeclaration":
            init_text = self._declaration(init)
        else:
            init_text = self._expression(init)
        head = f"for ({init_text};"
        if node.get("test") is not None:
            head += " " + self._expression(node["test"])
        head += ";"
        if node.get("update") is not None:
            head += " " + self._expression(node["update"])
        return head + ")" + self._substatement(node["body"])

    def _for_each(self, keyword: str, node: Node, right_precedence: int) -> str:
        left = node["left"]
        if left.get("type") == "VariableDeclaration":
            left_text = self._declaration(left)
        else:
            left_text = self._expression(left, Precedence.CALL)
        right_text = self._expression(node["right"], right_precedence)
        return f"for ({left_text} {keyword} {right_text})" + self._substatement(node["body"])

    def _stmt_ForInStatement(self, node: Node) -> str:
        return self._for_each("in", node, Precedence.SEQUENCE)

    def _stmt_ForOfStatement(self, node: Node) -> str:
        return self._for_each("of", node, Precedence.ASSIGNMENT)

    def _stmt_WhileStatement(self, node: Node) -> str:
        return f"while ({self._expression(node['test'])})" + self._substatement(node["body"])

    def _stmt_DoWhileStatement(self, node: Node) -> str:
        body = node["body"]
        test = f"while ({self._expression(node['test'])});"
        if body.get("type") == "BlockStatement":
            return f"do {self._block(body)} {test}"
        return "do" + self._substatement(body) + "\n" + self._indent() + test

    def _stmt_WithStatement(self, node: Node) -> str:
        return f"with ({self._expression(node['object'])})" + self._substatement(node["body"])

    def _stmt_SwitchStatement(self, node: Node) -> str:
        rng = node.get("range")
        self._level += 1
        cases = self._statement_list(node.get("cases", []), end=rng[1] if rng else None)
        self._level -= 1
        return f"switch ({self._expression(node['discriminant'])}) " + self._braced(cases)

    def _stmt_SwitchCase(self, node: Node) -> str:
        if node.get("test") is None:
            header = "default:"
        else:
            header = f"case {self._expression(node['test'])}:"
        self._level += 1
        body = self._statement_list(node.get("consequent", []))
        self._level -= 1
        if not body:
            return header
        return header + "\n" + "\n".join(body)

    def _stmt_TryStatement(self, node: Node) -> str:
        text = "try " + self._block(node["block"])
        handler = node.get("handler")
        if handler:
            text += " catch"
            if handler.get("param") is not None:
                text += f" ({self._expression(handler['param'])})"
            text += " " + self._block(handler["body"])
        if node.get("finalizer"):
            text += " finally " + self._block(node["finalizer"])
        return text

    # ------------------------------------------------------------------ modules

    @staticmethod
    def _specifier(first: Node, second: Node) -> str:
        if first["name"] == second["name"]:
            return first["name"]
        return f"{first['name']} as {second['name']}"

    def _stmt_ImportDeclaration(self, node: Node) -> str:
        source = self._expression(node["source"])
        specifiers = node.get("specifiers", [])
        if not specifiers:
            return f"import {source};"
        parts: List[str] = []
        named: List[str] = []
        for specifier in specifiers:
            specifier_type = specifier.get("type")
            local = specifier["local"]["name"]
            if specifier_type == "ImportDefaultSpecifier":
                parts.append(local)
            elif specifier_type == "ImportNamespaceSpecifier":
                parts.append(f"* as {local}")
            else:
                named.append(self._specifier(specifier["imported"], specifier["local"]))
        if named:
            parts.append("{ " + ", ".join(named) + " }")
        return f"import {', '.join(parts)} from {source};"

    def _stmt_ExportNamedDeclaration(self, node: Node) -> str:
        if node.get("declaration"):
            return "export " + self._statement(node["declaration"])
        specifiers = [
            self._specifier(specifier["local"], specifier["exported"])
            for specifier in node.get("specifiers", [])
        ]
        text = "export { " + ", ".join(specifiers) + " }" if specifiers else "export {}"
        if node.get("source"):
            text += " from " + self._expression(node["source"])
        return text + ";"

    def _stmt_ExportDefaultDeclaration(self, node: Node) -> str:
        declaration = node["declaration"]
        if declaration.get("type") in ("FunctionDeclaration", "ClassDeclaration"):
            return "export default " + self._statement(declaration)
        return f"export default {self._expression(declaration, Precedence.ASSIGNMENT)};"

    def _stmt_ExportAllDeclaration(self, node: Node) -> str:
        return f"export * from {self._expression(node['source'])};"

    # ---------------------------------------------------- functions and classes

    def _params(self, node: Node) -> str:
        params = [self._expression(param, Precedence.ASSIGNMENT) for param in node.get("params", [])]
        return "(" + ", ".join(params) + ")"

    def _function(self, node: Node) -> str:
        text = "async function" if node.get("async") else "function"
        if node.get("generator"):
            text += "*"
        name = node.get("id")
        text += f" {name['name']}" if name else " "
        return text + self._params(node) + " " + self._block(node["body"])

    def _method(self, prefix: str, key: str, function: Node) -> str:
        if function.get("async"):
            prefix += "async "
        if function.get("generator"):
            prefix += "*"
        return prefix + key + self._params(function) + " " + self._block(function["body"])

    def _property_key(self, node: Node) -> str:
        if node.get("computed"):
            return "[" + self._expression(node["key"], Precedence.ASSIGNMENT) + "]"
        return self._expression(node["key"])

    def _class(self, node: Node) -> str:
        text = "class"
        if node.get("id"):
            text += " " + node["id"]["name"]
        if node.get("superClass") is not None:
            text += " extends " + self._expression(node["superClass"], Precedence.CALL)
        body = node.get("body") or {}
        rng = body.get("range")
        self._level += 1
        methods = self._statement_list(body.get("body", []), end=rng[1] if rng else None)
        self._level -= 1
        return text + " " + self._braced(methods)

    def _stmt_MethodDefinition(self, node: Node) -> str:
        prefix = "static " if node.get("static") else ""
        if node.get("kind") in ("get", "set"):
            prefix += node["kind"] + " "
        return self._method(prefix, self._property_key(node), node["value"])

    # -------------------------------------------------------------- expressions

    def _expression(self, node: Node, precedence: int = Precedence.SEQUENCE) -> str:
        handler = getattr(self, f"_expr_{node.get('type')}", None)
        if handler is None:
            raise CodeGenerationError(f"Cannot print expression of type {node.get('type')!r}")
        text = handler(node)
        if precedence_of(node) < precedence:
            return f"({text})"
        return text

    def _arguments(self, node: Node) -> str:
        arguments = [self._expression(arg, Precedence.ASSIGNMENT) for arg in node.get("arguments", [])]
        return "(" + ", ".join(arguments) + ")"

    def _expr_Identifier(self, node: Node) -> str:
        return node["name"]

    def _expr_ThisExpression(self, node: Node) -> str:
        return "this"

    def _expr_Super(self, node: Node) -> str:
        return "super"

    def _expr_MetaProperty(self, node: Node) -> str:
        return f"{node['meta']['name']}.{node['property']['name']}"

    def _expr_Literal(self, node: Node) -> str:
        raw = node.get("raw")
        if raw is not None:
            return raw
        regex = node.get("regex")
        if regex:
            return f"/{regex.get('pattern', '')}/{regex.get('flags', '')}"
        value = node.get("value")
        if value is None:
            return "null"
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            return str(int(value)) if value.is_integer() else repr(value)
        return quote_string(str(value))

    def _expr_TemplateLiteral(self, node: Node) -> str:
        expressions = node.get("expressions", [])
        parts = ["`"]
        for index, quasi in enumerate(node.get("quasis", [])):
            parts.append(quasi["value"]["raw"])
            if index < len(expressions):
                parts.append("${" + self._expression(expressions[index]) + "}")
        parts.append("`")
        return "".join(parts)

    def _expr_TaggedTemplateExpression(self, node: Node) -> str:
        return self._expression(node["tag"], Precedence.CALL) + self._expr_TemplateLiteral(node["quasi"])

    def _expr_ArrayExpression(self, node: Node) -> str:
        elements = node.get("elements", [])
        parts = [
            "" if element is None else self._expression(element, Precedence.ASSIGNMENT)
            for element in elements
        ]
        text = ", ".join(parts)
        if elements and elements[-1] is None:
            text += ","
        return f"[{text}]"

    _expr_ArrayPattern = _expr_ArrayExpression

    def _property(self, node: Node) -> str:
        if node.get("type") != "Property":
            return self._expression(node, Precedence.ASSIGNMENT)
        key = self._property_key(node)
        value = node.get("value") or {}
        kind = node.get("kind", "init")
        if kind in ("get", "set"):
            return self._method(kind + " ", key, value)
        if node.get("method"):
            return self._method("", key, value)
        if node.get("shorthand") and not node.get("computed"):
            key_name = node["key"].get("name")
            if value.get("type") == "Identifier" and value.get("name") == key_name:
                return key_name
            if (
                value.get("type") == "AssignmentPattern"
                and (value.get("left") or {}).get("name") == key_name
            ):
                return self._expression(value)
        return f"{key}: {self._expression(value, Precedence.ASSIGNMENT)}"

    def _expr_ObjectExpression(self, node: Node) -> str:
        properties = node.get("properties", [])
        if not properties:
            return "{}"
        self._level += 1
        items = [self._indent() + self._property(prop) for prop in properties]
        self._level -= 1
        return "{\n" + ",\n".join(items) + "\n" + self._indent() + "}"

    def _expr_ObjectPattern(self, node: Node) -> str:
        properties = [self._property(prop) for prop in node.get("properties", [])]
        if not properties:
            return "{}"
        return "{ " + ", ".join(properties) + " }"

    def _expr_AssignmentPattern(self, node: Node) -> str:
        left = self._expression(node["left"])
        return f"{left} = {self._expression(node['right'], Precedence.ASSIGNMENT)}"

    def _expr_RestElement(self, node: Node) -> str:
        return "..." + self._expression(node["argument"], Precedence.ASSIGNMENT)

    _expr_SpreadElement = _expr_RestElement

    def _expr_FunctionExpression(self, node: Node) -> str:
        return self._function(node)

    def _expr_ArrowFunctionExpression(self, node: Node) -> str:
        params = node.get("params", [])
        if len(params) == 1 and params[0].get("type") == "Identifier":
            params_text = params[0]["name"]
        else:
            params_text = self._params(node)
        body = node["body"]
        if body.get("type") == "BlockStatement":
            body_text = self._block(body)
        else:
            body_text = self._expression(body, Precedence.ASSIGNMENT)
            if body_text.startswith("{"):
                body_text = f"({body_text})"
        prefix = "async " if node.get("async") else ""
        return f"{prefix}{params_text} => {body_text}"

    def _expr_ClassExpression(self, node: Node) -> str:
        return self._class(node)

    def _expr_SequenceExpression(self, node: Node) -> str:
        return ", ".join(
            self._expression(expression, Precedence.ASSIGNMENT)
            for expression in node.get("expressions", [])
        )

    def _expr_AssignmentExpression(self, node: Node) -> str:
        left = self._expression(node["left"], Precedence.CALL)
        right = self._expression(node["right"], Precedence.ASSIGNMENT)
        return f"{left} {node['operator']} {right}"

    def _expr_ConditionalExpression(self, node: Node) -> str:
        test = self._expression(node["test"], Precedence.LOGICAL_OR)
        consequent = self._expression(node["consequent"], Precedence.ASSIGNMENT)
        alternate = self._expression(node["alternate"], Precedence.ASSIGNMENT)
        return f"{test} ? {consequent} : {alternate}"

    def _expr_BinaryExpression(self, node: Node) -> str:
        operator = node["operator"]
        precedence = BINARY_PRECEDENCE[operator]
        if operator == "**":
            left = self._expression(node["left"], precedence + 1)
            right = self._expression(node["right"], precedence)
            if node["left"].get("type") in ("UnaryExpression", "AwaitExpression") and not left.startswith("("):
                left = f"({left})"
        else:
            left = self._expression(node["left"], precedence)
            right = self._expression(node["right"], precedence + 1)
        return f"{left} {operator} {right}"

    _expr_LogicalExpression = _expr_BinaryExpression

    def _expr_UnaryExpression(self, node: Node) -> str:
        operator = node["operator"]
        argument = self._expression(node["argument"], Precedence.UNARY)
        if operator in _WORD_OPERATORS:
            return f"{operator} {argument}"
        if operator in ("+", "-") and argument.startswith(operator):
            return f"{operator} {argument}"
        return operator + argument

    def _expr_UpdateExpression(self, node: Node) -> str:
        operator = node["operator"]
        if node.get("prefix"):
            return operator + self._expression(node["argument"], Precedence.UNARY)
        return self._expression(node["argument"], Precedence.POSTFIX) + operator

    def _expr_AwaitExpression(self, node: Node) -> str:
        return "await " + self._expression(node["argument"], Precedence.UNARY)

    def _expr_YieldExpression(self, node: Node) -> str:
        text = "yield*" if node.get("delegate") else "yield"
        if node.get("argument") is not None:
            text += " " + self._expression(node["argument"], Precedence.ASSIGNMENT)
        return text

    def _expr_MemberExpression(self, node: Node) -> str:
        obj = self._expression(node["object"], Precedence.CALL)
        if node.get("computed"):
            return f"{obj}[{self._expression(node['property'])}]"
        if _DECIMAL_INTEGER.match(obj):
            obj = f"({obj})"
        return f"{obj}.{node['property']['name']}"

    def _expr_CallExpression(self, node: Node) -> str:
        callee = node["callee"]
        text = self._expression(callee, Precedence.CALL)
        if callee.get("type") in ("FunctionExpression", "ClassExpression"):
            text = f"({text})"
        return text + self._arguments(node)

    def _expr_NewExpression(self, node: Node) -> str:
        callee = node["callee"]
        text = self._expression(callee, Precedence.NEW)
        if not text.startswith("(") and _contains_call(callee):
            text = f"({text})"
        return f"new {text}" + self._arguments(node)

    # -------------------------------------------------------------------- JSX

    def _expr_JSXElement(self, node: Node) -> str:
        opening = node["openingElement"]
        text = self._expression(opening)
        if opening.get("selfClosing"):
            return text
        children = "".join(self._expression(child) for child in node.get("children", []))
        closing = node.get("closingElement") or {"type": "JSXClosingElement", "name": opening["name"]}
        return text + children + self._expression(closing)

    def _expr_JSXOpeningElement(self, node: Node) -> str:
        parts = [self._expression(node["name"])]
        parts.extend(self._expression(attribute) for attribute in node.get("attributes", []))
        end = " />" if node.get("selfClosing") else ">"
        return "<" + " ".join(parts) + end

    def _expr_JSXClosingElement(self, node: Node) -> str:
        return f"</{self._expression(node['name'])}>"

    def _expr_JSXAttribute(self, node: Node) -> str:
        name = self._expression(node["name"])
        value = node.get("value")
        if value is None:
            return name
        return f"{name}={self._expression(value)}"

    def _expr_JSXSpreadAttribute(self, node: Node) -> str:
        return "{..." + self._expression(node["argument"], Precedence.ASSIGNMENT) + "}"

    def _expr_JSXExpressionContainer(self, node: Node) -> str:
        return "{" + self._expression(node["expression"]) + "}"

    def _expr_JSXEmptyExpression(self, node: Node) -> str:
        return ""

    def _expr_JSXText(self, node: Node) -> str:
        raw = node.get("raw")
        return raw if raw is not None else node.get("value", "")

    def _expr_JSXIdentifier(self, node: Node) -> str:
        return node["name"]

    def _expr_JSXNamespacedName(self, node: Node) -> str:
        return f"{self._expression(node['namespace'])}:{self._expression(node['name'])}"

    def _expr_JSXMemberExpression(self, node: Node) -> str:
        return f"{self._expression(node['object'])}.{self._expression(node['property'])}"


__all__ = ["BINARY_PRECEDENCE", "CodeGenerationError", "CodeGenerator", "Precedence", "precedence_of"]
