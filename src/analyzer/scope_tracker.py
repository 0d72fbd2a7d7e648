"""
Scope analysis for ES2015+ JavaScript ASTs.

The analyzer walks an esprima-compatible AST, builds a tree of lexical scopes,
and records bindings introduced by `var`, `let`, `const`, `function`, `class`,
imports, catch clauses and function parameters (including destructuring
patterns). Every identifier reference is resolved against the scope chain
once the whole tree has been visited, so hoisted declarations resolve
correctly. It also flags constructs (`with`, direct `eval`) that make
renaming bindings unsafe.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


class ScopeType(str, Enum):
    GLOBAL = "global"
    MODULE = "module"
    FUNCTION = "function"
    BLOCK = "block"
    CATCH = "catch"
    CLASS = "class"


class BindingKind(str, Enum):
    VAR = "var"
    LET = "let"
    CONST = "const"
    FUNCTION = "function"
    PARAMETER = "parameter"
    CATCH_PARAMETER = "catch_parameter"
    CLASS = "class"
    IMPORT = "import"


FUNCTION_SCOPE_TYPES = frozenset({ScopeType.GLOBAL, ScopeType.MODULE, ScopeType.FUNCTION})
BLOCK_SCOPED_KINDS = frozenset({BindingKind.LET, BindingKind.CONST})
LOOP_TYPES = frozenset(
    {
        "ForStatement",
        "ForInStatement",
        "ForOfStatement",
        "WhileStatement",
        "DoWhileStatement",
    }
)


@dataclass(frozen=True)
class SourcePosition:
    line: Optional[int]
    column: Optional[int]


@dataclass(eq=False)
class Binding:
    """Represents a single identifier binding within a scope."""

    name: str
    kind: BindingKind
    loc: SourcePosition
    node: Dict[str, Any]
    declaration: Optional[Dict[str, Any]] = None
    scope: Optional["Scope"] = None
    references: List["Reference"] = field(default_factory=list)

    @property
    def identifiers(self) -> List[Dict[str, Any]]:
        """The declaring identifier followed by every resolved reference."""
        return [self.node] + [reference.node for reference in self.references]


@dataclass(eq=False)
class Reference:
    """An identifier read or written in a scope, resolved after the walk."""

    node: Dict[str, Any]
    scope: "Scope"
    is_write: bool = False
    binding: Optional[Binding] = None

    @property
    def name(self) -> str:
        return self.node.get("name")


@dataclass(eq=False)
class Scope:
    """A lexical scope containing zero or more bindings and child scopes."""

    scope_id: str
    scope_type: ScopeType
    node: Dict[str, Any]
    parent: Optional["Scope"] = None
    bindings: Dict[str, List[Binding]] = field(default_factory=dict)
    children: List["Scope"] = field(default_factory=list)
    references: List[Reference] = field(default_factory=list)

    def add_binding(self, binding: Binding) -> None:
        """Register a binding within the current scope."""
        binding.scope = self
        self.bindings.setdefault(binding.name, []).append(binding)

    def add_child(self, child: "Scope") -> None:
        self.children.append(child)

    @property
    def is_function_scope(self) -> bool:
        return self.scope_type in FUNCTION_SCOPE_TYPES

    @property
    def function_scope(self) -> "Scope":
        """Nearest enclosing scope that `var` declarations hoist into."""
        scope = self
        while not scope.is_function_scope and scope.parent is not None:
            scope = scope.parent
        return scope

    def lookup(self, name: str) -> Optional[Binding]:
        scope: Optional[Scope] = self
        while scope is not None:
            bindings = scope.bindings.get(name)
            if bindings:
                return bindings[-1]
            scope = scope.parent
        return None

    def iter_bindings(self) -> Iterable[Binding]:
        for bindings in self.bindings.values():
            yield from bindings

    def is_within(self, other: "Scope") -> bool:
        scope: Optional[Scope] = self
        while scope is not None:
            if scope is other:
                return True
            scope = scope.parent
        return False


@dataclass(frozen=True)
class AnalysisIssue:
    code: str
    message: str
    loc: SourcePosition
    scope_id: Optional[str] = None


@dataclass(frozen=True)
class AnalysisResult:
    source_name: str
    root_scope: Scope
    issues: List[AnalysisIssue]
    references: List[Reference] = field(default_factory=list)
    scopes_by_node: Dict[int, Scope] = field(default_factory=dict)

    def flatten_scopes(self) -> Iterable[Scope]:
        """Yield scopes in depth-first order."""
        stack = [self.root_scope]
        while stack:
            scope = stack.pop()
            yield scope
            stack.extend(reversed(scope.children))

    def scope_for(self, node: Dict[str, Any]) -> Optional[Scope]:
        """Scope created by `node` (a function, block, loop, switch, catch or class)."""
        return self.scopes_by_node.get(id(node))

    def issues_in(self, scope: Scope) -> List[AnalysisIssue]:
        return [issue for issue in self.issues if issue.scope_id == scope.scope_id]


class _BindingAnalyzer:
    def __init__(self, source_name: str) -> None:
        self._source_name = source_name
        self._scope_counter = 0
        self._issues: List[AnalysisIssue] = []
        self._references: List[Reference] = []
        self._scopes_by_node: Dict[int, Scope] = {}

    def analyze(self, ast: Dict[str, Any]) -> AnalysisResult:
        root_type = ScopeType.MODULE if ast.get("sourceType") == "module" else ScopeType.GLOBAL
        root_scope = self._new_scope(root_type, ast, parent=None)
        self._visit(ast.get("body", []), root_scope)
        self._resolve_references()
        return AnalysisResult(
            source_name=self._source_name,
            root_scope=root_scope,
            issues=self._issues,
            references=self._references,
            scopes_by_node=self._scopes_by_node,
        )

    # ------------------------------------------------------------------ helpers

    def _new_scope(
        self, scope_type: ScopeType, node: Dict[str, Any], parent: Optional[Scope]
    ) -> Scope:
        scope_id = f"S{self._scope_counter}"
        self._scope_counter += 1
        scope = Scope(scope_id=scope_id, scope_type=scope_type, node=node, parent=parent)
        if parent:
            parent.add_child(scope)
        self._scopes_by_node[id(node)] = scope
        return scope

    @staticmethod
    def _source_position(node: Dict[str, Any]) -> SourcePosition:
        loc = node.get("loc") or {}
        start = loc.get("start") or {}
        return SourcePosition(
            line=start.get("line"),
            column=start.get("column"),
        )

    def _add_issue(self, code: str, message: str, node: Dict[str, Any], scope: Scope) -> None:
        self._issues.append(
            AnalysisIssue(
                code=code,
                message=message,
                loc=self._source_position(node),
                scope_id=scope.function_scope.scope_id,
            )
        )

    def _declare(
        self,
        identifier: Dict[str, Any],
        kind: BindingKind,
        scope: Scope,
        declaration: Optional[Dict[str, Any]] = None,
    ) -> None:
        scope.add_binding(
            Binding(
                name=identifier.get("name"),
                kind=kind,
                loc=self._source_position(identifier),
                node=identifier,
                declaration=declaration,
            )
        )

    def _reference(self, identifier: Dict[str, Any], scope: Scope, *, is_write: bool = False) -> None:
        reference = Reference(node=identifier, scope=scope, is_write=is_write)
        scope.references.append(reference)
        self._references.append(reference)

    def _resolve_references(self) -> None:
        for reference in self._references:
            binding = reference.scope.lookup(reference.name)
            if binding is not None:
                reference.binding = binding
                binding.references.append(reference)

    def _visit(self, node: Any, scope: Scope) -> None:
        if node is None:
            return
        if isinstance(node, list):
            for element in node:
                self._visit(element, scope)
            return
        if not isinstance(node, dict):
            return

        handler = getattr(self, f"_visit_{node.get('type')}", None)
        if handler:
            handler(node, scope)
        else:
            self._generic_visit(node, scope)

    def _generic_visit(self, node: Dict[str, Any], scope: Scope) -> None:
        for key, value in node.items():
            if key in {"loc", "range"}:
                continue
            self._visit(value, scope)

    # ---------------------------------------------------------------- patterns

    def _declare_pattern(
        self,
        pattern: Optional[Dict[str, Any]],
        kind: BindingKind,
        scope: Scope,
        declaration: Optional[Dict[str, Any]],
        *,
        expression_scope: Optional[Scope] = None,
    ) -> None:
        """Bind every identifier of a declaration pattern; defaults are references."""
        if not isinstance(pattern, dict):
            return
        expression_scope = expression_scope or scope
        pattern_type = pattern.get("type")
        if pattern_type == "Identifier":
            self._declare(pattern, kind, scope, declaration)
        elif pattern_type == "ObjectPattern":
            for prop in pattern.get("properties", []):
                if prop.get("type") == "RestElement":
                    self._declare_pattern(
                        prop.get("argument"), kind, scope, declaration,
                        expression_scope=expression_scope,
                    )
                    continue
                if prop.get("computed"):
                    self._visit(prop.get("key"), expression_scope)
                self._declare_pattern(
                    prop.get("value"), kind, scope, declaration,
                    expression_scope=expression_scope,
                )
        elif pattern_type == "ArrayPattern":
            for element in pattern.get("elements", []):
                self._declare_pattern(
                    element, kind, scope, declaration, expression_scope=expression_scope
                )
        elif pattern_type == "AssignmentPattern":
            self._declare_pattern(
                pattern.get("left"), kind, scope, declaration,
                expression_scope=expression_scope,
            )
            self._visit(pattern.get("right"), expression_scope)
        elif pattern_type == "RestElement":
            self._declare_pattern(
                pattern.get("argument"), kind, scope, declaration,
                expression_scope=expression_scope,
            )
        else:
            self._visit(pattern, expression_scope)

    def _assign_pattern(self, pattern: Optional[Dict[str, Any]], scope: Scope) -> None:
        """Record writes for every identifier an assignment target updates."""
        if not isinstance(pattern, dict):
            return
        pattern_type = pattern.get("type")
        if pattern_type == "Identifier":
            self._reference(pattern, scope, is_write=True)
        elif pattern_type == "ObjectPattern":
            for prop in pattern.get("properties", []):
                if prop.get("type") == "RestElement":
                    self._assign_pattern(prop.get("argument"), scope)
                    continue
                if prop.get("computed"):
                    self._visit(prop.get("key"), scope)
                self._assign_pattern(prop.get("value"), scope)
        elif pattern_type == "ArrayPattern":
            for element in pattern.get("elements", []):
                self._assign_pattern(element, scope)
        elif pattern_type == "AssignmentPattern":
            self._assign_pattern(pattern.get("left"), scope)
            self._visit(pattern.get("right"), scope)
        elif pattern_type == "RestElement":
            self._assign_pattern(pattern.get("argument"), scope)
        else:
            self._visit(pattern, scope)

    # ----------------------------------------------------------------- visitors

    def _visit_Identifier(self, node: Dict[str, Any], scope: Scope) -> None:
        self._reference(node, scope)

    def _visit_BlockStatement(self, node: Dict[str, Any], scope: Scope) -> None:
        block_scope = self._new_scope(ScopeType.BLOCK, node, scope)
        self._visit(node.get("body", []), block_scope)

    def _visit_VariableDeclaration(self, node: Dict[str, Any], scope: Scope) -> None:
        kind = node.get("kind")
        if kind == "var":
            binding_kind, target = BindingKind.VAR, scope.function_scope
        elif kind == "const":
            binding_kind, target = BindingKind.CONST, scope
        else:
            binding_kind, target = BindingKind.LET, scope
        for declarator in node.get("declarations", []):
            self._declare_pattern(
                declarator.get("id"), binding_kind, target, node, expression_scope=scope
            )
            # Visit initializer to catch nested functions etc.
            self._visit(declarator.get("init"), scope)

    def _visit_FunctionDeclaration(self, node: Dict[str, Any], scope: Scope) -> None:
        identifier = node.get("id")
        if isinstance(identifier, dict) and identifier.get("type") == "Identifier":
            self._declare(identifier, BindingKind.FUNCTION, scope, node)
        self._visit_function(node, scope)

    def _visit_FunctionExpression(self, node: Dict[str, Any], scope: Scope) -> None:
        self._visit_function(node, scope)

    def _visit_ArrowFunctionExpression(self, node: Dict[str, Any], scope: Scope) -> None:
        self._visit_function(node, scope)

    def _visit_function(self, node: Dict[str, Any], scope: Scope) -> None:
        function_scope = self._new_scope(ScopeType.FUNCTION, node, scope)
        identifier = node.get("id")
        if node.get("type") == "FunctionExpression" and isinstance(identifier, dict):
            # Named function expressions bind the name within the inner scope.
            self._declare(identifier, BindingKind.FUNCTION, function_scope, node)
        for param in node.get("params", []):
            self._declare_pattern(param, BindingKind.PARAMETER, function_scope, node)
        body = node.get("body")
        if isinstance(body, dict) and body.get("type") == "BlockStatement":
            # The body shares the parameter scope.
            self._visit(body.get("body", []), function_scope)
        else:
            self._visit(body, function_scope)

    def _visit_ClassDeclaration(self, node: Dict[str, Any], scope: Scope) -> None:
        identifier = node.get("id")
        if isinstance(identifier, dict):
            self._declare(identifier, BindingKind.CLASS, scope, node)
        self._visit(node.get("superClass"), scope)
        self._visit(node.get("body"), scope)

    def _visit_ClassExpression(self, node: Dict[str, Any], scope: Scope) -> None:
        self._visit(node.get("superClass"), scope)
        class_scope = scope
        identifier = node.get("id")
        if isinstance(identifier, dict):
            class_scope = self._new_scope(ScopeType.CLASS, node, scope)
            self._declare(identifier, BindingKind.CLASS, class_scope, node)
        self._visit(node.get("body"), class_scope)

    def _visit_MethodDefinition(self, node: Dict[str, Any], scope: Scope) -> None:
        if node.get("computed"):
            self._visit(node.get("key"), scope)
        self._visit(node.get("value"), scope)

    def _visit_Property(self, node: Dict[str, Any], scope: Scope) -> None:
        if node.get("computed"):
            self._visit(node.get("key"), scope)
        self._visit(node.get("value"), scope)

    def _visit_MemberExpression(self, node: Dict[str, Any], scope: Scope) -> None:
        self._visit(node.get("object"), scope)
        if node.get("computed"):
            self._visit(node.get("property"), scope)

    def _visit_MetaProperty(self, node: Dict[str, Any], scope: Scope) -> None:
        return

    def _visit_JSXOpeningElement(self, node: Dict[str, Any], scope: Scope) -> None:
        self._reference_element_name(node.get("name"), scope)
        self._visit(node.get("attributes", []), scope)

    def _visit_JSXClosingElement(self, node: Dict[str, Any], scope: Scope) -> None:
        self._reference_element_name(node.get("name"), scope)

    def _visit_JSXAttribute(self, node: Dict[str, Any], scope: Scope) -> None:
        self._visit(node.get("value"), scope)

    def _reference_element_name(self, name: Optional[Dict[str, Any]], scope: Scope) -> None:
        """`<Panel>` and `<ui.Panel>` read a variable, `<div>` names a tag."""
        if not name:
            return
        dotted = name.get("type") == "JSXMemberExpression"
        while name.get("type") == "JSXMemberExpression":
            name = name.get("object") or {}
        if name.get("type") != "JSXIdentifier":
            return
        if dotted or name.get("name", "")[:1].isupper():
            self._reference(name, scope)

    def _visit_LabeledStatement(self, node: Dict[str, Any], scope: Scope) -> None:
        self._visit(node.get("body"), scope)

    def _visit_BreakStatement(self, node: Dict[str, Any], scope: Scope) -> None:
        return

    _visit_ContinueStatement = _visit_BreakStatement

    def _visit_AssignmentExpression(self, node: Dict[str, Any], scope: Scope) -> None:
        self._assign_pattern(node.get("left"), scope)
        self._visit(node.get("right"), scope)

    def _visit_UpdateExpression(self, node: Dict[str, Any], scope: Scope) -> None:
        self._assign_pattern(node.get("argument"), scope)

    def _visit_ForStatement(self, node: Dict[str, Any], scope: Scope) -> None:
        loop_scope = self._new_scope(ScopeType.BLOCK, node, scope)
        self._visit(node.get("init"), loop_scope)
        self._visit(node.get("test"), loop_scope)
        self._visit(node.get("update"), loop_scope)
        self._visit(node.get("body"), loop_scope)

    def _visit_ForInStatement(self, node: Dict[str, Any], scope: Scope) -> None:
        loop_scope = self._new_scope(ScopeType.BLOCK, node, scope)
        left = node.get("left")
        if isinstance(left, dict) and left.get("type") == "VariableDeclaration":
            self._visit_VariableDeclaration(left, loop_scope)
        else:
            self._assign_pattern(left, loop_scope)
        self._visit(node.get("right"), scope)
        self._visit(node.get("body"), loop_scope)

    _visit_ForOfStatement = _visit_ForInStatement

    def _visit_WhileStatement(self, node: Dict[str, Any], scope: Scope) -> None:
        loop_scope = self._new_scope(ScopeType.BLOCK, node, scope)
        self._visit(node.get("test"), loop_scope)
        self._visit(node.get("body"), loop_scope)

    _visit_DoWhileStatement = _visit_WhileStatement

    def _visit_SwitchStatement(self, node: Dict[str, Any], scope: Scope) -> None:
        self._visit(node.get("discriminant"), scope)
        switch_scope = self._new_scope(ScopeType.BLOCK, node, scope)
        self._visit(node.get("cases", []), switch_scope)

    def _visit_CallExpression(self, node: Dict[str, Any], scope: Scope) -> None:
        callee = node.get("callee")
        if (
            isinstance(callee, dict)
            and callee.get("type") == "Identifier"
            and callee.get("name") == "eval"
        ):
            self._add_issue(
                code="EVAL_CALL",
                message="Use of eval makes static analysis unreliable.",
                node=callee,
                scope=scope,
            )
        self._visit(callee, scope)
        self._visit(node.get("arguments", []), scope)

    def _visit_TryStatement(self, node: Dict[str, Any], scope: Scope) -> None:
        self._visit(node.get("block"), scope)
        handler = node.get("handler")
        if isinstance(handler, dict):
            self._visit_CatchClause(handler, scope)
        self._visit(node.get("finalizer"), scope)

    def _visit_CatchClause(self, node: Dict[str, Any], scope: Scope) -> None:
        catch_scope = self._new_scope(ScopeType.CATCH, node, scope)
        self._declare_pattern(node.get("param"), BindingKind.CATCH_PARAMETER, catch_scope, node)
        body = node.get("body") or {}
        self._visit(body.get("body", []), catch_scope)

    def _visit_WithStatement(self, node: Dict[str, Any], scope: Scope) -> None:
        self._add_issue(
            code="WITH_STATEMENT",
            message="`with` statement changes scope resolution dynamically.",
            node=node,
            scope=scope,
        )
        self._visit(node.get("object"), scope)
        self._visit(node.get("body"), scope)

    def _visit_ImportDeclaration(self, node: Dict[str, Any], scope: Scope) -> None:
        for specifier in node.get("specifiers", []):
            local = specifier.get("local")
            if isinstance(local, dict):
                self._declare(local, BindingKind.IMPORT, scope, node)

    def _visit_ExportNamedDeclaration(self, node: Dict[str, Any], scope: Scope) -> None:
        self._visit(node.get("declaration"), scope)
        if node.get("source") is None:
            for specifier in node.get("specifiers", []):
                self._visit(specifier.get("local"), scope)

    def _visit_ExportAllDeclaration(self, node: Dict[str, Any], scope: Scope) -> None:
        return


def analyze_bindings(ast: Dict[str, Any], *, source_name: str = "<input>") -> AnalysisResult:
    """
    Run scope and binding analysis on a JavaScript AST.

    Args:
        ast: esprima-compatible AST (result of `parse_js`).
        source_name: Label for diagnostics and reporting.

    Returns:
        AnalysisResult with the scope tree, resolved references and issues.
    """
    analyzer = _BindingAnalyzer(source_name=source_name)
    return analyzer.analyze(ast)


__all__ = [
    "AnalysisResult",
    "AnalysisIssue",
    "BLOCK_SCOPED_KINDS",
    "Binding",
    "BindingKind",
    "FUNCTION_SCOPE_TYPES",
    "LOOP_TYPES",
    "Reference",
    "Scope",
    "ScopeType",
    "analyze_bindings",
]
