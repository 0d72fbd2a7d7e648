"""
Lower `let` / `const` declarations to `var`.

Turning a block binding into `var` hoists it to the enclosing function, so the
pass works from a full scope analysis of the tree:

1. Bindings declared in a nested block whose name is already used in the
   function (another binding, or a reference resolving outside the block)
   are renamed to a fresh name, together with every reference to them.
2. Loops whose per-iteration bindings are captured by closures get their
   body moved into a function called once per iteration, so each closure
   keeps its own copy:

       for (let i = 0; i < n; i++) { fns.push(() => i); }

       var _loop = function (i) { fns.push(() => i); };
       for (var i = 0; i < n; i++) { _loop(i); }

   `continue`, `break` and `return` inside the moved body are turned into
   return signals checked after the call, and `var` declarations of the body
   are hoisted in front of the loop.
3. Every remaining `let` / `const` becomes `var`; a `let` without initialiser
   inside a loop body is reset with `= void 0` on each iteration.

Loops and functions the rewrite cannot handle keep their `let` / `const`
declarations and produce a diagnostic.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Set

from analyzer import (
    BLOCK_SCOPED_KINDS,
    LOOP_TYPES,
    AnalysisResult,
    Binding,
    Scope,
    analyze_bindings,
)

from .builders import (
    Node,
    assign,
    binary,
    block_statement,
    break_statement,
    call,
    expression_statement,
    function_expression,
    identifier,
    if_statement,
    literal,
    member,
    object_expression,
    property_node,
    return_statement,
    this_expression,
    unary,
    var,
    variable_declaration,
    variable_declarator,
    void_zero,
)
from .core import (
    CLASS_TYPES,
    FUNCTION_TYPES,
    NON_ARROW_FUNCTION_TYPES,
    LoweringPass,
    NameGenerator,
    NodeTransformer,
    is_node,
    iter_nodes,
    pattern_names,
)

BLOCK_SCOPED_DECLARATION_KINDS = frozenset({"let", "const"})


def _is_block_declaration(node: Optional[Node]) -> bool:
    return (
        is_node(node)
        and node["type"] == "VariableDeclaration"
        and node.get("kind") in BLOCK_SCOPED_DECLARATION_KINDS
    )


def _loop_head(loop: Node) -> Optional[Node]:
    if loop["type"] == "ForStatement":
        return loop.get("init")
    if loop["type"] in ("ForInStatement", "ForOfStatement"):
        return loop.get("left")
    return None


def _head_names(loop: Node) -> List[str]:
    head = _loop_head(loop)
    if not _is_block_declaration(head):
        return []
    names: List[str] = []
    for declarator in head.get("declarations", []):
        names.extend(pattern_names(declarator.get("id")))
    return names


def _loop_statements(loop: Node) -> List[Node]:
    body = loop.get("body") or {}
    if body.get("type") == "BlockStatement":
        return body.setdefault("body", [])
    return [body]


def _innermost_loop(scope: Scope) -> Optional[Scope]:
    current: Optional[Scope] = scope
    while current is not None and not current.is_function_scope:
        if current.node.get("type") in LOOP_TYPES:
            return current
        current = current.parent
    return None


def _block_declarations(node: Node) -> List[Node]:
    """`let` / `const` declarations in `node`, excluding nested functions."""
    return [
        child
        for child, _ in iter_nodes(node, stop_at=FUNCTION_TYPES)
        if _is_block_declaration(child)
    ]


class _VarHoister(NodeTransformer):
    """Turns the `var` declarations of a loop body into plain assignments."""

    def __init__(self) -> None:
        self.names: List[str] = []
        self._removed: Set[int] = set()

    def _stop(self, node: Node) -> Node:
        return node

    visit_FunctionDeclaration = _stop
    visit_FunctionExpression = _stop
    visit_ArrowFunctionExpression = _stop
    visit_ClassDeclaration = _stop
    visit_ClassExpression = _stop

    def _visit_list(self, values: List[object]) -> None:
        super()._visit_list(values)
        values[:] = [value for value in values if id(value) not in self._removed]

    def _collect(self, declaration: Node) -> Optional[Node]:
        assignments = []
        for declarator in declaration.get("declarations", []):
            for name in pattern_names(declarator.get("id")):
                if name not in self.names:
                    self.names.append(name)
            init = declarator.get("init")
            if init is not None:
                assignments.append(assign(declarator["id"], self.visit(init), source=declarator))
        if not assignments:
            return None
        if len(assignments) == 1:
            return assignments[0]
        return {"type": "SequenceExpression", "expressions": assignments}

    def visit_VariableDeclaration(self, node: Node) -> Node:
        if node.get("kind") != "var":
            return self.generic_visit(node)
        expression = self._collect(node)
        if expression is None:
            empty = {"type": "EmptyStatement"}
            self._removed.add(id(empty))
            return empty
        return expression_statement(expression, source=node)

    def visit_ForStatement(self, node: Node) -> Node:
        init = node.get("init")
        if is_node(init) and init["type"] == "VariableDeclaration" and init.get("kind") == "var":
            expression = self._collect(init)
            if expression is None:
                del node["init"]
            else:
                node["init"] = expression
        return self.generic_visit(node)

    def visit_ForInStatement(self, node: Node) -> Node:
        left = node.get("left")
        if is_node(left) and left["type"] == "VariableDeclaration" and left.get("kind") == "var":
            self._collect(left)
            node["left"] = left["declarations"][0]["id"]
        return self.generic_visit(node)

    visit_ForOfStatement = visit_ForInStatement


class _FlowRewriter(NodeTransformer):
    """Maps loop control flow of a moved body onto return signals."""

    def __init__(self) -> None:
        self.has_break = False
        self.has_return = False
        self._loop_depth = 0
        self._switch_depth = 0

    def _stop(self, node: Node) -> Node:
        return node

    visit_FunctionDeclaration = _stop
    visit_FunctionExpression = _stop
    visit_ArrowFunctionExpression = _stop
    visit_ClassDeclaration = _stop
    visit_ClassExpression = _stop

    def _visit_nested_loop(self, node: Node) -> Node:
        self._loop_depth += 1
        self.generic_visit(node)
        self._loop_depth -= 1
        return node

    visit_ForStatement = _visit_nested_loop
    visit_ForInStatement = _visit_nested_loop
    visit_ForOfStatement = _visit_nested_loop
    visit_WhileStatement = _visit_nested_loop
    visit_DoWhileStatement = _visit_nested_loop

    def visit_SwitchStatement(self, node: Node) -> Node:
        self._switch_depth += 1
        self.generic_visit(node)
        self._switch_depth -= 1
        return node

    def visit_BreakStatement(self, node: Node) -> Node:
        if node.get("label") or self._loop_depth or self._switch_depth:
            return node
        self.has_break = True
        return return_statement(literal("break"), source=node)

    def visit_ContinueStatement(self, node: Node) -> Node:
        if node.get("label") or self._loop_depth:
            return node
        return return_statement(source=node)

    def visit_ReturnStatement(self, node: Node) -> Node:
        self.generic_visit(node)
        self.has_return = True
        value = node.get("argument") or void_zero()
        return return_statement(object_expression([property_node("v", value)]), source=node)

    @property
    def uses_signals(self) -> bool:
        return self.has_break or self.has_return


class _DeclarationRewriter(NodeTransformer):
    """Switches `let` / `const` to `var` once renaming and loop wrapping are done."""

    def __init__(self, kept: Set[int]):
        self._kept = kept
        self._loop_depth = [0]

    def _convert(self, node: Node, *, in_loop: bool) -> None:
        if not _is_block_declaration(node) or id(node) in self._kept:
            return
        if in_loop and node["kind"] == "let":
            for declarator in node.get("declarations", []):
                target = declarator.get("id") or {}
                if declarator.get("init") is None and target.get("type") == "Identifier":
                    declarator["init"] = void_zero()
        node["kind"] = "var"

    def visit_VariableDeclaration(self, node: Node) -> Node:
        self._convert(node, in_loop=self._loop_depth[-1] > 0)
        return self.generic_visit(node)

    def _visit_loop(self, node: Node) -> Node:
        head = _loop_head(node)
        if head is not None:
            self._convert(head, in_loop=False)
        self._loop_depth[-1] += 1
        self.generic_visit(node)
        self._loop_depth[-1] -= 1
        return node

    visit_ForStatement = _visit_loop
    visit_ForInStatement = _visit_loop
    visit_ForOfStatement = _visit_loop
    visit_WhileStatement = _visit_loop
    visit_DoWhileStatement = _visit_loop

    def _visit_function(self, node: Node) -> Node:
        self._loop_depth.append(0)
        self.generic_visit(node)
        self._loop_depth.pop()
        return node

    visit_FunctionDeclaration = _visit_function
    visit_FunctionExpression = _visit_function
    visit_ArrowFunctionExpression = _visit_function


class BlockScopingPass(LoweringPass):
    name = "block_scoped_bindings"

    def apply(self, tree: Node) -> None:
        self._names = NameGenerator(tree)
        analysis = analyze_bindings(tree, source_name=self.context.source_name)
        block_bindings = [
            binding
            for scope in analysis.flatten_scopes()
            for binding in scope.iter_bindings()
            if binding.kind in BLOCK_SCOPED_KINDS
        ]

        kept: Set[int] = set()
        unsafe = self._keep_dynamic_scopes(analysis, block_bindings, kept)
        self._loops: Dict[int, Node] = self._plan_loops(block_bindings, kept)
        for scope in analysis.flatten_scopes():
            if scope.is_function_scope and scope.scope_id not in unsafe:
                self._rename_conflicts(scope, analysis, kept)

        self.visit(tree)
        _DeclarationRewriter(kept).visit(tree)

    # ------------------------------------------------------------- planning

    def _keep_dynamic_scopes(
        self, analysis: AnalysisResult, bindings: List[Binding], kept: Set[int]
    ) -> Set[str]:
        """Functions using `eval` or `with` keep their nested block bindings."""
        unsafe = {issue.scope_id for issue in analysis.issues}
        for scope_id in sorted(unsafe):
            nested = [
                binding
                for binding in bindings
                if binding.scope.function_scope.scope_id == scope_id
                and not binding.scope.is_function_scope
            ]
            if not nested:
                continue
            kept.update(id(binding.declaration) for binding in nested)
            self._decline(
                "Block-scoped bindings left untouched in a function using `eval` or `with`.",
                nested[0].declaration,
            )
        return unsafe

    def _plan_loops(self, bindings: List[Binding], kept: Set[int]) -> Dict[int, Node]:
        captured: Dict[int, Node] = {}
        for binding in bindings:
            if id(binding.declaration) in kept:
                continue
            loop_scope = _innermost_loop(binding.scope)
            if loop_scope is None:
                continue
            owner = binding.scope.function_scope
            if any(ref.scope.function_scope is not owner for ref in binding.references):
                captured[id(loop_scope.node)] = loop_scope.node

        for loop in captured.values():
            problem = self._wrap_problem(loop)
            if problem:
                self._decline(problem, loop)
                kept.update(id(declaration) for declaration in _block_declarations(loop))

        return {
            loop_id: loop
            for loop_id, loop in captured.items()
            if not any(id(declaration) in kept for declaration in _block_declarations(loop))
        }

    def _wrap_problem(self, loop: Node) -> Optional[str]:
        body = loop.get("body")
        head_names = set(_head_names(loop))
        for child, _ in iter_nodes(body):
            child_type = child.get("type")
            if child_type == "AssignmentExpression":
                written = pattern_names(child.get("left"))
            elif child_type == "UpdateExpression":
                written = pattern_names(child.get("argument"))
            else:
                continue
            if head_names.intersection(written):
                return "Loop body reassigns its own per-iteration binding; loop left untouched."

        labels: Set[str] = set()
        jumps: List[Node] = []
        for child, _ in iter_nodes(body, stop_at=FUNCTION_TYPES | CLASS_TYPES):
            child_type = child.get("type")
            if child is not body and child_type == "FunctionDeclaration":
                return "Function declared inside a closure-capturing loop; loop left untouched."
            if child_type in ("YieldExpression", "AwaitExpression"):
                return "Closure-capturing loop suspends with yield/await; loop left untouched."
            if child_type == "LabeledStatement":
                labels.add(child["label"]["name"])
            if child_type in ("BreakStatement", "ContinueStatement") and child.get("label"):
                jumps.append(child)
        if any(jump["label"]["name"] not in labels for jump in jumps):
            return "Closure-capturing loop jumps to an outer label; loop left untouched."

        for child, _ in iter_nodes(body, stop_at=NON_ARROW_FUNCTION_TYPES | CLASS_TYPES):
            if child.get("type") == "Identifier" and child.get("name") == "arguments":
                return "Closure-capturing loop uses `arguments`; loop left untouched."
        return None

    def _rename_conflicts(self, function_scope: Scope, analysis: AnalysisResult, kept: Set[int]) -> None:
        inner_scopes = [
            scope
            for scope in analysis.flatten_scopes()
            if scope.function_scope is function_scope
        ]
        taken: Set[str] = set()
        candidates: List[Binding] = []
        for scope in inner_scopes:
            for binding in scope.iter_bindings():
                movable = (
                    binding.kind in BLOCK_SCOPED_KINDS
                    and scope is not function_scope
                    and id(binding.declaration) not in kept
                )
                if movable:
                    candidates.append(binding)
                else:
                    taken.add(binding.name)

        candidate_ids = {id(binding) for binding in candidates}
        for reference in analysis.references:
            if not reference.scope.is_within(function_scope):
                continue
            binding = reference.binding
            if binding is None or function_scope.is_within(binding.scope.function_scope):
                if binding is None or id(binding) not in candidate_ids:
                    taken.add(reference.name)

        candidates.sort(key=lambda binding: (binding.node.get("range") or [0])[0])
        for binding in candidates:
            if binding.name not in taken:
                taken.add(binding.name)
                continue
            new_name = self._names.fresh(binding.name)
            for node in binding.identifiers:
                node["name"] = new_name
            taken.add(new_name)

    # ------------------------------------------------------------- wrapping

    def _visit_loop(self, node: Node):
        if id(node) not in self._loops:
            return self.generic_visit(node)
        del self._loops[id(node)]
        result: List[Node] = []
        for statement in self._wrap(node):
            visited = self.visit(statement)
            result.extend(visited if isinstance(visited, list) else [visited])
        return result

    visit_ForStatement = _visit_loop
    visit_ForInStatement = _visit_loop
    visit_ForOfStatement = _visit_loop
    visit_WhileStatement = _visit_loop
    visit_DoWhileStatement = _visit_loop

    def _wrap(self, loop: Node) -> List[Node]:
        statements = _loop_statements(loop)
        head_names = _head_names(loop)

        hoister = _VarHoister()
        hoister._visit_list(statements)
        flow = _FlowRewriter()
        flow._visit_list(statements)
        uses_this = any(
            child.get("type") == "ThisExpression"
            for child, _ in iter_nodes(statements, stop_at=NON_ARROW_FUNCTION_TYPES | CLASS_TYPES)
        )

        loop_name = self._names.fresh("loop")
        declarations: List[Node] = []
        if hoister.names:
            hoisted = variable_declaration(
                "var", [variable_declarator(identifier(name)) for name in hoister.names]
            )
            if "range" in loop:
                # Empty range at the loop start: takes the comments leading the loop.
                hoisted["range"] = [loop["range"][0], loop["range"][0]]
            declarations.append(hoisted)
        declarations.append(
            var(
                loop_name,
                function_expression([identifier(n) for n in head_names], statements),
                source=loop,
            )
        )

        arguments = [identifier(name) for name in head_names]
        if uses_this:
            invocation = call(member(identifier(loop_name), "call"), [this_expression(), *arguments])
        else:
            invocation = call(identifier(loop_name), arguments)

        if flow.uses_signals:
            result_name = self._names.fresh("ret")
            body = [var(result_name, invocation)]
            if flow.has_break:
                body.append(
                    if_statement(
                        binary("===", identifier(result_name), literal("break")),
                        break_statement(),
                    )
                )
            if flow.has_return:
                body.append(
                    if_statement(
                        binary("===", unary("typeof", identifier(result_name)), literal("object")),
                        return_statement(member(identifier(result_name), "v")),
                    )
                )
        else:
            body = [expression_statement(invocation)]
        loop["body"] = block_statement(body)
        return declarations + [loop]


__all__ = ["BlockScopingPass"]
