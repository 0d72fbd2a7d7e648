import json
from pathlib import Path
from typing import Set

import pytest

from analyzer import BindingKind, ScopeType, analyze_bindings
from frontend import compile_dialect, dialect_for_path, run_frontend
from parser import JsSyntaxError, parse_js

CASES = Path(__file__).parent / "cases"


def _binding_names(scope, kind: BindingKind) -> Set[str]:
    names: Set[str] = set()
    for name, bindings in scope.bindings.items():
        for binding in bindings:
            if binding.kind == kind:
                names.add(name)
    return names


def _find_function_scope(root_scope, function_name: str):
    for child in root_scope.children:
        node = child.node
        ident = node.get("id")
        if (
            node.get("type") == "FunctionDeclaration"
            and isinstance(ident, dict)
            and ident.get("name") == function_name
        ):
            return child
    raise AssertionError(f"Function scope for {function_name} not found")


def test_parse_detaches_comment_and_token_tables():
    result = parse_js("// note\nvar a = 1; /* tail */\n", source_name="a.js")

    assert "comments" not in result.ast
    assert "tokens" not in result.ast
    assert [comment["type"] for comment in result.comments] == ["Line", "Block"]
    assert result.comments[0]["value"] == " note"
    assert result.comments[0]["range"] == [0, 7]
    assert [token["value"] for token in result.tokens] == ["var", "a", "=", "1", ";"]
    assert result.ast["body"][0]["range"] == [8, 18]


def test_parse_result_serialises_to_json():
    result = parse_js("let x = 1;", source_name="x.js")
    payload = json.loads(result.to_json())
    assert payload["source_name"] == "x.js"
    assert payload["ast"]["body"][0]["kind"] == "let"
    assert payload["source_hash"] == result.source_hash


def test_syntax_error_carries_position():
    source = (CASES / "syntax_error.js").read_text(encoding="utf-8")
    with pytest.raises(JsSyntaxError) as excinfo:
        parse_js(source, source_name="syntax_error.js")

    error = excinfo.value
    assert isinstance(error, ValueError)
    assert error.line == 1
    assert error.index is not None
    assert error.range == [error.index, error.index + 1]
    assert "syntax_error.js:1" in str(error)


def test_module_source_type_enables_imports():
    source = (CASES / "module_export.js").read_text(encoding="utf-8")
    with pytest.raises(JsSyntaxError):
        parse_js(source)

    result = parse_js(source, source_type="module")
    assert result.ast["sourceType"] == "module"
    assert result.ast["body"][0]["type"] == "ImportDeclaration"


def test_unknown_source_type_is_rejected():
    with pytest.raises(ValueError):
        parse_js("1;", source_type="json")


def test_coffee_dialect_uses_injected_compiler():
    calls = []

    def compiler(text):
        calls.append(text)
        return "var square = function (x) { return x * x; };"

    result = run_frontend("square = (x) -> x * x", dialect="coffee", compiler=compiler)

    assert calls == ["square = (x) -> x * x"]
    assert result.dialect == "coffee"
    assert result.source.startswith("var square")
    assert result.parse.ast["body"][0]["type"] == "VariableDeclaration"


def test_coffee_compiler_failure_is_a_syntax_error():
    def compiler(text):
        raise RuntimeError("unexpected indentation")

    with pytest.raises(JsSyntaxError) as excinfo:
        compile_dialect("x =\n  1", dialect="coffee", compiler=compiler, source_name="x.coffee")
    assert "unexpected indentation" in excinfo.value.description
    assert excinfo.value.source_name == "x.coffee"


def test_unknown_dialect_is_rejected():
    with pytest.raises(ValueError):
        compile_dialect("x", dialect="typescript")


def test_dialect_follows_file_suffix():
    assert dialect_for_path("lib/app.coffee") == "coffee"
    assert dialect_for_path(Path("lib/app.js")) == "es6"


def test_frontend_persists_parse_cache(tmp_path):
    result = run_frontend("var a = 1;", cache_dir=tmp_path / "cache")
    cache_file = tmp_path / "cache" / f"{result.parse.source_hash}.json"
    assert cache_file.exists()
    assert json.loads(cache_file.read_text(encoding="utf-8"))["ast"]["type"] == "Program"


SCOPES_SOURCE = """
var top = 1;
function outer(a) {
  let b = a;
  for (let i = 0; i < 3; i++) {
    const c = i;
  }
  return function inner() { return b + top; };
}
"""


def test_analysis_builds_scope_tree():
    result = run_frontend(SCOPES_SOURCE, analyze=True)
    root = result.analysis.root_scope

    assert root.scope_type == ScopeType.GLOBAL
    assert _binding_names(root, BindingKind.VAR) == {"top"}
    assert _binding_names(root, BindingKind.FUNCTION) == {"outer"}

    outer = _find_function_scope(root, "outer")
    assert outer.scope_type == ScopeType.FUNCTION
    assert _binding_names(outer, BindingKind.PARAMETER) == {"a"}
    assert _binding_names(outer, BindingKind.LET) == {"b"}

    loop = next(child for child in outer.children if child.node["type"] == "ForStatement")
    assert _binding_names(loop, BindingKind.LET) == {"i"}
    body = loop.children[0]
    assert _binding_names(body, BindingKind.CONST) == {"c"}
    assert body.function_scope is outer
    assert result.diagnostics == []


def test_analysis_resolves_closure_references():
    ast = parse_js(SCOPES_SOURCE).ast
    analysis = analyze_bindings(ast)
    outer = _find_function_scope(analysis.root_scope, "outer")
    binding_b = outer.bindings["b"][0]

    # `b` is read once, from inside `inner`.
    assert len(binding_b.references) == 1
    reference = binding_b.references[0]
    assert reference.scope.function_scope is not outer
    assert binding_b.identifiers[0] is binding_b.node

    top_refs = [ref for ref in analysis.references if ref.name == "top"]
    assert top_refs and all(ref.binding.kind == BindingKind.VAR for ref in top_refs)


def test_analysis_skips_property_names():
    analysis = analyze_bindings(parse_js("var o = {key: 1}; o.key; o[key];").ast)
    names = [reference.name for reference in analysis.references]
    assert names.count("key") == 1
    assert names.count("o") == 2


def test_analysis_flags_eval_and_with():
    source = "function e() { eval('1'); }\nwith (obj) { x; }"
    analysis = analyze_bindings(parse_js(source).ast)
    codes = sorted(issue.code for issue in analysis.issues)
    assert codes == ["EVAL_CALL", "WITH_STATEMENT"]

    function_scope = _find_function_scope(analysis.root_scope, "e")
    assert [issue.code for issue in analysis.issues_in(function_scope)] == ["EVAL_CALL"]


def test_analysis_of_module_imports():
    result = run_frontend(
        "import helper from './helper';\nexport { helper };",
        source_type="module",
        analyze=True,
    )
    root = result.analysis.root_scope
    assert root.scope_type == ScopeType.MODULE
    assert _binding_names(root, BindingKind.IMPORT) == {"helper"}
    assert len(root.bindings["helper"][0].references) == 1


def test_scope_lookup_by_node():
    ast = parse_js(SCOPES_SOURCE).ast
    analysis = analyze_bindings(ast)
    outer_node = ast["body"][1]

    assert analysis.scope_for(ast) is analysis.root_scope
    assert analysis.scope_for(outer_node) is _find_function_scope(analysis.root_scope, "outer")
    assert analysis.scope_for(outer_node["params"][0]) is None


def test_analysis_resolves_jsx_component_names():
    source = "let Panel = make();\nlet ui = lib;\nvar a = <Panel>{x}</Panel>;\nvar b = <ui.Item className=\"c\" />;\nvar c = <div />;"
    analysis = analyze_bindings(parse_js(source).ast)
    names = [reference.name for reference in analysis.references]

    assert names.count("Panel") == 2
    assert names.count("ui") == 1
    assert "x" in names
    assert "div" not in names
    assert "className" not in names
    assert "Item" not in names
    panel = analysis.root_scope.bindings["Panel"][0]
    assert [ref.node["type"] for ref in panel.references] == ["JSXIdentifier", "JSXIdentifier"]
