from pathlib import Path

import pytest

from emitter import CodeGenerationError, EmitOptions, emit_program, format_source
from emitter.codegen import quote_string
from parser import parse_js
from pipeline import PipelineConfig, transform
from transformer.builders import binary, call, expression_statement, identifier, literal

CASES = Path(__file__).parent / "cases"


def _roundtrip(source: str, **config) -> str:
    return transform(source, PipelineConfig.only(**config)).source


def _program(*statements):
    return {"type": "Program", "sourceType": "script", "body": list(statements)}


def test_unchanged_tree_keeps_comments_and_blank_lines():
    source = (CASES / "comments_blank_lines.js").read_text(encoding="utf-8")
    assert _roundtrip(source) == source


def test_every_comment_is_emitted_exactly_once():
    source = (CASES / "comments_everywhere.js").read_text(encoding="utf-8")
    output = _roundtrip(source)
    for comment in ("/* header */", "// one", "// inside", "// before close", "/* arg */", "// tail"):
        assert output.count(comment) == 1, comment
    assert "var a = 1; // one\n" in output
    assert "  // before close\n}" in output
    assert "/* arg */\nfoo(a);" in output
    assert output.endswith("// tail\n")


def test_comments_survive_lowering():
    source = "// make one\nconst one = () => 1; // arrow\n"
    output = transform(source).source
    assert output == "// make one\nvar one = function () {\n  return 1;\n}; // arrow\n"


@pytest.mark.parametrize(
    "source, expected",
    [
        ("(a + b) * c;", "(a + b) * c;\n"),
        ("a - (b - c);", "a - (b - c);\n"),
        ("(a - b) - c;", "a - b - c;\n"),
        ("(function () {})();", "(function () {\n})();\n"),
        ("new (foo())();", "new (foo())();\n"),
        ("(1).toString();", "(1).toString();\n"),
        ("x = (a, b);", "x = (a, b);\n"),
        ("(a ? b : c).d;", "(a ? b : c).d;\n"),
        ("!(a && b);", "!(a && b);\n"),
    ],
)
def test_parentheses_follow_precedence(source, expected):
    assert _roundtrip(source) == expected


def test_synthetic_tree_without_locations():
    tree = _program(
        expression_statement(
            binary("*", binary("+", identifier("a"), identifier("b")), identifier("c"))
        ),
        expression_statement(call(identifier("log"), [literal("x\u2028y"), literal(None)])),
    )
    result = emit_program(tree)
    assert result.source == '(a + b) * c;\nlog("x\\u2028y", null);\n'
    assert result.formatted is False


def test_quote_string_escapes_line_separators():
    assert quote_string('say "hi"\n') == '"say \\"hi\\"\\n"'
    assert quote_string("\u2029") == '"\\u2029"'


def test_unknown_node_type_is_an_error():
    with pytest.raises(CodeGenerationError):
        emit_program(_program({"type": "Bogus"}))
    with pytest.raises(CodeGenerationError):
        emit_program(_program(expression_statement({"type": "Bogus"})))


def test_formatter_reindents_output():
    source = "function f() { return 1; }"
    output = transform(source, PipelineConfig(formatter={"indent_size": 4})).source
    assert output == "function f() {\n    return 1;\n}\n"


def test_formatter_accepts_dashed_option_names():
    text = format_source("function f() {\n  return 1;\n}", {"indent-size": 3, "no-such-option": 1})
    assert text == "function f() {\n   return 1;\n}"


def test_emit_options_control_indent_and_trailing_newline():
    parsed = parse_js("function f() { return 1; }")
    options = EmitOptions(indent="\t", trailing_newline=False)
    result = emit_program(parsed.ast, parsed.source, parsed.comments, parsed.tokens, options)
    assert result.source == "function f() {\n\treturn 1;\n}"


def test_module_syntax_is_printed():
    source = (CASES / "module_export.js").read_text(encoding="utf-8")
    output = _roundtrip(source, source_type="module")
    assert output == source


def test_lowered_template_is_not_read_back_as_directive():
    output = transform("`use strict`;\nx;", PipelineConfig.only("string_templates")).source
    assert output == '("use strict");\nx;\n'
    assert parse_js(output).ast["body"][0].get("directive") is None


def test_directive_prologue_is_kept_bare():
    assert _roundtrip("'use strict';\nx;") == "'use strict';\nx;\n"


@pytest.mark.parametrize(
    "source",
    [
        "var e = <div a={x}>{y}</div>;\n",
        "var e = <Panel title=\"hi\" {...props} disabled />;\n",
        "var e = <ui.List>text {items.length} more</ui.List>;\n",
        "var e = <svg:rect width={2} />;\n",
    ],
)
def test_jsx_is_printed_back(source):
    assert _roundtrip(source) == source


def test_jsx_expressions_are_lowered():
    source = "function view() {\n  return <List onPick={(item) => this.pick(item)} />;\n}\n"
    output = transform(source).source
    assert output == (
        "function view() {\n"
        "  var _this = this;\n"
        "  return <List onPick={function (item) {\n"
        "    return _this.pick(item);\n"
        "  }} />;\n"
        "}\n"
    )
