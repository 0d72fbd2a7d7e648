from pathlib import Path

import pytest

from frontend import run_frontend
from pipeline import PipelineConfig, transform
from transformer import (
    LOWERING_PASSES,
    PASS_NAMES,
    ArrowFunctionPass,
    ClassPass,
    TemplateStringPass,
    UnsupportedShapeDiagnostic,
)
from transformer.core import NameGenerator, iter_nodes

CASES = Path(__file__).parent / "cases"


def _lower(source: str, *passes: str, source_type: str = "script"):
    result = transform(source, PipelineConfig.only(*passes, source_type=source_type))
    return result.source, list(result.diagnostics)


def _load_ast(source: str):
    return run_frontend(source).parse.ast


def test_passes_are_registered_in_application_order():
    assert PASS_NAMES == (
        "classes",
        "string_templates",
        "arrow_functions",
        "block_scoped_bindings",
        "default_arguments",
        "object_methods",
    )
    assert [lowering_pass.name for lowering_pass in LOWERING_PASSES] == list(PASS_NAMES)


def test_name_generator_avoids_existing_names():
    names = NameGenerator(_load_ast("var _this = 1, _this2 = 2;"))
    assert names.fresh("this") == "_this3"
    assert names.fresh("this") == "_this4"
    assert names.fresh("_loop") == "_loop"


# ------------------------------------------------------------- template strings


@pytest.mark.parametrize(
    "source, expected",
    [
        ("var s = `a${x}${y}`;", 'var s = "a" + x + y;\n'),
        ("var s = `${x}${y}`;", 'var s = "" + x + y;\n'),
        ("var s = `${x}px`;", 'var s = x + "px";\n'),
        ("var s = `plain`;", 'var s = "plain";\n'),
        ("var s = ``;", 'var s = "";\n'),
        ("var s = `x${a ? 1 : 2}`;", 'var s = "x" + (a ? 1 : 2);\n'),
        ("var s = `line\\n${x}`;", 'var s = "line\\n" + x;\n'),
    ],
)
def test_template_literals_become_concatenation(source, expected):
    output, diagnostics = _lower(source, "string_templates")
    assert output == expected
    assert diagnostics == []


def test_tagged_template_is_declined():
    output, diagnostics = _lower("tag`a${b}`;", "string_templates")
    assert output == "tag`a${b}`;\n"
    assert len(diagnostics) == 1
    assert diagnostics[0].pass_name == "string_templates"
    assert diagnostics[0].line == 1


def test_template_pass_keeps_location_of_replaced_node():
    tree = _load_ast("var s = `a${b}`;")
    template = tree["body"][0]["declarations"][0]["init"]
    original_range = list(template["range"])

    TemplateStringPass().apply(tree)

    lowered = tree["body"][0]["declarations"][0]["init"]
    assert lowered["type"] == "BinaryExpression"
    assert lowered["range"] == original_range


# -------------------------------------------------------------- arrow functions


def test_arrow_this_and_arguments_are_aliased():
    source = "function f() { return () => this.x + arguments[0]; }"
    output, diagnostics = _lower(source, "arrow_functions")
    assert output == (
        "function f() {\n"
        "  var _this = this;\n"
        "  var _arguments = arguments;\n"
        "  return function () {\n"
        "    return _this.x + _arguments[0];\n"
        "  };\n"
        "}\n"
    )
    assert diagnostics == []


def test_arrow_expression_body_becomes_return():
    output, _ = _lower("var add = (a, b) => a + b;", "arrow_functions")
    assert output == "var add = function (a, b) {\n  return a + b;\n};\n"


def test_arrow_returning_object_literal():
    output, _ = _lower("var make = () => ({a: 1});", "arrow_functions")
    assert output == "var make = function () {\n  return {\n    a: 1\n  };\n};\n"


def test_program_level_this_is_aliased_but_arguments_is_not():
    output, _ = _lower("var self = () => this;\nvar args = () => arguments;", "arrow_functions")
    assert output.startswith("var _this = this;\n")
    assert "return _this;" in output
    assert "return arguments;" in output
    assert "_arguments" not in output


def test_nested_arrows_share_one_alias():
    output, _ = _lower("function f() { return () => () => this; }", "arrow_functions")
    assert output.count("var _this = this;") == 1
    assert "return _this;" in output
    assert "=>" not in output


def test_arrow_alias_avoids_existing_name():
    output, _ = _lower("function f() { var _this = 1; return () => this; }", "arrow_functions")
    assert "var _this2 = this;" in output
    assert "return _this2;" in output


def test_arrow_using_super_is_declined():
    source = "class A extends B { m() { return () => super.m(); } }"
    output, diagnostics = _lower(source, "arrow_functions")
    assert "() => super.m()" in output
    assert [d.pass_name for d in diagnostics] == ["arrow_functions"]


def test_derived_constructor_alias_follows_super_call():
    source = (
        "class W extends mixin(Base) {\n"
        "  constructor() {\n"
        "    super();\n"
        "    this.f = () => this.y;\n"
        "  }\n"
        "}\n"
    )
    output, diagnostics = _lower(source, "arrow_functions")
    assert (
        "    super();\n"
        "    var _this = this;\n"
        "    this.f = function () {\n"
        "      return _this.y;\n"
        "    };\n"
    ) in output
    assert diagnostics == []


def test_derived_constructor_without_top_level_super_declines_arrow():
    source = (
        "class W extends Base {\n"
        "  constructor(ok) {\n"
        "    if (ok) { super(); }\n"
        "    this.f = () => this.y;\n"
        "    this.g = () => 1;\n"
        "  }\n"
        "}\n"
    )
    output, diagnostics = _lower(source, "arrow_functions")
    assert "this.f = () => this.y;" in output
    assert "this.g = function () {" in output
    assert "_this" not in output
    assert [d.pass_name for d in diagnostics] == ["arrow_functions"]
    assert diagnostics[0].line == 4


def test_base_class_constructor_alias_stays_at_top():
    source = "class W { constructor() { this.f = () => this; } }"
    output, _ = _lower(source, "arrow_functions")
    assert "  constructor() {\n    var _this = this;\n" in output


def test_arrow_pass_ignores_property_names():
    tree = _load_ast("var f = () => ({ this: 1, arguments: 2 }).arguments;")
    ArrowFunctionPass().apply(tree)
    names = {node.get("name") for node, _ in iter_nodes(tree) if node.get("type") == "Identifier"}
    assert "_this" not in names
    assert "_arguments" not in names


# ----------------------------------------------------------- default arguments


def test_default_argument_becomes_presence_check():
    source = (CASES / "default_order.js").read_text(encoding="utf-8")
    output, diagnostics = _lower(source, "default_arguments")
    assert output == (
        "function f(a, b) {\n"
        "  if (b === void 0) {\n"
        "    b = a + 1;\n"
        "  }\n"
        "  return a + b;\n"
        "}\n"
    )
    assert diagnostics == []


def test_defaults_are_checked_in_parameter_order():
    output, _ = _lower("function g(a = 1, b = a) {}", "default_arguments")
    assert output == (
        "function g(a, b) {\n"
        "  if (a === void 0) {\n"
        "    a = 1;\n"
        "  }\n"
        "  if (b === void 0) {\n"
        "    b = a;\n"
        "  }\n"
        "}\n"
    )


def test_default_checks_follow_arrow_aliases():
    output, _ = _lower(
        "function h(x = 1) { return () => this.y + x; }", "arrow_functions", "default_arguments"
    )
    assert output.index("var _this = this;") < output.index("if (x === void 0)")


def test_default_on_arrow_expression_body():
    output, _ = _lower("var inc = (n, step = 1) => n + step;", "default_arguments")
    assert "(n, step) => {" in output
    assert "if (step === void 0) {" in output
    assert "return n + step;" in output


def test_destructured_default_is_declined():
    output, diagnostics = _lower("function d({a} = {}) { return a; }", "default_arguments")
    assert "function d({ a } = {}) {" in output
    assert len(diagnostics) == 1


def test_default_referring_to_redeclared_name_is_declined():
    output, diagnostics = _lower("function s(a = x) { var x = 2; return a; }", "default_arguments")
    assert "function s(a = x) {" in output
    assert len(diagnostics) == 1
    assert "`x`" in diagnostics[0].message


# -------------------------------------------------------------- object methods


def test_object_method_shorthand_becomes_function_property():
    source = "var o = {\n  m() { return 1; },\n  get x() { return 2; },\n  y: 3\n};"
    output, diagnostics = _lower(source, "object_methods")
    assert output == (
        "var o = {\n"
        "  m: function () {\n"
        "    return 1;\n"
        "  },\n"
        "  get x() {\n"
        "    return 2;\n"
        "  },\n"
        "  y: 3\n"
        "};\n"
    )
    assert diagnostics == []


def test_computed_object_method():
    output, _ = _lower("var o = { [k]() { return 1; } };", "object_methods")
    assert "[k]: function () {" in output


def test_object_method_using_super_is_declined():
    output, diagnostics = _lower("var o = { m() { return super.m(); } };", "object_methods")
    assert "m() {" in output
    assert len(diagnostics) == 1


# --------------------------------------------------------------------- classes


def test_class_with_superclass_and_constructor():
    source = (CASES / "class_inheritance.js").read_text(encoding="utf-8")
    output, diagnostics = _lower(source, "classes")
    assert output == (
        "let A = (function (_super) {\n"
        "  function A(x) {\n"
        "    _super.call(this, x);\n"
        "    this.x = x;\n"
        "  }\n"
        "  A.prototype = Object.create(_super.prototype, {\n"
        "    constructor: {\n"
        "      value: A,\n"
        "      writable: true,\n"
        "      configurable: true\n"
        "    }\n"
        "  });\n"
        "  return A;\n"
        "})(B);\n"
    )
    assert diagnostics == []


def test_static_methods_and_accessors():
    source = """
class Temp {
  static create() { return new Temp(); }
  get value() { return this._v; }
  set value(v) { this._v = v; }
}
"""
    output, diagnostics = _lower(source, "classes")
    assert "function Temp() {\n  }" in output
    assert "Temp.create = function () {" in output
    assert output.count("Object.defineProperty") == 1
    assert 'Object.defineProperty(Temp.prototype, "value", {' in output
    assert output.index("get: function () {") < output.index("set: function (v) {")
    assert "configurable: true" in output
    assert "})();" in output
    assert diagnostics == []


def test_super_method_calls_and_implicit_constructor():
    source = "class B2 extends A { m() { return super.m(1) + super.count; } static s() { return super.s(); } }"
    output, _ = _lower(source, "classes")
    assert "_super.apply(this, arguments);" in output
    assert "_super.prototype.m.call(this, 1) + _super.prototype.count" in output
    assert "B2.s = function () {" in output
    assert "return _super.s.call(this);" in output


def test_anonymous_class_expression():
    output, _ = _lower("var K = class extends Base {};", "classes")
    assert "var K = (function (_super) {" in output
    assert "function _class() {" in output
    assert "return _class;" in output
    assert "})(Base);" in output


def test_literal_method_key_and_dotted_superclass():
    output, _ = _lower("class L extends ns.Base { 'my-method'() {} }", "classes")
    assert 'L.prototype["my-method"] = function () {' in output
    assert "})(ns.Base);" in output


def test_export_default_class_is_split():
    source = (CASES / "module_export.js").read_text(encoding="utf-8")
    output, diagnostics = _lower(source, "classes", source_type="module")
    assert "import helper from './helper';" in output
    assert "let Service = (function () {" in output
    assert output.rstrip().endswith("export default Service;")
    assert diagnostics == []


@pytest.mark.parametrize(
    "source",
    [
        "class W extends mixin(Base) {}",
        "class S extends B { constructor(...args) { super(...args); } }",
        "class N { m() { return super.x; } }",
        "class P extends B { m() { super.x = 1; } }",
    ],
)
def test_unsupported_classes_are_left_untouched(source):
    output, diagnostics = _lower(source, "classes")
    assert output.startswith("class ")
    assert len(diagnostics) == 1
    assert isinstance(diagnostics[0], UnsupportedShapeDiagnostic)
    assert diagnostics[0].pass_name == "classes"


def test_class_pass_records_diagnostic_location():
    tree = _load_ast("var a = 1;\nclass W extends mixin(Base) {}")
    lowering_pass = ClassPass()
    lowering_pass.apply(tree)
    (diagnostic,) = lowering_pass.diagnostics
    assert (diagnostic.line, diagnostic.column) == (2, 0)
    assert str(diagnostic).startswith("[classes] ")
    assert str(diagnostic).endswith("(line 2, column 0)")
