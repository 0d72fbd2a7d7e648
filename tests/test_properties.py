from pathlib import Path

import pytest

from parser import parse_js
from pipeline import Pipeline, PipelineConfig, transform
from transformer import PASS_NAMES

CASES = Path(__file__).parent / "cases"

ALL_CASES = sorted(
    path for path in CASES.glob("*.js") if path.name not in ("syntax_error.js", "module_export.js")
)


def _read(name: str) -> str:
    return (CASES / name).read_text(encoding="utf-8")


@pytest.mark.parametrize("path", ALL_CASES, ids=lambda path: path.stem)
def test_reapplying_every_pass_changes_nothing(path):
    source = path.read_text(encoding="utf-8")
    expected = transform(source, source_name=path.name)

    pipeline = Pipeline()
    pipeline.read(source, source_name=path.name)
    pipeline.apply_transformations()
    for name in PASS_NAMES:
        pipeline.apply_transformation(name)

    assert pipeline.out() == expected.source


@pytest.mark.parametrize("path", ALL_CASES, ids=lambda path: path.stem)
def test_output_is_valid_javascript(path):
    output = transform(path.read_text(encoding="utf-8")).source
    parse_js(output)


@pytest.mark.parametrize("path", ALL_CASES, ids=lambda path: path.stem)
def test_all_passes_disabled_keeps_the_program(path):
    source = path.read_text(encoding="utf-8")
    output = transform(source, PipelineConfig.only()).source
    original = parse_js(source).ast
    reparsed = parse_js(output).ast
    assert [node["type"] for node in reparsed["body"]] == [node["type"] for node in original["body"]]


def test_kitchen_sink_lowers_everything():
    output = transform(_read("kitchen_sink.js")).source

    assert output.startswith("'use strict';\nvar _this = this;\n")
    for construct in ("=>", "`", "class ", "let ", "const "):
        assert construct not in output, construct
    assert "Point.origin = function () {" in output
    assert "if (x === void 0) {" in output
    assert "describe: function (point) {" in output
    assert "var _loop = function (p) {" in output
    assert "var _labels = 0;" in output
    assert "report(_labels);" in output
    assert "return labels;" in output
    assert "console.log(n, _this);" in output


def test_arrow_closures_in_loop_capture_each_iteration():
    output = transform(_read("arrow_loop_closures.js")).source
    assert "var _loop = function (i) {" in output
    assert "_loop(i);" in output
    assert "for (var i = 0; i < n; i++) {" in output
    assert "let " not in output
    assert "=>" not in output


def test_template_scenario():
    output = transform(_read("template_sum.js"), PipelineConfig.only("string_templates")).source
    assert output == 'var total = "sum: " + (a + b);\nconsole.log(total);\n'


def test_one_unsupported_class_does_not_stop_the_rest():
    result = transform(_read("bad_superclass.js"), source_name="bad_superclass.js")

    assert len(result.diagnostics) == 1
    diagnostic = result.diagnostics[0]
    assert diagnostic.pass_name == "classes"
    assert diagnostic.line == 1

    assert "class Widget extends mixin(Base) {" in result.source
    assert "    super();\n    var _this = this;\n    this.handler = function () {" in result.source
    assert "return _this.render();" in result.source
    assert "var Button = (function (_super) {" in result.source
    assert "_super.prototype.render.call(this) + 1" in result.source
    assert "})(Widget);" in result.source


def test_disabled_pass_leaves_its_construct():
    config = PipelineConfig.from_mapping({"transformers": {"arrowFunctions": False}})
    output = transform("const f = (x) => `${x}!`;", config).source
    assert output == 'var f = x => x + "!";\n'
