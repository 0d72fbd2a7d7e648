import os
import subprocess
import sys
from pathlib import Path

from cli import main

ROOT = Path(__file__).resolve().parents[1]
CASES = ROOT / "tests" / "cases"


def _run_cli(args, cwd: Path = ROOT):
    env = os.environ.copy()
    pythonpath = env.get("PYTHONPATH", "")
    env["PYTHONPATH"] = str(ROOT / "src") + (os.pathsep + pythonpath if pythonpath else "")
    result = subprocess.run(
        [sys.executable, "-m", "cli", *args],
        cwd=cwd,
        env=env,
        check=False,
        capture_output=True,
        text=True,
    )
    return result


def test_cli_converts_to_stdout():
    result = _run_cli(["convert", "tests/cases/default_order.js"])
    assert result.returncode == 0, result.stderr
    assert result.stdout == (
        "function f(a, b) {\n"
        "  if (b === void 0) {\n"
        "    b = a + 1;\n"
        "  }\n"
        "  return a + b;\n"
        "}\n"
    )
    assert result.stderr == ""


def test_cli_writes_output_file(tmp_path):
    output_path = tmp_path / "nested" / "out.js"
    result = _run_cli(
        ["convert", "tests/cases/arrow_loop_closures.js", "--out", str(output_path)],
    )
    assert result.returncode == 0, result.stderr
    assert result.stdout == ""
    content = output_path.read_text(encoding="utf-8")
    assert "var _loop = function (i) {" in content
    assert "=>" not in content


def test_cli_strict_mode_fails_on_unsupported_shape(tmp_path):
    output_path = tmp_path / "strict_out.js"
    result = _run_cli(
        ["convert", "tests/cases/bad_superclass.js", "--out", str(output_path), "--strict"],
    )
    assert result.returncode == 1
    assert "[classes]" in result.stderr
    assert "bad_superclass.js:1:0" in result.stderr
    assert output_path.exists()


def test_cli_reports_without_strict(capsys):
    exit_code = main(["convert", str(CASES / "bad_superclass.js")])
    captured = capsys.readouterr()
    assert exit_code == 0
    assert captured.err.startswith("INFO ")
    assert "var Button = (function (_super) {" in captured.out


def test_cli_syntax_error(capsys):
    exit_code = main(["convert", str(CASES / "syntax_error.js")])
    captured = capsys.readouterr()
    assert exit_code == 1
    assert captured.err.startswith("ERROR ")
    assert "syntax_error.js:1:" in captured.err
    assert captured.out == ""


def test_cli_missing_input(tmp_path, capsys):
    exit_code = main(["convert", str(tmp_path / "nope.js")])
    assert exit_code == 1
    assert "Input file not found" in capsys.readouterr().err


def test_cli_disable_pass(capsys):
    exit_code = main(
        ["convert", str(CASES / "arrow_loop_closures.js"), "--disable", "arrow_functions"]
    )
    output = capsys.readouterr().out
    assert exit_code == 0
    assert "counters.push(() => i);" in output
    assert "let " not in output


def test_cli_rejects_unknown_pass():
    result = _run_cli(["convert", "tests/cases/default_order.js", "--disable", "generators"])
    assert result.returncode == 2
    assert "invalid choice" in result.stderr


def test_cli_format_option(capsys):
    exit_code = main(
        ["convert", str(CASES / "default_order.js"), "--format", "--indent-size", "4"]
    )
    assert exit_code == 0
    assert "    if (b === void 0) {\n        b = a + 1;\n    }" in capsys.readouterr().out


def test_cli_warns_about_eval(tmp_path, capsys):
    source = tmp_path / "dynamic.js"
    source.write_text("function run(code) {\n  return eval(code);\n}\n", encoding="utf-8")
    exit_code = main(["convert", str(source), "--strict"])
    captured = capsys.readouterr()
    assert exit_code == 1
    assert "WARNING " in captured.err
    assert "dynamic.js:2:" in captured.err


def test_cli_module_mode(tmp_path):
    output_path = tmp_path / "module_out.js"
    result = _run_cli(
        [
            "convert",
            "tests/cases/module_export.js",
            "--module",
            "--out",
            str(output_path),
        ],
    )
    assert result.returncode == 0, result.stderr
    content = output_path.read_text(encoding="utf-8")
    assert "import helper from './helper';" in content
    assert "var Service = (function () {" in content
    assert "export default Service;" in content


def test_cli_without_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage:" in capsys.readouterr().out
