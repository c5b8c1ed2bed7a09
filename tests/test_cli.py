"""Tests for the click command line."""

from __future__ import annotations

import json

from click.testing import CliRunner

from ptrequality import __version__
from ptrequality.cli import EXIT_FINDINGS, main

UNIT = """\
path: example.test/a
types:
  MyStruct: {struct: [{name: _, type: int}]}
  myErrorWithIs:
    underlying: {struct: [{name: _, type: int}]}
    methods: [{name: Is, params: [error], results: [bool]}]
files:
  - name: a.go
    imports: [errors]
    source: "package a\\n\\nfunc f(p *MyStruct, err error) bool {\\n\\treturn p == &MyStruct{}\\n}\\n"
    decls:
      - func: f
        params: [{name: p, type: "*MyStruct"}, {name: err, type: error}]
        results: [bool]
        body:
          - return:
              - binary: "=="
                x: p
                y: {addr: {composite: MyStruct}}
                pos: [4, 9]
          - expr:
              call: {sel: [errors, Is]}
              args: [err, {new: myErrorWithIs}]
            pos: [5, 2]
"""

CLEAN = """\
path: example.test/clean
files:
  - name: clean.go
    decls:
      - func: f
        params: [{name: p, type: "*int"}]
        body: [{expr: {binary: "==", x: p, y: nil}, pos: 3}]
"""


def _write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text)
    return str(path)


class TestExitCodes:
    def test_findings(self, tmp_path):
        result = CliRunner().invoke(main, [_write(tmp_path, "a.yaml", UNIT)])
        assert result.exit_code == EXIT_FINDINGS
        lines = result.output.splitlines()
        assert lines == [
            'a.go:4:9: result of comparison with address of new variable of type "MyStruct" is always false',
            'a.go:5:2: result of errors.Is comparison with address of new variable of type '
            '"myErrorWithIs" is false or undefined',
        ]

    def test_clean(self, tmp_path):
        result = CliRunner().invoke(main, [_write(tmp_path, "clean.yaml", CLEAN)])
        assert result.exit_code == 0
        assert result.output == ""

    def test_malformed_unit(self, tmp_path):
        result = CliRunner().invoke(main, [_write(tmp_path, "bad.yaml", "files: []\n")])
        assert result.exit_code == 1
        assert "path" in result.output

    def test_wrong_shape_unit(self, tmp_path):
        result = CliRunner().invoke(main, [_write(tmp_path, "bad.yaml", "path: x\ntypes: [x]\n")])
        assert result.exit_code == 1
        assert "'types' must be a mapping" in result.output

    def test_bad_config(self, tmp_path):
        unit = _write(tmp_path, "a.yaml", UNIT)
        config = _write(tmp_path, "ptrequality.yaml", "check-is: maybe\n")
        result = CliRunner().invoke(main, ["--config", config, unit])
        assert result.exit_code == 2
        assert "invalid boolean" in result.output

    def test_missing_argument(self):
        assert CliRunner().invoke(main, []).exit_code == 2


class TestOptions:
    def test_no_check_is(self, tmp_path):
        result = CliRunner().invoke(main, ["--no-check-is", _write(tmp_path, "a.yaml", UNIT)])
        assert result.exit_code == EXIT_FINDINGS
        lines = result.output.splitlines()
        assert len(lines) == 2
        assert lines[1].startswith("a.go:5:2: result of errors.Is comparison")
        assert lines[1].endswith("is always false")

    def test_config_file(self, tmp_path):
        unit = _write(tmp_path, "a.yaml", UNIT)
        config = _write(tmp_path, "ptrequality.yaml", "check-is: false\n")
        result = CliRunner().invoke(main, ["--config", config, unit])
        lines = result.output.splitlines()
        assert len(lines) == 2
        assert lines[1].endswith("is always false")

    def test_flag_overrides_config(self, tmp_path):
        unit = _write(tmp_path, "a.yaml", UNIT)
        config = _write(tmp_path, "ptrequality.yaml", "check-is: false\n")
        result = CliRunner().invoke(main, ["--config", config, "--check-is", unit])
        lines = result.output.splitlines()
        assert len(lines) == 2
        assert lines[1].endswith("is false or undefined")

    def test_context(self, tmp_path):
        result = CliRunner().invoke(main, ["-c", "0", _write(tmp_path, "a.yaml", UNIT)])
        assert "4\t\treturn p == &MyStruct{}" in result.output.splitlines()

    def test_json(self, tmp_path):
        result = CliRunner().invoke(main, ["-f", "json", _write(tmp_path, "a.yaml", UNIT)])
        assert result.exit_code == EXIT_FINDINGS
        data = json.loads(result.output)
        report = data["example.test/a"]
        assert report["always_false_count"] == 1
        assert report["false_or_undefined_count"] == 1
        assert [f["function"] for f in report["findings"]] == [None, "errors.Is"]

    def test_version(self):
        result = CliRunner().invoke(main, ["-V"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_shows_doc(self):
        result = CliRunner().invoke(main, ["--help"])
        assert "Example of code flagged by ptrequality:" in result.output
