"""Run the analyzer over the unit documents in tests/testdata.

Each file entry in a document may carry ``want: {line: regex}``; every
finding must match the expectation on its line and every expectation must
be met. A top-level ``flags`` mapping configures the analyzer.
"""

from __future__ import annotations

import re
from pathlib import Path

import yaml

from ptrequality.analyzer.service import analyze_unit
from ptrequality.config import AnalyzerConfig
from ptrequality.ir.loader import unit_from_dict

TESTDATA = Path(__file__).parent / "testdata"


def _check(doc_path: Path) -> None:
    doc = yaml.safe_load(doc_path.read_text(encoding="utf-8"))
    config = AnalyzerConfig()
    for name, value in (doc.get("flags") or {}).items():
        config = config.with_flag(name, value)

    want = {
        (f["name"], int(line)): pattern
        for f in doc["files"]
        for line, pattern in (f.get("want") or {}).items()
    }
    findings = analyze_unit(unit_from_dict(doc), config)

    got: dict[tuple[str, int], str] = {}
    for finding in findings:
        key = (finding.position.file, finding.position.line)
        assert key not in got, f"{doc_path.name}: two findings at {key}"
        got[key] = finding.message

    unexpected = sorted(set(got) - set(want))
    missing = sorted(set(want) - set(got))
    assert not unexpected, f"{doc_path.name}: unexpected findings {[(k, got[k]) for k in unexpected]}"
    assert not missing, f"{doc_path.name}: missing findings at {missing}"
    for key, pattern in want.items():
        assert re.search(pattern, got[key]), f"{doc_path.name}:{key[1]}: {got[key]!r} !~ {pattern!r}"


class TestPackageA:
    def test_comparisons(self):
        _check(TESTDATA / "a" / "comparisons.yaml")

    def test_generic(self):
        _check(TESTDATA / "a" / "generic.yaml")

    def test_errors(self):
        _check(TESTDATA / "a" / "errors.yaml")


class TestPackageB:
    def test_check_is_disabled(self):
        _check(TESTDATA / "b" / "errors.yaml")
