"""
ptrequality: analysis entrypoint.

Usage:
    from ptrequality.analyzer.service import new_analyzer
    from ptrequality.config import AnalyzerConfig
    from ptrequality.ir.loader import load_unit

    analyzer = new_analyzer(AnalyzerConfig(check_is=True))
    report = analyzer.report(load_unit(Path("unit.yaml")))

    # report.findings          list[Finding], sorted by file, line, column
    # report.always_false_count
    # report.false_or_undefined_count

The analyzer holds nothing but its frozen config, so one instance can be
shared across units analysed in parallel.
"""

from __future__ import annotations

import logging

from ptrequality.analyzer.alloc import classify
from ptrequality.analyzer.chain import call_interception
from ptrequality.analyzer.models import Finding, UnitReport
from ptrequality.analyzer.report import make_finding
from ptrequality.analyzer.scope import Scope
from ptrequality.analyzer.sizes import size_class
from ptrequality.analyzer.walker import Site, SiteKind, iter_sites
from ptrequality.config import AnalyzerConfig
from ptrequality.ir.nodes import Unit
from ptrequality.utils import snippet

log = logging.getLogger(__name__)

NAME = "ptrequality"
DOC = """\
ptrequality is a Go linter (static analysis tool) that detects comparisons against
the address of newly created values, such as ptr == &MyStruct{} or ptr == new(MyStruct).
These comparisons are almost always incorrect, as each expression creates a unique
allocation at runtime, usually yielding false or undefined results.

Example of code flagged by ptrequality:

	err := json.Unmarshal(msg, &es)
	if errors.Is(err, &json.UnmarshalTypeError{}) { // flagged
		//...
	}"""


class Analyzer:
    """The ptrequality rule, bound to one configuration."""

    def __init__(self, config: AnalyzerConfig | None = None) -> None:
        self.name = NAME
        self.doc = DOC
        self.config = config or AnalyzerConfig()

    def run(self, unit: Unit) -> list[Finding]:
        """Findings for ``unit`` in source order, at most one per site."""
        sources = {f.name: f.source for f in unit.files if f.source}
        findings = []
        for site, scope in iter_sites(unit):
            finding = self._evaluate(site, scope, unit, sources)
            if finding is not None:
                findings.append(finding)
        findings.sort(key=lambda f: (f.position.file, f.position.line, f.position.column))
        log.info("%s: %d findings", unit.path, len(findings))
        return findings

    def report(self, unit: Unit) -> UnitReport:
        return UnitReport(
            unit=unit.path,
            package=unit.name,
            check_is=self.config.check_is,
            findings=self.run(unit),
        )

    def _evaluate(self, site: Site, scope: Scope, unit: Unit,
                  sources: dict[str, str]) -> Finding | None:
        fresh = None
        for operand in site.operands:
            op = classify(operand, scope)
            if op.fresh:
                fresh = op
                break
        if fresh is None:
            return None

        # with check-is off, Is calls still report, by size alone
        intercepted = (
            self.config.check_is
            and site.kind is SiteKind.CHAIN_CALL
            and call_interception(list(site.operands), scope)
        )
        size = size_class(fresh.elem)
        log.debug("%s: %s operand of %s, size %s, intercepted=%s",
                  site.pos, fresh.kind.value, site.kind.value, size.value, intercepted)

        text = ""
        if site.pos is not None and site.pos.file in sources:
            text = snippet(sources[site.pos.file], site.pos.line)
        return make_finding(site, fresh.elem, size, intercepted, unit.path, text)

    def __repr__(self) -> str:
        return f"Analyzer(name={self.name!r}, config={self.config!r})"


def new_analyzer(config: AnalyzerConfig | None = None) -> Analyzer:
    """Explicit constructor; there is no process-wide analyzer instance."""
    return Analyzer(config)


def analyze_unit(unit: Unit, config: AnalyzerConfig | None = None) -> list[Finding]:
    return new_analyzer(config).run(unit)
