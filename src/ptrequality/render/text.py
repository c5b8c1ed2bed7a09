"""Plain-text rendering of findings, one ``file:line:col: message`` per line."""

from __future__ import annotations

from ptrequality.analyzer.models import Finding, UnitReport
from ptrequality.ir.nodes import Unit
from ptrequality.utils import context_lines


def render_finding(finding: Finding, source: str | None = None, context: int = -1) -> str:
    lines = [f"{finding.position}: {finding.message}"]
    if source and context >= 0:
        for n, text in context_lines(source, finding.position.line, context):
            lines.append(f"{n}\t{text}")
    return "\n".join(lines)


def render_text(report: UnitReport, unit: Unit | None = None, context: int = -1) -> str:
    """Render a report; ``context`` lines of source are shown when the unit has them."""
    sources = {f.name: f.source for f in unit.files if f.source} if unit is not None else {}
    return "\n".join(
        render_finding(f, sources.get(f.position.file), context) for f in report.findings
    )
