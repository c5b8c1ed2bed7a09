"""Turn a classified site into a Finding."""

from __future__ import annotations

from ptrequality.analyzer.models import Finding, Position, Severity
from ptrequality.analyzer.sizes import SizeClass
from ptrequality.analyzer.walker import Site
from ptrequality.ir.types import Type, type_string


def severity_for(size: SizeClass, intercepted: bool) -> Severity:
    """Zero footprint or interception: false or undefined. Otherwise always false."""
    if intercepted or size is SizeClass.ZERO:
        return Severity.FALSE_OR_UNDEFINED
    return Severity.ALWAYS_FALSE


def message(site: Site, type_name: str, severity: Severity) -> str:
    what = f"{site.func.display} comparison" if site.func is not None else "comparison"
    return (
        f'result of {what} with address of new variable of type "{type_name}" '
        f"{severity.phrase}"
    )


def make_finding(
    site: Site,
    elem: Type | None,
    size: SizeClass,
    intercepted: bool,
    unit_path: str,
    snippet: str = "",
) -> Finding:
    severity = severity_for(size, intercepted)
    type_name = type_string(elem, relative_to=unit_path)
    pos = site.pos
    return Finding(
        position=Position(file=pos.file, line=pos.line, column=pos.column) if pos else Position(),
        severity=severity,
        message=message(site, type_name, severity),
        type_name=type_name,
        function=site.func.display if site.func is not None else None,
        intercepted=intercepted,
        snippet=snippet,
    )
