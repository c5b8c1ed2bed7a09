"""Shared utilities for ptrequality."""

from __future__ import annotations


def snippet(source: str, lineno: int, max_len: int = 160) -> str:
    """Return the source line at lineno (1-based), stripped and truncated."""
    lines = source.splitlines()
    if 0 < lineno <= len(lines):
        return lines[lineno - 1].strip()[:max_len]
    return ""


def context_lines(source: str, lineno: int, context: int) -> list[tuple[int, str]]:
    """Lines around lineno as (number, text), ``context`` lines on each side.

    A negative ``context`` yields nothing; zero yields the line itself.
    """
    if context < 0:
        return []
    lines = source.splitlines()
    if not 0 < lineno <= len(lines):
        return []
    start = max(1, lineno - context)
    end = min(len(lines), lineno + context)
    return [(n, lines[n - 1]) for n in range(start, end + 1)]
