"""Pydantic models for findings and per-unit reports."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, computed_field

CATEGORY = "ptrequality"


class Severity(str, Enum):
    ALWAYS_FALSE = "always_false"
    FALSE_OR_UNDEFINED = "false_or_undefined"

    @property
    def phrase(self) -> str:
        if self is Severity.ALWAYS_FALSE:
            return "is always false"
        return "is false or undefined"


class Position(BaseModel):
    file: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if self.column:
            return f"{self.file}:{self.line}:{self.column}"
        return f"{self.file}:{self.line}"


class Finding(BaseModel):
    position: Position
    severity: Severity
    message: str
    type_name: str                   # allocated type, as printed in the message
    function: str | None = None      # e.g. "errors.Is" for chain sites
    intercepted: bool = False        # a custom Is/Unwrap method may decide the test
    snippet: str = ""
    category: str = CATEGORY


class UnitReport(BaseModel):
    unit: str                        # package path
    package: str = ""
    check_is: bool = True
    findings: list[Finding] = Field(default_factory=list)

    @computed_field
    @property
    def always_false_count(self) -> int:
        return sum(1 for f in self.findings if f.severity is Severity.ALWAYS_FALSE)

    @computed_field
    @property
    def false_or_undefined_count(self) -> int:
        return sum(1 for f in self.findings if f.severity is Severity.FALSE_OR_UNDEFINED)
