"""IR (Intermediate Representation) package for ptrequality.

Provides the type descriptors and syntax tree of one type-checked unit, and:
    load_unit(path) -> Unit
"""

from __future__ import annotations

from ptrequality.ir.loader import UnitFormatError, load_unit, load_unit_text, unit_from_dict
from ptrequality.ir.nodes import File, Pos, Unit

__all__ = [
    "File",
    "Pos",
    "Unit",
    "UnitFormatError",
    "load_unit",
    "load_unit_text",
    "unit_from_dict",
]
