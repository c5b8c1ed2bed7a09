"""Well-known error-chain functions, keyed by (package path, name).

New error packages = new dict entries, no walker or resolver changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ptrequality.ir.types import (
    ERROR,
    STRING,
    Field,
    Method,
    Named,
    Signature,
    Slice,
    Struct,
    package_name,
)


class ChainKind(str, Enum):
    IS = "is"              # membership test, a comparison site
    AS = "as"              # type-assertion test; its target is a destination
    JOIN = "join"          # joins errors into a fresh join error
    UNWRAP = "unwrap"      # unwrap accessor


@dataclass(frozen=True)
class ChainFunc:
    package: str           # import path
    name: str
    kind: ChainKind

    @property
    def display(self) -> str:
        """Name as written in messages, e.g. ``errors.Is``."""
        return f"{package_name(self.package)}.{self.name}"


ERRORS = "errors"
XERRORS = "golang.org/x/xerrors"
EXP_ERRORS = "golang.org/x/exp/errors"

ERROR_PACKAGES: tuple[str, ...] = (ERRORS, XERRORS, EXP_ERRORS)


def _entries() -> dict[tuple[str, str], ChainFunc]:
    entries: dict[tuple[str, str], ChainFunc] = {}
    for pkg in ERROR_PACKAGES:
        for name, kind in (("Is", ChainKind.IS), ("As", ChainKind.AS), ("Unwrap", ChainKind.UNWRAP)):
            entries[(pkg, name)] = ChainFunc(pkg, name, kind)
    entries[(ERRORS, "Join")] = ChainFunc(ERRORS, "Join", ChainKind.JOIN)
    return entries


CHAIN_FUNCS: dict[tuple[str, str], ChainFunc] = _entries()

# The error returned by errors.Join: an unexported struct wrapping a slice.
JOIN_ERROR = Named(
    "joinError",
    ERRORS,
    Struct((Field("errs", Slice(ERROR)),)),
    [
        Method("Error", Signature(results=(STRING,)), pointer_receiver=True),
        Method("Unwrap", Signature(results=(Slice(ERROR),)), pointer_receiver=True),
    ],
)

# Predeclared functions; "new" is the zero-value allocator.
BUILTIN_FUNCS = frozenset({
    "append", "cap", "clear", "close", "complex", "copy", "delete", "imag",
    "len", "make", "max", "min", "new", "panic", "print", "println", "real",
    "recover",
})


def lookup_chain_func(package: str, name: str) -> ChainFunc | None:
    return CHAIN_FUNCS.get((package, name))


def package_chain_funcs(package: str) -> list[ChainFunc]:
    """All chain functions exported by ``package`` (for dot imports)."""
    return [f for (pkg, _), f in CHAIN_FUNCS.items() if pkg == package]
