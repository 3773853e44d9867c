"""The fixed function library applied to evaluated AST arguments."""

from __future__ import annotations

import math
from typing import Callable

from sheetcalc._errors import FormulaContractError

# ---------------------------------------------------------------------------
# Builtin implementations. Each takes a list of already-evaluated numbers.
# ---------------------------------------------------------------------------


def _builtin_add(args: list[float]) -> float:
    a, b = args
    return a + b


def _builtin_sub(args: list[float]) -> float:
    # One argument negates, two subtract.
    if len(args) == 1:
        return -args[0]
    a, b = args
    return a - b


def _builtin_mul(args: list[float]) -> float:
    a, b = args
    return a * b


def _builtin_div(args: list[float]) -> float:
    """IEEE 754 division: ``x/0`` is a signed infinity, ``0/0`` is NaN."""
    a, b = args
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _builtin_min(args: list[float]) -> float:
    a, b = args
    if math.isnan(a) or math.isnan(b):
        return math.nan
    return min(a, b)


def _builtin_max(args: list[float]) -> float:
    a, b = args
    if math.isnan(a) or math.isnan(b):
        return math.nan
    return max(a, b)


# name -> (implementation, accepted arities)
_BUILTINS: dict[str, tuple[Callable[[list[float]], float], frozenset[int]]] = {
    "+": (_builtin_add, frozenset({2})),
    "-": (_builtin_sub, frozenset({1, 2})),
    "*": (_builtin_mul, frozenset({2})),
    "/": (_builtin_div, frozenset({2})),
    "min": (_builtin_min, frozenset({2})),
    "max": (_builtin_max, frozenset({2})),
}


def is_supported(fn: str, arity: int | None = None) -> bool:
    """Check whether *fn* (optionally with *arity* arguments) is in the library."""
    entry = _BUILTINS.get(fn)
    if entry is None:
        return False
    return arity is None or arity in entry[1]


def apply_function(fn: str, args: list[float]) -> float:
    """Apply library function *fn* to *args*, in argument order.

    Raises :class:`FormulaContractError` for an unknown name or arity.
    """
    entry = _BUILTINS.get(fn)
    if entry is None:
        raise FormulaContractError(f"unsupported function {fn!r}")
    func, arities = entry
    if len(args) not in arities:
        raise FormulaContractError(
            f"function {fn!r} does not accept {len(args)} argument(s)"
        )
    return float(func(args))
