"""SpreadsheetEngine protocol and result dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

Updates = dict[str, float]  # cell_id -> new value


@dataclass(frozen=True)
class CellQuery:
    """Formula text and current value of one cell."""

    expr: str
    value: float


@dataclass(frozen=True)
class ErrorInfo:
    """A user-facing failure: stable ``code`` (``"SYNTAX"``, ...) + message."""

    code: str
    message: str


@dataclass(frozen=True)
class Result:
    """Success value or tagged failure returned across the service boundary."""

    value: Any = None
    errors: tuple[ErrorInfo, ...] = ()

    @property
    def is_ok(self) -> bool:
        return not self.errors

    @classmethod
    def ok(cls, value: Any = None) -> Result:
        return cls(value=value)

    @classmethod
    def err(cls, code: str, message: str) -> Result:
        return cls(errors=(ErrorInfo(code, message),))


@runtime_checkable
class SpreadsheetEngine(Protocol):
    """Protocol for a single in-memory spreadsheet."""

    name: str

    def evaluate(self, cell_id: str, expr: str) -> Updates:
        """Set *cell_id*'s formula; return every value that changed."""
        ...

    def remove(self, cell_id: str) -> Updates:
        """Clear *cell_id*'s formula; return every value that changed."""
        ...

    def copy(self, src_cell_id: str, dest_cell_id: str) -> Updates:
        """Copy a formula, shifting relative references."""
        ...

    def query(self, cell_id: str) -> CellQuery:
        ...

    def clear(self) -> None:
        ...

    def dump(self) -> list[tuple[str, str]]:
        ...

    def dump_with_values(self) -> list[tuple[str, str, float]]:
        ...
