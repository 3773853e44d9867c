"""Cell records and the per-spreadsheet cell table."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field, replace

from sheetcalc.calc._parser import Ast


@dataclass
class CellInfo:
    """State of one cell.

    Placeholder records (created because another formula references the
    cell) have an empty ``expr`` and no ``ast``.
    """

    id: str
    expr: str = ""
    ast: Ast | None = None
    value: float = 0.0
    dependents: set[str] = field(default_factory=set)

    @property
    def is_placeholder(self) -> bool:
        return self.ast is None


class CellTable:
    """Mapping of cell id -> :class:`CellInfo`; the engine's only mutable state.

    Edges are stored as id sets on each record and always looked up through
    the table, never as references between records.
    """

    __slots__ = ("_cells",)

    def __init__(self) -> None:
        self._cells: dict[str, CellInfo] = {}

    def get(self, cell_id: str) -> CellInfo | None:
        return self._cells.get(cell_id)

    def ensure(self, cell_id: str) -> CellInfo:
        """Return the record for *cell_id*, creating a placeholder if needed."""
        cell = self._cells.get(cell_id)
        if cell is None:
            cell = CellInfo(cell_id)
            self._cells[cell_id] = cell
        return cell

    def discard(self, cell_id: str) -> None:
        self._cells.pop(cell_id, None)

    def clear(self) -> None:
        self._cells.clear()

    def value_of(self, cell_id: str) -> float:
        """Stored value of *cell_id*; unknown cells read as ``0.0``."""
        cell = self._cells.get(cell_id)
        return cell.value if cell is not None else 0.0

    # ------------------------------------------------------------------
    # Snapshot / restore
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, CellInfo]:
        """Copy of every record, for rollback.

        AST nodes are immutable and shared with the live table; only the
        mutable parts of each record are copied.
        """
        return _copy_records(self._cells)

    def restore(self, snapshot: dict[str, CellInfo]) -> None:
        self._cells = _copy_records(snapshot)

    # ------------------------------------------------------------------
    # Mapping protocol
    # ------------------------------------------------------------------

    def __getitem__(self, cell_id: str) -> CellInfo:
        return self._cells[cell_id]

    def __contains__(self, cell_id: object) -> bool:
        return cell_id in self._cells

    def __iter__(self) -> Iterator[str]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def records(self) -> Iterator[CellInfo]:
        return iter(self._cells.values())

    def __repr__(self) -> str:
        return f"<CellTable cells={len(self._cells)}>"


def _copy_records(cells: dict[str, CellInfo]) -> dict[str, CellInfo]:
    return {
        cell_id: replace(cell, dependents=set(cell.dependents))
        for cell_id, cell in cells.items()
    }
