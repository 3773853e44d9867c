"""Spreadsheet: formula edits with dependency propagation and rollback."""

from __future__ import annotations

import logging

from sheetcalc._config import Settings, settings as default_settings
from sheetcalc._errors import FormulaSyntaxError
from sheetcalc.calc._cells import CellInfo, CellTable
from sheetcalc.calc._evaluator import Evaluator
from sheetcalc.calc._graph import DependencyGraph, references
from sheetcalc.calc._parser import Ast, CellRef, parse, to_text
from sheetcalc.calc._propagator import Propagator
from sheetcalc.calc._protocol import CellQuery, Updates

logger = logging.getLogger(__name__)


class Spreadsheet:
    """One named spreadsheet held in memory.

    Every edit is all-or-nothing: on failure the cell table is restored to
    its state before the call and the error is raised.

    Usage::

        ss = Spreadsheet("budget")
        ss.evaluate("b1", "3")          # {"b1": 3.0}
        ss.evaluate("a1", "b1 + 2")     # {"a1": 5.0}
        ss.evaluate("b1", "10")         # {"b1": 10.0, "a1": 12.0}
        ss.remove("b1")                 # {"b1": 0.0, "a1": 2.0}
    """

    def __init__(self, name: str, settings: Settings | None = None) -> None:
        self.name = name
        self._settings = settings or default_settings
        self._cells = CellTable()
        self._graph = DependencyGraph(self._cells)
        self._evaluator = Evaluator(self._cells)
        self._propagator = Propagator(self._cells, self._evaluator)

    @property
    def cells(self) -> CellTable:
        return self._cells

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def evaluate(self, cell_id: str, expr: str) -> Updates:
        """Set *cell_id* to formula *expr* and recompute its dependents.

        Returns ``{cell_id: value}`` for the edited cell and every dependent
        that was recomputed.

        Raises
        ------
        FormulaSyntaxError
            *expr* or *cell_id* is malformed. Nothing is changed.
        CircularReferenceError
            The formula would create a cycle. The table is rolled back.
        """
        base = self._base_ref(cell_id)
        expr = expr.strip()
        ast = parse(expr, base)
        self._check_bounds(ast, base)
        return self._apply(base.cell_id, expr, ast, base)

    def remove(self, cell_id: str) -> Updates:
        """Clear *cell_id*'s formula; it and its dependents now read it as 0.

        The record is kept while other formulas still reference it.
        """
        base = self._base_ref(cell_id)
        target = base.cell_id
        snapshot = self._cells.snapshot()
        try:
            cell = self._cells.get(target)
            if cell is None:
                return {target: 0.0}
            self._graph.retract(target)
            cell.expr = ""
            cell.ast = None
            cell.value = 0.0
            updates: Updates = {target: 0.0}
            updates.update(self._propagator.propagate(target))
            if not cell.dependents:
                self._cells.discard(target)
        except Exception:
            self._rollback(snapshot, target)
            raise
        return updates

    def copy(self, src_cell_id: str, dest_cell_id: str) -> Updates:
        """Copy *src_cell_id*'s formula to *dest_cell_id*.

        Free references shift by the offset between the two cells; ``$``
        anchored parts stay put. Copying an empty cell removes the
        destination's formula.
        """
        src = self._base_ref(src_cell_id)
        dest = self._base_ref(dest_cell_id)
        src_cell = self._cells.get(src.cell_id)
        if src_cell is None or src_cell.ast is None:
            return self.remove(dest.cell_id)
        expr = to_text(src_cell.ast, dest)
        logger.debug("Copy %s -> %s: %r", src.cell_id, dest.cell_id, expr)
        return self.evaluate(dest.cell_id, expr)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def query(self, cell_id: str) -> CellQuery:
        """Formula text and value of *cell_id* (``("", 0.0)`` if unknown)."""
        cell = self._cells.get(self._base_ref(cell_id).cell_id)
        if cell is None:
            return CellQuery(expr="", value=0.0)
        return CellQuery(expr=cell.expr, value=cell.value)

    def clear(self) -> None:
        """Drop every cell."""
        logger.info("Clearing spreadsheet %s (%d cells)", self.name, len(self._cells))
        self._cells.clear()

    def dump(self) -> list[tuple[str, str]]:
        """``(cell_id, expr)`` for every formula cell, inputs before dependents."""
        return [(cell_id, self._cells[cell_id].expr) for cell_id in self._graph.topological_order()]

    def dump_with_values(self) -> list[tuple[str, str, float]]:
        """Like :meth:`dump`, with each cell's current value appended."""
        return [
            (cell_id, self._cells[cell_id].expr, self._cells[cell_id].value)
            for cell_id in self._graph.topological_order()
        ]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _apply(self, cell_id: str, expr: str, ast: Ast, base: CellRef) -> Updates:
        snapshot = self._cells.snapshot()
        try:
            cell = self._graph.assign_formula(cell_id, expr, ast, base)
            cell.value = self._evaluator.evaluate(ast, base)
            updates: Updates = {cell_id: cell.value}
            updates.update(self._propagator.propagate(cell_id))
        except Exception:
            self._rollback(snapshot, cell_id)
            raise
        return updates

    def _rollback(self, snapshot: dict[str, CellInfo], cell_id: str) -> None:
        logger.debug("Rolling back edit of %s in %s", cell_id, self.name)
        self._cells.restore(snapshot)

    def _base_ref(self, cell_id: str) -> CellRef:
        """Parse *cell_id* as a plain cell position inside the sheet bounds."""
        ref = CellRef.parse(cell_id)
        if ref.col_abs or ref.row_abs:
            raise FormulaSyntaxError(f"bad cell id {cell_id!r}")
        if not self._settings.in_bounds(ref.row, ref.col):
            raise FormulaSyntaxError(f"cell id {cell_id!r} is outside the sheet")
        return ref

    def _check_bounds(self, ast: Ast, base: CellRef) -> None:
        for ref_id in references(ast, base):
            self._base_ref(ref_id)

    def __repr__(self) -> str:
        return f"<Spreadsheet {self.name!r} cells={len(self._cells)}>"
