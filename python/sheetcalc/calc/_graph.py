"""Dependency graph maintenance over a :class:`CellTable`."""

from __future__ import annotations

import heapq
import logging

from sheetcalc._errors import CircularReferenceError
from sheetcalc.calc._cells import CellInfo, CellTable
from sheetcalc.calc._parser import Ast, CellRef, iter_refs

logger = logging.getLogger(__name__)


def references(ast: Ast, base: CellRef) -> list[str]:
    """Ids of the cells *ast* references directly, resolved at *base*.

    Order of first appearance, no duplicates.
    """
    refs: list[str] = []
    seen: set[str] = set()
    for node in iter_refs(ast):
        cell_id = node.ref.resolve(base).cell_id
        if cell_id not in seen:
            refs.append(cell_id)
            seen.add(cell_id)
    return refs


class DependencyGraph:
    """Keeps ``dependents`` edges in step with each cell's formula.

    For cells X and Y, ``Y in X.dependents`` exactly when Y's AST
    references X. Placeholder records are created for referenced cells that
    do not exist yet.
    """

    __slots__ = ("_cells",)

    def __init__(self, cells: CellTable) -> None:
        self._cells = cells

    def assign_formula(self, cell_id: str, expr: str, ast: Ast, base: CellRef) -> CellInfo:
        """Install *ast* on *cell_id* and rewire its edges.

        Raises :class:`CircularReferenceError` before touching anything when
        the formula references its own cell. Placeholders created here are
        not removed again if a later step fails; callers wanting
        all-or-nothing behaviour must snapshot the table first.
        """
        new_refs = references(ast, base)
        if cell_id in new_refs:
            logger.debug("Direct self-reference in %s: %r", cell_id, expr)
            raise CircularReferenceError(f"{cell_id} references itself")

        self.retract(cell_id)

        for ref_id in new_refs:
            self._cells.ensure(ref_id).dependents.add(cell_id)

        cell = self._cells.ensure(cell_id)
        cell.expr = expr
        cell.ast = ast
        return cell

    def retract(self, cell_id: str) -> None:
        """Remove *cell_id* from the dependents of every cell it references."""
        cell = self._cells.get(cell_id)
        if cell is None or cell.ast is None:
            return
        base = CellRef.parse(cell_id)
        for ref_id in references(cell.ast, base):
            ref_cell = self._cells.get(ref_id)
            if ref_cell is not None:
                ref_cell.dependents.discard(cell_id)

    def dependencies(self, cell_id: str) -> list[str]:
        """Cells *cell_id*'s formula reads from (empty for placeholders)."""
        cell = self._cells.get(cell_id)
        if cell is None or cell.ast is None:
            return []
        return references(cell.ast, CellRef.parse(cell_id))

    def topological_order(self) -> list[str]:
        """Formula cells ordered so each follows the formula cells it reads.

        Kahn's algorithm; ties are broken by cell id so the order is stable.
        Raises :class:`CircularReferenceError` if the graph has a cycle, which
        a table maintained through :class:`Spreadsheet` never does.
        """
        formula_cells = {cell.id for cell in self._cells.records() if cell.ast is not None}
        if not formula_cells:
            return []

        in_degree: dict[str, int] = {}
        for cell_id in formula_cells:
            deps = set(self.dependencies(cell_id))
            in_degree[cell_id] = len(deps & formula_cells)

        ready = [cell_id for cell_id, deg in in_degree.items() if deg == 0]
        heapq.heapify(ready)

        order: list[str] = []
        while ready:
            cell_id = heapq.heappop(ready)
            order.append(cell_id)
            for dep in self._cells[cell_id].dependents:
                if dep in formula_cells:
                    in_degree[dep] -= 1
                    if in_degree[dep] == 0:
                        heapq.heappush(ready, dep)

        if len(order) != len(formula_cells):
            missing = sorted(formula_cells - set(order))
            raise CircularReferenceError(f"circular reference involving {missing}")
        return order
