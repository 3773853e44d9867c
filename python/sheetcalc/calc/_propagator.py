"""Recompute every cell downstream of an edit, detecting cycles on the way."""

from __future__ import annotations

import logging
from collections.abc import Iterator

from sheetcalc._errors import CircularReferenceError
from sheetcalc.calc._cells import CellTable
from sheetcalc.calc._evaluator import Evaluator

logger = logging.getLogger(__name__)


class Propagator:
    """Walks ``dependents`` edges from an edited cell and recomputes them.

    The walk is a depth-first search on an explicit stack. ``visited`` is
    scoped to one :meth:`propagate` call so every cell is recomputed at most
    once, even where several paths converge. The cells on the stack form the
    current path; meeting one of them again means the edit closed a cycle.
    """

    __slots__ = ("_cells", "_evaluator")

    def __init__(self, cells: CellTable, evaluator: Evaluator) -> None:
        self._cells = cells
        self._evaluator = evaluator

    def _formula_dependents(self, cell_id: str) -> Iterator[str]:
        cell = self._cells.get(cell_id)
        if cell is None:
            return iter(())
        deps = []
        for dep in cell.dependents:
            dep_cell = self._cells.get(dep)
            if dep_cell is not None and dep_cell.ast is not None:
                deps.append(dep)
        return iter(sorted(deps))

    def affected_cells(self, origin_id: str) -> list[str]:
        """Formula cells downstream of *origin_id*, in evaluation order.

        The order is the reverse DFS post-order, so every cell comes after
        all of its affected inputs. *origin_id* itself is not included.

        Raises :class:`CircularReferenceError` if a cycle is reachable.
        """
        visited: set[str] = set()
        on_path: set[str] = {origin_id}
        post_order: list[str] = []
        stack: list[tuple[str, Iterator[str]]] = [
            (origin_id, self._formula_dependents(origin_id))
        ]

        while stack:
            cell_id, children = stack[-1]
            child = next(children, None)
            if child is None:
                stack.pop()
                on_path.discard(cell_id)
                visited.add(cell_id)
                post_order.append(cell_id)
                continue
            if child in on_path:
                path = [c for c, _ in stack]
                logger.debug("Cycle through %s (path %s)", child, path)
                raise CircularReferenceError(
                    f"circular reference: {' -> '.join(path + [child])}"
                )
            if child in visited:
                continue
            on_path.add(child)
            stack.append((child, self._formula_dependents(child)))

        post_order.pop()  # origin_id finishes last
        post_order.reverse()
        return post_order

    def propagate(self, origin_id: str) -> dict[str, float]:
        """Recompute all cells depending on *origin_id*.

        Returns ``{cell_id: new_value}`` for every recomputed cell. Values
        are written to the table as they are computed; on
        :class:`CircularReferenceError` nothing has been written yet.
        """
        order = self.affected_cells(origin_id)
        updates: dict[str, float] = {}
        for cell_id in order:
            value = self._evaluator.evaluate_cell(cell_id)
            self._cells[cell_id].value = value
            updates[cell_id] = value
        logger.debug("Propagated %s to %d cell(s)", origin_id, len(updates))
        return updates
