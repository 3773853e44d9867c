"""Evaluator: computes a cell formula's value from the current cell table."""

from __future__ import annotations

from sheetcalc._errors import FormulaContractError
from sheetcalc.calc._cells import CellTable
from sheetcalc.calc._functions import apply_function
from sheetcalc.calc._parser import App, Ast, CellRef, Num, Ref


class Evaluator:
    """AST evaluator. Reads stored cell values; never mutates.

    Evaluation runs on an explicit stack, so formula depth is not bounded
    by the interpreter's recursion limit.

    Usage::

        evaluator = Evaluator(cells)
        value = evaluator.evaluate(ast, CellRef.parse("a1"))
    """

    __slots__ = ("_cells",)

    def __init__(self, cells: CellTable) -> None:
        self._cells = cells

    def _leaf(self, node: Ast, base: CellRef) -> float:
        if isinstance(node, Num):
            return float(node.value)
        if isinstance(node, Ref):
            return self._cells.value_of(node.ref.resolve(base).cell_id)
        raise FormulaContractError(f"unsupported AST node {node!r}")

    def evaluate(self, node: Ast, base: CellRef) -> float:
        """Value of *node* with relative references resolved at *base*.

        Cells that do not exist read as ``0.0``. Arguments are evaluated
        left to right before their function is applied.
        """
        values: list[float] = []
        # (node, kids_done): an App is pushed twice, once to schedule its
        # kids and once to apply its function to their values.
        stack: list[tuple[Ast, bool]] = [(node, False)]
        while stack:
            cur, kids_done = stack.pop()
            if not isinstance(cur, App):
                values.append(self._leaf(cur, base))
                continue
            if not kids_done:
                stack.append((cur, True))
                stack.extend((kid, False) for kid in reversed(cur.kids))
                continue
            count = len(cur.kids)
            args = values[len(values) - count:]
            del values[len(values) - count:]
            values.append(apply_function(cur.fn, args))
        return values[0]

    def evaluate_cell(self, cell_id: str) -> float:
        """Evaluate the stored formula of *cell_id* (``0.0`` if none)."""
        cell = self._cells.get(cell_id)
        if cell is None or cell.ast is None:
            return 0.0
        return self.evaluate(cell.ast, CellRef.parse(cell_id))
