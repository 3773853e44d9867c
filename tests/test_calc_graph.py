"""Tests for sheetcalc.calc dependency graph maintenance."""

from __future__ import annotations

import pytest

from sheetcalc._errors import CircularReferenceError
from sheetcalc.calc._cells import CellTable
from sheetcalc.calc._graph import DependencyGraph, references
from sheetcalc.calc._parser import CellRef, parse


def _assign(graph: DependencyGraph, cell_id: str, expr: str) -> None:
    base = CellRef.parse(cell_id)
    graph.assign_formula(cell_id, expr, parse(expr, base), base)


class TestReferences:
    def test_unique_in_order(self) -> None:
        base = CellRef.parse("c1")
        assert references(parse("a1 + b1 * a1", base), base) == ["a1", "b1"]

    def test_literals_only(self) -> None:
        base = CellRef.parse("a1")
        assert references(parse("max(1, 2) - 3", base), base) == []

    def test_anchored(self) -> None:
        base = CellRef.parse("c3")
        assert references(parse("$a$1 + a$1 + $a3", base), base) == ["a1", "a3"]


class TestAssignFormula:
    def test_creates_placeholders(self) -> None:
        cells = CellTable()
        g = DependencyGraph(cells)
        _assign(g, "a1", "b1 + c1")
        assert cells["a1"].expr == "b1 + c1"
        assert cells["b1"].is_placeholder
        assert cells["b1"].dependents == {"a1"}
        assert cells["c1"].dependents == {"a1"}
        assert cells["c1"].value == 0.0

    def test_reassignment_retracts_old_edges(self) -> None:
        cells = CellTable()
        g = DependencyGraph(cells)
        _assign(g, "a1", "b1")
        _assign(g, "a1", "c1")
        assert cells["b1"].dependents == set()
        assert cells["c1"].dependents == {"a1"}
        # placeholders are not pruned
        assert "b1" in cells

    def test_existing_record_gains_dependent(self) -> None:
        cells = CellTable()
        g = DependencyGraph(cells)
        _assign(g, "b1", "5")
        _assign(g, "a1", "b1 * 2")
        assert cells["b1"].expr == "5"
        assert cells["b1"].dependents == {"a1"}

    def test_self_reference_leaves_table_untouched(self) -> None:
        cells = CellTable()
        g = DependencyGraph(cells)
        with pytest.raises(CircularReferenceError):
            _assign(g, "a1", "b1 + a1")
        assert len(cells) == 0

    def test_self_reference_keeps_old_edges(self) -> None:
        cells = CellTable()
        g = DependencyGraph(cells)
        _assign(g, "a1", "b1")
        before = cells.snapshot()
        with pytest.raises(CircularReferenceError):
            _assign(g, "a1", "a1")
        assert cells.snapshot() == before

    def test_edge_symmetry(self) -> None:
        cells = CellTable()
        g = DependencyGraph(cells)
        _assign(g, "a1", "b1 + c1")
        _assign(g, "b1", "c1 * 2")
        _assign(g, "d1", "a1 - b1")
        for cell_id in list(cells):
            for dep in g.dependencies(cell_id):
                assert cell_id in cells[dep].dependents
            for dependent in cells[cell_id].dependents:
                assert cell_id in g.dependencies(dependent)


class TestRetract:
    def test_retract(self) -> None:
        cells = CellTable()
        g = DependencyGraph(cells)
        _assign(g, "a1", "b1 + c1")
        g.retract("a1")
        assert cells["b1"].dependents == set()
        assert cells["c1"].dependents == set()

    def test_retract_unknown_is_noop(self) -> None:
        cells = CellTable()
        g = DependencyGraph(cells)
        g.retract("z9")
        assert len(cells) == 0


class TestTopologicalOrder:
    def test_empty(self) -> None:
        assert DependencyGraph(CellTable()).topological_order() == []

    def test_linear_chain(self) -> None:
        g = DependencyGraph(CellTable())
        _assign(g, "b1", "a1 + 1")
        _assign(g, "c1", "b1 * 2")
        _assign(g, "a2", "5")
        assert g.topological_order() == ["a2", "b1", "c1"]

    def test_diamond(self) -> None:
        """a1 feeds b1 and c1, both feed d1."""
        g = DependencyGraph(CellTable())
        _assign(g, "d1", "b1 + c1")
        _assign(g, "b1", "a1 + 1")
        _assign(g, "c1", "a1 * 2")
        _assign(g, "a1", "1")
        order = g.topological_order()
        assert order[0] == "a1"
        assert order[-1] == "d1"

    def test_placeholders_excluded(self) -> None:
        g = DependencyGraph(CellTable())
        _assign(g, "a1", "z9")
        assert g.topological_order() == ["a1"]

    def test_circular_detection(self) -> None:
        # The graph alone only rejects direct self references.
        g = DependencyGraph(CellTable())
        _assign(g, "a1", "b1 + 1")
        _assign(g, "b1", "a1 + 1")
        with pytest.raises(CircularReferenceError, match="circular reference"):
            g.topological_order()
