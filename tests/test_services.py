"""Tests for SpreadsheetServices and the memory store."""

from __future__ import annotations

import logging

import pytest

from sheetcalc import CellQuery, ErrorInfo, MemoryStore, Result, SpreadsheetServices


class FlakyStore(MemoryStore):
    """Memory store whose reads or writes can be switched off."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_reads = False
        self.fail_writes = False

    def get_data(self, ss_name: str) -> list[tuple[str, str]]:
        if self.fail_reads:
            raise OSError("disk unavailable")
        return super().get_data(ss_name)

    def set_cell_expr(self, ss_name: str, cell_id: str, expr: str) -> None:
        if self.fail_writes:
            raise OSError("disk full")
        super().set_cell_expr(ss_name, cell_id, expr)


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def services(store: MemoryStore) -> SpreadsheetServices:
    return SpreadsheetServices(store)


class TestMemoryStore:
    def test_roundtrip(self, store: MemoryStore) -> None:
        store.set_cell_expr("s", "a1", "1 + 2")
        assert store.query("s", "a1") == "1 + 2"
        assert store.query("s", "b1") == ""
        assert store.query("other", "a1") == ""
        assert store.get_data("s") == [("a1", "1 + 2")]

    def test_remove_and_clear(self, store: MemoryStore) -> None:
        store.set_cell_expr("s", "a1", "1")
        store.set_cell_expr("s", "b1", "2")
        store.remove("s", "a1")
        assert store.get_data("s") == [("b1", "2")]
        store.clear("s")
        assert store.get_data("s") == []
        # unknown names are fine
        store.remove("nope", "a1")
        store.clear("nope")


class TestResults:
    def test_evaluate_ok(self, services: SpreadsheetServices) -> None:
        result = services.evaluate("s", "b1", "3")
        assert result.is_ok
        assert result == Result(value={"b1": 3.0})
        assert services.evaluate("s", "a1", "b1 + 2").value == {"a1": 5.0}

    def test_circular_ref(self, services: SpreadsheetServices) -> None:
        result = services.evaluate("s", "a1", "a1 + 1")
        assert not result.is_ok
        assert result.errors[0].code == "CIRCULAR_REF"

    def test_syntax(self, services: SpreadsheetServices) -> None:
        result = services.evaluate("s", "a1", "1 +")
        assert result.errors[0].code == "SYNTAX"
        assert services.query("s", "7x").errors[0].code == "SYNTAX"

    def test_err_factory(self) -> None:
        result = Result.err("SYNTAX", "bad")
        assert result.errors == (ErrorInfo("SYNTAX", "bad"),)
        assert result.value is None

    def test_query(self, services: SpreadsheetServices) -> None:
        services.evaluate("s", "a1", "2 * 21")
        assert services.query("s", "A1").value == CellQuery(expr="2 * 21", value=42.0)


class TestWriteThrough:
    def test_evaluate_stores_expr(self, services: SpreadsheetServices, store: MemoryStore) -> None:
        services.evaluate("s", "A1", "b1 + 1")
        assert store.query("s", "a1") == "b1 + 1"
        # placeholders are not stored
        assert store.query("s", "b1") == ""

    def test_failed_edit_not_stored(self, services: SpreadsheetServices, store: MemoryStore) -> None:
        services.evaluate("s", "a1", "b1 + 1")
        services.evaluate("s", "b1", "a1")
        assert store.query("s", "b1") == ""
        assert store.query("s", "a1") == "b1 + 1"

    def test_remove(self, services: SpreadsheetServices, store: MemoryStore) -> None:
        services.evaluate("s", "a1", "5")
        assert services.remove("s", "a1").value == {"a1": 0.0}
        assert store.get_data("s") == []

    def test_copy_stores_translated_expr(
        self, services: SpreadsheetServices, store: MemoryStore
    ) -> None:
        services.evaluate("s", "a2", "4")
        services.evaluate("s", "b1", "a1 + 1")
        assert services.copy("s", "b1", "b2").value == {"b2": 5.0}
        assert store.query("s", "b2") == "a2 + 1"

    def test_clear(self, services: SpreadsheetServices, store: MemoryStore) -> None:
        services.evaluate("s", "a1", "5")
        assert services.clear("s").is_ok
        assert store.get_data("s") == []
        assert services.dump("s").value == []


class TestLoading:
    def test_loads_from_store(self, store: MemoryStore) -> None:
        store.set_cell_expr("s", "a1", "b1 + 1")
        store.set_cell_expr("s", "b1", "2")
        services = SpreadsheetServices(store)
        assert services.query("s", "a1").value == CellQuery(expr="b1 + 1", value=3.0)
        assert services.dump_with_values("s").value == [("b1", "2", 2.0), ("a1", "b1 + 1", 3.0)]

    def test_bad_stored_formula_skipped(
        self, store: MemoryStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        store.set_cell_expr("s", "a1", "a1 + 1")
        store.set_cell_expr("s", "b1", "7")
        services = SpreadsheetServices(store)
        with caplog.at_level(logging.WARNING, logger="sheetcalc"):
            assert services.dump("s").value == [("b1", "7")]
        assert "Skipping stored s!a1" in caplog.text

    def test_spreadsheets_are_independent(self, services: SpreadsheetServices) -> None:
        services.evaluate("one", "a1", "1")
        services.evaluate("two", "a1", "2")
        assert services.query("one", "a1").value.value == 1.0
        assert services.query("two", "a1").value.value == 2.0
        assert services.spreadsheet("one") is services.spreadsheet("one")


class TestDeepFormulas:
    def test_long_sum(self, services: SpreadsheetServices) -> None:
        text = "+".join(["1"] * 3000)
        assert services.evaluate("s", "a1", text).value == {"a1": 3000.0}
        assert services.evaluate("s", "b1", "a1 * 2").value == {"b1": 6000.0}

    def test_deep_parentheses(self, services: SpreadsheetServices, store: MemoryStore) -> None:
        result = services.evaluate("s", "a1", "(" * 1200 + "1" + ")" * 1200)
        assert result.errors[0].code == "SYNTAX"
        assert store.get_data("s") == []


class TestStoreFailures:
    def test_load_failure_is_a_result(self, caplog: pytest.LogCaptureFixture) -> None:
        store = FlakyStore()
        store.fail_reads = True
        services = SpreadsheetServices(store)
        with caplog.at_level(logging.ERROR, logger="sheetcalc"):
            result = services.query("s", "a1")
        assert result.errors[0].code == "STORE"
        assert "disk unavailable" in result.errors[0].message
        assert "Store failed to load" in caplog.text

        store.fail_reads = False
        assert services.query("s", "a1").value == CellQuery(expr="", value=0.0)

    def test_save_failure_reloads_from_store(self) -> None:
        store = FlakyStore()
        services = SpreadsheetServices(store)
        services.evaluate("s", "a1", "1")
        store.fail_writes = True
        assert services.evaluate("s", "a1", "2").errors[0].code == "STORE"

        store.fail_writes = False
        assert services.query("s", "a1").value == CellQuery(expr="1", value=1.0)
