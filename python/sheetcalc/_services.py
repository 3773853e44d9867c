"""Spreadsheet services: named spreadsheets behind a store, returning Results."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Callable

from sheetcalc._config import Settings
from sheetcalc._errors import SpreadsheetError, StoreError
from sheetcalc._spreadsheet import Spreadsheet
from sheetcalc._store import MemoryStore, SpreadsheetStore
from sheetcalc.calc._parser import CellRef
from sheetcalc.calc._protocol import Result, SpreadsheetEngine

logger = logging.getLogger(__name__)


class SpreadsheetServices:
    """Entry point for callers (web handlers, UIs) working with many sheets.

    Each spreadsheet is rebuilt from the store the first time its name is
    used. Formula text is written through to the store after every
    successful edit. Failures come back as ``Result`` errors rather than
    exceptions, including failures of the store itself (``STORE``).

    Usage::

        services = SpreadsheetServices()
        services.evaluate("budget", "a1", "b1 * 2")   # Result(value={"a1": 0.0})
        services.evaluate("budget", "a1", "a1")       # Result(errors=(CIRCULAR_REF ...))
    """

    def __init__(
        self,
        store: SpreadsheetStore | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._store = store if store is not None else MemoryStore()
        self._settings = settings
        self._spreadsheets: dict[str, SpreadsheetEngine] = {}

    # ------------------------------------------------------------------
    # Spreadsheet access
    # ------------------------------------------------------------------

    def spreadsheet(self, ss_name: str) -> SpreadsheetEngine:
        """Return the in-memory spreadsheet for *ss_name*, loading it if needed.

        Raises :class:`StoreError` if the store cannot be read.
        """
        ss = self._spreadsheets.get(ss_name)
        if ss is None:
            ss = Spreadsheet(ss_name, self._settings)
            with self._store_errors(ss_name, "load"):
                data = self._store.get_data(ss_name)
            for cell_id, expr in data:
                try:
                    ss.evaluate(cell_id, expr)
                except SpreadsheetError as e:
                    logger.warning("Skipping stored %s!%s = %r: %s", ss_name, cell_id, expr, e)
            logger.info("Loaded spreadsheet %s (%d stored cells)", ss_name, len(data))
            self._spreadsheets[ss_name] = ss
        return ss

    @contextmanager
    def _store_errors(self, ss_name: str, action: str) -> Iterator[None]:
        try:
            yield
        except Exception as e:
            # the cached sheet may be ahead of the store; rebuild it next time
            self._spreadsheets.pop(ss_name, None)
            logger.exception("Store failed to %s spreadsheet %s", action, ss_name)
            raise StoreError(f"cannot {action} spreadsheet {ss_name!r}: {e}") from e

    def _call(self, ss_name: str, op: Callable[[SpreadsheetEngine], Any]) -> Result:
        try:
            return Result.ok(op(self.spreadsheet(ss_name)))
        except SpreadsheetError as e:
            logger.debug("%s: %s", e.code, e.message)
            return Result.err(e.code, e.message)

    def _write_through(self, ss: SpreadsheetEngine, cell_id: str) -> None:
        cell_id = CellRef.parse(cell_id).cell_id
        expr = ss.query(cell_id).expr
        with self._store_errors(ss.name, "save"):
            if expr:
                self._store.set_cell_expr(ss.name, cell_id, expr)
            else:
                self._store.remove(ss.name, cell_id)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def evaluate(self, ss_name: str, cell_id: str, expr: str) -> Result:
        """Set a formula; value is ``{cell_id: new_value}`` for changed cells."""

        def op(ss: SpreadsheetEngine) -> dict[str, float]:
            updates = ss.evaluate(cell_id, expr)
            self._write_through(ss, cell_id)
            return updates

        return self._call(ss_name, op)

    def remove(self, ss_name: str, cell_id: str) -> Result:
        def op(ss: SpreadsheetEngine) -> dict[str, float]:
            updates = ss.remove(cell_id)
            self._write_through(ss, cell_id)
            return updates

        return self._call(ss_name, op)

    def copy(self, ss_name: str, src_cell_id: str, dest_cell_id: str) -> Result:
        def op(ss: SpreadsheetEngine) -> dict[str, float]:
            updates = ss.copy(src_cell_id, dest_cell_id)
            self._write_through(ss, dest_cell_id)
            return updates

        return self._call(ss_name, op)

    def query(self, ss_name: str, cell_id: str) -> Result:
        """Value is a :class:`CellQuery` with the cell's formula and value."""
        return self._call(ss_name, lambda ss: ss.query(cell_id))

    def clear(self, ss_name: str) -> Result:
        def op(ss: SpreadsheetEngine) -> None:
            ss.clear()
            with self._store_errors(ss_name, "clear"):
                self._store.clear(ss_name)

        return self._call(ss_name, op)

    def dump(self, ss_name: str) -> Result:
        return self._call(ss_name, lambda ss: ss.dump())

    def dump_with_values(self, ss_name: str) -> Result:
        return self._call(ss_name, lambda ss: ss.dump_with_values())
