"""sheetcalc: in-memory spreadsheet cell evaluation with dependency tracking.

Usage::

    from sheetcalc import Spreadsheet

    ss = Spreadsheet("budget")
    ss.evaluate("b1", "3")          # {"b1": 3.0}
    ss.evaluate("a1", "b1 + 2")     # {"a1": 5.0}
    ss.evaluate("b1", "10")         # {"b1": 10.0, "a1": 12.0}
    ss.remove("b1")                 # {"b1": 0.0, "a1": 2.0}
"""

from __future__ import annotations

from sheetcalc._config import Settings, configure_logging, settings
from sheetcalc._errors import (
    CircularReferenceError,
    FormulaContractError,
    FormulaSyntaxError,
    SpreadsheetError,
    StoreError,
)
from sheetcalc._services import SpreadsheetServices
from sheetcalc._spreadsheet import Spreadsheet
from sheetcalc._store import MemoryStore, SpreadsheetStore
from sheetcalc.calc._protocol import CellQuery, ErrorInfo, Result, SpreadsheetEngine

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "CellQuery",
    "CircularReferenceError",
    "ErrorInfo",
    "FormulaContractError",
    "FormulaSyntaxError",
    "MemoryStore",
    "Result",
    "Settings",
    "Spreadsheet",
    "SpreadsheetEngine",
    "SpreadsheetError",
    "SpreadsheetServices",
    "SpreadsheetStore",
    "StoreError",
    "configure_logging",
    "settings",
]
