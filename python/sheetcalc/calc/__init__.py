"""sheetcalc.calc - cell table, dependency graph, evaluator and propagator."""

from sheetcalc.calc._cells import CellInfo, CellTable
from sheetcalc.calc._evaluator import Evaluator
from sheetcalc.calc._functions import apply_function, is_supported
from sheetcalc.calc._graph import DependencyGraph, references
from sheetcalc.calc._parser import App, Ast, CellRef, Num, Ref, parse, to_text
from sheetcalc.calc._propagator import Propagator
from sheetcalc.calc._protocol import CellQuery, ErrorInfo, Result, SpreadsheetEngine

__all__ = [
    "App",
    "Ast",
    "CellInfo",
    "CellQuery",
    "CellRef",
    "CellTable",
    "DependencyGraph",
    "ErrorInfo",
    "Evaluator",
    "Num",
    "Propagator",
    "Ref",
    "Result",
    "SpreadsheetEngine",
    "apply_function",
    "is_supported",
    "parse",
    "references",
    "to_text",
]
