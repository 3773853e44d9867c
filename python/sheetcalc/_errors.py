"""Error types raised by the spreadsheet engine."""

from __future__ import annotations


class SpreadsheetError(Exception):
    """User-facing spreadsheet failure carrying a stable error ``code``."""

    code = "SPREADSHEET"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code}: {self.message!r})"


class FormulaSyntaxError(SpreadsheetError):
    """A formula failed to parse or a cell identifier is malformed."""

    code = "SYNTAX"


class CircularReferenceError(SpreadsheetError):
    """An edit would make a cell depend on itself, directly or transitively."""

    code = "CIRCULAR_REF"


class FormulaContractError(RuntimeError):
    """The evaluator met an AST the parser should never produce.

    Unknown function names and unsupported arities land here. This is a
    programming error, not a user error, so it is deliberately not a
    :class:`SpreadsheetError`.
    """


class StoreError(SpreadsheetError):
    """The backing store failed to load or save a spreadsheet."""

    code = "STORE"
