"""Formula-text storage keyed by spreadsheet name and cell id."""

from __future__ import annotations

from abc import ABC, abstractmethod


class SpreadsheetStore(ABC):
    """Abstract base class for spreadsheet formula storage backends."""

    @abstractmethod
    def set_cell_expr(self, ss_name: str, cell_id: str, expr: str) -> None:
        """Store *expr* as the formula of *cell_id*."""

    @abstractmethod
    def query(self, ss_name: str, cell_id: str) -> str:
        """Return the stored formula of *cell_id*; ``""`` for an unknown cell."""

    @abstractmethod
    def remove(self, ss_name: str, cell_id: str) -> None:
        """Forget *cell_id*'s formula."""

    @abstractmethod
    def clear(self, ss_name: str) -> None:
        """Forget every formula of *ss_name*."""

    @abstractmethod
    def get_data(self, ss_name: str) -> list[tuple[str, str]]:
        """Return ``(cell_id, expr)`` for every stored cell of *ss_name*."""


class MemoryStore(SpreadsheetStore):
    """Dict-backed store; contents live as long as the process."""

    def __init__(self) -> None:
        self._sheets: dict[str, dict[str, str]] = {}

    def set_cell_expr(self, ss_name: str, cell_id: str, expr: str) -> None:
        self._sheets.setdefault(ss_name, {})[cell_id] = expr

    def query(self, ss_name: str, cell_id: str) -> str:
        return self._sheets.get(ss_name, {}).get(cell_id, "")

    def remove(self, ss_name: str, cell_id: str) -> None:
        self._sheets.get(ss_name, {}).pop(cell_id, None)

    def clear(self, ss_name: str) -> None:
        self._sheets.pop(ss_name, None)

    def get_data(self, ss_name: str) -> list[tuple[str, str]]:
        return list(self._sheets.get(ss_name, {}).items())

    def __repr__(self) -> str:
        return f"<MemoryStore sheets={sorted(self._sheets)}>"
