"""Formula parser: tokenizer + recursive descent into a small numeric AST."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Union

from sheetcalc._errors import FormulaSyntaxError
from sheetcalc._utils import column_index, column_letters
from sheetcalc.calc._functions import is_supported

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------

# Single cell ref: a1, $a$1, $a1, a$1
_CELL_REF_RE = re.compile(r"^(\$?)([A-Za-z]+)(\$?)(\d+)$")

_TOKEN_RE = re.compile(
    r"""
    \s*(?:
        (?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
      | (?P<ref>\$?[A-Za-z]+\$?\d+)
      | (?P<name>[A-Za-z_][A-Za-z0-9_]*)
      | (?P<op>[-+*/(),])
    )
    """,
    re.VERBOSE,
)

# Parentheses, unary minus and function calls nest at most this deep.
MAX_NESTING = 100


# ---------------------------------------------------------------------------
# CellRef
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CellRef:
    """A cell reference with optionally ``$``-anchored column and row.

    Anchored components hold absolute 1-based positions. Free components
    hold offsets from whatever base the reference was parsed against; a
    reference parsed without a base is relative to the implicit origin, so
    its free components are plain positions.
    """

    col: int
    row: int
    col_abs: bool = False
    row_abs: bool = False

    @classmethod
    def parse(cls, text: str, base: CellRef | None = None) -> CellRef:
        m = _CELL_REF_RE.match(text.strip())
        if not m:
            raise FormulaSyntaxError(f"bad cell reference {text!r}")
        col_abs, row_abs = bool(m.group(1)), bool(m.group(3))
        col, row = column_index(m.group(2)), int(m.group(4))
        if row < 1:
            raise FormulaSyntaxError(f"bad cell reference {text!r}")
        ref = cls(col, row, col_abs, row_abs)
        return ref if base is None else ref.relative_to(base)

    def resolve(self, base: CellRef | None = None) -> CellRef:
        """Return the absolute position this reference names from *base*."""
        if base is None:
            return self
        base = base.resolve()
        col = self.col if self.col_abs else base.col + self.col
        row = self.row if self.row_abs else base.row + self.row
        return CellRef(col, row, self.col_abs, self.row_abs)

    def relative_to(self, base: CellRef) -> CellRef:
        """Inverse of :meth:`resolve`: express a position as offsets from *base*."""
        base = base.resolve()
        col = self.col if self.col_abs else self.col - base.col
        row = self.row if self.row_abs else self.row - base.row
        return CellRef(col, row, self.col_abs, self.row_abs)

    @property
    def cell_id(self) -> str:
        """Normalized id (``"a1"``); only meaningful for resolved refs."""
        self._check_position()
        return f"{column_letters(self.col)}{self.row}"

    def to_text(self, base: CellRef | None = None) -> str:
        """Render the reference at *base*, keeping ``$`` anchors."""
        ref = self.resolve(base)
        ref._check_position()
        col = ("$" if ref.col_abs else "") + column_letters(ref.col)
        row = ("$" if ref.row_abs else "") + str(ref.row)
        return col + row

    def _check_position(self) -> None:
        if self.col < 1 or self.row < 1:
            raise FormulaSyntaxError(
                f"reference falls outside the sheet (col={self.col}, row={self.row})"
            )

    def __str__(self) -> str:
        return self.to_text()


# ---------------------------------------------------------------------------
# AST
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Num:
    value: float


@dataclass(frozen=True)
class Ref:
    ref: CellRef  # relative to the cell the formula was parsed for


@dataclass(frozen=True)
class App:
    fn: str
    kids: tuple[Ast, ...]


Ast = Union[Num, Ref, App]


def iter_refs(node: Ast) -> Iterator[Ref]:
    """Yield every ``Ref`` node of *node*, left to right."""
    stack: list[Ast] = [node]
    while stack:
        cur = stack.pop()
        if isinstance(cur, Ref):
            yield cur
        elif isinstance(cur, App):
            stack.extend(reversed(cur.kids))


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------


def _tokenize(text: str) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    pos = 0
    end = len(text.rstrip())
    while pos < end:
        m = _TOKEN_RE.match(text, pos)
        if not m or m.end() == pos:
            bad = len(text) - len(text[pos:].lstrip())
            raise FormulaSyntaxError(f"unexpected character {text[bad]!r} at {bad}")
        kind = m.lastgroup
        assert kind is not None
        tokens.append((kind, m.group(kind)))
        pos = m.end()
    return tokens


# ---------------------------------------------------------------------------
# Recursive descent
# ---------------------------------------------------------------------------


class _Parser:
    """Precedence (lowest to highest): additive, multiplicative, unary minus."""

    def __init__(self, tokens: list[tuple[str, str]], base: CellRef) -> None:
        self._tokens = tokens
        self._pos = 0
        self._depth = 0
        self._base = base

    def parse(self) -> Ast:
        if not self._tokens:
            raise FormulaSyntaxError("empty formula")
        node = self._expr()
        if self._pos != len(self._tokens):
            raise FormulaSyntaxError(f"unexpected {self._tokens[self._pos][1]!r}")
        return node

    def _peek(self) -> tuple[str, str] | None:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def _take(self) -> tuple[str, str]:
        tok = self._peek()
        if tok is None:
            raise FormulaSyntaxError("unexpected end of formula")
        self._pos += 1
        return tok

    def _expect(self, op: str) -> None:
        kind, text = self._take()
        if kind != "op" or text != op:
            raise FormulaSyntaxError(f"expected {op!r}, got {text!r}")

    def _at_op(self, *ops: str) -> str | None:
        tok = self._peek()
        if tok is not None and tok[0] == "op" and tok[1] in ops:
            return tok[1]
        return None

    def _expr(self) -> Ast:
        node = self._term()
        while True:
            op = self._at_op("+", "-")
            if op is None:
                return node
            self._pos += 1
            node = App(op, (node, self._term()))

    def _term(self) -> Ast:
        node = self._factor()
        while True:
            op = self._at_op("*", "/")
            if op is None:
                return node
            self._pos += 1
            node = App(op, (node, self._factor()))

    def _nested(self) -> None:
        self._depth += 1
        if self._depth > MAX_NESTING:
            raise FormulaSyntaxError(f"formula nested more than {MAX_NESTING} levels deep")

    def _factor(self) -> Ast:
        kind, text = self._take()
        if kind == "number":
            value = float(text)
            if math.isinf(value):
                raise FormulaSyntaxError(f"number {text!r} is out of range")
            return Num(value)
        if kind == "ref":
            return Ref(CellRef.parse(text, self._base))
        if kind == "op" and text not in ("-", "("):
            raise FormulaSyntaxError(f"unexpected {text!r}")

        self._nested()
        if text == "-":
            node: Ast = App("-", (self._factor(),))
        elif text == "(":
            node = self._expr()
            self._expect(")")
        else:
            node = self._call(text)
        self._depth -= 1
        return node

    def _call(self, name: str) -> Ast:
        fn = name.lower()
        if not is_supported(fn):
            raise FormulaSyntaxError(f"unknown function {name!r}")
        self._expect("(")
        kids = [self._expr()]
        while self._at_op(","):
            self._pos += 1
            kids.append(self._expr())
        self._expect(")")
        if not is_supported(fn, len(kids)):
            raise FormulaSyntaxError(f"{fn} does not take {len(kids)} argument(s)")
        return App(fn, tuple(kids))


def parse(text: str, base: CellRef | str) -> Ast:
    """Parse formula *text* for the cell at *base*.

    Raises :class:`FormulaSyntaxError` on any malformed input. A leading
    ``=`` is accepted and ignored.
    """
    if isinstance(base, str):
        base = CellRef.parse(base)
    body = text.strip()
    if body.startswith("="):
        body = body[1:]
    try:
        return _Parser(_tokenize(body), base).parse()
    except FormulaSyntaxError as e:
        logger.debug("Cannot parse %r at %s: %s", text, base, e)
        raise


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

_PRECEDENCE = {"+": 1, "-": 1, "*": 2, "/": 2}
_UNARY_PRECEDENCE = 3
_ATOM_PRECEDENCE = 4


def _format_number(value: float) -> str:
    if math.isfinite(value) and value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def _render_app(node: App, parts: list[tuple[str, int]]) -> tuple[str, int]:
    if node.fn == "-" and len(parts) == 1:
        text, prec = parts[0]
        if prec < _UNARY_PRECEDENCE:
            text = f"({text})"
        return f"-{text}", _UNARY_PRECEDENCE
    if node.fn not in _PRECEDENCE:
        args = ", ".join(text for text, _ in parts)
        return f"{node.fn}({args})", _ATOM_PRECEDENCE
    prec = _PRECEDENCE[node.fn]
    (left, lprec), (right, rprec) = parts
    if lprec < prec:
        left = f"({left})"
    # left-associative: an equal-precedence right operand needs parens
    if rprec <= prec:
        right = f"({right})"
    return f"{left} {node.fn} {right}", prec


def _render(root: Ast, base: CellRef) -> tuple[str, int]:
    """(text, precedence) of *root*, built bottom-up on an explicit stack."""
    parts: list[tuple[str, int]] = []
    stack: list[tuple[Ast, bool]] = [(root, False)]
    while stack:
        node, kids_done = stack.pop()
        if isinstance(node, Num):
            parts.append((_format_number(node.value), _ATOM_PRECEDENCE))
        elif isinstance(node, Ref):
            parts.append((node.ref.to_text(base), _ATOM_PRECEDENCE))
        elif not kids_done:
            stack.append((node, True))
            stack.extend((kid, False) for kid in reversed(node.kids))
        else:
            count = len(node.kids)
            rendered = _render_app(node, parts[len(parts) - count:])
            del parts[len(parts) - count:]
            parts.append(rendered)
    return parts[0]


def to_text(node: Ast, base: CellRef | str) -> str:
    """Render *node* as formula text for the cell at *base*.

    Free references are shifted to *base*, so rendering at a different cell
    than the one a formula was parsed for translates it like a copy/paste.
    """
    if isinstance(base, str):
        base = CellRef.parse(base)
    return _render(node, base)[0]
