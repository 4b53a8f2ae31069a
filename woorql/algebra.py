"""Post-query algebra functions of a SELECT: DEDUP, GROUP BY, ORDER BY, OFFSET, LIMIT, COUNT."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from .values import CharStream

ALGEBRA = ("DEDUP", "GROUP", "ORDER", "OFFSET", "LIMIT", "COUNT")
OPERATORS = ("ID", "IDS", "WHERE", "WHEN", *ALGEBRA)

_USIZE_MAX = 2**64 - 1
_USIZE_RE = re.compile(r"\+?[0-9]+")
_AVAILABLE = "Available functions are DEDUP, GROUP BY, ORDER BY, OFFSET, LIMIT, COUNT"


class Order(Enum):
    """Sort direction of ORDER BY."""

    ASC = "Asc"
    DESC = "Desc"

    @classmethod
    def from_str(cls, text: str) -> Order:
        if text == ":asc":
            return cls.ASC
        if text == ":desc":
            return cls.DESC
        raise ValueError("Order parameter should be :asc/:desc")


@dataclass(frozen=True)
class Algebra:
    """One algebra function applied to a query result."""

    class Kind(Enum):
        DEDUP = "Dedup"
        GROUP_BY = "GroupBy"
        ORDER_BY = "OrderBy"
        LIMIT = "Limit"
        OFFSET = "Offset"
        COUNT = "Count"

    kind: "Algebra.Kind"
    key: str | None = None
    order: Order | None = None
    amount: int | None = None

    @classmethod
    def dedup(cls, key: str) -> Algebra:
        return cls(cls.Kind.DEDUP, key=key)

    @classmethod
    def group_by(cls, key: str) -> Algebra:
        return cls(cls.Kind.GROUP_BY, key=key)

    @classmethod
    def order_by(cls, key: str, order: Order) -> Algebra:
        return cls(cls.Kind.ORDER_BY, key=key, order=order)

    @classmethod
    def limit(cls, amount: int) -> Algebra:
        return cls(cls.Kind.LIMIT, amount=amount)

    @classmethod
    def offset(cls, amount: int) -> Algebra:
        return cls(cls.Kind.OFFSET, amount=amount)

    @classmethod
    def count(cls) -> Algebra:
        return cls(cls.Kind.COUNT)


def _next_word(chars: CharStream) -> str:
    return chars.skip_while(str.isspace).take_while(lambda c: not c.isspace())


def _parse_usize(text: str) -> int:
    if not text:
        kind = "Empty"
    elif not _USIZE_RE.fullmatch(text):
        kind = "InvalidDigit"
    else:
        number = int(text)
        if number <= _USIZE_MAX:
            return number
        kind = "PosOverflow"
    raise ValueError(f"Error parsing value: ParseIntError {{ kind: {kind} }}")


def algebra_functions(next_symbol: str, chars: CharStream) -> dict[str, Algebra]:
    """Read algebra functions starting at the already-read, upper-cased symbol."""
    functions: dict[str, Algebra] = {}
    symbol = next_symbol
    while True:
        if symbol in ALGEBRA:
            if symbol in ("GROUP", "ORDER") and _next_word(chars).upper() != "BY":
                raise ValueError("ORDER and GROUP must be followed by BY")
            value = _next_word(chars)
            if symbol == "DEDUP":
                functions["DEDUP"] = Algebra.dedup(value)
            elif symbol == "GROUP":
                functions["GROUP"] = Algebra.group_by(value)
            elif symbol == "ORDER":
                order = Order.from_str(_next_word(chars).lower())
                functions["ORDER"] = Algebra.order_by(value, order)
            elif symbol == "OFFSET":
                functions["OFFSET"] = Algebra.offset(_parse_usize(value))
            elif symbol == "LIMIT":
                functions["LIMIT"] = Algebra.limit(_parse_usize(value))
            else:
                functions["COUNT"] = Algebra.count()
            symbol = _next_word(chars).upper()
        elif chars.rest() == "":
            return functions
        else:
            raise ValueError(_AVAILABLE)