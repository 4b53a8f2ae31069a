"""WHERE clause parsing of SELECT statements."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .algebra import algebra_functions
from .types import ToSelect, Types, Wql
from .values import CharStream, parse_value


class Function(Enum):
    """Comparison and logical functions usable in a WHERE clause."""

    EQ = "Eq"
    GEQ = "GEq"
    G = "G"
    LEQ = "LEq"
    L = "L"
    NOT_EQ = "NotEq"
    LIKE = "Like"
    BETWEEN = "Between"
    OR = "Or"
    IN = "In"
    ERROR = "Error"

    @classmethod
    def from_str(cls, text: str) -> Function:
        return {
            "==": cls.EQ,
            ">=": cls.GEQ,
            ">": cls.G,
            "<=": cls.LEQ,
            "<": cls.L,
            "!=": cls.NOT_EQ,
            "<>": cls.NOT_EQ,
            "like": cls.LIKE,
            "between": cls.BETWEEN,
            "in": cls.IN,
        }.get(text.lower(), cls.ERROR)


@dataclass(frozen=True)
class Value:
    """A variable name bound in a WHERE clause, such as ``?age``."""

    name: str


@dataclass
class Clause:
    """One WHERE clause: its kind and its arguments in order."""

    class Kind(Enum):
        CONTAINS_KEY_VALUE = "ContainsKeyValue"
        VALUE_ATTRIBUTION = "ValueAttribution"
        SIMPLE_COMPARISON_FUNCTION = "SimpleComparisonFunction"
        COMPLEX_COMPARISON_FUNCTIONS = "ComplexComparisonFunctions"
        OR = "Or"
        ERROR = "Error"

    kind: "Clause.Kind"
    args: tuple = ()

    @classmethod
    def contains_key_value(cls, entity: str, key: str, value: Types) -> Clause:
        return cls(cls.Kind.CONTAINS_KEY_VALUE, (entity, key, value))

    @classmethod
    def value_attribution(cls, entity: str, key: str, value: Value) -> Clause:
        return cls(cls.Kind.VALUE_ATTRIBUTION, (entity, key, value))

    @classmethod
    def simple_comparison(cls, function: Function, key: str, value: Types) -> Clause:
        return cls(cls.Kind.SIMPLE_COMPARISON_FUNCTION, (function, key, value))

    @classmethod
    def complex_comparison(cls, function: Function, key: str, values: list[Types]) -> Clause:
        return cls(cls.Kind.COMPLEX_COMPARISON_FUNCTIONS, (function, key, list(values)))

    @classmethod
    def or_clause(cls, function: Function, clauses: list[Clause]) -> Clause:
        return cls(cls.Kind.OR, (function, list(clauses)))

    @classmethod
    def error(cls) -> Clause:
        return cls(cls.Kind.ERROR)


def where_selector(entity_name: str, arg: ToSelect, chars: CharStream) -> Wql:
    """Parse ` {clause, ...}` and any algebra functions after it."""
    chars.skip_while(str.isspace)
    if chars.next() != "{":
        raise ValueError("WHERE clauses must be contained inside ` {...}`")

    segments: list[str] = []
    current: list[str] = []
    for c in chars:
        if c == ",":
            segments.append("".join(current))
            current = []
        elif c == "}":
            break
        else:
            current.append(c)

    clauses = [_set_clause(entity_name, s.strip()) for s in segments if s]
    if not clauses:
        raise ValueError("WHERE clause cannot be empty")

    next_symbol = chars.skip_while(str.isspace).take_while(lambda c: not c.isspace()).upper()
    return Wql.select_where(entity_name, arg, clauses, algebra_functions(next_symbol, chars))


def _set_clause(entity_name: str, text: str) -> Clause:
    clause = text.lstrip().split(",", 1)[0]
    if clause.startswith("?*"):
        return _entity_definition(entity_name, clause)
    if len(clause) >= 2 and clause.startswith("(") and clause.endswith(")"):
        return _function_clause(entity_name, clause[1:-1])
    return Clause.error()


def _tokens(text: str) -> list[str]:
    return [part.strip() for part in text.split(" ") if part]


def _value_of(token: str) -> Types | None:
    stream = CharStream(token)
    first = stream.next()
    if first is None:
        return None
    try:
        return parse_value(first, stream)
    except ValueError:
        return None


def _function_clause(entity_name: str, clause: str) -> Clause:
    args = _tokens(clause)
    if len(args) < 3:
        return Clause.error()

    name = args[0].lower()
    if name in (">=", ">", "==", "<=", "<", "like"):
        function = Function.from_str(args[0])
        value = _value_of(args[2])
        if function is Function.ERROR or value is None:
            return Clause.error()
        return Clause.simple_comparison(function, args[1], value)
    if name in ("in", "between"):
        function = Function.from_str(args[0])
        values = [v for token in args[2:] if token and (v := _value_of(token)) is not None]
        if (function is Function.BETWEEN and len(values) != 2) or any(
            v == Types.nil() for v in values
        ):
            return Clause.error()
        return Clause.complex_comparison(function, args[1], values)
    if name == "or":
        return Clause.or_clause(Function.OR, _or_clauses(entity_name, clause))
    return Clause.error()


def _or_clauses(entity_name: str, clause: str) -> list[Clause]:
    segments: list[str] = []
    current = ""
    for c in clause[2:]:
        if c == ",":
            segments.append(current)
            current = ""
        elif c == ")":
            segments.append(current + ")")
            current = ""
        elif c == "(":
            current = "("
        else:
            current += c
    return [_set_clause(entity_name, s.strip()) for s in segments if s]


def _entity_definition(entity_name: str, clause: str) -> Clause:
    elements = _tokens(clause)
    if len(elements) != 3:
        return Clause.error()

    entity_key = elements[1].split(":")
    if len(entity_key) != 2:
        return Clause.error()
    entity, key = entity_key
    if entity != entity_name:
        return Clause.error()

    last = elements[2]
    if last.startswith("?"):
        return Clause.value_attribution(entity, key, Value(last))
    value = _value_of(last)
    if value is None:
        return Clause.error()
    return Clause.contains_key_value(entity, key, value)