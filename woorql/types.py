"""Core value and query types of the WQL language."""

from __future__ import annotations

import json
import struct
import uuid as _uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import bcrypt

DEFAULT_COST = 12
_BCRYPT_MAX_BYTES = 72


def float_bits(value: float) -> int:
    """Return the IEEE-754 bit pattern of a float as an unsigned integer."""
    return struct.unpack("<Q", struct.pack("<d", value))[0]


def _display_datetime(moment: datetime) -> str:
    text = moment.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
    micro = moment.microsecond
    if micro:
        text += f".{micro // 1000:03d}" if micro % 1000 == 0 else f".{micro:06d}"
    return text + " UTC"


def _iso_datetime(moment: datetime) -> str:
    text = moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")
    micro = moment.microsecond
    if micro:
        text += f".{micro // 1000:03d}" if micro % 1000 == 0 else f".{micro:06d}"
    return text + "Z"


@dataclass(frozen=True, repr=False)
class Types:
    """A typed WQL value."""

    class Kind(Enum):
        CHAR = "Char"
        INTEGER = "Integer"
        STRING = "String"
        UUID = "Uuid"
        FLOAT = "Float"
        BOOLEAN = "Boolean"
        VECTOR = "Vector"
        MAP = "Map"
        HASH = "Hash"
        PRECISE = "Precise"
        DATETIME = "DateTime"
        NIL = "Nil"

    kind: "Types.Kind"
    value: Any = None

    @classmethod
    def of_char(cls, c: str) -> Types:
        return cls(cls.Kind.CHAR, c)

    @classmethod
    def of_int(cls, i: int) -> Types:
        return cls(cls.Kind.INTEGER, i)

    @classmethod
    def of_str(cls, s: str) -> Types:
        return cls(cls.Kind.STRING, s)

    @classmethod
    def of_uuid(cls, u: _uuid.UUID) -> Types:
        return cls(cls.Kind.UUID, u)

    @classmethod
    def of_float(cls, f: float) -> Types:
        return cls(cls.Kind.FLOAT, f)

    @classmethod
    def of_bool(cls, b: bool) -> Types:
        return cls(cls.Kind.BOOLEAN, b)

    @classmethod
    def of_vector(cls, items: list[Types]) -> Types:
        return cls(cls.Kind.VECTOR, list(items))

    @classmethod
    def of_map(cls, mapping: dict[str, Types]) -> Types:
        return cls(cls.Kind.MAP, dict(mapping))

    @classmethod
    def of_hash(cls, digest: str) -> Types:
        return cls(cls.Kind.HASH, digest)

    @classmethod
    def of_precise(cls, number: str) -> Types:
        return cls(cls.Kind.PRECISE, number)

    @classmethod
    def of_datetime(cls, moment: datetime) -> Types:
        return cls(cls.Kind.DATETIME, moment.astimezone(timezone.utc))

    @classmethod
    def nil(cls) -> Types:
        return cls(cls.Kind.NIL)

    def default_values(self) -> Types:
        """Return the default value of the same kind."""
        k = self.Kind
        defaults = {
            k.CHAR: lambda: Types.of_char(" "),
            k.INTEGER: lambda: Types.of_int(0),
            k.STRING: lambda: Types.of_str(""),
            k.UUID: lambda: Types.of_uuid(_uuid.uuid4()),
            k.FLOAT: lambda: Types.of_float(0.0),
            k.BOOLEAN: lambda: Types.of_bool(False),
            k.VECTOR: lambda: Types.of_vector([]),
            k.MAP: lambda: Types.of_map({}),
            k.HASH: lambda: Types.of_hash(""),
            k.PRECISE: lambda: Types.of_precise("0"),
            k.DATETIME: lambda: Types.of_datetime(datetime.now(timezone.utc)),
            k.NIL: Types.nil,
        }
        return defaults[self.kind]()

    def to_hash(self, cost: int | None = None) -> Types:
        """Return a bcrypt hash of this value; Hash and Nil cannot be hashed."""
        k = self.Kind
        if self.kind is k.HASH:
            raise ValueError("Hash cannot be hashed")
        if self.kind is k.NIL:
            raise ValueError("Nil cannot be hashed")
        if self.kind is k.DATETIME:
            text = _display_datetime(self.value)
        elif self.kind is k.FLOAT:
            text = str(float_bits(self.value))
        elif self.kind is k.BOOLEAN:
            text = "true" if self.value else "false"
        elif self.kind in (k.VECTOR, k.MAP):
            text = _debug_value(self)
        else:
            text = str(self.value)
        data = text.encode("utf-8")[:_BCRYPT_MAX_BYTES]
        rounds = DEFAULT_COST if cost is None else cost
        try:
            digest = bcrypt.hashpw(data, bcrypt.gensalt(rounds=rounds))
        except ValueError as exc:
            raise ValueError(repr(exc)) from exc
        return Types.of_hash(digest.decode("ascii"))

    def is_hash(self) -> bool:
        return self.kind is self.Kind.HASH

    def compare(self, other: Types) -> int | None:
        """Partial ordering: -1, 0 or 1, or None where the kinds do not compare."""
        k = self.Kind
        a, b = self.value, other.value
        pair = (self.kind, other.kind)
        if pair in ((k.FLOAT, k.FLOAT), (k.INTEGER, k.FLOAT), (k.FLOAT, k.INTEGER)):
            return 1 if float(a) > float(b) else -1
        if self.kind is not other.kind:
            return None
        if self.kind in (k.INTEGER, k.CHAR, k.STRING, k.PRECISE, k.BOOLEAN):
            return (a > b) - (a < b)
        if self.kind is k.UUID:
            return (a.int > b.int) - (a.int < b.int)
        if self.kind is k.VECTOR:
            return (len(a) > len(b)) - (len(a) < len(b))
        return None

    def __hash__(self) -> int:
        k = self.Kind
        if self.kind is k.FLOAT:
            key: Any = float_bits(self.value)
        elif self.kind is k.VECTOR:
            key = tuple(self.value)
        elif self.kind is k.MAP:
            key = frozenset(self.value.items())
        else:
            key = self.value
        return hash((self.kind, key))

    def __repr__(self) -> str:
        return _debug_value(self)


def _debug_value(t: Types) -> str:
    k = Types.Kind
    v = t.value
    if t.kind is k.NIL:
        return "Nil"
    if t.kind is k.CHAR:
        return f"Char({v!r})"
    if t.kind in (k.STRING, k.HASH, k.PRECISE):
        return f"{t.kind.value}({json.dumps(v, ensure_ascii=False)})"
    if t.kind is k.BOOLEAN:
        return f"Boolean({'true' if v else 'false'})"
    if t.kind is k.FLOAT:
        return f"Float({v!r})"
    if t.kind is k.DATETIME:
        return f"DateTime({_iso_datetime(v)})"
    if t.kind is k.VECTOR:
        return "[" + ", ".join(_debug_value(x) for x in v) + "]"
    if t.kind is k.MAP:
        inner = ", ".join(
            f"{json.dumps(key, ensure_ascii=False)}: {_debug_value(x)}" for key, x in v.items()
        )
        return "{" + inner + "}"
    return f"{t.kind.value}({v})"


@dataclass
class ToSelect:
    """Keys a SELECT returns; ``keys`` of None means all keys."""

    keys: list[str] | None = None

    @property
    def is_all(self) -> bool:
        return self.keys is None


@dataclass
class MatchCondition:
    """A logical condition guarding a MATCH UPDATE."""

    class Op(Enum):
        ALL = "All"
        ANY = "Any"
        EQ = "Eq"
        NOT_EQ = "NotEq"
        GEQ = "GEq"
        G = "G"
        LEQ = "LEq"
        L = "L"

    op: "MatchCondition.Op"
    key: str | None = None
    value: Types | None = None
    conditions: list[MatchCondition] = field(default_factory=list)

    @classmethod
    def all_of(cls, conditions: list[MatchCondition]) -> MatchCondition:
        return cls(cls.Op.ALL, conditions=list(conditions))

    @classmethod
    def any_of(cls, conditions: list[MatchCondition]) -> MatchCondition:
        return cls(cls.Op.ANY, conditions=list(conditions))

    @classmethod
    def compare(cls, op: MatchCondition.Op, key: str, value: Types) -> MatchCondition:
        if op in (cls.Op.ALL, cls.Op.ANY):
            raise ValueError("ALL and ANY hold conditions, not a key and value")
        return cls(op, key, value)


@dataclass
class Wql:
    """A parsed WQL statement: its kind and its arguments in order."""

    class Kind(Enum):
        CREATE_ENTITY = "CreateEntity"
        INSERT = "Insert"
        UPDATE_CONTENT = "UpdateContent"
        UPDATE_SET = "UpdateSet"
        DELETE = "Delete"
        MATCH_UPDATE = "MatchUpdate"
        EVICT = "Evict"
        SELECT = "Select"
        SELECT_WHEN = "SelectWhen"
        SELECT_WHEN_RANGE = "SelectWhenRange"
        SELECT_IDS = "SelectIds"
        SELECT_WHERE = "SelectWhere"
        CHECK_VALUE = "CheckValue"
        RELATION_QUERY = "RelationQuery"
        JOIN = "Join"

    kind: "Wql.Kind"
    args: tuple = ()

    @classmethod
    def create_entity(cls, name, uniques, encrypts):
        return cls(cls.Kind.CREATE_ENTITY, (name, list(uniques), list(encrypts)))

    @classmethod
    def insert(cls, entity, content, entity_id):
        return cls(cls.Kind.INSERT, (entity, content, entity_id))

    @classmethod
    def update_content(cls, entity, content, entity_id):
        return cls(cls.Kind.UPDATE_CONTENT, (entity, content, entity_id))

    @classmethod
    def update_set(cls, entity, content, entity_id):
        return cls(cls.Kind.UPDATE_SET, (entity, content, entity_id))

    @classmethod
    def delete(cls, entity, entity_id):
        return cls(cls.Kind.DELETE, (entity, entity_id))

    @classmethod
    def match_update(cls, entity, content, entity_id, condition):
        return cls(cls.Kind.MATCH_UPDATE, (entity, content, entity_id, condition))

    @classmethod
    def evict(cls, entity, entity_id):
        return cls(cls.Kind.EVICT, (entity, entity_id))

    @classmethod
    def select(cls, entity, to_select, entity_id, functions):
        return cls(cls.Kind.SELECT, (entity, to_select, entity_id, functions))

    @classmethod
    def select_when(cls, entity, to_select, entity_id, date):
        return cls(cls.Kind.SELECT_WHEN, (entity, to_select, entity_id, date))

    @classmethod
    def select_when_range(cls, entity, entity_id, start, end):
        return cls(cls.Kind.SELECT_WHEN_RANGE, (entity, entity_id, start, end))

    @classmethod
    def select_ids(cls, entity, to_select, ids, functions):
        return cls(cls.Kind.SELECT_IDS, (entity, to_select, list(ids), functions))

    @classmethod
    def select_where(cls, entity, to_select, clauses, functions):
        return cls(cls.Kind.SELECT_WHERE, (entity, to_select, list(clauses), functions))

    @classmethod
    def check_value(cls, entity, entity_id, values):
        return cls(cls.Kind.CHECK_VALUE, (entity, entity_id, values))

    @classmethod
    def relation_query(cls, queries, relation, relation_type):
        return cls(cls.Kind.RELATION_QUERY, (list(queries), relation, relation_type))

    @classmethod
    def join(cls, entity_a, entity_b, queries):
        return cls(cls.Kind.JOIN, (tuple(entity_a), tuple(entity_b), list(queries)))