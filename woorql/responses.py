"""Query, error and history responses, rendered as pretty RON."""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .types import Types

_INDENT = "    "


@dataclass(frozen=True)
class _Some:
    """An optional value that is present."""

    value: Any


def _ron_string(text: str) -> str:
    escaped = (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def _ron_char(c: str) -> str:
    if c in ("'", "\\"):
        return f"'\\{c}'"
    return f"'{c}'"


def _ron_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if value.is_integer() and abs(value) < 1e16:
        return f"{int(value)}.0"
    return repr(value)


def _rfc3339(moment: datetime) -> str:
    moment = moment.astimezone(timezone.utc)
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    micro = moment.microsecond
    if micro:
        text += f".{micro // 1000:03d}" if micro % 1000 == 0 else f".{micro:06d}"
    return text + "Z"


def _ron_types(value: Types, level: int) -> str:
    k = Types.Kind
    v = value.value
    if value.kind is k.NIL:
        return "Nil"
    if value.kind is k.CHAR:
        inner = _ron_char(v)
    elif value.kind is k.BOOLEAN:
        inner = "true" if v else "false"
    elif value.kind is k.INTEGER:
        inner = str(v)
    elif value.kind is k.FLOAT:
        inner = _ron_float(v)
    elif value.kind in (k.STRING, k.HASH, k.PRECISE):
        inner = _ron_string(v)
    elif value.kind is k.UUID:
        inner = _ron_string(str(v))
    elif value.kind is k.DATETIME:
        inner = _ron_string(_rfc3339(v))
    else:
        inner = _ron(v, level)
    return f"{value.kind.value}({inner})"


def _ron(value: Any, level: int = 0) -> str:
    """Render a value as pretty RON at the given nesting level."""
    if value is None:
        return "None"
    if isinstance(value, _Some):
        return f"Some({_ron(value.value, level)})"
    if isinstance(value, Types):
        return _ron_types(value, level)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _ron_float(value)
    if isinstance(value, str):
        return _ron_string(value)
    if isinstance(value, uuid.UUID):
        return _ron_string(str(value))
    if isinstance(value, datetime):
        return _ron_string(_rfc3339(value))
    if isinstance(value, tuple):
        return "(" + ", ".join(_ron(item, level) for item in value) + ")"
    pad = _INDENT * (level + 1)
    if isinstance(value, list):
        if not value:
            return "[]"
        body = "".join(f"{pad}{_ron(item, level + 1)},\n" for item in value)
        return "[\n" + body + _INDENT * level + "]"
    if isinstance(value, dict):
        if not value:
            return "{}"
        body = "".join(
            f"{pad}{_ron(key, level + 1)}: {_ron(item, level + 1)},\n"
            for key, item in value.items()
        )
        return "{\n" + body + _INDENT * level + "}"
    raise TypeError(f"cannot render {type(value).__name__} as RON")


def _ron_struct(fields: list[tuple[str, Any]]) -> str:
    body = "".join(f"{_INDENT}{name}: {_ron(value, 1)},\n" for name, value in fields)
    return "(\n" + body + ")"


def _sorted_by_key(mapping: dict) -> dict:
    return dict(sorted(mapping.items(), key=lambda item: item[0]))


def _optional(mapping: dict | None) -> _Some | None:
    return None if mapping is None else _Some(mapping)


class ResponseKind(Enum):
    """The shape of a query response."""

    ID = "Id"
    INTERSECT = "Intersect"
    DIFFERENCE = "Difference"
    UNION = "Union"
    ALL = "All"
    ORDER = "Order"
    GROUP_BY = "GroupBy"
    ORDERED_GROUP_BY = "OrderedGroupBy"
    OPTION_ORDER = "OptionOrder"
    OPTION_GROUP_BY = "OptionGroupBy"
    OPTION_SELECT = "OptionSelect"
    CHECK_VALUES = "CheckValues"
    TIME_RANGE = "TimeRange"
    WITH_COUNT = "WithCount"
    DATE_SELECT = "DateSelect"
    JOIN = "Join"


_COUNTABLE = {
    ResponseKind.ID,
    ResponseKind.ALL,
    ResponseKind.ORDER,
    ResponseKind.GROUP_BY,
    ResponseKind.ORDERED_GROUP_BY,
    ResponseKind.OPTION_ORDER,
    ResponseKind.OPTION_GROUP_BY,
    ResponseKind.OPTION_SELECT,
    ResponseKind.CHECK_VALUES,
    ResponseKind.TIME_RANGE,
    ResponseKind.DATE_SELECT,
}

_ROW_KINDS = {
    ResponseKind.ALL,
    ResponseKind.ORDER,
    ResponseKind.OPTION_ORDER,
    ResponseKind.OPTION_SELECT,
}


@dataclass
class Response:
    """A query result of a given kind; ``value`` holds data of that kind's shape."""

    kind: ResponseKind
    value: Any

    def _rows(self) -> list[dict[str, Types]]:
        """Entity maps of a row-shaped response, in result order, absent ones skipped."""
        kind = self.kind
        if kind in (ResponseKind.ALL, ResponseKind.OPTION_SELECT):
            entries = [row for _, row in sorted(self.value.items(), key=lambda i: i[0])]
        else:
            entries = [row for _, row in self.value]
        return [row for row in entries if row is not None]

    def _render_state(self) -> Any:
        kind = self.kind
        state = self.value
        if kind in (ResponseKind.ALL, ResponseKind.TIME_RANGE):
            return _sorted_by_key(state)
        if kind is ResponseKind.OPTION_SELECT:
            return {k: _optional(v) for k, v in _sorted_by_key(state).items()}
        if kind is ResponseKind.OPTION_ORDER:
            return [(k, _optional(v)) for k, v in state]
        if kind is ResponseKind.GROUP_BY:
            return {g: _sorted_by_key(rows) for g, rows in state.items()}
        if kind is ResponseKind.OPTION_GROUP_BY:
            return {
                g: {k: _optional(v) for k, v in _sorted_by_key(rows).items()}
                for g, rows in state.items()
            }
        return state

    def parse(
        self,
        key: str,
        ent_b: tuple[str, str],
        rows: list[dict[str, Types]],
        b_hash: dict[Types, list[dict[str, Types]]],
    ) -> bool:
        """Join this result with entities of ``b_hash`` on ``key``, appending to ``rows``.

        Returns False when this kind of response cannot be joined.
        """
        if self.kind not in _ROW_KINDS:
            return False
        entity_b, key_b = ent_b
        keep_name_when_present = self.kind is ResponseKind.OPTION_SELECT
        for row in self._rows():
            for other in b_hash.get(row.get(key, Types.nil()), []):
                joined = dict(row)
                for name, item in other.items():
                    if name in ("tx_time", key_b):
                        continue
                    present = name in joined
                    if present == keep_name_when_present:
                        entry_name = name
                    else:
                        entry_name = f"{name}:{entity_b}"
                    joined[entry_name] = item
                rows.append(joined)
        return True

    def hash(self, key: str) -> dict[Types, list[dict[str, Types]]] | None:
        """Group the entity maps by their value at ``key`` (Nil where missing)."""
        if self.kind not in _ROW_KINDS:
            return None
        groups: dict[Types, list[dict[str, Types]]] = {}
        for row in self._rows():
            groups.setdefault(row.get(key, Types.nil()), []).append(row)
        return groups

    def to_string(self) -> str:
        """Render the response as pretty RON."""
        if self.kind is ResponseKind.WITH_COUNT:
            return self.value.to_response()
        return _ron(self._render_state())


@dataclass
class CountResponse:
    """A response together with the number of entries it holds."""

    count: int
    response: Response

    def to_response(self) -> str:
        """Render ``(response: ..., count: n)`` as pretty RON."""
        if self.response.kind not in _COUNTABLE:
            raise ValueError("Unknown error")
        return _ron_struct(
            [("response", self.response._render_state()), ("count", self.count)]
        )


@dataclass(frozen=True)
class ErrorResponse:
    """An error reported to a client."""

    error_type: str
    error_message: str

    def write(self) -> str:
        """Render the error as pretty RON."""
        try:
            return _ron_struct(
                [("error_type", self.error_type), ("error_message", self.error_message)]
            )
        except TypeError:
            return "SERVER ERROR"


@dataclass(frozen=True)
class EntityHistoryInfo:
    """A request for the history of one entity, optionally within a time window."""

    entity_key: str
    entity_id: uuid.UUID
    start_datetime: datetime | None = None
    end_datetime: datetime | None = None