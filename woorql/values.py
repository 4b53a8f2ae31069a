"""Character-stream readers for WQL maps, vectors, arguments and values."""

from __future__ import annotations

import json
import re
import uuid
from datetime import datetime, timezone
from typing import Callable

from .types import MatchCondition, Types

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1

_HYPHENATED = r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
_UUID_RE = re.compile(
    rf"(?:{_HYPHENATED}|[0-9a-fA-F]{{32}}|\{{{_HYPHENATED}\}}|urn:uuid:{_HYPHENATED})"
)
_INT_RE = re.compile(r"[+-]?[0-9]+")


class CharStream:
    """A consuming cursor over the characters of a string."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0

    def next(self) -> str | None:
        """Consume and return the next character, or None at the end."""
        if self._pos >= len(self._text):
            return None
        c = self._text[self._pos]
        self._pos += 1
        return c

    def take_while(self, predicate: Callable[[str], bool]) -> str:
        """Collect characters while predicate holds; the first failing one is consumed too."""
        taken = []
        while (c := self.next()) is not None:
            if not predicate(c):
                break
            taken.append(c)
        return "".join(taken)

    def skip_while(self, predicate: Callable[[str], bool]) -> CharStream:
        """Skip characters while predicate holds, leaving the first failing one."""
        while self._pos < len(self._text) and predicate(self._text[self._pos]):
            self._pos += 1
        return self

    def rest(self) -> str:
        """Consume and return everything left."""
        remaining = self._text[self._pos :]
        self._pos = len(self._text)
        return remaining

    def __iter__(self):
        while (c := self.next()) is not None:
            yield c


def _is_key_char(c: str) -> bool:
    return c.isalnum() or c == "_"


def parse_uuid(text: str) -> uuid.UUID:
    """Parse a UUID in hyphenated, simple, braced or URN form."""
    if not _UUID_RE.fullmatch(text):
        raise ValueError(f"invalid UUID: {text!r}")
    return uuid.UUID(text)


def _parse_f64(text: str) -> float | None:
    if not text or "_" in text or text != text.strip():
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _parse_i64(text: str) -> int | None:
    if not _INT_RE.fullmatch(text):
        return None
    number = int(text)
    return number if _I64_MIN <= number <= _I64_MAX else None


def _parse_datetime(text: str) -> datetime | None:
    if "T" not in text and " " not in text:
        return None
    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        return None
    if moment.tzinfo is None:
        return None
    return moment.astimezone(timezone.utc)


def read_match_args(chars: CharStream) -> list[MatchCondition]:
    """Read `(key op value, ...)` conditions of a MATCH."""
    base = chars.skip_while(lambda c: c == "(" or c.isspace()).take_while(lambda c: c != ")")
    ops = {
        "==": MatchCondition.Op.EQ,
        "!=": MatchCondition.Op.NOT_EQ,
        ">=": MatchCondition.Op.GEQ,
        "<=": MatchCondition.Op.LEQ,
        ">": MatchCondition.Op.G,
        "<": MatchCondition.Op.L,
    }
    conditions = []
    for line in base.strip().split(","):
        if not line:
            continue
        parts = [p for p in line.split(" ") if p]
        if len(parts) < 3:
            raise ValueError("Not able to parse match argument")
        value_chars = CharStream(parts[2])
        first = value_chars.next()
        if first is None:
            raise ValueError("Not able to parse match argument")
        op = ops.get(parts[1])
        if op is None:
            raise ValueError("Unidentified Match Condition")
        conditions.append(MatchCondition.compare(op, parts[0], parse_value(first, value_chars)))
    return conditions


def _open_map(chars: CharStream) -> None:
    while True:
        c = chars.next()
        if c == " ":
            continue
        if c == "{":
            return
        raise ValueError("Entity map should start with `{` and end with `}`")


def read_map(chars: CharStream) -> dict[str, Types]:
    """Read an entity map `{key: value, ...}`, leading spaces allowed."""
    _open_map(chars)
    return read_inner_map(chars)


def read_map_as_str(chars: CharStream) -> dict[str, str]:
    """Read a map whose values are kept as unquoted strings."""
    _open_map(chars)
    result: dict[str, str] = {}
    key: str | None = None
    while True:
        c = chars.next()
        if c == "}":
            return result
        if c is None:
            raise ValueError("Entity HashMap could not be created")
        if c.isspace() or c == ",":
            continue
        if key is None:
            key = parse_key(c, chars)
        else:
            result[key] = parse_str_value(c, chars)
            key = None


def read_inner_map(chars: CharStream) -> dict[str, Types]:
    """Read map entries after the opening brace up to the closing one."""
    result: dict[str, Types] = {}
    key: str | None = None
    while True:
        c = chars.next()
        value: Types | None = None
        if c == "}":
            return result
        if c in ("{", "["):
            if key is None:
                raise ValueError("Key must be an alphanumeric value")
            if c == "{":
                value = Types.of_map(read_inner_map(chars))
            else:
                value = Types.of_vector(_read_vec(chars))
        elif c is None:
            raise ValueError("Entity HashMap could not be created")
        elif c.isspace() or c == ",":
            continue
        elif key is not None:
            value = parse_value(c, chars)
        else:
            key = parse_key(c, chars)
        if key is not None and value is not None:
            result[key] = value
            key = None


def _read_vec(chars: CharStream) -> list[Types]:
    result: list[Types] = []
    while True:
        c = chars.next()
        if c == "]":
            return result
        if c == "[":
            result.append(Types.of_vector(_read_vec(chars)))
        elif c == "{":
            result.append(Types.of_map(read_inner_map(chars)))
        elif c is None:
            raise ValueError("None could not be parsed at char")
        elif not (c.isspace() or c == ","):
            result.append(parse_value(c, chars))


def read_select_args(chars: CharStream) -> list[str]:
    """Read the `{key, ...}` set of a SELECT after the `#`."""
    if chars.next() != "{":
        raise ValueError("SELECT arguments set should start with `#{` and end with `}`")
    keys = []
    while True:
        c = chars.next()
        if c == "}":
            return keys
        if c is None:
            raise ValueError("None could not be parsed at char")
        if not (c.isspace() or c == ","):
            keys.append(c + chars.take_while(_is_key_char))


def read_args(chars: CharStream) -> list[str]:
    """Read a `{name, ...}` argument set after the `#`."""
    if chars.next() != "{":
        raise ValueError("Arguments set should start with `#{` and end with `}`")
    args = []
    while True:
        c = chars.next()
        if c == "}":
            return args
        if c is None:
            raise ValueError("None could not be parsed at char")
        if not (c.isspace() or c == ","):
            rest = chars.skip_while(str.isspace).take_while(_is_key_char).strip()
            args.append(c + rest)


def read_uuids(chars: CharStream) -> list[uuid.UUID]:
    """Read `#{uuid, uuid,}`; each UUID must be followed by a comma."""
    uuids = []
    current = ""
    while True:
        c = chars.next()
        if c in (" ", "#", "{"):
            continue
        if c is not None and (c.isalnum() or c == "-"):
            current += c
        elif c == ",":
            try:
                uuids.append(parse_uuid(current))
            except ValueError as exc:
                raise ValueError(
                    f"Couldn't creat an Uuid from {json.dumps(current)}. Error {exc}"
                ) from exc
            current = ""
        elif c == "}":
            return uuids
        else:
            raise ValueError("Uuids in `IDS IN` are reuired to be inside a `#{` and `}`")


def read_str(chars: CharStream) -> Types:
    """Read a string body after its opening quote, handling escapes."""
    escapes = {"t": "\t", "r": "\r", "n": "\n", "\\": "\\", '"': '"'}
    out = []
    escaped = False
    for c in chars:
        if escaped:
            if c not in escapes:
                raise ValueError(f"Invalid escape sequence \\{c}")
            out.append(escapes[c])
            escaped = False
        elif c == '"':
            return Types.of_str("".join(out))
        elif c == "\\":
            escaped = True
        else:
            out.append(c)
    raise ValueError("Unterminated string")


def parse_key(c: str, chars: CharStream) -> str:
    return c + chars.take_while(_is_key_char)


def parse_value(c: str, chars: CharStream) -> Types:
    """Parse one value starting with character c."""
    if c == '"':
        return read_str(chars)
    value = c + chars.take_while(lambda ch: not ch.isspace() and ch != ",")
    if value.endswith("P") and _parse_f64(value[:-1]) is not None:
        return Types.of_precise(value[:-1])
    if (integer := _parse_i64(value)) is not None:
        return Types.of_int(integer)
    if (number := _parse_f64(value)) is not None:
        return Types.of_float(number)
    try:
        return Types.of_uuid(parse_uuid(value))
    except ValueError:
        pass
    if value in ("true", "false"):
        return Types.of_bool(value == "true")
    if value.lower() == "nil":
        return Types.nil()
    if value.startswith("'") and value.endswith("'") and len(value.encode("utf-8")) == 3:
        return Types.of_char(value[1])
    if (moment := _parse_datetime(value)) is not None:
        return Types.of_datetime(moment)
    raise ValueError(f"Value Type could not be created from {value}")


def parse_str_value(c: str, chars: CharStream) -> str:
    text = c + chars.take_while(lambda ch: not ch.isspace() and ch != ",")
    return text.replace('"', "")