"""Top-level WQL statement parsing: CREATE, INSERT, UPDATE, DELETE, MATCH, EVICT,
SELECT, CHECK, relation queries and JOIN."""

from __future__ import annotations

from enum import Enum

from .select import select_all, select_args
from .types import MatchCondition, Types, Wql
from .values import (
    CharStream,
    parse_uuid,
    read_args,
    read_map,
    read_map_as_str,
    read_match_args,
)

_RELATION_ERROR = (
    "Supported operations for INTERSECT and DIFFERECE are KEY for mathching keys "
    "and KEY_VALUE for matching key_values"
)
_RELATION_TYPES = ("KEY", "KEY-VALUE")


class WqlError(ValueError):
    """Raised when a WQL statement cannot be parsed."""


class Relation(Enum):
    """Set operation combining the results of two queries."""

    DIFFERENCE = "Difference"
    INTERSECT = "Intersect"
    UNION = "Union"


class RelationType(Enum):
    """What a relation compares: keys only, or keys and values."""

    KEY = "Key"
    KEY_VALUE = "KeyValue"

    @classmethod
    def from_str(cls, text: str) -> RelationType:
        upper = text.upper()
        if upper == "KEY":
            return cls.KEY
        if upper == "KEY-VALUE":
            return cls.KEY_VALUE
        raise WqlError(_RELATION_ERROR)


def _is_name_char(c: str) -> bool:
    return c.isalnum() or c == "_"


def _is_id_char(c: str) -> bool:
    return c.isalnum() or c == "-"


def _word(chars: CharStream) -> str:
    """Characters up to the next whitespace, which is consumed."""
    return chars.take_while(lambda c: not c.isspace())


def _next_word(chars: CharStream) -> str:
    """Skip whitespace, then read a word."""
    return chars.skip_while(str.isspace).take_while(lambda c: not c.isspace())


def _name(chars: CharStream) -> str:
    return chars.take_while(_is_name_char).strip()


def _identifier(chars: CharStream) -> str:
    return chars.take_while(_is_id_char).strip()


def parse_wql(text: str) -> Wql:
    """Parse one WQL statement."""
    chars = CharStream(text.lstrip())
    first = chars.next()
    if first is None:
        raise WqlError("Empty WQL")
    try:
        return read_symbol(first, chars)
    except WqlError:
        raise
    except ValueError as exc:
        raise WqlError(str(exc)) from exc


def read_symbol(first: str, chars: CharStream) -> Wql:
    """Dispatch on the statement keyword whose first character is ``first``."""
    symbol = _word(chars)
    rest = symbol.upper()
    handlers = {
        ("C", "REATE"): _create_entity,
        ("I", "NSERT"): _insert,
        ("U", "PDATE"): _update,
        ("D", "ELETE"): _delete,
        ("M", "ATCH"): _match_update,
        ("E", "VICT"): _evict,
        ("S", "ELECT"): _select,
        ("C", "HECK"): _check,
        ("I", "NTERSECT"): lambda c: relation(c, Relation.INTERSECT),
        ("D", "IFFERENCE"): lambda c: relation(c, Relation.DIFFERENCE),
        ("U", "NION"): lambda c: relation(c, Relation.UNION),
        ("J", "OIN"): join,
    }
    if first.isascii() and first.isalpha():
        handler = handlers.get((first.upper(), rest))
        if handler is not None:
            return handler(chars)
    raise WqlError(f"Symbol `{first}{symbol}` not implemented")


def _create_entity(chars: CharStream) -> Wql:
    if _word(chars).upper() != "ENTITY":
        raise WqlError("Keyword ENTITY is required for CREATE")
    entity_name = _name(chars)
    next_symbol = _word(chars).upper()
    if next_symbol == "UNIQUES":
        uniques, encrypts = _uniques_and_encrypts(chars, "ENCRYPT")
        return Wql.create_entity(entity_name, uniques, encrypts)
    if next_symbol == "ENCRYPT":
        encrypts, uniques = _uniques_and_encrypts(chars, "UNIQUES")
        return Wql.create_entity(entity_name, uniques, encrypts)
    if next_symbol == "ENCRYPTS":
        raise WqlError("Correct wording is ENCRYPT")
    if next_symbol == "UNIQUE":
        raise WqlError("Correct wording is UNIQUES")
    return Wql.create_entity(entity_name, [], [])


def _uniques_and_encrypts(chars: CharStream, next_element: str) -> tuple[list[str], list[str]]:
    set_error = "Arguments set should start with `#{` and end with `}`"
    if chars.next() != "#":
        raise WqlError(set_error)
    main = read_args(chars)
    aux: list[str] = []
    if _next_word(chars).upper() == next_element:
        if chars.next() != "#":
            raise WqlError(set_error)
        aux = read_args(chars)
    if any(name in main for name in aux):
        raise WqlError("Encrypted arguments cannot be set to UNIQUE")
    return main, aux


def _select(chars: CharStream) -> Wql:
    while True:
        c = chars.next()
        if c == " ":
            continue
        if c == "*":
            return select_all(chars)
        if c == "#":
            return select_args(chars)
        raise WqlError(
            "SELECT expression should be followed by `*` for ALL keys "
            "or `#{key_names...}` for some keys"
        )


def _delete(chars: CharStream) -> Wql:
    entity_id = _identifier(chars)
    if not entity_id or entity_id == "FROM":
        raise WqlError("Entity UUID is required for DELETE")
    if _next_word(chars).upper() != "FROM":
        raise WqlError("Keyword FROM is required for DELETE")
    entity_name = _name(chars)
    if not entity_name:
        raise WqlError("Entity name is required after FROM")
    return Wql.delete(entity_name, entity_id)


def _insert(chars: CharStream) -> Wql:
    entity_map = read_map(chars)
    if _next_word(chars).upper() != "INTO":
        raise WqlError("Keyword INTO is required for INSERT")
    entity_name = _name(chars)
    if not entity_name:
        raise WqlError("Entity name is required after INTO")
    with_symbol = _next_word(chars)
    if not with_symbol:
        return Wql.insert(entity_name, entity_map, None)
    if with_symbol.upper() != "WITH":
        raise WqlError("Keyword WITH is required for INSERT with Uuid")
    entity_id = _identifier(chars)
    if not entity_id:
        raise WqlError("Entity UUID is required for INSERT WITH id")
    try:
        parsed = parse_uuid(entity_id)
    except ValueError:
        parsed = None
    return Wql.insert(entity_name, entity_map, parsed)


def _check(chars: CharStream) -> Wql:
    entity_map = read_map_as_str(chars)
    if _next_word(chars).upper() != "FROM":
        raise WqlError("Keyword FROM is required for CHECK")
    entity_name = _name(chars)
    if not entity_name:
        raise WqlError("Entity name is required after FROM")
    if _next_word(chars).upper() != "ID":
        raise WqlError("Keyword FROM is required for CHECK")
    entity_id = _identifier(chars)
    try:
        parsed = parse_uuid(entity_id)
    except ValueError as exc:
        raise WqlError(str(exc)) from exc
    return Wql.check_value(entity_name, parsed, entity_map)


def _update(chars: CharStream) -> Wql:
    entity_name = _name(chars)
    if not entity_name:
        raise WqlError("Entity name is required for UPDATE")
    update_type = _next_word(chars).upper()
    if update_type not in ("SET", "CONTENT"):
        raise WqlError("UPDATE type is required after entity. Keywords are SET or CONTENT")
    entity_map = read_map(chars)
    if _next_word(chars).upper() != "INTO":
        raise WqlError("Keyword INTO is required for UPDATE")
    uuid_text = _identifier(chars)
    try:
        entity_id = parse_uuid(uuid_text)
    except ValueError as exc:
        raise WqlError(f"Couldn't create uuid from {uuid_text}. Error: {exc}") from exc
    if update_type == "SET":
        return Wql.update_set(entity_name, entity_map, entity_id)
    return Wql.update_content(entity_name, entity_map, entity_id)


def _match_update(chars: CharStream) -> Wql:
    match_symbol = chars.skip_while(str.isspace).take_while(str.isalpha).upper()
    if match_symbol not in ("ALL", "ANY"):
        raise WqlError("MATCH requires ALL or ANY symbols")
    logical_args = read_match_args(chars)
    if match_symbol == "ALL":
        condition = MatchCondition.all_of(logical_args)
    else:
        condition = MatchCondition.any_of(logical_args)

    if chars.skip_while(str.isspace).take_while(str.isalpha).upper() != "UPDATE":
        raise WqlError("UPDATE keyword is required for MATCH UPDATE")
    entity_name = _name(chars)
    if not entity_name:
        raise WqlError("Entity name is required for MATCH UPDATE")
    if _next_word(chars).upper() != "SET":
        raise WqlError("MATCH UPDATE type is required after entity. Keyword is SET")
    entity_map = read_map(chars)
    if _next_word(chars).upper() != "INTO":
        raise WqlError("Keyword INTO is required for MATCH UPDATE")
    uuid_text = _identifier(chars)
    try:
        entity_id = parse_uuid(uuid_text)
    except ValueError as exc:
        raise WqlError(f"Couldn't create uuid from {uuid_text}, Error: {exc}") from exc
    return Wql.match_update(entity_name, entity_map, entity_id, condition)


def _evict(chars: CharStream) -> Wql:
    info = chars.take_while(lambda c: c.isalnum() or c in "-_").strip()
    try:
        entity_id = parse_uuid(info)
    except ValueError:
        if "-" in info:
            raise WqlError("Entity name cannot contain `-`") from None
        return Wql.evict(info, None)
    if _next_word(chars).strip().upper() != "FROM":
        raise WqlError("Keyword FROM is required to EVICT an UUID")
    name = _name(chars)
    if not name:
        raise WqlError("Entity name is required for EVICT")
    return Wql.evict(name, entity_id)


def _is_single_value_query(query: Wql) -> bool:
    if query.kind is Wql.Kind.SELECT:
        return query.args[2] is not None and not query.args[3]
    if query.kind is Wql.Kind.SELECT_WHEN:
        return query.args[2] is not None
    return False


def relation(chars: CharStream, kind: Relation) -> Wql:
    """Parse `KEY|KEY-VALUE query | query` for INTERSECT, DIFFERENCE and UNION."""
    type_symbol = _next_word(chars).upper()
    if type_symbol not in _RELATION_TYPES:
        raise WqlError(_RELATION_ERROR)
    parts = chars.rest().split("|")
    if len(parts) != 2:
        raise WqlError("Intersect and difference should have exactly 2 queries")
    queries = [parse_wql(part) for part in parts]
    if not all(_is_single_value_query(q) for q in queries):
        raise WqlError(
            "Only single value queries are allowed, so key `ID` is required "
            "and keys `WHEN AT` are optional"
        )
    return Wql.relation_query(queries, kind, RelationType.from_str(type_symbol))


def join(chars: CharStream) -> Wql:
    """Parse `(entity_a:key, entity_b:key) query | query`."""
    entity_a = ["", ""]
    entity_b = ["", ""]
    ent = ""
    key = ""
    is_entity = True
    while True:
        c = chars.next()
        if c in (" ", "("):
            continue
        if c is not None and (c.isalnum() or c == "_"):
            if is_entity:
                ent += c
            else:
                key += c
        elif c == ":":
            is_entity = False
            target = entity_a if not entity_a[0] else entity_b
            target[0] = ent
            ent = ""
        elif c == ",":
            is_entity = True
            target = entity_a if not entity_a[1] else entity_b
            target[1] = key
            key = ""
        elif c == ")":
            entity_b[1] = key
            break
        else:
            raise WqlError("Invalid char for Join")

    body = chars.skip_while(lambda c: c == "(" or c.isspace()).take_while(lambda c: c != ")")
    parts = body.split("|")
    if len(parts) != 2:
        raise WqlError("Join can only support 2 select queries")
    for (entity, _), part in zip((entity_a, entity_b), parts):
        if entity not in part:
            raise WqlError(
                f"{entity} must be present as entity tree key in `SELECT * FROM {part}`"
            )
    queries = [parse_wql(part) for part in parts]
    return Wql.join(tuple(entity_a), tuple(entity_b), queries)