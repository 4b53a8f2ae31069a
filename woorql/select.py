"""SELECT statement parsing: entity, ID/IDS, WHEN, WHERE and algebra functions."""

from __future__ import annotations

import uuid

from .algebra import ALGEBRA, OPERATORS, algebra_functions
from .clauses import where_selector
from .types import ToSelect, Wql
from .values import CharStream, parse_uuid, read_select_args, read_uuids


def _next_word(chars: CharStream) -> str:
    return chars.skip_while(str.isspace).take_while(lambda c: not c.isspace())


def select_all(chars: CharStream) -> Wql:
    """Parse the rest of `SELECT * ...` after the asterisk."""
    return _select_body(ToSelect(), chars)


def select_args(chars: CharStream) -> Wql:
    """Parse the rest of `SELECT #{keys} ...` after the `#`."""
    return _select_body(ToSelect(read_select_args(chars)), chars)


def _select_body(arg: ToSelect, chars: CharStream) -> Wql:
    if _next_word(chars).upper() != "FROM":
        raise ValueError("Keyword FROM is required for SELECT")

    entity_name = chars.skip_while(str.isspace).take_while(lambda c: c.isalnum() or c == "_")
    if not entity_name:
        raise ValueError("Entity name is required for SELECT")

    next_symbol = _next_word(chars).upper()

    if next_symbol == "ID":
        id_text = chars.skip_while(str.isspace).take_while(lambda c: c.isalnum() or c == "-")
        try:
            entity_id = parse_uuid(id_text)
        except ValueError as exc:
            raise ValueError("Field ID must be a UUID v4") from exc
        if _next_word(chars).upper() == "WHEN":
            return _when_selector(entity_name, arg, entity_id, chars)
        return Wql.select(entity_name, arg, entity_id, {})

    if next_symbol == "IDS":
        if _next_word(chars).upper() != "IN":
            raise ValueError("Keyword IN is required after IDS to define a set of uuids")
        uuids = read_uuids(chars)
        after = _next_word(chars).upper()
        if after == "WHEN":
            raise ValueError("WHEN not allowed after IDS IN")
        return Wql.select_ids(entity_name, arg, uuids, algebra_functions(after, chars))

    if next_symbol == "WHEN":
        return _when_selector(entity_name, arg, None, chars)
    if next_symbol == "WHERE":
        return where_selector(entity_name, arg, chars)
    if next_symbol in ALGEBRA:
        return Wql.select(entity_name, arg, None, algebra_functions(next_symbol, chars))
    if next_symbol and next_symbol not in OPERATORS:
        raise ValueError(
            "Keyword ID/IDS is required to set an uuid in SELECT or functions "
            "WHEN/WHERE/OFFSET/LIMIT/DEDUP/GROUP BY/ORDER BY. Key was " + next_symbol
        )
    return Wql.select(entity_name, arg, None, {})


def _when_selector(
    entity_name: str, arg: ToSelect, entity_id: uuid.UUID | None, chars: CharStream
) -> Wql:
    next_symbol = _next_word(chars).upper()
    if arg.is_all and entity_id is not None and next_symbol == "START":
        return _when_time_range(entity_name, entity_id, chars)
    if next_symbol != "AT":
        raise ValueError("Keyword AT is required after WHEN")
    return Wql.select_when(entity_name, arg, entity_id, _next_word(chars))


def _when_time_range(entity_name: str, entity_id: uuid.UUID, chars: CharStream) -> Wql:
    start_date = _next_word(chars)
    if _next_word(chars).upper() != "END":
        raise ValueError("Keyword END is required after START date for SELECT WHEN")
    end_date = _next_word(chars)
    if len(start_date) < 10:
        raise ValueError("START date must begin with a full date")
    if not end_date.startswith(start_date[:10]):
        raise ValueError("START date and END date should be the same date.")
    return Wql.select_when_range(entity_name, entity_id, start_date, end_date)