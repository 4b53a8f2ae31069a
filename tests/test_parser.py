import uuid
from datetime import datetime, timezone

import pytest

from woorql.algebra import Algebra
from woorql.clauses import Clause, Function, Value
from woorql.parser import (
    CharStream,
    Relation,
    RelationType,
    WqlError,
    join,
    parse_wql,
    read_symbol,
    relation,
)
from woorql.types import MatchCondition, ToSelect, Types, Wql

ID = uuid.UUID("d6ca73c0-41ff-4975-8a60-fc4a061ce536")
F_ID = uuid.UUID("2df2b8cf-49da-474d-8a00-c596c0bb6fd1")
S_ID = uuid.UUID("49dab8cf-2df2-474d-6fd1-c596c0bb8a00")

BODY = " {\n            a: 123,\n            g: NiL\n        } \n"


def small_map():
    return {"a": Types.of_int(123), "g": Types.nil()}


def expect_error(query, message):
    with pytest.raises(WqlError) as info:
        parse_wql(query)
    assert str(info.value) == message


# CREATE


def test_empty_wql():
    expect_error("", "Empty WQL")


def test_error_is_value_error():
    with pytest.raises(ValueError):
        parse_wql("   ")


def test_create_without_entity_keyword():
    expect_error("CREATE SHIT oh_yeah", "Keyword ENTITY is required for CREATE")


def test_create_misspelled():
    expect_error("KREATE ENTITY misspelled", "Symbol `KREATE` not implemented")


def test_create_entity():
    assert parse_wql("CREATE ENTITY entity") == Wql.create_entity("entity", [], [])


def test_create_entity_lowercase():
    assert parse_wql("create entity my_entity") == Wql.create_entity("my_entity", [], [])


def test_create_entity_with_uniques():
    assert parse_wql("CREATE ENTITY entity UNIQUES #{name, ssn,something,}") == (
        Wql.create_entity("entity", ["name", "ssn", "something"], [])
    )


def test_create_entity_with_encrypt():
    assert parse_wql("CREATE ENTITY entity ENCRYPT #{name, ssn,something,}") == (
        Wql.create_entity("entity", [], ["name", "ssn", "something"])
    )


def test_create_entity_with_encrypt_and_uniques():
    wql = parse_wql("CREATE ENTITY entity ENCRYPT #{password,something,} UNIQUES #{name, ssn,}")
    assert wql == Wql.create_entity("entity", ["name", "ssn"], ["password", "something"])


def test_create_entity_with_uniques_and_encrypt():
    wql = parse_wql("CREATE ENTITY entity UNIQUES #{name, ssn,} ENCRYPT #{password,something,}")
    assert wql == Wql.create_entity("entity", ["name", "ssn"], ["password", "something"])


@pytest.mark.parametrize(
    "query",
    [
        "CREATE ENTITY entity ENCRYPT #{password,something,} UNIQUES #{name, something,}",
        "CREATE ENTITY entity UNIQUES #{name, something,} ENCRYPT #{password,something,}",
    ],
)
def test_create_unique_and_encrypt_overlap(query):
    expect_error(query, "Encrypted arguments cannot be set to UNIQUE")


@pytest.mark.parametrize(
    "query, message",
    [
        ("CREATE ENTITY entity ENCRYPTS #{a,}", "Correct wording is ENCRYPT"),
        ("CREATE ENTITY entity UNIQUE #{a,}", "Correct wording is UNIQUES"),
        (
            "CREATE ENTITY entity UNIQUES {a,}",
            "Arguments set should start with `#{` and end with `}`",
        ),
    ],
)
def test_create_wording_errors(query, message):
    expect_error(query, message)


# DELETE


def test_delete_id():
    assert parse_wql("DELETE this-is-an-uuid FROM my_entity") == Wql.delete(
        "my_entity", "this-is-an-uuid"
    )


@pytest.mark.parametrize(
    "query, message",
    [
        ("DELETE FROM my_entity", "Entity UUID is required for DELETE"),
        ("DELETE this-is-an-uuid my_entity", "Keyword FROM is required for DELETE"),
        ("DELETE this-is-an-uuid FROM", "Entity name is required after FROM"),
    ],
)
def test_delete_errors(query, message):
    expect_error(query, message)


# INSERT


def test_insert_entity():
    wql = parse_wql(
        "INSERT {\n"
        "            a: 123,\n"
        "            b: 12.3,\n"
        "            c: 'd' ,\n"
        "            d: true ,\n"
        "            e: false,\n"
        '            f: "hello",\n'
        "            g: NiL\n"
        "        } INTO my_entity"
    )
    expected = {
        "a": Types.of_int(123),
        "b": Types.of_float(12.3),
        "c": Types.of_char("d"),
        "d": Types.of_bool(True),
        "e": Types.of_bool(False),
        "f": Types.of_str("hello"),
        "g": Types.nil(),
    }
    assert wql == Wql.insert("my_entity", expected, None)


def test_insert_precise():
    number = (
        "98347883122138743294728345738925783257325789353593473247832493483478935673."
        "9347324783249348347893567393473247832493483478935673"
    )
    wql = parse_wql("INSERT {\n            a: " + number + "P,\n        } INTO my_entity")
    assert wql == Wql.insert("my_entity", {"a": Types.of_precise(number)}, None)


def test_insert_missing_into():
    expect_error(
        "INSERT {\n            a: 123,\n        } INTRO my_entity",
        "Keyword INTO is required for INSERT",
    )


def test_insert_missing_entity_name():
    expect_error(
        "INSERT {\n            a: 123,\n        } INTO ",
        "Entity name is required after INTO",
    )


def test_insert_vec():
    wql = parse_wql(
        'INSERT {\n            a: 123,\n            b: [12.3, 34, "hello",]\n        } INTO my_entity'
    )
    expected = {
        "a": Types.of_int(123),
        "b": Types.of_vector([Types.of_float(12.3), Types.of_int(34), Types.of_str("hello")]),
    }
    assert wql == Wql.insert("my_entity", expected, None)


def test_insert_time():
    wql = parse_wql("INSERT {\n            time: 2014-11-28T12:00:09Z,\n        } INTO my_entity")
    moment = datetime(2014, 11, 28, 12, 0, 9, tzinfo=timezone.utc)
    assert wql == Wql.insert("my_entity", {"time": Types.of_datetime(moment)}, None)


def test_insert_vec_in_vec():
    wql = parse_wql(
        'INSERT {\n            a: 123,\n            b: [12.3, 34, ["hello"]]\n        } INTO my_entity'
    )
    expected = {
        "a": Types.of_int(123),
        "b": Types.of_vector(
            [
                Types.of_float(12.3),
                Types.of_int(34),
                Types.of_vector([Types.of_str("hello")]),
            ]
        ),
    }
    assert wql == Wql.insert("my_entity", expected, None)


def test_insert_vec_err():
    expect_error(
        'INSERT {\n            a: 123,\n            b: [12.3, 34, "hello", nkjsld,]\n'
        "        } INTO my_entity",
        "Value Type could not be created from nkjsld",
    )


def test_insert_with_err():
    expect_error(
        'INSERT {\n            a: 123,\n            b: [12.3, 34, "hello",]\n'
        "        } INTO my_entity\n        ID 555555-5555-444444",
        "Keyword WITH is required for INSERT with Uuid",
    )


def nested_map():
    return {
        "a": Types.of_int(123),
        "b": Types.of_map({"a": Types.of_float(12.3), "b": Types.of_int(34)}),
    }


def test_insert_with_map():
    wql = parse_wql(
        "INSERT {\n            a: 123,\n            b: { a: 12.3, b: 34, }\n        } INTO my_entity"
    )
    assert wql == Wql.insert("my_entity", nested_map(), None)


def test_insert_with_map_and_id():
    wql = parse_wql(
        "INSERT {\n            a: 123,\n            b: { a: 12.3, b: 34, }\n"
        "        } INTO my_entity\n          WITH 13ca62fc-241b-4af6-87c3-0ae4015f9967"
    )
    entity_id = uuid.UUID("13ca62fc-241b-4af6-87c3-0ae4015f9967")
    assert wql == Wql.insert("my_entity", nested_map(), entity_id)


def test_insert_with_invalid_id_keeps_none():
    wql = parse_wql("INSERT {a: 1,} INTO my_entity WITH not-a-uuid")
    assert wql == Wql.insert("my_entity", {"a": Types.of_int(1)}, None)


# UPDATE


def test_update_set_entity():
    wql = parse_wql("UPDATE this_entity \n        SET" + BODY + "        INTO " + str(ID))
    assert wql == Wql.update_set("this_entity", small_map(), ID)


def test_update_content_entity():
    wql = parse_wql("UPDATE this_entity \n        Content" + BODY + "        INTO " + str(ID))
    assert wql == Wql.update_content("this_entity", small_map(), ID)


def test_update_set_missing_entity():
    expect_error(
        "UPDATE \n        SET" + BODY + "        INTO " + str(ID),
        "Entity name is required for UPDATE",
    )


def test_update_entity_misspelled_action():
    expect_error(
        "UPDATE this_entity \n        TO" + BODY + "        INTO " + str(ID),
        "UPDATE type is required after entity. Keywords are SET or CONTENT",
    )


def test_update_entity_missing_into():
    expect_error(
        "UPDATE this_entity \n        SET" + BODY + "        to " + str(ID),
        "Keyword INTO is required for UPDATE",
    )


def test_update_entity_missing_uuid():
    with pytest.raises(WqlError) as info:
        parse_wql("UPDATE this_entity \n        SET" + BODY + "        into Some-crazy-id")
    assert str(info.value).startswith("Couldn't create uuid from Some-crazy-id")


# MATCH


def match_query(head, tail="        INTO " + str(ID)):
    return head + tail


def test_match_update_set_entity():
    wql = parse_wql(
        match_query(
            ' MATCH ALL(a == 1, b >= 3, c != "hello", d < 7,)\n'
            "        UPDATE this_entity \n        SET" + BODY
        )
    )
    condition = MatchCondition.all_of(
        [
            MatchCondition.compare(MatchCondition.Op.EQ, "a", Types.of_int(1)),
            MatchCondition.compare(MatchCondition.Op.GEQ, "b", Types.of_int(3)),
            MatchCondition.compare(MatchCondition.Op.NOT_EQ, "c", Types.of_str("hello")),
            MatchCondition.compare(MatchCondition.Op.L, "d", Types.of_int(7)),
        ]
    )
    assert wql == Wql.match_update("this_entity", small_map(), ID, condition)


def test_match_any_condition():
    wql = parse_wql(
        match_query(" MATCH Any(a == 1)\n        UPDATE this_entity \n        SET" + BODY)
    )
    assert wql.args[3] == MatchCondition.any_of(
        [MatchCondition.compare(MatchCondition.Op.EQ, "a", Types.of_int(1))]
    )


@pytest.mark.parametrize(
    "head, message",
    [
        (
            ' MATCH (a == 1, b >= 3, c != "hello", d < 7)\n        UPDATE this_entity \n        SET'
            + BODY,
            "MATCH requires ALL or ANY symbols",
        ),
        (
            ' MATCH Any(a == 1, b >= 3, c != "hello", d < 7)\n        this_entity \n        SET'
            + BODY,
            "UPDATE keyword is required for MATCH UPDATE",
        ),
        (
            ' MATCH All(a == 1, b >= 3, c != "hello", d < 7)\n        UPDATE \n        SET' + BODY,
            "Entity name is required for MATCH UPDATE",
        ),
        (
            ' MATCH All(a == 1, b >= 3, c != "hello", d < 7)\n        UPDATE this_entity \n       '
            + BODY,
            "MATCH UPDATE type is required after entity. Keyword is SET",
        ),
        (
            ' MATCH All(a == 1, b >= 3, c != "hello", d < 7)\n        UPDATE this_entity \n'
            "        SET \n",
            "Entity map should start with `{` and end with `}`",
        ),
    ],
)
def test_match_update_errors(head, message):
    expect_error(match_query(head), message)


def test_match_update_missing_into():
    expect_error(
        ' MATCH All(a == 1, b >= 3, c != "hello", d < 7)\n        UPDATE this_entity \n'
        "        SET" + BODY + "        " + str(ID),
        "Keyword INTO is required for MATCH UPDATE",
    )


def test_match_update_missing_id():
    with pytest.raises(WqlError) as info:
        parse_wql(
            ' MATCH All(a == 1, b >= 3, c != "hello", d < 7)\n        UPDATE this_entity \n'
            "        SET" + BODY + "        INTO"
        )
    assert str(info.value).startswith("Couldn't create uuid from ")


# EVICT


def test_evict_entity():
    assert parse_wql("EVICT my_entity") == Wql.evict("my_entity", None)


def test_evict_entity_with_dash():
    expect_error("EVICT my-entity", "Entity name cannot contain `-`")


def test_evict_entity_from_id():
    assert parse_wql(f"EVICT {ID} FROM my_entity") == Wql.evict("my_entity", ID)


def test_evict_entity_without_from():
    expect_error(f"EVICT {ID} my_entity", "Keyword FROM is required to EVICT an UUID")


def test_evict_entity_without_entity_name():
    expect_error(f"EVICT {ID} FROM", "Entity name is required for EVICT")


# CHECK


def test_check_encrypt_values():
    wql = parse_wql(
        "CHECK {\n            ssn: 123,\n            pswd: \"password\"\n"
        f"        }} FROM my_entity ID {ID}"
    )
    assert wql == Wql.check_value("my_entity", ID, {"ssn": "123", "pswd": "password"})


def test_check_requires_from():
    expect_error(f"CHECK {{a: 1,}} IN my_entity ID {ID}", "Keyword FROM is required for CHECK")


# SELECT dispatch


def test_select_bad_start():
    expect_error(
        "SELECT a FROM my_entity",
        "SELECT expression should be followed by `*` for ALL keys "
        "or `#{key_names...}` for some keys",
    )


def test_select_args_lowercase():
    assert parse_wql("select #{a, b, c,} from my_entity") == Wql.select(
        "my_entity", ToSelect(["a", "b", "c"]), None, {}
    )


# WHERE


def test_where_ok():
    wql = parse_wql(
        "Select * FROM my_entity WherE {\n"
        "            (in ?id 32434 45345 345346436),\n"
        "            (between ?age 30 35),\n"
        "        }"
    )
    expected = Wql.select_where(
        "my_entity",
        ToSelect(),
        [
            Clause.complex_comparison(
                Function.IN,
                "?id",
                [Types.of_int(32434), Types.of_int(45345), Types.of_int(345346436)],
            ),
            Clause.complex_comparison(
                Function.BETWEEN, "?age", [Types.of_int(30), Types.of_int(35)]
            ),
        ],
        {},
    )
    assert wql == expected


def test_or_clause():
    wql = parse_wql(
        "Select * FROM my_entity WherE {\n"
        "            ?* my_entity:a ?a,\n"
        "            ?* my_entity:c ?c,\n"
        "            (== ?a 123),\n"
        "            (or\n"
        "                (>= c 4300.0)\n"
        "                (< c 6.9)\n"
        "            ),\n"
        "        }"
    )
    expected = Wql.select_where(
        "my_entity",
        ToSelect(),
        [
            Clause.value_attribution("my_entity", "a", Value("?a")),
            Clause.value_attribution("my_entity", "c", Value("?c")),
            Clause.simple_comparison(Function.EQ, "?a", Types.of_int(123)),
            Clause.or_clause(
                Function.OR,
                [
                    Clause.simple_comparison(Function.GEQ, "c", Types.of_float(4300.0)),
                    Clause.simple_comparison(Function.L, "c", Types.of_float(6.9)),
                ],
            ),
        ],
        {},
    )
    assert wql == expected


def test_select_where_groupby():
    wql = parse_wql(
        "Select * FROM my_entity WHERE {\n"
        '            ?* my_entity:name "julia",\n'
        "            ?* my_entity:id 349875325,\n"
        "        } GROUP BY amazing_key"
    )
    expected = Wql.select_where(
        "my_entity",
        ToSelect(),
        [
            Clause.contains_key_value("my_entity", "name", Types.of_str("julia")),
            Clause.contains_key_value("my_entity", "id", Types.of_int(349875325)),
        ],
        {"GROUP": Algebra.group_by("amazing_key")},
    )
    assert wql == expected


# Relations


def test_intersect_key():
    query = (
        f"INTERSECT KEY SelEct * FROM my_entity ID {F_ID} | SelEct * FROM my_entity ID {S_ID}"
    )
    assert parse_wql(query) == Wql.relation_query(
        [
            Wql.select("my_entity", ToSelect(), F_ID, {}),
            Wql.select("my_entity", ToSelect(), S_ID, {}),
        ],
        Relation.INTERSECT,
        RelationType.KEY,
    )


def test_diff_key_value():
    query = (
        f"DIFFERENCE KEY-VALUE SelEct * FROM my_entity ID {F_ID} | "
        f"SelEct * FROM my_entity ID {S_ID} WHEN AT 2020-01-01T00:00:00Z"
    )
    assert parse_wql(query) == Wql.relation_query(
        [
            Wql.select("my_entity", ToSelect(), F_ID, {}),
            Wql.select_when("my_entity", ToSelect(), S_ID, "2020-01-01T00:00:00Z"),
        ],
        Relation.DIFFERENCE,
        RelationType.KEY_VALUE,
    )


def test_union_key():
    query = (
        f"UNION KEY SelEct * FROM my_entity ID {F_ID} | "
        f"SelEct * FROM my_entity ID {S_ID} WHEN AT 2020-01-01T00:00:00Z"
    )
    assert parse_wql(query) == Wql.relation_query(
        [
            Wql.select("my_entity", ToSelect(), F_ID, {}),
            Wql.select_when("my_entity", ToSelect(), S_ID, "2020-01-01T00:00:00Z"),
        ],
        Relation.UNION,
        RelationType.KEY,
    )


def test_relation_bad_type():
    with pytest.raises(WqlError) as info:
        parse_wql(f"UNION VALUE SelEct * FROM e ID {F_ID} | SelEct * FROM e ID {S_ID}")
    assert str(info.value).startswith("Supported operations for INTERSECT and DIFFERECE")


def test_relation_needs_two_queries():
    expect_error(
        f"UNION KEY SelEct * FROM e ID {F_ID}",
        "Intersect and difference should have exactly 2 queries",
    )


def test_relation_needs_single_value_queries():
    expect_error(
        f"UNION KEY SelEct * FROM e | SelEct * FROM e ID {S_ID}",
        "Only single value queries are allowed, so key `ID` is required "
        "and keys `WHEN AT` are optional",
    )


def test_relation_direct_call():
    chars = CharStream(f" key SelEct * FROM e ID {F_ID} | SelEct * FROM e ID {S_ID}")
    wql = relation(chars, Relation.INTERSECT)
    assert wql.args[1] is Relation.INTERSECT
    assert wql.args[2] is RelationType.KEY


@pytest.mark.parametrize(
    "text, expected",
    [("key", RelationType.KEY), ("KEY-VALUE", RelationType.KEY_VALUE)],
)
def test_relation_type_from_str(text, expected):
    assert RelationType.from_str(text) is expected


def test_relation_type_from_str_error():
    with pytest.raises(WqlError):
        RelationType.from_str("VALUE")


# JOIN


def test_join():
    wql = parse_wql(
        "JOIN (entity_A:c, entity_B:c) Select * FROM entity_A | Select * FROM entity_B"
    )
    assert wql == Wql.join(
        ("entity_A", "c"),
        ("entity_B", "c"),
        [
            Wql.select("entity_A", ToSelect(), None, {}),
            Wql.select("entity_B", ToSelect(), None, {}),
        ],
    )


def test_join_direct_call():
    chars = CharStream("(a:x, b:y) Select * FROM a | Select * FROM b")
    wql = join(chars)
    assert wql.args[0] == ("a", "x")
    assert wql.args[1] == ("b", "y")


def test_join_invalid_char():
    expect_error("JOIN (a:x; b:y) Select * FROM a | Select * FROM b", "Invalid char for Join")


def test_join_needs_two_queries():
    expect_error("JOIN (a:x, b:y) Select * FROM a", "Join can only support 2 select queries")


def test_join_entity_must_be_present():
    expect_error(
        "JOIN (a:x, zed:y) Select * FROM a | Select * FROM b",
        "zed must be present as entity tree key in `SELECT * FROM Select * FROM b`",
    )


# read_symbol


def test_read_symbol_dispatches_lowercase():
    chars = CharStream("reate entity thing")
    assert read_symbol("c", chars) == Wql.create_entity("thing", [], [])


def test_read_symbol_unknown():
    with pytest.raises(WqlError) as info:
        read_symbol("x", CharStream("YZ rest"))
    assert str(info.value) == "Symbol `xYZ` not implemented"