# woorql

`woorql` parses WQL, the query language of a temporal entity database, into
plain Python objects. It also provides the response schemas that such a
database returns for transactions and queries, and renders them as pretty
RON text.

## Installation

```
pip install woorql
```

To run the test suite, install the test extra and run pytest:

```
pip install "woorql[test]"
pytest
```

## Parsing queries

`woorql.parser.parse_wql` turns a WQL string into a `woorql.types.Wql` value
(a `Wql.Kind` and a tuple of arguments). When the query is malformed it
raises `woorql.parser.WqlError`, a subclass of `ValueError`, with a message
that describes the problem.

```python
from woorql.parser import parse_wql, WqlError

query = parse_wql("CREATE ENTITY person UNIQUES #{ssn,} ENCRYPT #{pswd,}")

query = parse_wql('INSERT {name: "julia", age: 30, score: 9.5,} INTO person')

query = parse_wql(
    "SELECT #{name, age,} FROM person ID 2df2b8cf-49da-474d-8a00-c596c0bb6fd1"
)

query = parse_wql("SELECT * FROM person ORDER BY age :desc LIMIT 10 COUNT")

query = parse_wql("""
    SELECT * FROM person WHERE {
        ?* person:age ?age,
        (between ?age 30 35),
    }
""")

try:
    parse_wql("SELECT * person")
except WqlError as err:
    print(err)  # Keyword FROM is required for SELECT
```

The language supports these statements:

- `CREATE ENTITY name [UNIQUES #{...}] [ENCRYPT #{...}]`
- `INSERT {...} INTO name [WITH uuid]`
- `UPDATE name SET|CONTENT {...} INTO uuid`
- `MATCH ALL|ANY(conditions) UPDATE name SET {...} INTO uuid`
- `DELETE id FROM name`
- `EVICT name` and `EVICT uuid FROM name`
- `CHECK {...} FROM name ID uuid`
- `SELECT` with `ID`, `IDS IN`, `WHEN AT`, `WHEN START ... END ...`, `WHERE`
  and the functions `DEDUP`, `GROUP BY`, `ORDER BY`, `OFFSET`, `LIMIT` and
  `COUNT` (see `woorql.algebra.Algebra` and `woorql.algebra.Order`)
- `INTERSECT`, `DIFFERENCE` and `UNION` with `KEY` or `KEY-VALUE` over two
  single-entity selects separated by `|` (`woorql.parser.Relation`,
  `woorql.parser.RelationType`)
- `JOIN (entity_a:key, entity_b:key) select | select`

WHERE clauses are parsed into `woorql.clauses.Clause` values; a clause that
cannot be understood becomes `Clause.error()` rather than failing the whole
query.

## Values

Map values are parsed into `woorql.types.Types`. The parser recognises
integers, floats, precise decimals (suffix `P`, as in `12.5P`), UUIDs,
booleans, `nil`, characters (`'c'`), quoted strings with `\t \r \n \\ \"`
escapes, ISO 8601 date-times with a time zone, vectors (`[...]`) and nested
maps (`{...}`).

`Types.to_hash` hashes a value with bcrypt (Hash and Nil values cannot be
hashed); this is how encrypted fields are stored. `Types.compare` gives the
partial ordering used between values, returning `None` where two kinds do
not compare.

The low-level readers in `woorql.values` work on a `CharStream` and can be
used on their own, for example `read_map(CharStream("{a: 1,}"))`.

## Responses

`woorql.tx` holds the transaction responses: `TxResponse`, built with
`from_create`, `from_insert`, `from_delete_or_evict` or `from_update`, and
rendered with `TxResponse.write`.

`woorql.responses` holds query responses (`Response` with a `ResponseKind`,
and `CountResponse`), error responses (`ErrorResponse`) and the entity
history request (`EntityHistoryInfo`). `Response.hash` and `Response.parse`
carry out the two sides of a hash join between query results, and
`Response.to_string` renders a response as RON.

## What this package does not do

`woorql` only parses queries and describes responses. It has no server, no
command-line tool and no storage: it does not execute queries, keep
entities or their history, or answer requests. Responses are rendered as
RON only; there is no JSON output.