# sysquery

Run SQL against SQLite, keep the most recent results of each scheduled
query in a small key-value store, and find out which rows changed between
runs.

## Install

    pip install sysquery

For the tests:

    pip install "sysquery[test]"
    pytest

## What is in the package

- `sysquery.sqlite_util`
  - `create_db()` opens a fresh in-memory SQLite database in autocommit mode.
  - `query(sql, db=None)` runs every statement in `sql` and returns all rows
    produced, as a list of dictionaries that map column names to text.
    `NULL` becomes `""`. Without `db` it uses a fresh in-memory database and
    closes it afterwards. A failing statement raises `SQLiteError`, whose
    `code` attribute holds the result code.
  - `SQL(sql, db=None)` runs a query without raising. It offers `rows()`,
    `ok()` and `message()`.
  - `string_for_sqlite_return_code(code)` describes a SQLite result code.
- `sysquery.results`
  - `diff(old, new)` returns a `DiffResults` with the rows `added` and the
    rows `removed`.
  - It also turns rows, result sets, `DiffResults`,
    `HistoricalQueryResults` and `ScheduledQueryLogItem` objects into trees
    and compact JSON, with the `serialize_*` functions.
  - Rows and historical results can be read back with the `deserialize_*`
    functions.
  - `serialize_scheduled_query_log_item_as_events_json(item)` writes one JSON
    document per line, one for each added or removed row, tagged with its
    `action`.
  - Malformed input raises `ResultsError`.
- `sysquery.db_handle`
  - `DBHandle(path, in_memory=False)` is a key-value store split into the
    domains `configurations`, `queries` and `events`, which are also exported
    as `CONFIGURATIONS`, `QUERIES`, `EVENTS` and `DOMAINS`. On disk it lives
    in a SQLite file inside the directory `path`, created when missing.
  - It has the methods `get`, `put`, `delete`, `scan` and `close`, and works
    as a context manager.
  - `get` on a missing key, an unknown domain or a closed handle raises
    `DatabaseError`.
  - `get_instance(path, in_memory)` returns one shared handle, built from the
    arguments of the first call.
- `sysquery.query`
  - `Query` wraps a `ScheduledQuery` (`name`, `query`, `interval`).
  - `add_new_results(query_data, unix_time, db=None, calculate_diff=True)`
    stores a new run and returns the diff against the previous one, or
    `None` when `calculate_diff` is false.
  - `get_current_results`, `get_historical_query_results`,
    `is_query_name_in_database` and `Query.get_stored_query_names` read back
    what is stored.
  - A query with nothing stored raises `QueryNameNotFoundError`.
  - Without a `db` argument every method uses `get_instance()`.
- `sysquery.text.split(s, delim=" \t")` splits text on any of the delimiter
  characters, drops empty pieces and trims the rest.
- `sysquery.system` offers `get_hostname()`, `get_ascii_time()` and
  `get_unix_time()`.
- `sysquery.md5.MD5` is an MD5 digester with `digest_string`,
  `digest_memory`, `digest_file`, `update` and `hexdigest`.

## Example

```python
from sysquery.db_handle import DBHandle
from sysquery.query import Query, ScheduledQuery
from sysquery.results import diff

old = [{"username": "mike", "age": "23"}]
new = [{"username": "mike", "age": "23"}, {"username": "joe", "age": "25"}]

changes = diff(old, new)
print(changes.added)    # [{'username': 'joe', 'age': '25'}]
print(changes.removed)  # []

with DBHandle(in_memory=True) as db:
    users = Query(ScheduledQuery(name="users", query="SELECT 1", interval=60))
    users.add_new_results(old, 1000, db)
    print(users.add_new_results(new, 1060, db).added)
    print(users.get_current_results(db))
```

## What it does not do

- It reads no configuration file; scheduled queries are built by hand as
  `ScheduledQuery` objects.
- It runs nothing on a schedule, and it has no command-line program or
  daemon.
- Queries run against plain SQLite. No tables describing the operating
  system are provided.