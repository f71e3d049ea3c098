import pytest

from sysquery.sqlite_util import (
    SQL,
    SQLiteError,
    create_db,
    query,
    string_for_sqlite_return_code,
)

TEST_QUERY = "SELECT * FROM test_table"


@pytest.fixture
def sample_db():
    db = create_db()
    for statement in (
        "CREATE TABLE test_table (username varchar(30) primary key, age int)",
        "INSERT INTO test_table VALUES ('mike', 23)",
        "INSERT INTO test_table VALUES ('matt', 24)",
    ):
        db.execute(statement)
    yield db
    db.close()


def expected_results():
    return [
        {"username": "mike", "age": "23"},
        {"username": "matt", "age": "24"},
    ]


def result_stream():
    return [
        (
            "INSERT INTO test_table (username, age) VALUES ('joe', 25)",
            [
                {"username": "mike", "age": "23"},
                {"username": "matt", "age": "24"},
                {"username": "joe", "age": "25"},
            ],
        ),
        (
            "UPDATE test_table SET age = 27 WHERE username = 'matt'",
            [
                {"username": "mike", "age": "23"},
                {"username": "matt", "age": "27"},
                {"username": "joe", "age": "25"},
            ],
        ),
        (
            "DELETE FROM test_table WHERE username = 'matt' AND age = 27",
            [
                {"username": "mike", "age": "23"},
                {"username": "joe", "age": "25"},
            ],
        ),
    ]


def test_simple_query_execution(sample_db):
    assert query(TEST_QUERY, sample_db) == expected_results()


def test_aggregate_query(sample_db):
    assert query("SELECT count(*) AS total FROM test_table", sample_db) == [
        {"total": "2"}
    ]


def test_result_stream(sample_db):
    for statement, expected in result_stream():
        assert query(statement, sample_db) == []
        assert query(TEST_QUERY, sample_db) == expected


def test_query_without_db_uses_fresh_database():
    assert query("SELECT 'x' AS v") == [{"v": "x"}]


def test_multiple_statements_collect_rows():
    db = create_db()
    try:
        rows = query(
            "CREATE TABLE t (a); INSERT INTO t VALUES (1); "
            "INSERT INTO t VALUES ('two'); SELECT a FROM t;",
            db,
        )
    finally:
        db.close()
    assert rows == [{"a": "1"}, {"a": "two"}]


def test_semicolon_inside_string_literal():
    assert query("SELECT 'a;b' AS v;") == [{"v": "a;b"}]


def test_bad_query_raises(sample_db):
    with pytest.raises(SQLiteError) as info:
        query("SELECT * FROM no_such_table", sample_db)
    assert info.value.code == 1


def test_return_code_strings():
    assert string_for_sqlite_return_code(0) == "SQLITE_OK: Successful result"
    assert (
        string_for_sqlite_return_code(101)
        == "SQLITE_DONE: sqlite3_step() has finished executing"
    )
    assert (
        string_for_sqlite_return_code(42)
        == "Error: 42 is not a valid SQLite result code"
    )


def test_sql_simple_execution():
    sql = SQL("SELECT 1 AS one")
    assert sql.ok()
    assert sql.message() == string_for_sqlite_return_code(0)
    assert len(sql.rows()) == 1
    assert sql.rows() == [{"one": "1"}]


def test_sql_with_given_db(sample_db):
    sql = SQL(TEST_QUERY, sample_db)
    assert sql.ok()
    assert sql.rows() == expected_results()


def test_sql_failure_reports_status():
    sql = SQL("SELECT * FROM missing_table")
    assert not sql.ok()
    assert sql.message() == string_for_sqlite_return_code(1)
    assert sql.rows() == []