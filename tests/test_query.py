import time

import pytest

from sysquery.db_handle import QUERIES, DBHandle
from sysquery.query import (
    QUERY_NAME_NOT_FOUND_ERROR,
    Query,
    QueryNameNotFoundError,
    ScheduledQuery,
)
from sysquery.results import HistoricalQueryResults, diff

SERIALIZED_ROW = {"foo": "bar", "meaning_of_life": "42"}
HISTORICAL_JSON = (
    '{"mostRecentResults":{"2":[{"foo":"bar","meaning_of_life":"42"},'
    '{"foo":"bar","meaning_of_life":"42"}]}}\n'
)
HISTORICAL = HistoricalQueryResults(most_recent_results=(2, [SERIALIZED_ROW, SERIALIZED_ROW]))

EXPECTED_RESULTS = [
    {"username": "mike", "age": "23"},
    {"username": "matt", "age": "24"},
]

RESULT_STREAM = [
    [
        {"username": "mike", "age": "23"},
        {"username": "matt", "age": "24"},
        {"username": "joe", "age": "25"},
    ],
    [
        {"username": "mike", "age": "23"},
        {"username": "matt", "age": "27"},
        {"username": "joe", "age": "25"},
    ],
    [
        {"username": "mike", "age": "23"},
        {"username": "joe", "age": "25"},
    ],
]


def scheduled_query():
    return ScheduledQuery(
        name="foobartest",
        query="SELECT filename FROM fs WHERE path = '/bin' ORDER BY filename",
        interval=5,
    )


@pytest.fixture
def db(tmp_path):
    handle = DBHandle(str(tmp_path / "querytests"))
    yield handle
    handle.close()


def test_get_query_name():
    sq = scheduled_query()
    assert Query(sq).name == sq.name


def test_get_query():
    sq = scheduled_query()
    assert Query(sq).query == sq.query


def test_get_interval():
    sq = scheduled_query()
    assert Query(sq).interval == sq.interval


def test_private_members():
    sq = scheduled_query()
    assert Query(sq).scheduled_query == sq


def test_add_and_get_current_results(db):
    cf = Query(scheduled_query())
    first = cf.add_new_results(EXPECTED_RESULTS, int(time.time()), db, calculate_diff=False)
    assert first is None
    assert cf.get_current_results(db) == EXPECTED_RESULTS
    for result in RESULT_STREAM:
        historical = cf.get_historical_query_results(db)
        changes = cf.add_new_results(result, int(time.time()), db, calculate_diff=True)
        assert changes == diff(historical.most_recent_results[1], result)
        assert cf.get_current_results(db) == result


def test_first_diff_in_stream(db):
    cf = Query(scheduled_query())
    cf.add_new_results(EXPECTED_RESULTS, 10, db)
    changes = cf.add_new_results(RESULT_STREAM[0], 11, db)
    assert changes.added == [{"username": "joe", "age": "25"}]
    assert changes.removed == []


def test_add_new_results_without_history_diffs_against_nothing(db):
    cf = Query(scheduled_query())
    changes = cf.add_new_results(EXPECTED_RESULTS, 7, db)
    assert changes.added == EXPECTED_RESULTS
    assert changes.removed == []
    assert cf.get_historical_query_results(db).most_recent_results == (7, EXPECTED_RESULTS)


def test_get_historical_query_results(db):
    sq = scheduled_query()
    db.put(QUERIES, sq.name, HISTORICAL_JSON)
    assert Query(sq).get_historical_query_results(db) == HISTORICAL


def test_query_name_not_found_in_db(db):
    sq = scheduled_query()
    sq.name = "not_a_real_query"
    with pytest.raises(QueryNameNotFoundError) as info:
        Query(sq).get_historical_query_results(db)
    assert str(info.value) == "query name not found in database"
    assert str(info.value) == QUERY_NAME_NOT_FOUND_ERROR


def test_is_query_name_in_database(db):
    sq = scheduled_query()
    cf = Query(sq)
    assert cf.is_query_name_in_database(db) is False
    db.put(QUERIES, sq.name, HISTORICAL_JSON)
    assert cf.is_query_name_in_database(db) is True


def test_get_stored_query_names(db):
    sq = scheduled_query()
    db.put(QUERIES, sq.name, HISTORICAL_JSON)
    assert sq.name in Query.get_stored_query_names(db)


def test_get_current_results(db):
    sq = scheduled_query()
    db.put(QUERIES, sq.name, HISTORICAL_JSON)
    assert Query(sq).get_current_results(db) == HISTORICAL.most_recent_results[1]


def test_get_current_results_missing_raises(db):
    with pytest.raises(QueryNameNotFoundError):
        Query(scheduled_query()).get_current_results(db)