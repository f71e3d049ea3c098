"""Historical on-disk storage of scheduled query results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .db_handle import QUERIES, DBHandle, get_instance
from .results import (
    DiffResults,
    HistoricalQueryResults,
    deserialize_historical_query_results_json,
    diff,
    serialize_historical_query_results_json,
)
from .sqlite_util import QueryData

__all__ = [
    "QUERY_NAME_NOT_FOUND_ERROR",
    "ScheduledQuery",
    "QueryNameNotFoundError",
    "Query",
]

QUERY_NAME_NOT_FOUND_ERROR = "query name not found in database"


@dataclass
class ScheduledQuery:
    """A query to run on a schedule, as named in the configuration."""

    name: str = ""
    query: str = ""
    interval: int = 0


class QueryNameNotFoundError(LookupError):
    """Raised when a scheduled query has no stored results."""

    def __init__(self, name: str) -> None:
        super().__init__(QUERY_NAME_NOT_FOUND_ERROR)
        self.name = name


def _resolve(db: Optional[DBHandle]) -> DBHandle:
    return db if db is not None else get_instance()


class Query:
    """Access to the stored results of one scheduled query.

    Every method takes an optional database handle; without one the shared
    handle from :func:`sysquery.db_handle.get_instance` is used.
    """

    def __init__(self, scheduled_query: ScheduledQuery) -> None:
        self.scheduled_query = scheduled_query

    @property
    def name(self) -> str:
        """Name of the scheduled query."""
        return self.scheduled_query.name

    @property
    def query(self) -> str:
        """SQL text of the scheduled query."""
        return self.scheduled_query.query

    @property
    def interval(self) -> int:
        """Interval of the scheduled query in seconds."""
        return self.scheduled_query.interval

    def get_historical_query_results(
        self, db: Optional[DBHandle] = None
    ) -> HistoricalQueryResults:
        """Load the stored results.

        Raises QueryNameNotFoundError when nothing is stored for this query.
        """
        db = _resolve(db)
        if not self.is_query_name_in_database(db):
            raise QueryNameNotFoundError(self.name)
        raw = db.get(QUERIES, self.name)
        return deserialize_historical_query_results_json(raw)

    @staticmethod
    def get_stored_query_names(db: Optional[DBHandle] = None) -> list[str]:
        """Names of every query with stored results."""
        return _resolve(db).scan(QUERIES)

    def is_query_name_in_database(self, db: Optional[DBHandle] = None) -> bool:
        """Whether results for this query are stored."""
        return self.name in self.get_stored_query_names(_resolve(db))

    def add_new_results(
        self,
        query_data: QueryData,
        unix_time: int,
        db: Optional[DBHandle] = None,
        calculate_diff: bool = True,
    ) -> Optional[DiffResults]:
        """Store a new execution's rows.

        Returns the difference from the previously stored rows, or None when
        ``calculate_diff`` is false.
        """
        db = _resolve(db)
        try:
            historical = self.get_historical_query_results(db)
        except QueryNameNotFoundError:
            historical = HistoricalQueryResults()
        changes = (
            diff(historical.most_recent_results[1], query_data)
            if calculate_diff
            else None
        )
        historical.most_recent_results = (unix_time, list(query_data))
        db.put(QUERIES, self.name, serialize_historical_query_results_json(historical))
        return changes

    def get_current_results(self, db: Optional[DBHandle] = None) -> QueryData:
        """Rows of the most recent stored execution."""
        return self.get_historical_query_results(db).most_recent_results[1]