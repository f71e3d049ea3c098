"""Query result sets: diffing and JSON serialization."""

from __future__ import annotations

import json
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable

from .sqlite_util import QueryData, Row

__all__ = [
    "ResultsError",
    "DiffResults",
    "HistoricalQueryResults",
    "ScheduledQueryLogItem",
    "serialize_row",
    "serialize_row_json",
    "deserialize_row",
    "deserialize_row_json",
    "serialize_query_data",
    "serialize_diff_results",
    "serialize_diff_results_json",
    "diff",
    "serialize_historical_query_results",
    "serialize_historical_query_results_json",
    "deserialize_historical_query_results",
    "deserialize_historical_query_results_json",
    "serialize_scheduled_query_log_item",
    "serialize_scheduled_query_log_item_json",
    "serialize_event",
    "serialize_scheduled_query_log_item_as_events",
    "serialize_scheduled_query_log_item_as_events_json",
]

_INTEGER = re.compile(r"[+-]?[0-9]+")


class ResultsError(ValueError):
    """Raised when serialized results cannot be read back."""


@dataclass
class DiffResults:
    """Rows added and removed between two result sets."""

    added: QueryData = field(default_factory=list)
    removed: QueryData = field(default_factory=list)


@dataclass
class HistoricalQueryResults:
    """The most recent execution of a scheduled query: (unix time, rows)."""

    most_recent_results: tuple[int, QueryData] = field(default_factory=lambda: (0, []))


@dataclass
class ScheduledQueryLogItem:
    """A log record produced when a scheduled query sees a change."""

    diff_results: DiffResults = field(default_factory=DiffResults)
    name: str = ""
    hostname: str = ""
    calendar_time: str = ""
    unix_time: int = 0


def _dumps(tree: Any) -> str:
    text = json.dumps(tree, separators=(",", ":"), ensure_ascii=False)
    return text.replace("/", "\\/") + "\n"


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError) as exc:
        raise ResultsError(str(exc)) from exc


def _children(node: Any) -> list[tuple[str, Any]]:
    if isinstance(node, dict):
        return list(node.items())
    if isinstance(node, list):
        return [("", child) for child in node]
    return []


def _text(node: Any) -> str:
    if isinstance(node, str):
        return node
    if isinstance(node, bool):
        return "true" if node else "false"
    if node is None:
        return "null"
    if isinstance(node, (dict, list)):
        return ""
    return json.dumps(node)


def _row_key(row: Row) -> list[tuple[str, str]]:
    return sorted(row.items())


# Rows


def serialize_row(row: Row) -> dict[str, str]:
    """Return a row as a tree with its columns in sorted order."""
    return {key: str(value) for key, value in sorted(row.items())}


def serialize_row_json(row: Row) -> str:
    """Return a row as compact JSON."""
    return _dumps(serialize_row(row))


def deserialize_row(tree: Any) -> Row:
    """Build a row from a tree, ignoring unnamed children."""
    return {key: _text(child) for key, child in _children(tree) if key}


def deserialize_row_json(text: str) -> Row:
    """Build a row from JSON; raises ResultsError on malformed input."""
    return deserialize_row(_loads(text))


# Result sets


def serialize_query_data(query_data: Iterable[Row]) -> list[dict[str, str]]:
    """Return a result set as a list of row trees."""
    return [serialize_row(row) for row in query_data]


def serialize_diff_results(diff_results: DiffResults) -> dict[str, Any]:
    """Return diff results as a tree with ``added`` and ``removed``."""
    return {
        "added": serialize_query_data(diff_results.added),
        "removed": serialize_query_data(diff_results.removed),
    }


def serialize_diff_results_json(diff_results: DiffResults) -> str:
    """Return diff results as compact JSON."""
    return _dumps(serialize_diff_results(diff_results))


def diff(old: QueryData, new: QueryData) -> DiffResults:
    """Compare two result sets.

    Rows of ``new`` absent from ``old`` are added, in their order. Rows of
    ``old`` not matched by a row of ``new`` are removed, in row order.
    """
    result = DiffResults()
    overlap: Counter = Counter()
    for row in new:
        if row in old:
            overlap[tuple(_row_key(row))] += 1
        else:
            result.added.append(row)

    for row in sorted(old, key=_row_key):
        key = tuple(_row_key(row))
        if overlap[key] > 0:
            overlap[key] -= 1
        else:
            result.removed.append(row)
    return result


# Historical results


def serialize_historical_query_results(results: HistoricalQueryResults) -> dict[str, Any]:
    """Return historical results keyed by execution time."""
    unix_time, rows = results.most_recent_results
    return {"mostRecentResults": {str(unix_time): serialize_query_data(rows)}}


def serialize_historical_query_results_json(results: HistoricalQueryResults) -> str:
    """Return historical results as compact JSON."""
    return _dumps(serialize_historical_query_results(results))


def deserialize_historical_query_results(tree: Any) -> HistoricalQueryResults:
    """Build historical results from a tree; raises ResultsError if malformed."""
    if not isinstance(tree, dict) or "mostRecentResults" not in tree:
        raise ResultsError("No such node (mostRecentResults)")
    results = HistoricalQueryResults()
    for key, rows_node in _children(tree["mostRecentResults"]):
        if not _INTEGER.fullmatch(key):
            raise ResultsError(f"bad lexical cast: {key!r} is not an integer")
        rows = [
            {name: _text(value) for name, value in _children(each)}
            for _, each in _children(rows_node)
        ]
        results.most_recent_results = (int(key), rows)
    return results


def deserialize_historical_query_results_json(text: str) -> HistoricalQueryResults:
    """Build historical results from JSON; raises ResultsError if malformed."""
    return deserialize_historical_query_results(_loads(text))


# Scheduled query log items


def serialize_scheduled_query_log_item(item: ScheduledQueryLogItem) -> dict[str, Any]:
    """Return a log item as a tree."""
    return {
        "diffResults": serialize_diff_results(item.diff_results),
        "name": item.name,
        "hostname": item.hostname,
        "calendarTime": item.calendar_time,
        "unixTime": str(item.unix_time),
    }


def serialize_scheduled_query_log_item_json(item: ScheduledQueryLogItem) -> str:
    """Return a log item as compact JSON."""
    return _dumps(serialize_scheduled_query_log_item(item))


def serialize_event(item: ScheduledQueryLogItem, event: Any) -> dict[str, Any]:
    """Return one changed row as an event tree carrying the item's metadata."""
    return {
        "name": item.name,
        "hostname": item.hostname,
        "calendarTime": item.calendar_time,
        "unixTime": str(item.unix_time),
        "columns": {key: _text(value) for key, value in _children(event)},
    }


def serialize_scheduled_query_log_item_as_events(
    item: ScheduledQueryLogItem,
) -> list[dict[str, Any]]:
    """Return one event per added or removed row, tagged with its action."""
    events = []
    for action, rows in serialize_diff_results(item.diff_results).items():
        for row in rows:
            event = serialize_event(item, row)
            event["action"] = action
            events.append(event)
    return events


def serialize_scheduled_query_log_item_as_events_json(item: ScheduledQueryLogItem) -> str:
    """Return the item's events as JSON, one document per line."""
    return "".join(
        _dumps(event) for event in serialize_scheduled_query_log_item_as_events(item)
    )