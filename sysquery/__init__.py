"""Run SQL with SQLite, store scheduled query results and diff them between runs."""

__version__ = "0.1.0"