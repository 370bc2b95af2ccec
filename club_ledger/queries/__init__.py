"""Dashboard query package."""

from club_ledger.queries.executor import QueryExecutor

__all__ = ["QueryExecutor"]
