"""Database connection and query helpers."""

from fastapi import Request

from shopfront.database.connection import Database
from shopfront.database.utils import SupabaseQueryBuilder


def get_db(request: Request) -> SupabaseQueryBuilder:
    """FastAPI dependency returning a query builder for the app's database."""
    database: Database = request.app.state.db
    return database.query_builder()


__all__ = [
    "Database",
    "SupabaseQueryBuilder",
    "get_db",
]
