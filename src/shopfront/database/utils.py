"""Query helpers over the Supabase (PostgREST) client."""

import logging
from typing import Any
from uuid import UUID

from supabase import Client

logger = logging.getLogger(__name__)

Row = dict[str, Any]


def _first(rows: list[Row] | None) -> Row | None:
    return rows[0] if rows else None


class SupabaseQueryBuilder:
    """
    Thin row-level API used by the services.

    Every method issues one PostgREST request and returns plain dict rows.
    UUIDs are sent as strings. Errors from the client propagate unchanged.

    Example:
        >>> db = SupabaseQueryBuilder(client)
        >>> product = db.get_by_id("products", product_id)
        >>> db.update_record("products", product_id, {"stock": product["stock"] - 1})
    """

    def __init__(self, client: Client) -> None:
        self.client = client

    def _select(self, table: str, columns: str, filters: dict[str, Any] | None = None):
        query = self.client.table(table).select(columns)
        for field, value in (filters or {}).items():
            query = query.eq(field, value)
        return query

    def get_by_id(self, table: str, record_id: UUID | str, columns: str = "*") -> Row | None:
        """Return the row whose ``id`` matches, or None."""
        return _first(self._select(table, columns, {"id": str(record_id)}).execute().data)

    def get_by_field(self, table: str, field: str, value: Any, columns: str = "*") -> Row | None:
        """
        Return the first row where ``field`` equals ``value``, or None.

        Example:
            >>> db.get_by_field("customers", "email", "jane@example.com")
        """
        return _first(self._select(table, columns, {field: value}).execute().data)

    def list_records(
        self,
        table: str,
        columns: str = "*",
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        order_desc: bool = True,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Row]:
        """
        Select rows matching every ``filters`` equality.

        Args:
            table: Table name
            columns: PostgREST column list
            filters: Column/value pairs, combined with AND
            order_by: Sort column (descending unless ``order_desc`` is False)
            limit: Page size; ``offset`` applies only when a limit is given
            offset: Rows to skip

        Example:
            >>> db.list_records("categories", filters={"parent_id": str(parent_id)},
            ...                 order_by="name", order_desc=False)
        """
        query = self._select(table, columns, filters)
        if order_by:
            query = query.order(order_by, desc=order_desc)
        if limit is not None:
            query = query.range(offset, offset + limit - 1)
        return query.execute().data

    def insert_record(self, table: str, data: Row) -> Row | None:
        """Insert one row and return it as stored."""
        return _first(self.client.table(table).insert(data).execute().data)

    def insert_records(self, table: str, records: list[Row]) -> list[Row]:
        """
        Insert several rows in one request.

        PostgREST runs a bulk insert as a single statement, so the rows are
        written together or not at all. An empty list sends nothing.
        """
        if not records:
            return []
        try:
            return self.client.table(table).insert(records).execute().data
        except Exception as e:
            logger.error(
                f"Bulk insert into {table} failed: {e}",
                extra={"table": table, "row_count": len(records)},
            )
            raise

    def update_record(self, table: str, record_id: UUID | str, data: Row) -> Row | None:
        """Apply ``data`` to the row with this ``id``; None when no row matched."""
        response = self.client.table(table).update(data).eq("id", str(record_id)).execute()
        return _first(response.data)
