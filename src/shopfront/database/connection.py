"""Supabase database connection management."""

import logging

from supabase import Client, create_client

from shopfront.config import Settings
from shopfront.database.utils import SupabaseQueryBuilder

logger = logging.getLogger(__name__)


class Database:
    """
    Owns the Supabase client for the lifetime of the application.

    Constructed once in the application lifespan, stored on ``app.state`` and
    handed to request handlers through the ``get_db`` dependency. The client
    is created on first use so that constructing the object never performs
    network I/O.

    Attributes:
        url: Supabase project URL
        key: Service role key (bypasses RLS; server-side use only)

    Example:
        >>> database = Database.from_settings(settings)
        >>> db = database.query_builder()
        >>> product = db.get_by_id("products", product_id)
        >>> database.close()
    """

    def __init__(self, url: str, key: str) -> None:
        self.url: str | None = url
        self.key = key
        self._client: Client | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(url=settings.supabase_url, key=settings.supabase_service_role_key)

    @property
    def client(self) -> Client:
        """
        Get the Supabase client, creating it on first access.

        Raises:
            RuntimeError: If the database has already been closed
        """
        if self._client is None:
            if self.url is None:
                raise RuntimeError("Database has been closed")
            logger.info("Creating Supabase client", extra={"supabase_url": self.url})
            self._client = create_client(self.url, self.key)
        return self._client

    def query_builder(self) -> SupabaseQueryBuilder:
        """Return a query builder bound to this database's client."""
        return SupabaseQueryBuilder(self.client)

    def close(self) -> None:
        """Release the client. Further use of this object raises ``RuntimeError``."""
        if self._client is not None:
            logger.info("Closing Supabase client")
        self._client = None
        self.url = None
