"""
Generic async MongoDB connection manager.

Example:
    from common.database import MongoDB

    db = MongoDB()
    await db.connect(uri="mongodb://localhost:27017", database_name="hotelDB")

    customers = db.get_collection("customers")

Singleton access:
    from common.database.mongodb import set_main_database, get_main_database

    set_main_database(db)
    main_db = get_main_database()
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

logger = logging.getLogger(__name__)


class StoreUnavailableError(RuntimeError):
    """Raised when the database is used before a connection is established."""


# ─────────────────────────────────────────────────────────────────
# Singleton database instance
# ─────────────────────────────────────────────────────────────────

_main_database: Optional["MongoDB"] = None


def mask_uri(uri: str) -> str:
    """Strip credentials from a MongoDB URI for logging."""
    if "@" not in uri:
        return uri
    scheme, _, rest = uri.partition("://")
    host = rest.split("@")[-1]
    return f"{scheme}://***@{host}" if scheme else host


class MongoDB:
    """Generic MongoDB connection manager - works with any database."""

    def __init__(self):
        self._client: Optional[AsyncIOMotorClient] = None
        self._database_name: Optional[str] = None
        self._initialized: bool = False

    async def connect(
        self,
        uri: str,
        database_name: str,
        server_selection_timeout_ms: int = 5000,
    ) -> None:
        """
        Connect to MongoDB and verify the server answers.

        Args:
            uri: MongoDB connection string
            database_name: Name of the database to use
            server_selection_timeout_ms: How long to wait for a reachable server
        """
        logger.info(f"Connecting to MongoDB: {mask_uri(uri)}")
        logger.debug(f"Database name: {database_name}")

        try:
            self._client = AsyncIOMotorClient(
                uri,
                serverSelectionTimeoutMS=server_selection_timeout_ms,
                tz_aware=True,
            )
            self._database_name = database_name
            await self._client.admin.command("ping")
            self._initialized = True
            logger.info(f"Successfully connected to MongoDB database: {database_name}")
        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            if self._client:
                self._client.close()
            self._client = None
            self._database_name = None
            raise

    async def disconnect(self) -> None:
        """Close the MongoDB connection."""
        if self._client:
            logger.info(f"Disconnecting from MongoDB database: {self._database_name}")
            self._client.close()
            self._client = None
            self._database_name = None
            self._initialized = False
            logger.debug("MongoDB connection closed")

    @property
    def is_connected(self) -> bool:
        """Check if database is connected and initialized."""
        return self._initialized

    @property
    def database_name(self) -> Optional[str]:
        """Get the current database name."""
        return self._database_name

    @property
    def db(self) -> AsyncIOMotorDatabase:
        """Get the underlying Motor database instance."""
        if not self._initialized or not self._client or not self._database_name:
            raise StoreUnavailableError("Database not connected")
        return self._client[self._database_name]

    def get_collection(self, name: str):
        """
        Get a raw Motor collection.

        Raises:
            StoreUnavailableError: If connect() has not completed
        """
        if not self._initialized or not self._client or not self._database_name:
            logger.error("Attempted to get collection without database connection")
            raise StoreUnavailableError("Database not connected")
        return self._client[self._database_name][name]


# ─────────────────────────────────────────────────────────────────
# Singleton initialization and getters
# ─────────────────────────────────────────────────────────────────

def set_main_database(db: Optional["MongoDB"]) -> None:
    """
    Set the main database singleton from an existing MongoDB instance.

    Args:
        db: MongoDB instance to use as main database, or None to clear it
    """
    global _main_database
    _main_database = db
    logger.info("Main database singleton set" if db else "Main database singleton cleared")


def get_main_database() -> "MongoDB":
    """
    Get the main application database singleton.

    Raises:
        StoreUnavailableError: If database not initialized
    """
    if _main_database is None:
        raise StoreUnavailableError("Main database not initialized. Call set_main_database() first.")
    return _main_database
