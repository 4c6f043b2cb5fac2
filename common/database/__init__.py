"""
Database module - Generic async MongoDB connection using Motor.

Usage:
    from common.database import MongoDB, set_main_database, get_main_database

    db = MongoDB()
    await db.connect(uri, database_name)
    set_main_database(db)

    collection = get_main_database().get_collection("customers")
"""

from common.database.mongodb import (
    MongoDB,
    StoreUnavailableError,
    mask_uri,
    # Singleton management
    set_main_database,
    get_main_database,
)

__all__ = [
    "MongoDB",
    "StoreUnavailableError",
    "mask_uri",
    # Singleton management
    "set_main_database",
    "get_main_database",
]
