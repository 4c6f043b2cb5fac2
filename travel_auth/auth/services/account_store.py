"""
Customer account persistence.

Wraps the ``customers`` collection. Every refresh-token mutation is a single
atomic update keyed by account id, so concurrent refreshes from several
devices never lose each other's writes.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

logger = logging.getLogger(__name__)


class EmailAlreadyRegisteredError(ValueError):
    """An account with this email already exists."""


class MissingAuthMethodError(ValueError):
    """Account would have neither a password hash nor a federated UID."""


def to_object_id(account_id: Any) -> Optional[ObjectId]:
    """Convert an id to ObjectId, returning None for malformed values."""
    if isinstance(account_id, ObjectId):
        return account_id
    if isinstance(account_id, str) and ObjectId.is_valid(account_id):
        return ObjectId(account_id)
    return None


class AccountStore:
    """
    Credential store for customer accounts.

    The collection is resolved on every call, so operations raise
    StoreUnavailableError until the database connection is up.
    """

    DEFAULT_REFRESH_TOKEN_CAP = 5

    def __init__(self, get_collection: Callable[[], Any]):
        """
        Initialize AccountStore.

        Args:
            get_collection: Callable returning the Motor collection for accounts
        """
        self._get_collection = get_collection

    @property
    def _collection(self):
        return self._get_collection()

    async def ensure_indexes(self) -> None:
        """Create the unique email index and the federated UID lookup index."""
        collection = self._collection
        await collection.create_index("email", unique=True)
        # insert() stores firebaseUid as null, so only string UIDs are indexed
        await collection.create_index(
            "firebaseUid",
            partialFilterExpression={"firebaseUid": {"$type": "string"}},
        )
        logger.debug("Account indexes ensured")

    async def find_by_email(self, email: str) -> Optional[dict]:
        """Load an account by email (case-insensitive)."""
        if not email:
            return None
        return await self._collection.find_one({"email": email.strip().lower()})

    async def find_by_id(self, account_id: Any) -> Optional[dict]:
        """Load an account by id. Malformed ids return None."""
        oid = to_object_id(account_id)
        if oid is None:
            return None
        return await self._collection.find_one({"_id": oid})

    async def insert(self, account: Dict[str, Any]) -> str:
        """
        Create a new account document.

        The dict is completed in place with defaults and its new ``_id``.

        Args:
            account: Account fields; must carry email and passwordHash or firebaseUid

        Returns:
            The new account id as a string

        Raises:
            MissingAuthMethodError: Neither passwordHash nor firebaseUid given
            EmailAlreadyRegisteredError: Email is already taken
        """
        if not account.get("passwordHash") and not account.get("firebaseUid"):
            raise MissingAuthMethodError("Account needs a password or a federated identity")

        now = datetime.now(timezone.utc)
        defaults = {
            "fullName": None,
            "phone": None,
            "photoUrl": None,
            "passwordHash": None,
            "firebaseUid": None,
            "isActive": True,
            "refreshTokens": [],
            "lastLoginAt": None,
            "createdAt": now,
            "updatedAt": now,
        }
        for key, value in defaults.items():
            account.setdefault(key, value)
        account["email"] = account["email"].strip().lower()

        try:
            result = await self._collection.insert_one(account)
        except DuplicateKeyError:
            account.pop("_id", None)
            raise EmailAlreadyRegisteredError("Email already registered")

        account["_id"] = result.inserted_id
        logger.info(f"Account created: {result.inserted_id}")
        return str(result.inserted_id)

    async def update(self, account_id: Any, patch: Dict[str, Any]) -> bool:
        """
        Apply a ``$set`` patch to an account.

        Returns:
            True if an account matched
        """
        oid = to_object_id(account_id)
        if oid is None:
            return False

        result = await self._collection.update_one(
            {"_id": oid},
            {"$set": {**patch, "updatedAt": datetime.now(timezone.utc)}},
        )
        return result.matched_count > 0

    async def record_login(self, account_id: Any) -> datetime:
        """Update the account's last login timestamp and return it."""
        now = datetime.now(timezone.utc)
        await self._collection.update_one(
            {"_id": to_object_id(account_id)},
            {"$set": {"lastLoginAt": now, "updatedAt": now}},
        )
        return now

    async def link_federated_uid(self, account_id: Any, firebase_uid: str) -> bool:
        """
        Attach a federated UID to an account that has none yet.

        Returns:
            True if the UID was attached
        """
        result = await self._collection.update_one(
            {"_id": to_object_id(account_id), "firebaseUid": {"$in": [None, ""]}},
            {
                "$set": {
                    "firebaseUid": firebase_uid,
                    "updatedAt": datetime.now(timezone.utc),
                }
            },
        )
        if result.modified_count:
            logger.info(f"Federated identity linked to account {account_id}")
        return result.modified_count > 0

    async def push_refresh_token(
        self,
        account_id: Any,
        token_hash: str,
        cap: int = DEFAULT_REFRESH_TOKEN_CAP,
    ) -> None:
        """Append a refresh token hash, keeping only the newest ``cap`` entries."""
        await self._collection.update_one(
            {"_id": to_object_id(account_id)},
            {
                "$push": {"refreshTokens": {"$each": [token_hash], "$slice": -cap}},
                "$set": {"updatedAt": datetime.now(timezone.utc)},
            },
        )

    async def remove_refresh_token(self, account_id: Any, token_hash: str) -> bool:
        """
        Remove one refresh token hash.

        Returns:
            True if the hash was present
        """
        oid = to_object_id(account_id)
        if oid is None:
            return False

        result = await self._collection.update_one(
            {"_id": oid},
            {
                "$pull": {"refreshTokens": token_hash},
                "$set": {"updatedAt": datetime.now(timezone.utc)},
            },
        )
        return result.modified_count > 0

    async def rotate_refresh_token(
        self,
        account_id: Any,
        old_hash: str,
        new_hash: str,
        cap: int = DEFAULT_REFRESH_TOKEN_CAP,
    ) -> bool:
        """
        Replace ``old_hash`` with ``new_hash`` in one atomic update.

        The update only matches while ``old_hash`` is still stored, so of two
        concurrent rotations with the same token exactly one succeeds.

        Returns:
            False if the old token was not present (used, revoked or evicted)
        """
        oid = to_object_id(account_id)
        if oid is None:
            return False

        result = await self._collection.update_one(
            {"_id": oid, "isActive": {"$ne": False}, "refreshTokens": old_hash},
            [
                {
                    "$set": {
                        "refreshTokens": {
                            "$slice": [
                                {
                                    "$concatArrays": [
                                        {
                                            "$filter": {
                                                "input": "$refreshTokens",
                                                "cond": {"$ne": ["$$this", {"$literal": old_hash}]},
                                            }
                                        },
                                        [{"$literal": new_hash}],
                                    ]
                                },
                                -cap,
                            ]
                        },
                        "updatedAt": datetime.now(timezone.utc),
                    }
                }
            ],
        )
        return result.modified_count > 0

    async def clear_refresh_tokens(self, account_id: Any) -> None:
        """Revoke every refresh token of an account."""
        await self._collection.update_one(
            {"_id": to_object_id(account_id)},
            {"$set": {"refreshTokens": [], "updatedAt": datetime.now(timezone.utc)}},
        )
        logger.info(f"All refresh tokens revoked for account {account_id}")
