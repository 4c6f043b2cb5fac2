"""Shared test fixtures for the travel accounts backend tests."""

import copy
from datetime import datetime, timezone
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

from common.auth.base import FederatedIdentity, IdentityVerifier
from common.auth.exceptions import InvalidTokenError
from common.auth.jwt_auth import JWTAuth
from common.utils.password import PasswordHasher
from travel_auth.auth.services.account_store import (
    AccountStore,
    EmailAlreadyRegisteredError,
    MissingAuthMethodError,
    to_object_id,
)
from travel_auth.auth.services.session_manager import SessionManager

TEST_JWT_SECRET = "test-access-secret"
TEST_REFRESH_SECRET = "test-refresh-secret"


# ─────────────────────────────────────────────────────────────────
# Test doubles
# ─────────────────────────────────────────────────────────────────


class InMemoryAccountStore(AccountStore):
    """AccountStore keeping documents in a dict, with the same semantics as the Mongo one."""

    def __init__(self):
        super().__init__(get_collection=lambda: None)
        self.docs = {}

    async def ensure_indexes(self) -> None:
        return None

    async def find_by_email(self, email):
        if not email:
            return None
        email = email.strip().lower()
        for doc in self.docs.values():
            if doc["email"] == email:
                return copy.deepcopy(doc)
        return None

    async def find_by_id(self, account_id):
        oid = to_object_id(account_id)
        if oid is None or oid not in self.docs:
            return None
        return copy.deepcopy(self.docs[oid])

    async def insert(self, account):
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

        if any(doc["email"] == account["email"] for doc in self.docs.values()):
            raise EmailAlreadyRegisteredError("Email already registered")

        account["_id"] = ObjectId()
        self.docs[account["_id"]] = copy.deepcopy(account)
        return str(account["_id"])

    def _get(self, account_id) -> Optional[dict]:
        return self.docs.get(to_object_id(account_id))

    async def update(self, account_id, patch):
        doc = self._get(account_id)
        if doc is None:
            return False
        doc.update(patch)
        doc["updatedAt"] = datetime.now(timezone.utc)
        return True

    async def record_login(self, account_id):
        now = datetime.now(timezone.utc)
        doc = self._get(account_id)
        if doc is not None:
            doc["lastLoginAt"] = now
        return now

    async def link_federated_uid(self, account_id, firebase_uid):
        doc = self._get(account_id)
        if doc is None or doc.get("firebaseUid"):
            return False
        doc["firebaseUid"] = firebase_uid
        return True

    async def push_refresh_token(self, account_id, token_hash, cap=AccountStore.DEFAULT_REFRESH_TOKEN_CAP):
        doc = self._get(account_id)
        if doc is not None:
            doc["refreshTokens"] = (doc["refreshTokens"] + [token_hash])[-cap:]

    async def remove_refresh_token(self, account_id, token_hash):
        doc = self._get(account_id)
        if doc is None or token_hash not in doc["refreshTokens"]:
            return False
        doc["refreshTokens"] = [t for t in doc["refreshTokens"] if t != token_hash]
        return True

    async def rotate_refresh_token(self, account_id, old_hash, new_hash, cap=AccountStore.DEFAULT_REFRESH_TOKEN_CAP):
        doc = self._get(account_id)
        if doc is None or doc.get("isActive") is False or old_hash not in doc["refreshTokens"]:
            return False
        remaining = [t for t in doc["refreshTokens"] if t != old_hash]
        doc["refreshTokens"] = (remaining + [new_hash])[-cap:]
        return True

    async def clear_refresh_tokens(self, account_id):
        doc = self._get(account_id)
        if doc is not None:
            doc["refreshTokens"] = []


class StubIdentityVerifier(IdentityVerifier):
    """Returns a fixed identity, or rejects every token when none is set."""

    def __init__(self, identity: Optional[FederatedIdentity] = None):
        self.identity = identity
        self.tokens = []

    async def verify(self, id_token: str) -> FederatedIdentity:
        self.tokens.append(id_token)
        if self.identity is None:
            raise InvalidTokenError("Token rejected")
        return self.identity


# ─────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def sample_account_id():
    return str(ObjectId())


@pytest.fixture
def mock_collection():
    collection = AsyncMock()
    # Motor's find() returns a cursor synchronously (not a coroutine),
    # so use MagicMock for it. Async methods like find_one, insert_one,
    # update_one etc. stay as AsyncMock.
    collection.find = MagicMock()
    return collection


@pytest.fixture
def account_store_with_mock(mock_collection):
    return AccountStore(lambda: mock_collection)


@pytest.fixture
def memory_store():
    return InMemoryAccountStore()


@pytest.fixture
def jwt_auth():
    return JWTAuth(secret=TEST_JWT_SECRET, refresh_secret=TEST_REFRESH_SECRET)


@pytest.fixture
def password_hasher():
    # Minimum cost keeps the suite fast
    return PasswordHasher(rounds=4)


@pytest.fixture
def session_manager(jwt_auth, memory_store):
    return SessionManager(jwt_auth=jwt_auth, account_store=memory_store, max_sessions=5)


@pytest.fixture
def verified_identity():
    return FederatedIdentity(
        uid="firebase-uid-123",
        email="Traveler@Example.com",
        name="Jane Traveler",
        picture="https://example.com/jane.png",
        phone_number="+15551234567",
        email_verified=True,
    )


@pytest.fixture
def identity_verifier(verified_identity):
    return StubIdentityVerifier(verified_identity)


@pytest.fixture
def sample_account_doc(password_hasher):
    now = datetime.now(timezone.utc)
    return {
        "_id": ObjectId(),
        "email": "a@x.com",
        "fullName": "Alex Example",
        "phone": None,
        "photoUrl": None,
        "passwordHash": password_hasher.hash("Abcdef12"),
        "firebaseUid": None,
        "loginMethod": "password",
        "isActive": True,
        "refreshTokens": ["hash-1", "hash-2"],
        "lastLoginAt": None,
        "createdAt": now,
        "updatedAt": now,
    }
