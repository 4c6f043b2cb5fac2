"""Unit tests for SessionManager (refresh-token issue, rotation and revocation)."""

import pytest

from common.auth.exceptions import InvalidTokenError, TokenError
from travel_auth.auth.services.session_manager import hash_refresh_token


async def _insert_account(memory_store, **fields):
    account = {"email": "a@x.com", "passwordHash": "digest", **fields}
    await memory_store.insert(account)
    return account


class TestCreateSession:
    @pytest.mark.asyncio
    async def test_issues_pair_and_stores_hash(self, session_manager, memory_store, jwt_auth):
        account = await _insert_account(memory_store)

        tokens = await session_manager.create_session(account)

        claims = await jwt_auth.verify_access_token(tokens["accessToken"])
        assert claims["sub"] == str(account["_id"])
        stored = memory_store.docs[account["_id"]]["refreshTokens"]
        assert stored == [hash_refresh_token(tokens["refreshToken"])]
        assert tokens["refreshToken"] not in stored

    @pytest.mark.asyncio
    async def test_list_never_exceeds_cap(self, session_manager, memory_store):
        account = await _insert_account(memory_store)

        issued = [await session_manager.create_session(account) for _ in range(6)]

        stored = memory_store.docs[account["_id"]]["refreshTokens"]
        assert len(stored) == 5
        assert hash_refresh_token(issued[0]["refreshToken"]) not in stored
        assert stored[-1] == hash_refresh_token(issued[-1]["refreshToken"])

    @pytest.mark.asyncio
    async def test_evicted_token_cannot_refresh(self, session_manager, memory_store):
        account = await _insert_account(memory_store)
        issued = [await session_manager.create_session(account) for _ in range(6)]

        with pytest.raises(InvalidTokenError):
            await session_manager.rotate_session(issued[0]["refreshToken"])


class TestRotateSession:
    @pytest.mark.asyncio
    async def test_rotation_replaces_token(self, session_manager, memory_store):
        account = await _insert_account(memory_store)
        tokens = await session_manager.create_session(account)

        rotated = await session_manager.rotate_session(tokens["refreshToken"])

        assert rotated["refreshToken"] != tokens["refreshToken"]
        stored = memory_store.docs[account["_id"]]["refreshTokens"]
        assert stored == [hash_refresh_token(rotated["refreshToken"])]

    @pytest.mark.asyncio
    async def test_reuse_is_rejected(self, session_manager, memory_store):
        account = await _insert_account(memory_store)
        tokens = await session_manager.create_session(account)
        await session_manager.rotate_session(tokens["refreshToken"])

        with pytest.raises(InvalidTokenError):
            await session_manager.rotate_session(tokens["refreshToken"])

    @pytest.mark.asyncio
    async def test_other_sessions_survive_rotation(self, session_manager, memory_store):
        account = await _insert_account(memory_store)
        phone = await session_manager.create_session(account)
        laptop = await session_manager.create_session(account)

        await session_manager.rotate_session(phone["refreshToken"])

        stored = memory_store.docs[account["_id"]]["refreshTokens"]
        assert hash_refresh_token(laptop["refreshToken"]) in stored

    @pytest.mark.asyncio
    async def test_disabled_account(self, session_manager, memory_store):
        account = await _insert_account(memory_store)
        tokens = await session_manager.create_session(account)
        memory_store.docs[account["_id"]]["isActive"] = False

        with pytest.raises(InvalidTokenError):
            await session_manager.rotate_session(tokens["refreshToken"])

    @pytest.mark.asyncio
    async def test_access_token_cannot_refresh(self, session_manager, memory_store):
        account = await _insert_account(memory_store)
        tokens = await session_manager.create_session(account)

        with pytest.raises(TokenError):
            await session_manager.rotate_session(tokens["accessToken"])


class TestRevokeSession:
    @pytest.mark.asyncio
    async def test_revoke_removes_token(self, session_manager, memory_store):
        account = await _insert_account(memory_store)
        tokens = await session_manager.create_session(account)

        assert await session_manager.revoke_session(tokens["refreshToken"]) is True
        assert memory_store.docs[account["_id"]]["refreshTokens"] == []

        with pytest.raises(InvalidTokenError):
            await session_manager.rotate_session(tokens["refreshToken"])

    @pytest.mark.asyncio
    async def test_revoke_twice(self, session_manager, memory_store):
        account = await _insert_account(memory_store)
        tokens = await session_manager.create_session(account)

        await session_manager.revoke_session(tokens["refreshToken"])

        assert await session_manager.revoke_session(tokens["refreshToken"]) is False

    @pytest.mark.asyncio
    async def test_revoke_garbage(self, session_manager):
        assert await session_manager.revoke_session("garbage") is False

    @pytest.mark.asyncio
    async def test_revoke_all(self, session_manager, memory_store):
        account = await _insert_account(memory_store)
        for _ in range(3):
            await session_manager.create_session(account)

        await session_manager.revoke_all_sessions(str(account["_id"]))

        assert memory_store.docs[account["_id"]]["refreshTokens"] == []
