"""
Session management for customer authentication.

A session is an access/refresh token pair. Refresh tokens are tracked as
hashes in the account document's ``refreshTokens`` array, capped so that
only the newest sessions survive.
"""

import hashlib
import logging
from typing import Dict

from common.auth.exceptions import InvalidTokenError, TokenError
from common.auth.jwt_auth import JWTAuth
from travel_auth.auth.services.account_store import AccountStore

logger = logging.getLogger(__name__)


def hash_refresh_token(token: str) -> str:
    """SHA-256 hex digest stored in place of the raw refresh token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class SessionManager:
    """
    Issues, rotates and revokes sessions for accounts.
    """

    def __init__(
        self,
        jwt_auth: JWTAuth,
        account_store: AccountStore,
        max_sessions: int = AccountStore.DEFAULT_REFRESH_TOKEN_CAP,
    ):
        """
        Initialize SessionManager.

        Args:
            jwt_auth: Token issuer
            account_store: Store holding each account's refresh-token hashes
            max_sessions: Refresh tokens kept per account (oldest evicted first)
        """
        self._jwt_auth = jwt_auth
        self._account_store = account_store
        self.max_sessions = max_sessions

    async def create_session(self, account: dict) -> Dict[str, str]:
        """
        Issue a new token pair and persist the refresh token.

        Args:
            account: Account document (needs _id and email)

        Returns:
            dict with accessToken and refreshToken
        """
        account_id = str(account["_id"])

        access_token = await self._jwt_auth.create_access_token(account_id, account["email"])
        refresh_token = await self._jwt_auth.create_refresh_token(account_id)

        await self._account_store.push_refresh_token(
            account_id,
            hash_refresh_token(refresh_token),
            cap=self.max_sessions,
        )

        logger.info(f"Session created for account {account_id}")
        return {"accessToken": access_token, "refreshToken": refresh_token}

    async def rotate_session(self, refresh_token: str) -> Dict[str, str]:
        """
        Exchange a refresh token for a new token pair.

        The presented token must verify and still be stored for its account.
        It is replaced by the new one in a single store update.

        Raises:
            TokenError: For every rejection; callers must not tell the reasons apart
        """
        claims = await self._jwt_auth.verify_refresh_token(refresh_token)
        account_id = claims["sub"]

        account = await self._account_store.find_by_id(account_id)
        if not account or account.get("isActive") is False:
            raise InvalidTokenError("Refresh token not recognized")

        new_refresh = await self._jwt_auth.create_refresh_token(account_id)

        rotated = await self._account_store.rotate_refresh_token(
            account_id,
            hash_refresh_token(refresh_token),
            hash_refresh_token(new_refresh),
            cap=self.max_sessions,
        )
        if not rotated:
            logger.warning(f"Refresh token reuse or revoked token for account {account_id}")
            raise InvalidTokenError("Refresh token not recognized")

        new_access = await self._jwt_auth.create_access_token(account_id, account["email"])

        logger.info(f"Session rotated for account {account_id}")
        return {"accessToken": new_access, "refreshToken": new_refresh}

    async def revoke_session(self, refresh_token: str) -> bool:
        """
        Remove a refresh token from its account.

        Returns:
            True if a stored token was removed, False if the token did not
            verify or was already gone
        """
        try:
            claims = await self._jwt_auth.verify_refresh_token(refresh_token)
        except TokenError:
            return False

        removed = await self._account_store.remove_refresh_token(
            claims["sub"],
            hash_refresh_token(refresh_token),
        )
        if removed:
            logger.info(f"Session revoked for account {claims['sub']}")
        return removed

    async def revoke_all_sessions(self, account_id: str) -> None:
        """Remove every refresh token of an account."""
        await self._account_store.clear_refresh_tokens(account_id)
