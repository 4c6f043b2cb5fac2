"""
JWT token issuer for access and refresh tokens.

Access tokens are short-lived and stateless. Refresh tokens are signed with
a separate secret and carry a random ``jti`` so that every issued token is
unique; whether a refresh token is still usable is decided by the caller's
store, not here.

Example:
    auth = JWTAuth(
        secret=settings.JWT_SECRET,
        refresh_secret=settings.REFRESH_TOKEN_SECRET,
        access_token_expire_minutes=60,
    )

    access = await auth.create_access_token(user_id, "a@x.com")
    claims = await auth.verify_access_token(access)
    print(claims["sub"])  # user_id
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Dict, Any

from jose import jwt, JWTError, ExpiredSignatureError

from common.auth.exceptions import InvalidTokenError, TokenExpiredError

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class JWTAuth:
    """
    Issues and verifies locally minted JWTs.

    Holds no state besides its configuration, so one instance is shared by
    every request.
    """

    def __init__(
        self,
        secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_token_expire_minutes: int = 60,
        refresh_token_expire_days: int = 30,
    ):
        """
        Initialize the issuer.

        Args:
            secret: Secret key for access tokens
            refresh_secret: Secret key for refresh tokens (must differ from secret)
            algorithm: JWT algorithm (default: HS256)
            access_token_expire_minutes: Access token lifetime
            refresh_token_expire_days: Refresh token lifetime

        Raises:
            ValueError: If a secret is missing or both secrets are the same
        """
        if not secret or not refresh_secret:
            raise ValueError("JWT secret and refresh token secret are required")
        if secret == refresh_secret:
            raise ValueError("Refresh token secret must differ from the JWT secret")

        self.secret = secret
        self.refresh_secret = refresh_secret
        self.algorithm = algorithm
        self.access_token_expire = timedelta(minutes=access_token_expire_minutes)
        self.refresh_token_expire = timedelta(days=refresh_token_expire_days)

    def _encode(self, claims: Dict[str, Any], key: str, lifetime: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            **claims,
            "iat": now,
            "exp": now + lifetime,
        }
        return jwt.encode(payload, key, algorithm=self.algorithm)

    def _decode(self, token: str, key: str, expected_type: str) -> Dict[str, Any]:
        try:
            payload = jwt.decode(token, key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except JWTError as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        if payload.get("type") != expected_type:
            raise InvalidTokenError(f"Expected a {expected_type} token")
        if not payload.get("sub"):
            raise InvalidTokenError("Token missing subject")
        return payload

    async def create_access_token(self, user_id: str, email: str) -> str:
        """Create a short-lived access token for the account."""
        return self._encode(
            {"sub": user_id, "email": email, "type": ACCESS_TOKEN_TYPE},
            self.secret,
            self.access_token_expire,
        )

    async def create_refresh_token(self, user_id: str) -> str:
        """Create a refresh token for the account."""
        return self._encode(
            {
                "sub": user_id,
                "type": REFRESH_TOKEN_TYPE,
                "jti": secrets.token_hex(16),
            },
            self.refresh_secret,
            self.refresh_token_expire,
        )

    async def verify_access_token(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode an access token.

        Raises:
            TokenExpiredError: If the token is past its expiry
            InvalidTokenError: For any other failure
        """
        return self._decode(token, self.secret, ACCESS_TOKEN_TYPE)

    async def verify_refresh_token(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode a refresh token.

        Only checks the signature and expiry; presence in the account's
        stored list is checked by the caller.
        """
        return self._decode(token, self.refresh_secret, REFRESH_TOKEN_TYPE)
