"""
FastAPI authentication dependencies.

Factories that build dependencies extracting a Bearer token from the
Authorization header. Verification is delegated to the JWTAuth instance
returned by the provider callable, so the dependency always sees the
instance configured at startup.

Example:
    from common.auth import JWTAuth, create_auth_dependency

    get_current_claims = create_auth_dependency(get_jwt_auth)

    @app.get("/profile")
    async def get_profile(claims: dict = Depends(get_current_claims)):
        return {"user_id": claims["sub"]}
"""

from typing import Callable, Optional, Dict, Any
from fastapi import Header

from common.auth.exceptions import TokenError, TokenExpiredError
from common.auth.jwt_auth import JWTAuth
from common.utils.exceptions import UnauthorizedException


def extract_bearer_token(
    authorization: Optional[str],
    scheme: str = "Bearer",
) -> Optional[str]:
    """
    Pull the token out of an Authorization header value.

    Returns None when the header is missing, uses another scheme, or
    carries an empty token.
    """
    if not authorization:
        return None

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != scheme.lower():
        return None

    return parts[1] or None


def create_bearer_token_dependency(
    header_name: str = "Authorization",
    scheme: str = "Bearer",
    missing_message: str = "Missing bearer token",
):
    """
    Factory for a dependency that only extracts a Bearer token.

    Used where the token is verified by someone other than JWTAuth, such as
    a federated identity provider.
    """

    async def get_bearer_token(
        authorization: Optional[str] = Header(None, alias=header_name),
    ) -> str:
        token = extract_bearer_token(authorization, scheme)
        if not token:
            raise UnauthorizedException(message=missing_message, code="AUTH_REQUIRED")
        return token

    return get_bearer_token


def create_auth_dependency(
    get_jwt_auth: Callable[[], JWTAuth],
    header_name: str = "Authorization",
    scheme: str = "Bearer",
):
    """
    Factory to create FastAPI access-token dependencies.

    Args:
        get_jwt_auth: Callable that returns the JWTAuth instance
        header_name: Header to extract token from (default: Authorization)
        scheme: Auth scheme prefix (default: Bearer)

    Returns:
        A FastAPI dependency returning the verified access-token claims
    """

    async def get_current_claims(
        authorization: Optional[str] = Header(None, alias=header_name),
    ) -> Dict[str, Any]:
        """
        Verify the access token in the authorization header.

        Raises:
            UnauthorizedException: If token is missing, invalid, or expired
        """
        token = extract_bearer_token(authorization, scheme)
        if not token:
            raise UnauthorizedException(
                message="Authentication required",
                code="AUTH_REQUIRED",
            )

        try:
            return await get_jwt_auth().verify_access_token(token)
        except TokenExpiredError:
            raise UnauthorizedException(message="Token expired", code="TOKEN_EXPIRED")
        except TokenError:
            raise UnauthorizedException(message="Invalid token", code="INVALID_TOKEN")

    return get_current_claims
