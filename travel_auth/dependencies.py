"""
FastAPI dependencies for the accounts service.

Services are built once at application startup by ``init_auth_services`` and
handed to routes through the getters below. Tests replace them through
``app.dependency_overrides`` or by calling ``init_auth_services`` with their
own collaborators.
"""

from typing import Optional

from common.auth.base import IdentityVerifier
from common.auth.dependencies import create_auth_dependency, create_bearer_token_dependency
from common.auth.jwt_auth import JWTAuth
from common.utils.password import PasswordHasher
from common.utils.rate_limit import SlidingWindowRateLimiter, create_rate_limit_dependency
from travel_auth.auth.services.account_store import AccountStore
from travel_auth.auth.services.session_manager import SessionManager
from travel_auth.config import Settings, settings
from travel_auth.database.collections import get_customers_collection


_jwt_auth: Optional[JWTAuth] = None
_password_hasher: Optional[PasswordHasher] = None
_account_store: Optional[AccountStore] = None
_session_manager: Optional[SessionManager] = None
_identity_verifier: Optional[IdentityVerifier] = None
_rate_limiters: dict = {}


def init_auth_services(
    app_settings: Settings = settings,
    identity_verifier: Optional[IdentityVerifier] = None,
    account_store: Optional[AccountStore] = None,
) -> None:
    """
    Initialize auth services.

    Called once at application startup.

    Args:
        app_settings: Settings providing secrets, lifetimes and limits
        identity_verifier: Federated verifier; None disables federated login
        account_store: Store to use instead of the customers collection
    """
    global _jwt_auth, _password_hasher, _account_store, _session_manager
    global _identity_verifier, _rate_limiters

    _jwt_auth = JWTAuth(
        secret=app_settings.JWT_SECRET,
        refresh_secret=app_settings.REFRESH_TOKEN_SECRET,
        algorithm=app_settings.JWT_ALGORITHM,
        access_token_expire_minutes=app_settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES,
        refresh_token_expire_days=app_settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS,
    )
    _password_hasher = PasswordHasher(rounds=app_settings.BCRYPT_ROUNDS)
    _account_store = account_store or AccountStore(get_customers_collection)
    _session_manager = SessionManager(
        jwt_auth=_jwt_auth,
        account_store=_account_store,
        max_sessions=app_settings.REFRESH_TOKEN_CAP,
    )
    _identity_verifier = identity_verifier

    window = app_settings.RATE_LIMIT_WINDOW_SECONDS
    _rate_limiters = {
        "register": SlidingWindowRateLimiter(app_settings.RATE_LIMIT_REGISTER, window),
        "login": SlidingWindowRateLimiter(app_settings.RATE_LIMIT_LOGIN, window),
        "federated_login": SlidingWindowRateLimiter(app_settings.RATE_LIMIT_FEDERATED_LOGIN, window),
    }


def _not_initialized() -> RuntimeError:
    return RuntimeError("Auth services not initialized. Call init_auth_services first.")


def get_jwt_auth() -> JWTAuth:
    """Get the local token issuer."""
    if _jwt_auth is None:
        raise _not_initialized()
    return _jwt_auth


def get_password_hasher() -> PasswordHasher:
    """Get the password hasher."""
    if _password_hasher is None:
        raise _not_initialized()
    return _password_hasher


def get_account_store() -> AccountStore:
    """Get the account store."""
    if _account_store is None:
        raise _not_initialized()
    return _account_store


def get_session_manager() -> SessionManager:
    """Get session manager instance."""
    if _session_manager is None:
        raise _not_initialized()
    return _session_manager


def get_identity_verifier() -> Optional[IdentityVerifier]:
    """Get the federated identity verifier, or None when federation is off."""
    return _identity_verifier


def get_rate_limiter(name: str) -> SlidingWindowRateLimiter:
    """Get a named rate limiter."""
    if name not in _rate_limiters:
        raise _not_initialized()
    return _rate_limiters[name]


# Verified access-token claims of the caller
get_current_claims = create_auth_dependency(get_jwt_auth)

# Raw federated ID token from the Authorization header
get_federated_token = create_bearer_token_dependency(
    missing_message="Missing federated ID token",
)


def _trust_proxy_headers() -> bool:
    return settings.TRUST_PROXY_HEADERS


limit_register = create_rate_limit_dependency(
    lambda: get_rate_limiter("register"),
    message="Too many signup attempts, try again later",
    trust_proxy_headers=_trust_proxy_headers,
)

limit_login = create_rate_limit_dependency(
    lambda: get_rate_limiter("login"),
    message="Too many login attempts, try again later",
    trust_proxy_headers=_trust_proxy_headers,
)

limit_federated_login = create_rate_limit_dependency(
    lambda: get_rate_limiter("federated_login"),
    message="Too many login attempts, try again later",
    trust_proxy_headers=_trust_proxy_headers,
)
