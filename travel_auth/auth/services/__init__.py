"""
Auth System Services

Contains service classes for account persistence and refresh-token handling.
"""

from travel_auth.auth.services.account_store import (
    AccountStore,
    EmailAlreadyRegisteredError,
    MissingAuthMethodError,
)
from travel_auth.auth.services.session_manager import SessionManager, hash_refresh_token

__all__ = [
    "hash_refresh_token",
    "AccountStore",
    "EmailAlreadyRegisteredError",
    "MissingAuthMethodError",
    "SessionManager",
]
