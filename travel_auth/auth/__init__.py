"""
Auth System

Handles customer credentials, token sessions and federated sign-in. Refresh
tokens are tracked as hashes embedded in the customer documents.
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
