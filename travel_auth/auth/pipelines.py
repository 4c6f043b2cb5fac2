"""
Auth system pipeline functions.

Stateless orchestration logic for the account flows: registration,
password login, federated login, token refresh, logout and profile access.
Credential and token failures are collapsed into generic messages here, so
clients cannot tell an unknown email from a wrong password or a reused
refresh token from a forged one.
"""

import asyncio
import logging
import re
from datetime import datetime, timezone
from typing import Optional

from email_validator import EmailNotValidError, validate_email

from common.auth.base import FederatedIdentity, IdentityVerifier
from common.auth.exceptions import InvalidCredentialsError, TokenError
from common.utils.exceptions import (
    BadRequestException,
    ConflictException,
    ForbiddenException,
    InternalServerException,
    NotFoundException,
    ServiceUnavailableException,
    UnauthorizedException,
    ValidationException,
)
from common.utils.password import PasswordHasher, validate_password
from travel_auth.auth.services.account_store import AccountStore, EmailAlreadyRegisteredError
from travel_auth.auth.services.session_manager import SessionManager

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials."
WEAK_PASSWORD_MESSAGE = "Password must be at least 8 chars with upper, lower, and a number"

LOGIN_METHOD_PASSWORD = "password"
LOGIN_METHOD_FIREBASE = "firebase"

_SCRIPT_TAG = re.compile(r"<script[^>]*>[\s\S]*?</script>", re.IGNORECASE)
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


# ─────────────────────────────────────────────────────────────────
# Input helpers
# ─────────────────────────────────────────────────────────────────

def sanitize_string(value: Optional[str]) -> Optional[str]:
    """Trim, drop script tags and control characters. Empty results become None."""
    if value is None:
        return None
    cleaned = _CONTROL_CHARS.sub("", _SCRIPT_TAG.sub("", value)).strip()
    return cleaned or None


def normalize_email(email: Optional[str]) -> Optional[str]:
    """Return the canonical lowercase email, or None if it is not a valid address."""
    email = sanitize_string(email)
    if not email:
        return None
    try:
        validated = validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return None
    return validated.normalized.lower()


def _require_strong_password(password: str) -> None:
    is_valid, errors = validate_password(password)
    if not is_valid:
        raise ValidationException(
            message=WEAK_PASSWORD_MESSAGE,
            code="WEAK_PASSWORD",
            errors=errors,
        )


def _ensure_active(account: dict) -> None:
    if account.get("isActive") is False:
        raise ForbiddenException(message="Account disabled", code="ACCOUNT_DISABLED")


# ─────────────────────────────────────────────────────────────────
# Pipelines
# ─────────────────────────────────────────────────────────────────

async def register_pipeline(
    account_store: AccountStore,
    session_manager: SessionManager,
    password_hasher: PasswordHasher,
    email: Optional[str],
    password: Optional[str] = None,
    full_name: Optional[str] = None,
    phone: Optional[str] = None,
    photo_url: Optional[str] = None,
    federated_uid: Optional[str] = None,
) -> dict:
    """
    Orchestrates account registration.

    Returns:
        dict with accessToken, refreshToken and the sanitized account

    Raises:
        ValidationException: Invalid email or weak password
        BadRequestException: Neither password nor federated UID given
        ConflictException: Email already registered
    """
    normalized_email = normalize_email(email)
    if not normalized_email:
        raise ValidationException(message="Valid email is required", code="INVALID_EMAIL")

    federated_uid = sanitize_string(federated_uid)
    if not password and not federated_uid:
        raise BadRequestException(
            message="Password is required for email signup",
            code="PASSWORD_REQUIRED",
        )

    if password:
        _require_strong_password(password)

    if await account_store.find_by_email(normalized_email):
        raise ConflictException(message="Email already registered", code="EMAIL_ALREADY_REGISTERED")

    password_hash = None
    if password:
        password_hash = await asyncio.to_thread(password_hasher.hash, password)

    account = {
        "email": normalized_email,
        "fullName": sanitize_string(full_name) or "User",
        "phone": sanitize_string(phone),
        "photoUrl": sanitize_string(photo_url),
        "passwordHash": password_hash,
        "firebaseUid": federated_uid,
        "loginMethod": LOGIN_METHOD_PASSWORD if password else LOGIN_METHOD_FIREBASE,
    }

    try:
        await account_store.insert(account)
    except EmailAlreadyRegisteredError:
        raise ConflictException(message="Email already registered", code="EMAIL_ALREADY_REGISTERED")

    tokens = await session_manager.create_session(account)

    logger.info(f"Account registered: {account['_id']}")

    return {**tokens, "account": format_account_response(account)}


async def login_pipeline(
    account_store: AccountStore,
    session_manager: SessionManager,
    password_hasher: PasswordHasher,
    email: Optional[str],
    password: Optional[str],
) -> dict:
    """
    Orchestrates email/password login.

    Raises:
        BadRequestException: Email or password missing
        UnauthorizedException: Unknown email, federated-only account, or wrong password
        ForbiddenException: Account disabled
    """
    if not email or not password:
        raise BadRequestException(
            message="Email and password are required",
            code="MISSING_CREDENTIALS",
        )

    account = await account_store.find_by_email(email)
    digest = account.get("passwordHash") if account else None

    try:
        # Unknown emails go through bcrypt too, so all failures take equally long
        matches = await asyncio.to_thread(password_hasher.verify, password, digest)
        if not matches:
            raise InvalidCredentialsError("Password mismatch")
    except InvalidCredentialsError as e:
        logger.warning(f"Password login rejected: {e if account else 'Unknown email'}")
        raise UnauthorizedException(
            message=INVALID_CREDENTIALS_MESSAGE,
            code="INVALID_CREDENTIALS",
        )

    _ensure_active(account)

    account["lastLoginAt"] = await account_store.record_login(account["_id"])
    tokens = await session_manager.create_session(account)

    logger.info(f"Account logged in: {account['_id']}")

    return {**tokens, "account": format_account_response(account)}


async def federated_login_pipeline(
    identity_verifier: Optional[IdentityVerifier],
    account_store: AccountStore,
    session_manager: SessionManager,
    id_token: str,
) -> dict:
    """
    Orchestrates login with an external identity token.

    Finds the account by the provider's email, creating a federated-only
    account on first sight, and attaches the provider UID to an existing
    account that has none.

    Raises:
        ServiceUnavailableException: No identity provider configured
        UnauthorizedException: Identity token rejected
        ValidationException: Provider supplied no valid email
        ForbiddenException: Account disabled, or linking an unverified email
    """
    if identity_verifier is None:
        raise ServiceUnavailableException(
            message="Federated login is not configured",
            code="FEDERATION_UNAVAILABLE",
        )

    try:
        identity = await identity_verifier.verify(id_token)
    except TokenError as e:
        logger.warning(f"Federated token verification failed: {e}")
        raise UnauthorizedException(
            message="Invalid or expired federated token",
            code="INVALID_FEDERATED_TOKEN",
        )

    email = normalize_email(identity.email)
    if not email:
        raise ValidationException(
            message="Federated identity must provide a valid email",
            code="FEDERATED_EMAIL_REQUIRED",
        )

    account = await account_store.find_by_email(email)

    if account is None:
        now = datetime.now(timezone.utc)
        account = {
            "email": email,
            "firebaseUid": identity.uid,
            "fullName": sanitize_string(identity.name) or "Firebase User",
            "photoUrl": sanitize_string(identity.picture),
            "phone": sanitize_string(identity.phone_number),
            "loginMethod": LOGIN_METHOD_FIREBASE,
            "lastLoginAt": now,
        }
        try:
            await account_store.insert(account)
            logger.info(f"Account created from federated login: {account['_id']}")
        except EmailAlreadyRegisteredError:
            # Concurrent first login for the same email
            account = await account_store.find_by_email(email)
            if account is None:
                raise InternalServerException(message="Federated login failed")
            account = await _sign_in_existing(account_store, account, identity)
    else:
        account = await _sign_in_existing(account_store, account, identity)

    tokens = await session_manager.create_session(account)

    logger.info(f"Account logged in via federated identity: {account['_id']}")

    return {**tokens, "account": format_account_response(account)}


async def _sign_in_existing(
    account_store: AccountStore,
    account: dict,
    identity: FederatedIdentity,
) -> dict:
    _ensure_active(account)

    stored_uid = account.get("firebaseUid")

    # Only a verified email may vouch for a UID the account does not know
    if stored_uid != identity.uid and not identity.email_verified:
        raise ForbiddenException(
            message="Federated email is not verified",
            code="EMAIL_NOT_VERIFIED",
        )

    if not stored_uid:
        if await account_store.link_federated_uid(account["_id"], identity.uid):
            account["firebaseUid"] = identity.uid
    elif stored_uid != identity.uid:
        logger.warning(
            f"Federated UID differs from the one linked to account {account['_id']}"
        )

    account["lastLoginAt"] = await account_store.record_login(account["_id"])
    return account


async def refresh_pipeline(
    session_manager: SessionManager,
    refresh_token: Optional[str],
) -> dict:
    """
    Rotate a refresh token into a new token pair.

    Raises:
        BadRequestException: No refresh token given
        UnauthorizedException: Token invalid, expired, reused or revoked
    """
    if not refresh_token:
        raise BadRequestException(
            message="refreshToken is required",
            code="REFRESH_TOKEN_REQUIRED",
        )

    try:
        return await session_manager.rotate_session(refresh_token)
    except TokenError as e:
        logger.warning(f"Refresh rejected: {e}")
        raise UnauthorizedException(
            message="Invalid or expired refresh token",
            code="INVALID_REFRESH_TOKEN",
        )


async def logout_pipeline(
    session_manager: SessionManager,
    refresh_token: Optional[str],
) -> dict:
    """
    Revoke a refresh token.

    Always reports success, whether the token was valid, unknown, already
    revoked, or the store could not be reached, so logout cannot be used to
    probe tokens.
    """
    if refresh_token:
        try:
            await session_manager.revoke_session(refresh_token)
        except Exception as e:
            logger.warning(f"Logout cleanup failed: {e}")

    return {"message": "Logged out"}


async def logout_all_pipeline(
    session_manager: SessionManager,
    account_id: str,
) -> dict:
    """Revoke every refresh token of the calling account."""
    await session_manager.revoke_all_sessions(account_id)

    logger.info(f"All sessions revoked for account {account_id}")

    return {"revoked": True}


async def get_me_pipeline(
    account_store: AccountStore,
    account_id: str,
) -> dict:
    """
    Load the calling account.

    Raises:
        NotFoundException: Account no longer exists
        ForbiddenException: Account disabled
    """
    account = await _load_active_account(account_store, account_id)
    return format_account_response(account)


async def _load_active_account(account_store: AccountStore, account_id: str) -> dict:
    account = await account_store.find_by_id(account_id)
    if not account:
        raise NotFoundException(message="Account not found", code="ACCOUNT_NOT_FOUND")
    _ensure_active(account)
    return account


async def get_account_pipeline(
    account_store: AccountStore,
    caller_id: str,
    account_id: str,
) -> dict:
    """
    Load an account by id on behalf of its owner.

    Raises:
        ForbiddenException: Caller asked for another account
        NotFoundException: Account no longer exists
    """
    if str(account_id) != str(caller_id):
        raise ForbiddenException(
            message="Cannot access another account",
            code="FORBIDDEN",
        )
    return await get_me_pipeline(account_store, caller_id)


async def update_me_pipeline(
    account_store: AccountStore,
    session_manager: SessionManager,
    password_hasher: PasswordHasher,
    account_id: str,
    full_name: Optional[str] = None,
    phone: Optional[str] = None,
    photo_url: Optional[str] = None,
    password: Optional[str] = None,
) -> dict:
    """
    Update profile fields of the calling account.

    Setting a password also revokes every refresh token of the account.

    Raises:
        ValidationException: Nothing to update, or weak password
        NotFoundException: Account no longer exists
        ForbiddenException: Account disabled
    """
    await _load_active_account(account_store, account_id)

    patch = {}
    for field, value in (("fullName", full_name), ("phone", phone), ("photoUrl", photo_url)):
        cleaned = sanitize_string(value)
        if cleaned is not None:
            patch[field] = cleaned

    if password:
        _require_strong_password(password)
        patch["passwordHash"] = await asyncio.to_thread(password_hasher.hash, password)

    if not patch:
        raise ValidationException(message="No fields to update", code="NO_FIELDS")

    if not await account_store.update(account_id, patch):
        raise NotFoundException(message="Account not found", code="ACCOUNT_NOT_FOUND")

    if password:
        await session_manager.revoke_all_sessions(account_id)
        logger.info(f"Password changed for account {account_id}")

    return await get_me_pipeline(account_store, account_id)


def format_account_response(account: dict) -> dict:
    """
    Format an account document for API responses.

    Only the fields listed here ever leave the service.
    """
    login_methods = []
    if account.get("passwordHash"):
        login_methods.append(LOGIN_METHOD_PASSWORD)
    if account.get("firebaseUid"):
        login_methods.append(LOGIN_METHOD_FIREBASE)

    return {
        "id": str(account["_id"]),
        "email": account.get("email"),
        "fullName": account.get("fullName"),
        "phone": account.get("phone"),
        "photoUrl": account.get("photoUrl"),
        "loginMethods": login_methods,
        "isActive": account.get("isActive", True),
        "createdAt": account.get("createdAt"),
        "updatedAt": account.get("updatedAt"),
        "lastLoginAt": account.get("lastLoginAt"),
    }
