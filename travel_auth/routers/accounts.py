"""
FastAPI router for customer account endpoints.

Provides registration, password and federated login, token refresh, logout
and access to the caller's own account.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Request, status

from common.auth.base import IdentityVerifier
from common.utils import success_response
from common.utils.password import PasswordHasher
from travel_auth.auth import pipelines
from travel_auth.auth.services.account_store import AccountStore
from travel_auth.auth.services.session_manager import SessionManager
from travel_auth.dependencies import (
    get_account_store,
    get_current_claims,
    get_federated_token,
    get_identity_verifier,
    get_password_hasher,
    get_session_manager,
    limit_federated_login,
    limit_login,
    limit_register,
)
from travel_auth.schemas.auth import (
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    UpdateProfileRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/accounts", tags=["Accounts"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(limit_register)],
)
async def register(
    body: RegisterRequest,
    account_store: Annotated[AccountStore, Depends(get_account_store)],
    session_manager: Annotated[SessionManager, Depends(get_session_manager)],
    password_hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
):
    """
    Register a new customer account.

    Needs a password unless a federated UID is supplied.
    """
    result = await pipelines.register_pipeline(
        account_store=account_store,
        session_manager=session_manager,
        password_hasher=password_hasher,
        email=body.email,
        password=body.password,
        full_name=body.fullName,
        phone=body.phone,
        photo_url=body.photoUrl,
        federated_uid=body.federatedUid,
    )

    return success_response(result, message="Account created")


@router.post("/login", dependencies=[Depends(limit_login)])
async def login(
    body: LoginRequest,
    account_store: Annotated[AccountStore, Depends(get_account_store)],
    session_manager: Annotated[SessionManager, Depends(get_session_manager)],
    password_hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
):
    """Login with email and password."""
    result = await pipelines.login_pipeline(
        account_store=account_store,
        session_manager=session_manager,
        password_hasher=password_hasher,
        email=body.email,
        password=body.password,
    )

    return success_response(result)


@router.post("/federated-login", dependencies=[Depends(limit_federated_login)])
async def federated_login(
    id_token: Annotated[str, Depends(get_federated_token)],
    identity_verifier: Annotated[Optional[IdentityVerifier], Depends(get_identity_verifier)],
    account_store: Annotated[AccountStore, Depends(get_account_store)],
    session_manager: Annotated[SessionManager, Depends(get_session_manager)],
):
    """
    Login with a Firebase ID token.

    The token is sent as ``Authorization: Bearer <idToken>``.
    """
    result = await pipelines.federated_login_pipeline(
        identity_verifier=identity_verifier,
        account_store=account_store,
        session_manager=session_manager,
        id_token=id_token,
    )

    return success_response(result)


@router.post("/token/refresh")
async def refresh_token(
    body: RefreshTokenRequest,
    session_manager: Annotated[SessionManager, Depends(get_session_manager)],
):
    """Exchange a refresh token for a new token pair."""
    result = await pipelines.refresh_pipeline(
        session_manager=session_manager,
        refresh_token=body.refreshToken,
    )

    return success_response(result)


@router.post("/logout")
async def logout(
    request: Request,
    session_manager: Annotated[SessionManager, Depends(get_session_manager)],
):
    """
    Revoke a refresh token. Always succeeds.

    The body is read by hand so a missing, malformed or mistyped body
    never turns into a validation error.
    """
    try:
        body = await request.json()
    except ValueError:
        body = None

    refresh_token = body.get("refreshToken") if isinstance(body, dict) else None
    if not isinstance(refresh_token, str):
        refresh_token = None

    result = await pipelines.logout_pipeline(
        session_manager=session_manager,
        refresh_token=refresh_token,
    )

    return success_response(message=result["message"])


@router.post("/logout-all")
async def logout_all(
    claims: Annotated[dict, Depends(get_current_claims)],
    session_manager: Annotated[SessionManager, Depends(get_session_manager)],
):
    """Revoke every refresh token of the caller."""
    result = await pipelines.logout_all_pipeline(
        session_manager=session_manager,
        account_id=claims["sub"],
    )

    return success_response(result)


@router.get("/me")
async def get_me(
    claims: Annotated[dict, Depends(get_current_claims)],
    account_store: Annotated[AccountStore, Depends(get_account_store)],
):
    """Get the caller's account."""
    account = await pipelines.get_me_pipeline(
        account_store=account_store,
        account_id=claims["sub"],
    )

    return success_response(account)


@router.patch("/me")
async def update_me(
    body: UpdateProfileRequest,
    claims: Annotated[dict, Depends(get_current_claims)],
    account_store: Annotated[AccountStore, Depends(get_account_store)],
    session_manager: Annotated[SessionManager, Depends(get_session_manager)],
    password_hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
):
    """
    Update the caller's profile.

    Only provided fields are updated. A new password signs out every device.
    """
    account = await pipelines.update_me_pipeline(
        account_store=account_store,
        session_manager=session_manager,
        password_hasher=password_hasher,
        account_id=claims["sub"],
        full_name=body.fullName,
        phone=body.phone,
        photo_url=body.photoUrl,
        password=body.password,
    )

    return success_response(account, message="Account updated")


@router.get("/{account_id}")
async def get_account(
    account_id: str,
    claims: Annotated[dict, Depends(get_current_claims)],
    account_store: Annotated[AccountStore, Depends(get_account_store)],
):
    """Get an account by id. Only the owner may read it."""
    account = await pipelines.get_account_pipeline(
        account_store=account_store,
        caller_id=claims["sub"],
        account_id=account_id,
    )

    return success_response(account)
