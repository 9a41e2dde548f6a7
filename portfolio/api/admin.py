"""Operator provisioning and the signed-in admin's own profile."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Response, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from portfolio.api.auth import (
    get_account_store,
    get_app_settings,
    require_admin,
    setup_error_to_http,
)
from portfolio.core.config import Settings
from portfolio.core.cookies import set_session_cookie
from portfolio.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    create_session_token,
    hash_password,
    verify_password,
)
from portfolio.models import Account
from portfolio.schemas.auth import (
    AccountOut,
    AdminInitRequest,
    AdminInitResponse,
    AdminInitStatusResponse,
    ProfileResponse,
    ProfileUpdateRequest,
)
from portfolio.services.accounts import PROFILE_FIELDS, AccountStore, normalize_email
from portfolio.services.setup_gate import EMAIL_PATTERN, SetupError, operator_permitted, upsert_admin

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/init", response_model=AdminInitStatusResponse)
def get_admin_init_status(
    store: Annotated[AccountStore, Depends(get_account_store)],
) -> AdminInitStatusResponse:
    try:
        count = store.count_admins()
    except SQLAlchemyError as exc:
        logger.exception("Admin count failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from exc
    return AdminInitStatusResponse(admin_exists=count > 0, admin_count=count)


@router.post("/init", response_model=AdminInitResponse)
def post_admin_init(
    body: AdminInitRequest,
    store: Annotated[AccountStore, Depends(get_account_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    x_admin_init_key: Annotated[str | None, Header()] = None,
) -> AdminInitResponse:
    """
    Grant ADMIN to the account with this email, creating it when missing.

    Open in dev; elsewhere requires X-Admin-Init-Key to match ADMIN_INIT_KEY.
    """
    if not operator_permitted(settings, x_admin_init_key):
        logger.warning("Admin init rejected: missing or wrong init key")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized")
    try:
        account, created = upsert_admin(store, body.email, body.password, body.name)
    except SetupError as exc:
        raise setup_error_to_http(exc) from exc
    logger.info("Admin init %s admin id=%s", "created" if created else "updated", account.id)
    return AdminInitResponse(
        message="Admin user created successfully" if created else "Admin user updated successfully",
        created=created,
        user=AccountOut.model_validate(account),
    )


@router.get("/profile", response_model=ProfileResponse)
def get_profile(admin: Annotated[Account, Depends(require_admin)]) -> ProfileResponse:
    return ProfileResponse(user=AccountOut.model_validate(admin))


@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    body: ProfileUpdateRequest,
    response: Response,
    admin: Annotated[Account, Depends(require_admin)],
    store: Annotated[AccountStore, Depends(get_account_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> ProfileResponse:
    """Update name, email and public profile; changing the password requires the current one."""
    name = body.name.strip()
    email = normalize_email(body.email)
    if not name or not EMAIL_PATTERN.match(email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Name and a valid email are required",
        )
    if email != admin.email:
        owner = store.get_by_email(email)
        if owner is not None and owner.id != admin.id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail="Email is already in use"
            )

    password_hash = None
    if body.new_password:
        if not body.current_password:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Current password is required to change password",
            )
        if not verify_password(body.current_password, admin.password_hash):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Current password is incorrect",
            )
        if not (PASSWORD_MIN_LEN <= len(body.new_password) <= PASSWORD_MAX_LEN):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters long",
            )
        password_hash = hash_password(body.new_password)

    details = body.model_dump(include=set(PROFILE_FIELDS), exclude_unset=True)
    try:
        account = store.update_profile(
            admin, name=name, email=email, password_hash=password_hash, details=details
        )
    except IntegrityError as exc:
        # Lost a race with another account claiming the same email.
        store.rollback()
        logger.info("Profile update for id=%s hit a unique constraint", admin.id)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Email is already in use"
        ) from exc
    except SQLAlchemyError as exc:
        store.rollback()
        logger.exception("Profile update failed for id=%s", admin.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update profile",
        ) from exc

    # The session token embeds the email; reissue so it stays current.
    token = create_session_token(
        sub=account.id, role=account.role, settings=settings, email=account.email
    )
    set_session_cookie(response, token, settings)
    return ProfileResponse(message="Profile updated successfully", user=AccountOut.model_validate(account))
