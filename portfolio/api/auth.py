"""Cookie session login/logout, first-admin setup, and auth dependencies."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from portfolio.core.config import Settings
from portfolio.core.cookies import clear_session_cookie, set_session_cookie
from portfolio.core.database import get_db
from portfolio.core.security import create_session_token, verify_password, verify_session_token
from portfolio.models import Account
from portfolio.schemas.auth import (
    AccountOut,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProfileResponse,
    SetupRequest,
    SetupResponse,
    SetupStatusResponse,
)
from portfolio.services.accounts import AccountStore
from portfolio.services.setup_gate import (
    AdminAlreadyProvisionedError,
    EmailInUseError,
    ForceNotPermittedError,
    SetupError,
    SetupGate,
    SetupPersistenceError,
    SetupValidationError,
)

logger = logging.getLogger(__name__)
router = APIRouter()
security = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    """Dependency: the Settings instance the app was created with."""
    return request.app.state.settings


def get_account_store(db: Annotated[Session, Depends(get_db)]) -> AccountStore:
    return AccountStore(db)


def get_setup_gate(
    store: Annotated[AccountStore, Depends(get_account_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> SetupGate:
    return SetupGate(store, settings)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_account(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    store: Annotated[AccountStore, Depends(get_account_store)],
) -> Account:
    """
    Dependency: require a valid session and return the active account.

    Accepts Authorization: Bearer <token> first, then the session cookie.
    """
    token = credentials.credentials if credentials is not None else None
    if not token:
        token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if not token:
        raise _unauthorized("Not authenticated")

    verification = verify_session_token(token, settings)
    if not verification.is_valid:
        raise _unauthorized("Invalid or expired token")

    account = store.get_by_id(verification.claims.sub)
    if account is None or not account.is_active:
        raise _unauthorized("User not found or inactive")
    return account


def require_admin(
    account: Annotated[Account, Depends(get_current_account)],
) -> Account:
    """Dependency: require an authenticated ADMIN account. Raises 403 otherwise."""
    if not account.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return account


def setup_error_to_http(exc: SetupError) -> HTTPException:
    """Map setup-gate failures onto distinct HTTP results."""
    if isinstance(exc, SetupValidationError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"field": exc.field, "message": exc.message},
        )
    if isinstance(exc, ForceNotPermittedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    if isinstance(exc, (AdminAlreadyProvisionedError, EmailInUseError)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, SetupPersistenceError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    response: Response,
    store: Annotated[AccountStore, Depends(get_account_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> LoginResponse:
    """Authenticate with email and password; sets the HTTP-only session cookie."""
    account = store.get_by_email(body.email)
    if (
        account is None
        or not verify_password(body.password, account.password_hash)
        or not account.is_active
    ):
        logger.info("Failed login attempt for %s", body.email.strip().lower())
        raise _unauthorized("Invalid email or password.")

    token = create_session_token(
        sub=account.id, role=account.role, settings=settings, email=account.email
    )
    store.record_login(account)
    set_session_cookie(response, token, settings)
    return LoginResponse(user=AccountOut.model_validate(account))


@router.post("/logout", response_model=MessageResponse)
def logout(
    response: Response,
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> MessageResponse:
    clear_session_cookie(response, settings)
    return MessageResponse(message="Logout successful")


@router.get("/me", response_model=ProfileResponse)
def me(account: Annotated[Account, Depends(get_current_account)]) -> ProfileResponse:
    return ProfileResponse(user=AccountOut.model_validate(account))


@router.get("/setup", response_model=SetupStatusResponse)
def get_setup_status(
    gate: Annotated[SetupGate, Depends(get_setup_gate)],
    force: bool = False,
    x_admin_init_key: Annotated[str | None, Header()] = None,
) -> SetupStatusResponse:
    """Whether the first-admin setup form should be shown. Read-only."""
    availability = gate.check(force=force, init_key=x_admin_init_key)
    return SetupStatusResponse(
        success=availability.available,
        available=availability.available,
        existing_admin=availability.existing_admin,
        force_applied=availability.force_applied,
        message=availability.message,
    )


@router.head("/setup")
def head_setup_status(
    gate: Annotated[SetupGate, Depends(get_setup_gate)],
    force: bool = False,
    x_admin_init_key: Annotated[str | None, Header()] = None,
) -> Response:
    availability = gate.check(force=force, init_key=x_admin_init_key)
    return Response(
        status_code=status.HTTP_200_OK if availability.available else status.HTTP_403_FORBIDDEN
    )


@router.post("/setup", response_model=SetupResponse, status_code=status.HTTP_201_CREATED)
def post_setup(
    body: SetupRequest,
    gate: Annotated[SetupGate, Depends(get_setup_gate)],
    force: bool = False,
    x_admin_init_key: Annotated[str | None, Header()] = None,
) -> SetupResponse:
    """
    Create the first admin account.

    With force=true (dev, or a matching X-Admin-Init-Key) the existing admin is
    overwritten in place instead.
    """
    logger.info(
        "Setup requested: email=%s password_length=%s force=%s",
        body.email,
        len(body.password or ""),
        force,
    )
    try:
        result = gate.create_admin(
            body.name,
            body.email,
            body.password,
            force=force,
            init_key=x_admin_init_key,
        )
    except SetupError as exc:
        raise setup_error_to_http(exc) from exc

    message = (
        "Admin user updated successfully. You can now log in."
        if result.updated
        else "Admin user created successfully. You can now log in."
    )
    return SetupResponse(message=message, user=AccountOut.model_validate(result.account))
