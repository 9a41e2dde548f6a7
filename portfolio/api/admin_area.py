"""JSON endpoints inside the guarded admin area; paths follow Settings."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from portfolio.api.auth import get_setup_status, require_admin
from portfolio.core.config import Settings
from portfolio.models import Account
from portfolio.schemas.auth import AccountOut, ProfileResponse, SetupStatusResponse


def dashboard(admin: Annotated[Account, Depends(require_admin)]) -> ProfileResponse:
    """Admin root: who is signed in."""
    return ProfileResponse(user=AccountOut.model_validate(admin))


def login_screen(
    from_: Annotated[str | None, Query(alias="from")] = None,
) -> dict[str, str | bool | None]:
    """Only reached without a valid session; the guard redirects signed-in users."""
    return {"authenticated": False, "from": from_}


def build_router(settings: Settings) -> APIRouter:
    router = APIRouter(tags=["admin-area"])
    router.add_api_route(
        settings.ADMIN_PATH_PREFIX, dashboard, methods=["GET"], response_model=ProfileResponse
    )
    router.add_api_route(settings.ADMIN_LOGIN_PATH, login_screen, methods=["GET"])
    # Same read-only availability check as GET /api/auth/setup.
    router.add_api_route(
        settings.ADMIN_SETUP_PATH,
        get_setup_status,
        methods=["GET"],
        response_model=SetupStatusResponse,
    )
    return router
