"""ASGI middleware enforcing the admin session on the protected prefix."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response
from starlette.types import ASGIApp

from portfolio.core.config import Settings
from portfolio.core.cookies import clear_session_cookie
from portfolio.services.route_guard import (
    GuardAction,
    GuardDecision,
    decide_route,
    is_protected_path,
    login_redirect_url,
)

logger = logging.getLogger(__name__)


class AdminGuardMiddleware(BaseHTTPMiddleware):
    """Runs decide_route before any handler under ADMIN_PATH_PREFIX; fails closed."""

    def __init__(self, app: ASGIApp, settings: Settings) -> None:
        super().__init__(app)
        self.settings = settings

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if not is_protected_path(path, self.settings):
            return await call_next(request)

        token = request.cookies.get(self.settings.AUTH_COOKIE_NAME)
        try:
            decision = decide_route(path, token, self.settings)
        except Exception:
            logger.exception("Admin guard failed on %s; denying", path)
            decision = GuardDecision(
                GuardAction.REDIRECT,
                location=login_redirect_url(path, self.settings),
                clear_cookie=True,
                reason="guard_error",
            )

        if decision.action is GuardAction.REDIRECT:
            response: Response = RedirectResponse(url=decision.location)
        else:
            response = await call_next(request)
        # A verified token whose account is gone, inactive or not an admin.
        rejected = decision.reason == "authenticated" and response.status_code in (401, 403)
        if decision.clear_cookie or rejected:
            clear_session_cookie(response, self.settings)
        return response
