"""
Allow/redirect decision for requests under the admin prefix.

Every request is checked on its own; nothing about verified tokens is cached.
The setup path is always let through because it authorizes itself, which is
what lets the very first admin be created without a credential.
"""

import enum
import logging
from dataclasses import dataclass
from urllib.parse import urlencode

from portfolio.core.config import Settings
from portfolio.core.security import verify_session_token

logger = logging.getLogger(__name__)

RETURN_TARGET_PARAM = "from"


class GuardAction(str, enum.Enum):
    ALLOW = "allow"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class GuardDecision:
    action: GuardAction
    location: str | None = None
    clear_cookie: bool = False
    reason: str = ""


def _normalize(path: str) -> str:
    return path.rstrip("/") or "/"


def is_protected_path(path: str, settings: Settings) -> bool:
    p = _normalize(path)
    prefix = settings.ADMIN_PATH_PREFIX
    return p == prefix or p.startswith(prefix + "/")


def login_redirect_url(original_path: str, settings: Settings) -> str:
    """Login URL carrying the originally requested path as the return target."""
    return f"{settings.ADMIN_LOGIN_PATH}?{urlencode({RETURN_TARGET_PARAM: original_path})}"


def decide_route(path: str, token: str | None, settings: Settings) -> GuardDecision:
    """Decide what to do with a request for path given the session cookie value."""
    p = _normalize(path)
    if not is_protected_path(p, settings):
        return GuardDecision(GuardAction.ALLOW, reason="unprotected")
    if p == settings.ADMIN_SETUP_PATH:
        return GuardDecision(GuardAction.ALLOW, reason="setup")

    on_login = p == settings.ADMIN_LOGIN_PATH
    if not token:
        if on_login:
            return GuardDecision(GuardAction.ALLOW, reason="login")
        return GuardDecision(
            GuardAction.REDIRECT,
            location=login_redirect_url(path, settings),
            reason="no_token",
        )

    verification = verify_session_token(token, settings)
    if not verification.is_valid:
        logger.info("Rejected session token on %s: %s", p, verification.status.value)
        if on_login:
            return GuardDecision(
                GuardAction.ALLOW, clear_cookie=True, reason=verification.status.value
            )
        return GuardDecision(
            GuardAction.REDIRECT,
            location=login_redirect_url(path, settings),
            clear_cookie=True,
            reason=verification.status.value,
        )

    if on_login:
        return GuardDecision(
            GuardAction.REDIRECT,
            location=settings.ADMIN_PATH_PREFIX,
            reason="already_authenticated",
        )
    return GuardDecision(GuardAction.ALLOW, reason="authenticated")
