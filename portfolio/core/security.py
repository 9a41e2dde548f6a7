"""Password hashing and session token issuing/verification."""

import enum
import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt
from pydantic import ValidationError

from portfolio.core.config import Settings
from portfolio.models.user import UserRole
from portfolio.schemas.auth import SessionClaims

logger = logging.getLogger(__name__)

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

REQUIRED_CLAIMS = ["sub", "role", "exp", "iat"]


class SessionConfigError(RuntimeError):
    """Raised when tokens cannot be signed because no secret is configured."""


class TokenStatus(str, enum.Enum):
    VALID = "valid"
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class TokenVerification:
    """Outcome of verify_session_token; claims is set only when status is VALID."""

    status: TokenStatus
    claims: SessionClaims | None = None

    @property
    def is_valid(self) -> bool:
        return self.status is TokenStatus.VALID


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def _secret(settings: Settings) -> str:
    value = settings.JWT_SECRET.get_secret_value() if settings.JWT_SECRET else ""
    if not value or not value.strip():
        raise SessionConfigError("JWT_SECRET is not configured")
    return value


def create_session_token(
    sub: str,
    role: str,
    settings: Settings,
    email: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed session token with sub, role, email, iat and exp."""
    secret = _secret(settings)
    now = datetime.now(UTC)
    expire = now + (
        expires_delta
        if expires_delta is not None
        else timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    )
    payload: dict[str, Any] = {
        "sub": str(sub),
        "role": role,
        "iat": now,
        "exp": expire,
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def _is_past_expiry(token: str) -> bool:
    """Read exp without verifying the signature; True if it has already passed."""
    try:
        unverified = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return False
    exp = unverified.get("exp")
    return isinstance(exp, (int, float)) and exp <= time.time()


def verify_session_token(token: str | None, settings: Settings) -> TokenVerification:
    """
    Validate signature, algorithm and expiry of a session token.

    Never raises: every failure maps to a TokenStatus. A past exp wins over a
    bad signature, so an expired token always reports EXPIRED.
    """
    if not token or not token.strip():
        return TokenVerification(TokenStatus.MALFORMED)
    try:
        secret = _secret(settings)
    except SessionConfigError:
        logger.error("Cannot verify session token: JWT_SECRET is not configured")
        return TokenVerification(TokenStatus.INVALID_SIGNATURE)

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.JWT_ALGORITHM],
            leeway=0,
            options={"require": REQUIRED_CLAIMS},
        )
    except jwt.ExpiredSignatureError:
        return TokenVerification(TokenStatus.EXPIRED)
    except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError):
        if _is_past_expiry(token):
            return TokenVerification(TokenStatus.EXPIRED)
        return TokenVerification(TokenStatus.INVALID_SIGNATURE)
    except jwt.PyJWTError:
        return TokenVerification(TokenStatus.MALFORMED)
    except Exception:
        logger.exception("Unexpected error decoding session token")
        return TokenVerification(TokenStatus.MALFORMED)

    try:
        claims = SessionClaims.model_validate(payload)
    except ValidationError:
        return TokenVerification(TokenStatus.MALFORMED)
    if claims.role not in {r.value for r in UserRole}:
        return TokenVerification(TokenStatus.MALFORMED)
    return TokenVerification(TokenStatus.VALID, claims)
