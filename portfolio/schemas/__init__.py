"""Pydantic request/response schemas."""

from portfolio.schemas.auth import (
    AccountOut,
    AdminInitRequest,
    AdminInitResponse,
    AdminInitStatusResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    SessionClaims,
    SetupRequest,
    SetupResponse,
    SetupStatusResponse,
)
from portfolio.schemas.health import HealthResponse

__all__ = [
    "AccountOut",
    "AdminInitRequest",
    "AdminInitResponse",
    "AdminInitStatusResponse",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "ProfileResponse",
    "ProfileUpdateRequest",
    "SessionClaims",
    "SetupRequest",
    "SetupResponse",
    "SetupStatusResponse",
]
