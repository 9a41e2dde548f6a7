"""Request/response schemas for auth, setup and profile endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field


class SessionClaims(BaseModel):
    """Claims carried by a session token."""

    sub: str = Field(..., min_length=1, description="Account id")
    role: str = Field(..., description="ADMIN or USER")
    email: str | None = Field(default=None, description="Account email at issue time")
    iat: int = Field(..., description="Issued-at (unix seconds)")
    exp: int = Field(..., description="Expiry (unix seconds)")


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: str = Field(..., min_length=1, max_length=255, description="Email")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class AccountOut(BaseModel):
    """Account as exposed to clients (no password hash)."""

    id: str
    name: str
    email: str
    role: str
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_login_at: datetime | None = None
    avatar: str | None = None
    bio: str | None = None
    location: str | None = None
    website: str | None = None
    github: str | None = None
    linkedin: str | None = None
    twitter: str | None = None

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    success: bool = True
    message: str = "Login successful"
    user: AccountOut


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class SetupRequest(BaseModel):
    """
    First-admin bootstrap payload.

    Fields are optional at the schema level so the setup gate can report each
    rule violation separately instead of a generic 422.
    """

    name: str | None = None
    email: str | None = None
    password: str | None = None


class SetupStatusResponse(BaseModel):
    """Read-only availability of the setup screen."""

    success: bool = True
    available: bool
    existing_admin: bool
    force_applied: bool = False
    message: str


class SetupResponse(BaseModel):
    success: bool = True
    message: str
    user: AccountOut


class AdminInitRequest(BaseModel):
    """Operator upsert of an admin account by email."""

    email: str | None = None
    password: str | None = None
    name: str | None = None


class AdminInitStatusResponse(BaseModel):
    success: bool = True
    admin_exists: bool
    admin_count: int


class AdminInitResponse(BaseModel):
    success: bool = True
    message: str
    created: bool
    user: AccountOut


class ProfileUpdateRequest(BaseModel):
    """
    Own-profile update. Public profile fields left out of the body are kept;
    an empty string clears one.
    """

    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=1, max_length=255)
    current_password: str | None = None
    new_password: str | None = None
    avatar: str | None = Field(default=None, max_length=500)
    bio: str | None = Field(default=None, max_length=5000)
    location: str | None = Field(default=None, max_length=255)
    website: str | None = Field(default=None, max_length=500)
    github: str | None = Field(default=None, max_length=255)
    linkedin: str | None = Field(default=None, max_length=255)
    twitter: str | None = Field(default=None, max_length=255)


class ProfileResponse(BaseModel):
    success: bool = True
    message: str | None = None
    user: AccountOut
