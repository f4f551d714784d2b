"""Authentication and session schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserRegister(BaseModel):
    """User registration request."""

    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=6, max_length=128)
    name: str = Field(..., min_length=1, max_length=255)
    username: str = Field(..., min_length=1, max_length=50)


class UserLogin(BaseModel):
    """Login request.

    Both fields are optional so that incomplete credentials reach the verifier
    and are rejected there rather than failing schema validation.
    """

    email: str | None = None
    password: str | None = None


class Identity(BaseModel):
    """Public-safe projection of a user record."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    username: str


class TokenClaims(BaseModel):
    """Payload carried inside the signed session token."""

    sub: str = Field(..., min_length=1)
    email: str | None = None
    name: str | None = None
    username: str | None = None
    iat: int
    exp: int


class SessionUser(BaseModel):
    """Outward-facing session object built from token claims."""

    id: int
    email: str | None = None
    name: str | None = None
    username: str | None = None


class AuthResponse(BaseModel):
    """Login response with token and identity."""

    access_token: str
    token_type: str = "bearer"  # noqa: S105
    user: Identity


class SessionResponse(BaseModel):
    """Current session, with a replacement token when the old one was rotated."""

    user: SessionUser
    expires: datetime
    access_token: str | None = None
