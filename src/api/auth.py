"""Authentication API endpoints."""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from src.api.dependencies import get_token_claims
from src.database import get_db
from src.exceptions import UnauthorizedError
from src.schemas.auth import (
    AuthResponse,
    Identity,
    SessionResponse,
    TokenClaims,
    UserLogin,
    UserRegister,
)
from src.services.auth import (
    authenticate_user,
    create_access_token,
    create_user,
    decode_access_token,
    project_session,
    rotate_token_if_due,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=Identity)
def register(
    user_data: UserRegister,
    db: Annotated[Session, Depends(get_db)],
):
    """Register a new user."""
    user = create_user(db, user_data)
    return Identity.model_validate(user)


@router.post("/login", response_model=AuthResponse)
def login(
    credentials: UserLogin,
    db: Annotated[Session, Depends(get_db)],
):
    """Login with email and password."""
    identity = authenticate_user(db, credentials.email, credentials.password)

    if not identity:
        raise UnauthorizedError("Invalid email or password")

    return AuthResponse(access_token=create_access_token(identity), user=identity)


@router.get("/session", response_model=SessionResponse)
def get_session(
    claims: Annotated[TokenClaims, Depends(get_token_claims)],
):
    """Get the current session, reissuing the token when it is due for rotation."""
    access_token = rotate_token_if_due(claims)
    expires = claims.exp
    if access_token:
        expires = decode_access_token(access_token).exp

    return SessionResponse(
        user=project_session(claims),
        expires=datetime.fromtimestamp(expires, UTC),
        access_token=access_token,
    )


@router.post("/logout")
def logout():
    """Logout (client should discard token)."""
    return {"message": "Logged out successfully"}
