"""Pydantic schemas for API requests and responses."""

from src.schemas.auth import (
    AuthResponse,
    Identity,
    SessionResponse,
    SessionUser,
    TokenClaims,
    UserLogin,
    UserRegister,
)
from src.schemas.post import (
    CommentCreate,
    CommentResponse,
    LikeResponse,
    PostAuthor,
    PostResponse,
    ToggleLikeResponse,
)

__all__ = [
    "UserRegister",
    "UserLogin",
    "Identity",
    "TokenClaims",
    "SessionUser",
    "AuthResponse",
    "SessionResponse",
    "PostAuthor",
    "PostResponse",
    "LikeResponse",
    "ToggleLikeResponse",
    "CommentCreate",
    "CommentResponse",
]
