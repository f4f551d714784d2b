"""FastAPI dependencies for authentication, storage and services."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from src.config import get_settings
from src.database import get_db
from src.exceptions import UnauthorizedError
from src.schemas.auth import SessionUser, TokenClaims
from src.services.auth import decode_access_token, project_session
from src.services.post_service import PostService
from src.services.storage import ImageStorage

security = HTTPBearer(auto_error=False)


def get_token_claims(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> TokenClaims:
    """Decode the bearer token, rejecting requests without a valid one."""
    if credentials is None:
        raise UnauthorizedError()

    claims = decode_access_token(credentials.credentials)
    if claims is None:
        raise UnauthorizedError()
    return claims


def get_current_session(
    claims: Annotated[TokenClaims, Depends(get_token_claims)],
) -> SessionUser:
    """Get the session of the authenticated caller."""
    return project_session(claims)


def get_image_storage() -> ImageStorage:
    """Get the image store rooted at the configured upload directory."""
    return ImageStorage(get_settings().upload_dir)


def get_post_service(
    db: Annotated[Session, Depends(get_db)],
) -> PostService:
    """Get post service with dependencies."""
    return PostService(db)
