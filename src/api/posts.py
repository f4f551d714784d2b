"""Post API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from src.api.dependencies import get_current_session, get_image_storage, get_post_service
from src.config import get_settings
from src.exceptions import ValidationError
from src.schemas.auth import SessionUser
from src.schemas.post import CommentCreate, CommentResponse, PostResponse, ToggleLikeResponse
from src.services.post_service import PostService
from src.services.storage import ImageStorage, is_image_name

router = APIRouter(prefix="/api/posts", tags=["posts"])


@router.get("", response_model=list[PostResponse])
def get_posts(
    service: Annotated[PostService, Depends(get_post_service)],
):
    """Get the feed, newest posts first."""
    return service.list_posts()


@router.post("", response_model=PostResponse)
async def create_post(
    session: Annotated[SessionUser, Depends(get_current_session)],
    service: Annotated[PostService, Depends(get_post_service)],
    storage: Annotated[ImageStorage, Depends(get_image_storage)],
    image: Annotated[UploadFile | None, File(description="JPEG, PNG, GIF, or WebP image")] = None,
    caption: Annotated[str | None, Form(max_length=2200)] = None,
):
    """Upload an image with an optional caption.

    Note: This endpoint must remain async because UploadFile.read() is async.
    """
    if image is None or not image.filename:
        raise ValidationError("No image provided")

    if not is_image_name(image.filename):
        raise ValidationError(
            details=[{"field": "image", "message": "Allowed types: jpg, jpeg, png, gif, webp"}]
        )

    max_bytes = get_settings().max_upload_bytes
    data = await image.read(max_bytes + 1)
    if not data:
        raise ValidationError("No image provided")

    if len(data) > max_bytes:
        message = f"File too large. Maximum size is {max_bytes} bytes."
        raise ValidationError(details=[{"field": "image", "message": message}])

    image_url = await storage.save(image.filename, data)
    try:
        return service.create_post(session.id, image_url, caption)
    except Exception:
        storage.delete(image_url)
        raise


@router.post("/{post_id}/like", response_model=ToggleLikeResponse)
def toggle_like(
    post_id: int,
    session: Annotated[SessionUser, Depends(get_current_session)],
    service: Annotated[PostService, Depends(get_post_service)],
):
    """Like the post, or remove the like if the caller already liked it."""
    return ToggleLikeResponse(liked=service.toggle_like(session.id, post_id))


@router.get("/{post_id}/comments", response_model=list[CommentResponse])
def get_comments(
    post_id: int,
    service: Annotated[PostService, Depends(get_post_service)],
):
    """Get comments on a post, oldest first."""
    return service.list_comments(post_id)


@router.post(
    "/{post_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED
)
def create_comment(
    post_id: int,
    comment_data: CommentCreate,
    session: Annotated[SessionUser, Depends(get_current_session)],
    service: Annotated[PostService, Depends(get_post_service)],
):
    """Comment on a post."""
    return service.add_comment(session.id, post_id, comment_data.content)
