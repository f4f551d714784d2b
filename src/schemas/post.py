"""Post, like and comment schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PostAuthor(BaseModel):
    """User summary attached to posts and comments."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    name: str
    avatar: str | None = None


class LikeUser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str


class LikeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    post_id: int
    user: LikeUser


class PostResponse(BaseModel):
    """Post with its author, likes and counts."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    image_url: str
    caption: str | None
    created_at: datetime
    user: PostAuthor
    likes: list[LikeResponse] = []
    like_count: int = 0
    comment_count: int = 0


class ToggleLikeResponse(BaseModel):
    liked: bool


class CommentCreate(BaseModel):
    """Create a comment."""

    content: str = Field(..., min_length=1, max_length=2000)


class CommentResponse(BaseModel):
    """Comment response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    post_id: int
    content: str
    created_at: datetime
    user: PostAuthor
