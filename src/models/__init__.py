"""SQLAlchemy models."""

from src.models.post import Comment, Like, Post
from src.models.user import User

__all__ = [
    "User",
    "Post",
    "Like",
    "Comment",
]
