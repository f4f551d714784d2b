"""Post service for feed, upload, like and comment operations."""

import logging

from sqlalchemy import desc, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from src.exceptions import NotFoundError, ValidationError
from src.models.post import Comment, Like, Post
from src.schemas.post import CommentResponse, PostResponse

logger = logging.getLogger(__name__)


class PostService:
    """Service for post-related operations."""

    def __init__(self, db: Session):
        self.db = db

    def list_posts(self) -> list[PostResponse]:
        """All posts, newest first, with author, likes and counts."""
        posts = (
            self.db.query(Post)
            .options(
                joinedload(Post.user),
                selectinload(Post.likes).joinedload(Like.user),
            )
            .order_by(desc(Post.created_at), desc(Post.id))
            .all()
        )

        comment_counts = {}
        if posts:
            counts = (
                self.db.query(Comment.post_id, func.count(Comment.id))
                .filter(Comment.post_id.in_([post.id for post in posts]))
                .group_by(Comment.post_id)
                .all()
            )
            comment_counts = dict(counts)

        result = []
        for post in posts:
            post_response = PostResponse.model_validate(post)
            post_response.like_count = len(post.likes)
            post_response.comment_count = comment_counts.get(post.id, 0)
            result.append(post_response)
        return result

    def create_post(self, user_id: int, image_url: str, caption: str | None) -> PostResponse:
        """Record an uploaded image as a new post."""
        post = Post(user_id=user_id, image_url=image_url, caption=caption or None)
        self.db.add(post)
        self.db.commit()
        self.db.refresh(post)
        logger.info(f"User {user_id} created post {post.id}")
        return PostResponse.model_validate(post)

    def get_post(self, post_id: int) -> Post:
        post = self.db.query(Post).filter(Post.id == post_id).first()
        if not post:
            raise NotFoundError("Post not found")
        return post

    def get_like(self, user_id: int, post_id: int) -> Like | None:
        return self.db.query(Like).filter(Like.user_id == user_id, Like.post_id == post_id).first()

    def toggle_like(self, user_id: int, post_id: int) -> bool:
        """Flip the user's like on a post. Returns True if the post is now liked."""
        self.get_post(post_id)

        existing = self.get_like(user_id, post_id)
        if existing:
            self.db.delete(existing)
            self.db.commit()
            return False

        self.db.add(Like(user_id=user_id, post_id=post_id))
        try:
            self.db.commit()
        except IntegrityError:
            # A concurrent toggle inserted the same like first
            self.db.rollback()
            logger.warning(f"Duplicate like from user {user_id} on post {post_id}")
        return True

    def list_comments(self, post_id: int) -> list[CommentResponse]:
        """Comments on a post, oldest first."""
        self.get_post(post_id)
        comments = (
            self.db.query(Comment)
            .options(joinedload(Comment.user))
            .filter(Comment.post_id == post_id)
            .order_by(Comment.created_at, Comment.id)
            .all()
        )
        return [CommentResponse.model_validate(comment) for comment in comments]

    def add_comment(self, user_id: int, post_id: int, content: str) -> CommentResponse:
        """Add a comment to a post."""
        self.get_post(post_id)
        text = content.strip()
        if not text:
            raise ValidationError(
                details=[{"field": "content", "message": "Comment cannot be empty"}]
            )

        comment = Comment(user_id=user_id, post_id=post_id, content=text)
        self.db.add(comment)
        self.db.commit()
        self.db.refresh(comment)
        return CommentResponse.model_validate(comment)
