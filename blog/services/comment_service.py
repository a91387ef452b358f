"""
Comment Service

Provides CRUD operations for comments with moderation support.
Comments nest one level: replies attach to a top-level comment.
"""

import logging
from typing import Optional

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.attributes import set_committed_value

from blog.exceptions import (
    AuthorizationError,
    CommentNotFoundError,
    CommentsDisabledError,
    PostNotFoundError,
    ValidationError,
)
from blog.models.comment import Comment
from blog.models.post import Post

logger = logging.getLogger(__name__)


class CommentService:
    """Service for managing comments."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_comment(
        self,
        post_id: int,
        author_id: int,
        body: str,
        parent_id: Optional[int] = None,
    ) -> Comment:
        """
        Create a new comment.

        Args:
            post_id: ID of the post being commented on
            author_id: ID of the user creating the comment
            body: Comment text
            parent_id: Optional top-level comment this replies to

        Returns:
            Created comment instance
        """
        post = await self.db.get(Post, post_id)
        if not post:
            raise PostNotFoundError(post_id)
        if not post.allow_comments:
            raise CommentsDisabledError()

        if parent_id is not None:
            parent = await self.db.get(Comment, parent_id)
            if not parent or not parent.is_active:
                raise ValidationError("Parent comment not found", field="parentId")
            if parent.post_id != post_id:
                raise ValidationError("Parent comment belongs to a different post", field="parentId")
            if parent.parent_id is not None:
                raise ValidationError("Replies cannot be nested further", field="parentId")

        comment = Comment(
            post_id=post_id,
            author_id=author_id,
            body=body.strip(),
            parent_id=parent_id,
        )
        self.db.add(comment)
        await self.db.commit()

        logger.info(f"Comment created: id={comment.id}, post={post_id}, author={author_id}")
        return await self.get_comment(comment.id)

    async def get_comment(self, comment_id: int) -> Comment:
        result = await self.db.execute(
            select(Comment)
            .options(selectinload(Comment.post))
            .where(Comment.id == comment_id)
            .execution_options(populate_existing=True)
        )
        comment = result.scalar_one_or_none()
        if not comment:
            raise CommentNotFoundError(comment_id)
        return comment

    async def list_for_post(self, post_id: int, page: int = 1, limit: int = 10) -> tuple[list[Comment], int]:
        """
        Active top-level comments for a post, newest first, each with its
        active replies attached oldest first.

        Returns:
            (comments on the page, total active top-level comments)
        """
        if await self.db.get(Post, post_id) is None:
            raise PostNotFoundError(post_id)

        conditions = and_(
            Comment.post_id == post_id,
            Comment.is_active.is_(True),
            Comment.parent_id.is_(None),
        )
        total = (await self.db.execute(select(func.count(Comment.id)).where(conditions))).scalar() or 0

        result = await self.db.execute(
            select(Comment)
            .where(conditions)
            .order_by(Comment.created_at.desc(), Comment.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        comments = list(result.scalars().all())
        await self._attach_replies(comments)
        return comments, total

    async def update_comment(self, comment_id: int, user_id: int, body: str) -> Comment:
        """Only the original author can edit a comment."""
        comment = await self.get_comment(comment_id)
        if comment.author_id != user_id:
            raise AuthorizationError("You can only edit your own comments")

        comment.body = body.strip()
        comment.is_edited = True
        await self.db.commit()

        logger.info(f"Comment updated: id={comment_id}")
        return await self.get_comment(comment_id)

    async def delete_comment(self, comment_id: int, user_id: int, is_admin: bool = False) -> None:
        """Authors can delete their own comments; admins can delete any comment."""
        comment = await self.get_comment(comment_id)
        if comment.author_id != user_id and not is_admin:
            raise AuthorizationError("You can only delete your own comments")

        await self.db.delete(comment)
        await self.db.commit()
        logger.info(f"Comment deleted: id={comment_id}, by user {user_id}")

    # ============== Moderation ==============

    async def list_all(
        self,
        page: int = 1,
        limit: int = 20,
        active: Optional[bool] = None,
    ) -> tuple[list[Comment], int]:
        count_query = select(func.count(Comment.id))
        query = select(Comment).options(selectinload(Comment.post)).order_by(Comment.created_at.desc(), Comment.id.desc())
        if active is not None:
            count_query = count_query.where(Comment.is_active.is_(active))
            query = query.where(Comment.is_active.is_(active))

        total = (await self.db.execute(count_query)).scalar() or 0
        result = await self.db.execute(query.offset((page - 1) * limit).limit(limit))
        return list(result.scalars().all()), total

    async def set_active(self, comment_id: int, is_active: bool) -> Comment:
        comment = await self.get_comment(comment_id)
        comment.is_active = is_active
        await self.db.commit()

        logger.info(f"Comment {comment_id} moderated: is_active={is_active}")
        return await self.get_comment(comment_id)

    async def _attach_replies(self, comments: list[Comment]) -> None:
        by_parent: dict[int, list[Comment]] = {comment.id: [] for comment in comments}
        if by_parent:
            result = await self.db.execute(
                select(Comment)
                .where(and_(Comment.parent_id.in_(list(by_parent)), Comment.is_active.is_(True)))
                .order_by(Comment.created_at.asc(), Comment.id.asc())
            )
            for reply in result.scalars().all():
                by_parent[reply.parent_id].append(reply)
        for comment in comments:
            set_committed_value(comment, "replies", by_parent[comment.id])
