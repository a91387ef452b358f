"""
Reaction Service

Like/dislike toggling on posts and comments. A user holds at most one
reaction per target (unique on user_id + post_id, or user_id + comment_id);
choosing the other type switches it in place.
"""

import logging
from typing import Any, Optional, Union

from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from blog.exceptions import CommentNotFoundError, PostNotPublishedError, ReactionsDisabledError
from blog.models.comment import Comment
from blog.models.comment_like import CommentLike
from blog.models.like import Like, LikeType
from blog.models.post import PostStatus
from blog.services.post_service import PostService

logger = logging.getLogger(__name__)

ReactionModel = Union[type[Like], type[CommentLike]]


class ReactionService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.posts = PostService(db)

    # ============== Posts ==============

    async def toggle_reaction(self, slug: str, user_id: int, reaction_type: LikeType) -> dict[str, Any]:
        """
        Toggle a reaction on a post.

        - If no reaction exists, create one.
        - If the same reaction type exists, remove it (toggle off).
        - If the other type exists, switch to the new type.

        Returns reaction counts, the action taken and the user's current reaction.
        """
        post = await self.posts.get_by_slug(slug)
        if not post.allow_likes:
            raise ReactionsDisabledError()
        if post.status != PostStatus.PUBLISHED:
            raise PostNotPublishedError("like")

        return await self._toggle(Like, Like.post_id, post.id, user_id, reaction_type)

    async def get_reactions(self, slug: str, user_id: Optional[int] = None) -> dict[str, Any]:
        post = await self.posts.get_by_slug(slug)
        return await self._status(Like, Like.post_id, post.id, user_id)

    async def get_counts(self, post_id: int) -> dict[str, int]:
        return await self._counts(Like, Like.post_id, post_id)

    # ============== Comments ==============

    async def toggle_comment_reaction(self, comment_id: int, user_id: int, reaction_type: LikeType) -> dict[str, Any]:
        """Same toggle rules as for posts, on a visible comment."""
        await self._get_visible_comment(comment_id)
        return await self._toggle(CommentLike, CommentLike.comment_id, comment_id, user_id, reaction_type)

    async def get_comment_reactions(self, comment_id: int, user_id: Optional[int] = None) -> dict[str, Any]:
        await self._get_visible_comment(comment_id)
        return await self._status(CommentLike, CommentLike.comment_id, comment_id, user_id)

    async def _get_visible_comment(self, comment_id: int) -> Comment:
        comment = await self.db.get(Comment, comment_id)
        if comment is None or not comment.is_active:
            raise CommentNotFoundError(comment_id)
        return comment

    # ============== Shared ==============

    async def _toggle(
        self,
        model: ReactionModel,
        target: InstrumentedAttribute,
        target_id: int,
        user_id: int,
        reaction_type: LikeType,
    ) -> dict[str, Any]:
        existing = await self._find(model, target, target_id, user_id)
        if existing and existing.type == reaction_type:
            await self.db.delete(existing)
            action = "removed"
        elif existing:
            existing.type = reaction_type
            action = "added"
        else:
            self.db.add(model(user_id=user_id, type=reaction_type, **{target.key: target_id}))
            action = "added"

        try:
            await self.db.commit()
        except IntegrityError:
            # A concurrent request from the same user inserted first
            await self.db.rollback()
            logger.info(f"Concurrent {model.__tablename__} insert for {target.key}={target_id} by user {user_id}")
            action = "added"

        counts = await self._counts(model, target, target_id)
        logger.info(f"Reaction {action}: {target.key}={target_id}, user={user_id}, type={reaction_type.value}")
        return {
            **counts,
            "action": action,
            "type": reaction_type,
            "user_reaction": reaction_type if action == "added" else None,
        }

    async def _status(
        self,
        model: ReactionModel,
        target: InstrumentedAttribute,
        target_id: int,
        user_id: Optional[int],
    ) -> dict[str, Any]:
        counts = await self._counts(model, target, target_id)
        user_reaction = None
        if user_id is not None:
            existing = await self._find(model, target, target_id, user_id)
            user_reaction = existing.type if existing else None
        return {**counts, "user_reaction": user_reaction}

    async def _counts(self, model: ReactionModel, target: InstrumentedAttribute, target_id: int) -> dict[str, int]:
        result = await self.db.execute(
            select(model.type, func.count(model.id)).where(target == target_id).group_by(model.type)
        )
        by_type = {row[0]: row[1] for row in result.all()}
        return {
            "like_count": by_type.get(LikeType.LIKE, 0),
            "dislike_count": by_type.get(LikeType.DISLIKE, 0),
        }

    async def _find(
        self,
        model: ReactionModel,
        target: InstrumentedAttribute,
        target_id: int,
        user_id: int,
    ) -> Optional[Union[Like, CommentLike]]:
        result = await self.db.execute(select(model).where(and_(target == target_id, model.user_id == user_id)))
        return result.scalar_one_or_none()
