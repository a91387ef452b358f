"""Saved posts: a per-user reading list."""

import logging
from typing import Any, Optional

from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from blog.models.post import Post
from blog.models.saved_post import SavedPost
from blog.services.post_service import PostService

logger = logging.getLogger(__name__)


class SavedPostService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.posts = PostService(db)

    async def toggle_save(self, slug: str, user_id: int) -> dict[str, Any]:
        post = await self.posts.get_published_by_slug(slug, action="save")
        post_id = post.id

        existing = await self._find(post_id, user_id)
        if existing:
            await self.db.delete(existing)
            action = "unsaved"
            message = f'"{post.title}" removed from saved posts'
        else:
            self.db.add(SavedPost(user_id=user_id, post_id=post_id))
            action = "saved"
            message = f'"{post.title}" saved'

        try:
            await self.db.commit()
        except IntegrityError:
            # Already saved by a concurrent request
            await self.db.rollback()

        logger.info(f"Post {post_id} {action} by user {user_id}")
        return {"action": action, "message": message}

    async def is_saved(self, slug: str, user_id: Optional[int]) -> bool:
        post = await self.posts.get_by_slug(slug)
        if user_id is None:
            return False
        return await self._find(post.id, user_id) is not None

    async def list_saved(self, user_id: int, page: int = 1, limit: int = 10) -> tuple[list[Post], int]:
        """The user's saved posts, most recently saved first."""
        total = (
            await self.db.execute(select(func.count(SavedPost.id)).where(SavedPost.user_id == user_id))
        ).scalar() or 0
        result = await self.db.execute(
            select(Post)
            .join(SavedPost, SavedPost.post_id == Post.id)
            .where(SavedPost.user_id == user_id)
            .order_by(SavedPost.created_at.desc(), SavedPost.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def _find(self, post_id: int, user_id: int) -> Optional[SavedPost]:
        result = await self.db.execute(
            select(SavedPost).where(and_(SavedPost.post_id == post_id, SavedPost.user_id == user_id))
        )
        return result.scalar_one_or_none()
