"""
View Recorder

Counts post views, crediting at most one view per source address per post
inside a short deduplication window.

The existence check and the insert are two separate statements, so two
concurrent requests from the same address can both be counted. View counts
are not billing- or security-relevant and the looseness is accepted.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy import and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from blog.exceptions import DatabaseError, PostNotFoundError
from blog.models.post import Post
from blog.models.view import View
from blog.utils.dates import utcnow

logger = logging.getLogger(__name__)

DEFAULT_DEDUP_WINDOW = timedelta(minutes=5)


@dataclass(frozen=True)
class ViewResult:
    """Outcome of a view event: recorded with a running total, or skipped."""

    recorded: bool
    total_views: Optional[int] = None

    @classmethod
    def skipped(cls) -> "ViewResult":
        return cls(recorded=False)


class ViewRecorder:
    """Records view events for posts. Holds no state between calls."""

    def __init__(
        self,
        db: AsyncSession,
        dedup_window: timedelta = DEFAULT_DEDUP_WINDOW,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.dedup_window = dedup_window
        self.clock = clock

    async def record_view(
        self,
        slug: str,
        source_address: str,
        user_id: Optional[int] = None,
        user_agent: Optional[str] = None,
        referrer: Optional[str] = None,
    ) -> ViewResult:
        """
        Record a view of the post identified by `slug`.

        Args:
            slug: Post slug; must resolve to an existing post
            source_address: Coarse client identifier (IP) used for deduplication
            user_id: Signed-in viewer, if known
            user_agent: Client user agent string
            referrer: Referring URL

        Returns:
            ViewResult.recorded with the post's total view count, or a skipped
            result when the same address viewed the post inside the window.

        Raises:
            PostNotFoundError: unknown slug
            DatabaseError: any storage failure
        """
        try:
            post_id = await self._resolve_post_id(slug)
            now = self.clock()
            window_start = now - self.dedup_window

            recent = await self.db.execute(
                select(View.id)
                .where(
                    and_(
                        View.post_id == post_id,
                        View.ip_address == source_address,
                        View.created_at >= window_start,
                    )
                )
                .limit(1)
            )
            if recent.first() is not None:
                logger.debug(f"View of post {post_id} from {source_address} skipped (inside dedup window)")
                return ViewResult.skipped()

            self.db.add(
                View(
                    post_id=post_id,
                    ip_address=source_address,
                    user_id=user_id,
                    user_agent=user_agent,
                    referrer=referrer,
                    created_at=now,
                )
            )
            await self.db.commit()

            total_views = await self.count_views(post_id)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to record view for post '{slug}': {e}")
            raise DatabaseError("Failed to record view", operation="record_view") from e

        logger.info(f"View recorded for post {post_id}; total views {total_views}")
        return ViewResult(recorded=True, total_views=total_views)

    async def count_views(self, post_id: int) -> int:
        result = await self.db.execute(select(func.count(View.id)).where(View.post_id == post_id))
        return result.scalar() or 0

    async def _resolve_post_id(self, slug: str) -> int:
        result = await self.db.execute(select(Post.id).where(Post.slug == slug))
        post_id = result.scalar_one_or_none()
        if post_id is None:
            raise PostNotFoundError(slug)
        return post_id
