"""
Post Service

Public reads (published posts only) and admin CRUD for posts.
"""

import logging
from typing import Any, Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from blog.exceptions import CategoryNotFoundError, PostNotFoundError, PostNotPublishedError, TagNotFoundError
from blog.models.category import Category
from blog.models.comment import Comment
from blog.models.like import Like, LikeType
from blog.models.post import Post, PostStatus, PostType
from blog.models.tag import Tag
from blog.models.view import View
from blog.schemas.post import PostCreate, PostDetail, PostSummary, PostUpdate
from blog.utils.dates import utcnow
from blog.utils.reading_time import reading_time, word_count
from blog.utils.slugify import unique_slug

logger = logging.getLogger(__name__)

EMPTY_COUNTS = {"view_count": 0, "like_count": 0, "comment_count": 0}


class PostService:
    """Service for reading and managing posts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ============== Lookups ==============

    async def get_by_slug(self, slug: str) -> Post:
        result = await self.db.execute(select(Post).where(Post.slug == slug))
        post = result.scalars().first()
        if not post:
            raise PostNotFoundError(slug)
        return post

    async def get_published_by_slug(self, slug: str, action: str = "interact with") -> Post:
        """Like get_by_slug, but refuses posts that are not published."""
        post = await self.get_by_slug(slug)
        if post.status != PostStatus.PUBLISHED:
            raise PostNotPublishedError(action)
        return post

    async def get_public_post(self, slug: str) -> Post:
        """A published post for public display; unpublished posts are reported as missing."""
        post = await self.get_by_slug(slug)
        if post.status != PostStatus.PUBLISHED:
            raise PostNotFoundError(slug)
        return post

    async def get_by_id(self, post_id: int) -> Post:
        result = await self.db.execute(
            select(Post).where(Post.id == post_id).execution_options(populate_existing=True)
        )
        post = result.scalars().first()
        if not post:
            raise PostNotFoundError(post_id)
        return post

    async def engagement_counts(self, post_ids: list[int]) -> dict[int, dict[str, int]]:
        """View, like and active comment counts keyed by post id."""
        counts = {post_id: dict(EMPTY_COUNTS) for post_id in post_ids}
        if not post_ids:
            return counts

        queries = {
            "view_count": select(View.post_id, func.count(View.id))
            .where(View.post_id.in_(post_ids))
            .group_by(View.post_id),
            "like_count": select(Like.post_id, func.count(Like.id))
            .where(and_(Like.post_id.in_(post_ids), Like.type == LikeType.LIKE))
            .group_by(Like.post_id),
            "comment_count": select(Comment.post_id, func.count(Comment.id))
            .where(and_(Comment.post_id.in_(post_ids), Comment.is_active.is_(True)))
            .group_by(Comment.post_id),
        }
        for key, query in queries.items():
            for post_id, count in (await self.db.execute(query)).all():
                counts[post_id][key] = count
        return counts

    async def to_summaries(self, posts: list[Post]) -> list[PostSummary]:
        counts = await self.engagement_counts([post.id for post in posts])
        return [PostSummary.model_validate(post).model_copy(update=counts[post.id]) for post in posts]

    async def to_detail(self, post: Post) -> PostDetail:
        counts = await self.engagement_counts([post.id])
        return PostDetail.model_validate(post).model_copy(update=counts[post.id])

    # ============== Public listings ==============

    async def list_published(
        self,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        category: Optional[str] = None,
        tag: Optional[str] = None,
        post_type: Optional[PostType] = None,
        featured: Optional[bool] = None,
        author_id: Optional[int] = None,
    ) -> tuple[list[Post], int]:
        """
        Published posts, pinned first and then newest first.

        Args:
            page: 1-based page number
            limit: Page size
            search: Case-insensitive match on title, excerpt or body
            category: Category slug
            tag: Tag slug
            post_type: Restrict to one post type
            featured: Only featured posts when True
            author_id: Restrict to one author

        Returns:
            (posts on the page, total matching posts)
        """
        conditions = [Post.status == PostStatus.PUBLISHED]
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(Post.title.ilike(pattern), Post.excerpt.ilike(pattern), Post.body.ilike(pattern)))
        if category:
            conditions.append(Post.category.has(Category.slug == category))
        if tag:
            conditions.append(Post.tags.any(Tag.slug == tag))
        if post_type:
            conditions.append(Post.post_type == post_type)
        if featured:
            conditions.append(Post.is_featured.is_(True))
        if author_id:
            conditions.append(Post.author_id == author_id)

        total = (await self.db.execute(select(func.count(Post.id)).where(and_(*conditions)))).scalar() or 0

        result = await self.db.execute(
            select(Post)
            .where(and_(*conditions))
            .order_by(Post.is_pinned.desc(), Post.published_at.desc(), Post.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def popular(self, limit: int = 5) -> list[Post]:
        """Published posts ranked by views, then likes, then recency."""
        views = (
            select(View.post_id, func.count(View.id).label("view_count")).group_by(View.post_id).subquery()
        )
        likes = (
            select(Like.post_id, func.count(Like.id).label("like_count"))
            .where(Like.type == LikeType.LIKE)
            .group_by(Like.post_id)
            .subquery()
        )
        result = await self.db.execute(
            select(Post)
            .outerjoin(views, views.c.post_id == Post.id)
            .outerjoin(likes, likes.c.post_id == Post.id)
            .where(Post.status == PostStatus.PUBLISHED)
            .order_by(
                func.coalesce(views.c.view_count, 0).desc(),
                func.coalesce(likes.c.like_count, 0).desc(),
                Post.published_at.desc(),
            )
            .limit(limit)
        )
        return list(result.scalars().all())

    # ============== Admin ==============

    async def list_all(
        self,
        page: int = 1,
        limit: int = 20,
        status: Optional[PostStatus] = None,
        search: Optional[str] = None,
    ) -> tuple[list[Post], int]:
        conditions = []
        if status:
            conditions.append(Post.status == status)
        if search:
            conditions.append(Post.title.ilike(f"%{search}%"))

        count_query = select(func.count(Post.id))
        query = select(Post).order_by(Post.created_at.desc(), Post.id.desc())
        if conditions:
            count_query = count_query.where(and_(*conditions))
            query = query.where(and_(*conditions))

        total = (await self.db.execute(count_query)).scalar() or 0
        result = await self.db.execute(query.offset((page - 1) * limit).limit(limit))
        return list(result.scalars().all()), total

    async def create(self, data: PostCreate, author_id: int) -> Post:
        await self._ensure_category(data.category_id)
        tags = await self._load_tags(data.tag_ids)

        published_at = data.published_at
        if data.status == PostStatus.PUBLISHED and published_at is None:
            published_at = utcnow()

        post = Post(
            title=data.title,
            slug=await unique_slug(self.db, Post, data.slug or data.title),
            excerpt=data.excerpt,
            body=data.body,
            cover_image=data.cover_image,
            status=data.status,
            post_type=data.post_type,
            reading_time=reading_time(data.body),
            word_count=word_count(data.body),
            allow_comments=data.allow_comments,
            allow_likes=data.allow_likes,
            is_pinned=data.is_pinned,
            is_featured=data.is_featured,
            meta_title=data.meta_title,
            meta_description=data.meta_description,
            published_at=published_at,
            author_id=author_id,
            category_id=data.category_id,
            tags=tags,
        )
        self.db.add(post)
        await self.db.commit()

        logger.info(f"Post created: id={post.id}, slug={post.slug}, author={author_id}")
        return await self.get_by_id(post.id)

    async def update(self, post_id: int, data: PostUpdate) -> Post:
        post = await self.get_by_id(post_id)
        changes: dict[str, Any] = data.model_dump(exclude_unset=True)

        if "category_id" in changes:
            await self._ensure_category(changes["category_id"])
        if "tag_ids" in changes:
            post.tags = await self._load_tags(changes.pop("tag_ids") or [])
        new_slug = changes.pop("slug", None)
        if new_slug:
            post.slug = await unique_slug(self.db, Post, new_slug, exclude_id=post.id)
        if "body" in changes:
            post.reading_time = reading_time(changes["body"])
            post.word_count = word_count(changes["body"])
        if changes.get("status") == PostStatus.PUBLISHED and post.published_at is None and not changes.get("published_at"):
            changes["published_at"] = utcnow()

        for field, value in changes.items():
            setattr(post, field, value)

        await self.db.commit()
        logger.info(f"Post updated: id={post.id}, fields={sorted(data.model_fields_set)}")
        return await self.get_by_id(post.id)

    async def delete(self, post_id: int) -> None:
        post = await self.get_by_id(post_id)
        await self.db.delete(post)
        await self.db.commit()
        logger.info(f"Post deleted: id={post_id}")

    async def _ensure_category(self, category_id: Optional[int]) -> None:
        if category_id is not None and await self.db.get(Category, category_id) is None:
            raise CategoryNotFoundError(category_id)

    async def _load_tags(self, tag_ids: list[int]) -> list[Tag]:
        if not tag_ids:
            return []
        result = await self.db.execute(select(Tag).where(Tag.id.in_(tag_ids)))
        tags = list(result.scalars().all())
        missing = set(tag_ids) - {tag.id for tag in tags}
        if missing:
            raise TagNotFoundError(sorted(missing)[0])
        return tags
