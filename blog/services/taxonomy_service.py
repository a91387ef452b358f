"""
Category and Tag Service

Public listings with post counts, and admin CRUD.
"""

import logging
from typing import Any

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from blog.exceptions import CategoryNotFoundError, DuplicateResourceError, TagNotFoundError, ValidationError
from blog.models.category import Category
from blog.models.post import Post, PostStatus
from blog.models.post_tags import post_tags
from blog.models.tag import Tag
from blog.schemas.taxonomy import CategoryCreate, CategoryUpdate, TagCreate, TagUpdate
from blog.utils.slugify import unique_slug

logger = logging.getLogger(__name__)


class CategoryService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_with_counts(self, include_inactive: bool = False) -> list[tuple[Category, int]]:
        """Categories ordered by name, each with its number of published posts."""
        post_count = func.count(Post.id)
        query = (
            select(Category, post_count)
            .outerjoin(Post, and_(Post.category_id == Category.id, Post.status == PostStatus.PUBLISHED))
            .group_by(Category.id)
            .order_by(Category.name)
        )
        if not include_inactive:
            query = query.where(Category.is_active.is_(True))
        result = await self.db.execute(query)
        return [(row[0], row[1]) for row in result.all()]

    async def get_by_slug(self, slug: str) -> Category:
        result = await self.db.execute(
            select(Category).where(and_(Category.slug == slug, Category.is_active.is_(True)))
        )
        category = result.scalars().first()
        if not category:
            raise CategoryNotFoundError(slug)
        return category

    async def get(self, category_id: int) -> Category:
        category = await self.db.get(Category, category_id)
        if not category:
            raise CategoryNotFoundError(category_id)
        return category

    async def create(self, data: CategoryCreate) -> Category:
        await self._ensure_unique_name(data.name)
        category = Category(
            name=data.name,
            slug=await unique_slug(self.db, Category, data.slug or data.name),
            description=data.description,
            color=data.color,
            icon=data.icon,
            is_active=data.is_active,
        )
        self.db.add(category)
        await self.db.commit()
        await self.db.refresh(category)
        logger.info(f"Category created: {category.slug}")
        return category

    async def update(self, category_id: int, data: CategoryUpdate) -> Category:
        category = await self.get(category_id)
        changes: dict[str, Any] = data.model_dump(exclude_unset=True)

        if changes.get("name") and changes["name"] != category.name:
            await self._ensure_unique_name(changes["name"])
        new_slug = changes.pop("slug", None)
        if new_slug:
            category.slug = await unique_slug(self.db, Category, new_slug, exclude_id=category.id)
        for field, value in changes.items():
            setattr(category, field, value)

        await self.db.commit()
        await self.db.refresh(category)
        return category

    async def delete(self, category_id: int) -> None:
        category = await self.get(category_id)
        in_use = (await self.db.execute(select(func.count(Post.id)).where(Post.category_id == category_id))).scalar()
        if in_use:
            raise ValidationError(f"Category has {in_use} posts; move them before deleting it")
        await self.db.delete(category)
        await self.db.commit()
        logger.info(f"Category deleted: id={category_id}")

    async def _ensure_unique_name(self, name: str) -> None:
        existing = await self.db.execute(select(Category.id).where(func.lower(Category.name) == name.lower()))
        if existing.first() is not None:
            raise DuplicateResourceError("Category", "name", name)


class TagService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_with_counts(self) -> list[tuple[Tag, int]]:
        """Tags ordered by name, each with the number of posts carrying it."""
        result = await self.db.execute(
            select(Tag, func.count(post_tags.c.post_id))
            .outerjoin(post_tags, post_tags.c.tag_id == Tag.id)
            .group_by(Tag.id)
            .order_by(Tag.name)
        )
        return [(row[0], row[1]) for row in result.all()]

    async def get(self, tag_id: int) -> Tag:
        tag = await self.db.get(Tag, tag_id)
        if not tag:
            raise TagNotFoundError(tag_id)
        return tag

    async def create(self, data: TagCreate) -> Tag:
        await self._ensure_unique_name(data.name)
        tag = Tag(
            name=data.name,
            slug=await unique_slug(self.db, Tag, data.slug or data.name),
            color=data.color,
        )
        self.db.add(tag)
        await self.db.commit()
        await self.db.refresh(tag)
        logger.info(f"Tag created: {tag.slug}")
        return tag

    async def update(self, tag_id: int, data: TagUpdate) -> Tag:
        tag = await self.get(tag_id)
        changes: dict[str, Any] = data.model_dump(exclude_unset=True)

        if changes.get("name") and changes["name"] != tag.name:
            await self._ensure_unique_name(changes["name"])
        new_slug = changes.pop("slug", None)
        if new_slug:
            tag.slug = await unique_slug(self.db, Tag, new_slug, exclude_id=tag.id)
        for field, value in changes.items():
            setattr(tag, field, value)

        await self.db.commit()
        await self.db.refresh(tag)
        return tag

    async def delete(self, tag_id: int) -> None:
        tag = await self.get(tag_id)
        await self.db.delete(tag)
        await self.db.commit()
        logger.info(f"Tag deleted: id={tag_id}")

    async def _ensure_unique_name(self, name: str) -> None:
        existing = await self.db.execute(select(Tag.id).where(func.lower(Tag.name) == name.lower()))
        if existing.first() is not None:
            raise DuplicateResourceError("Tag", "name", name)
