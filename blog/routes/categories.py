from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from blog.database import get_db
from blog.schemas.taxonomy import CategoryResponse, TagResponse
from blog.services.taxonomy_service import CategoryService, TagService

router = APIRouter()


@router.get("/categories", response_model=list[CategoryResponse], tags=["Categories"])
async def list_categories(db: AsyncSession = Depends(get_db)):
    rows = await CategoryService(db).list_with_counts()
    return [CategoryResponse.model_validate(category).model_copy(update={"post_count": count}) for category, count in rows]


@router.get("/categories/{slug}", response_model=CategoryResponse, tags=["Categories"])
async def get_category(slug: str, db: AsyncSession = Depends(get_db)):
    return await CategoryService(db).get_by_slug(slug)


@router.get("/tags", response_model=list[TagResponse], tags=["Tags"])
async def list_tags(db: AsyncSession = Depends(get_db)):
    rows = await TagService(db).list_with_counts()
    return [TagResponse.model_validate(tag).model_copy(update={"post_count": count}) for tag, count in rows]
