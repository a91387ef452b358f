"""
Post Routes

Public reading endpoints plus the view, reaction and bookmark actions on a post.
"""

from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from blog.auth import get_current_user, get_optional_user
from blog.config import settings
from blog.database import get_db
from blog.models.post import PostType
from blog.models.user import User
from blog.schemas.base import Pagination
from blog.schemas.engagement import (
    ReactionRequest,
    ReactionResponse,
    SavedPostList,
    SaveResponse,
    SaveStatus,
    ViewResponse,
)
from blog.schemas.post import PopularPostsResponse, PostDetail, PostListResponse
from blog.services.post_service import PostService
from blog.services.reaction_service import ReactionService
from blog.services.saved_post_service import SavedPostService
from blog.services.view_service import ViewRecorder
from blog.utils.request import client_address

router = APIRouter()


@router.get("/posts", response_model=PostListResponse)
async def list_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    search: Optional[str] = Query(None, max_length=100),
    category: Optional[str] = None,
    tag: Optional[str] = None,
    post_type: Optional[PostType] = Query(None, alias="type"),
    featured: Optional[bool] = None,
    author_id: Optional[int] = Query(None, alias="authorId"),
    db: AsyncSession = Depends(get_db),
):
    service = PostService(db)
    posts, total = await service.list_published(
        page=page,
        limit=limit,
        search=search,
        category=category,
        tag=tag,
        post_type=post_type,
        featured=featured,
        author_id=author_id,
    )
    return PostListResponse(data=await service.to_summaries(posts), pagination=Pagination.build(page, limit, total))


@router.get("/posts/popular", response_model=PopularPostsResponse)
async def popular_posts(
    limit: int = Query(5, ge=1, le=20),
    db: AsyncSession = Depends(get_db),
):
    service = PostService(db)
    return PopularPostsResponse(data=await service.to_summaries(await service.popular(limit)))


@router.get("/posts/{slug}", response_model=PostDetail)
async def get_post(slug: str, db: AsyncSession = Depends(get_db)):
    service = PostService(db)
    return await service.to_detail(await service.get_public_post(slug))


@router.post("/posts/{slug}/view", response_model=ViewResponse, response_model_exclude_none=True)
async def record_post_view(
    slug: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
):
    """
    Count a view of a post.

    Repeat views from the same address inside the dedup window are not
    counted and answer with success=false.
    """
    recorder = ViewRecorder(db, dedup_window=timedelta(minutes=settings.view_dedup_window_minutes))
    result = await recorder.record_view(
        slug,
        source_address=client_address(request),
        user_id=user.id if user else None,
        user_agent=request.headers.get("user-agent", ""),
        referrer=request.headers.get("referer", ""),
    )

    if not result.recorded:
        return ViewResponse(success=False, message="Post was viewed recently")
    return ViewResponse(success=True, total_views=result.total_views, message="View recorded")


@router.post("/posts/{slug}/like", response_model=ReactionResponse)
async def toggle_like(
    slug: str,
    data: ReactionRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = await ReactionService(db).toggle_reaction(slug, current_user.id, data.type)
    return ReactionResponse(**result)


@router.get("/posts/{slug}/like", response_model=ReactionResponse)
async def get_likes(
    slug: str,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
):
    result = await ReactionService(db).get_reactions(slug, user.id if user else None)
    return ReactionResponse(**result)


@router.post("/posts/{slug}/save", response_model=SaveResponse)
async def toggle_save(
    slug: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = await SavedPostService(db).toggle_save(slug, current_user.id)
    return SaveResponse(**result)


@router.get("/posts/{slug}/save", response_model=SaveStatus)
async def get_save_status(
    slug: str,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
):
    return SaveStatus(is_saved=await SavedPostService(db).is_saved(slug, user.id if user else None))


@router.get("/saved-posts", response_model=SavedPostList)
async def list_saved_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    posts, total = await SavedPostService(db).list_saved(current_user.id, page, limit)
    summaries = await PostService(db).to_summaries(posts)
    return SavedPostList(data=summaries, pagination=Pagination.build(page, limit, total))
