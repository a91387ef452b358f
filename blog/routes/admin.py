"""
Admin Routes

Dashboard statistics and management of posts, categories, tags, comments
and users. Every route requires the admin role; the admin gate middleware
also screens these paths before they reach the router.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from blog.auth import require_roles
from blog.constants.roles import RoleName
from blog.database import get_db
from blog.models.post import PostStatus
from blog.models.user import User
from blog.schemas.base import Pagination
from blog.schemas.comment import CommentModerate, CommentWithPost, CommentWithPostList
from blog.schemas.post import PostCreate, PostDetail, PostListResponse, PostUpdate
from blog.schemas.stats import DashboardStats
from blog.schemas.taxonomy import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    TagCreate,
    TagResponse,
    TagUpdate,
)
from blog.schemas.user import AdminUserList, AdminUserResponse, AdminUserUpdate
from blog.services import user_service
from blog.services.comment_service import CommentService
from blog.services.post_service import PostService
from blog.services.stats_service import get_dashboard_stats
from blog.services.taxonomy_service import CategoryService, TagService
from blog.utils.session import get_session_manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admin"])

require_admin = require_roles(RoleName.ADMIN.value)


# ============== Dashboard ==============


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)):
    return await get_dashboard_stats(db)


# ============== Posts ==============


@router.get("/posts", response_model=PostListResponse)
async def list_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    post_status: Optional[PostStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    service = PostService(db)
    posts, total = await service.list_all(page=page, limit=limit, status=post_status, search=search)
    return PostListResponse(data=await service.to_summaries(posts), pagination=Pagination.build(page, limit, total))


@router.post("/posts", response_model=PostDetail, status_code=status.HTTP_201_CREATED)
async def create_post(
    data: PostCreate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    service = PostService(db)
    return await service.to_detail(await service.create(data, author_id=admin.id))


@router.get("/posts/{post_id}", response_model=PostDetail)
async def get_post(post_id: int, db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)):
    service = PostService(db)
    return await service.to_detail(await service.get_by_id(post_id))


@router.put("/posts/{post_id}", response_model=PostDetail)
async def update_post(
    post_id: int,
    data: PostUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    service = PostService(db)
    return await service.to_detail(await service.update(post_id, data))


@router.delete("/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(post_id: int, db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)) -> None:
    await PostService(db).delete(post_id)


# ============== Categories ==============


@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)):
    rows = await CategoryService(db).list_with_counts(include_inactive=True)
    return [CategoryResponse.model_validate(category).model_copy(update={"post_count": count}) for category, count in rows]


@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return await CategoryService(db).create(data)


@router.put("/categories/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    data: CategoryUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return await CategoryService(db).update(category_id, data)


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: int,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
) -> None:
    await CategoryService(db).delete(category_id)


# ============== Tags ==============


@router.get("/tags", response_model=list[TagResponse])
async def list_tags(db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)):
    rows = await TagService(db).list_with_counts()
    return [TagResponse.model_validate(tag).model_copy(update={"post_count": count}) for tag, count in rows]


@router.post("/tags", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
async def create_tag(data: TagCreate, db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)):
    return await TagService(db).create(data)


@router.put("/tags/{tag_id}", response_model=TagResponse)
async def update_tag(
    tag_id: int,
    data: TagUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return await TagService(db).update(tag_id, data)


@router.delete("/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tag(tag_id: int, db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)) -> None:
    await TagService(db).delete(tag_id)


# ============== Comments ==============


@router.get("/comments", response_model=CommentWithPostList)
async def list_comments(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    active: Optional[bool] = None,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    comments, total = await CommentService(db).list_all(page=page, limit=limit, active=active)
    return CommentWithPostList(
        comments=[CommentWithPost.model_validate(c) for c in comments],
        pagination=Pagination.build(page, limit, total),
    )


@router.patch("/comments/{comment_id}", response_model=CommentWithPost)
async def moderate_comment(
    comment_id: int,
    data: CommentModerate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    comment = await CommentService(db).set_active(comment_id, data.is_active)
    logger.info(f"Admin {admin.id} set comment {comment_id} is_active={data.is_active}")
    return CommentWithPost.model_validate(comment)


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: int,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
) -> None:
    await CommentService(db).delete_comment(comment_id, admin.id, is_admin=True)


# ============== Users ==============


@router.get("/users", response_model=AdminUserList)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    users, total = await user_service.list_users(db, page=page, limit=limit, search=search)
    return AdminUserList(users=[AdminUserResponse.model_validate(u) for u in users], total=total)


@router.patch("/users/{user_id}", response_model=AdminUserResponse)
async def update_user(
    user_id: int,
    data: AdminUserUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return await user_service.admin_update_user(db, get_session_manager(request), admin, user_id, data)
