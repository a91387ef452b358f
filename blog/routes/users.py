from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from blog.auth import get_current_user
from blog.database import get_db
from blog.models.user import User
from blog.schemas.base import Pagination
from blog.schemas.comment import CommentWithPost, CommentWithPostList
from blog.schemas.post import PostListResponse
from blog.schemas.user import AuthorList, AuthorResponse, PasswordChange, ProfileUpdate, SessionUser, UserProfile
from blog.services import user_service
from blog.services.post_service import PostService
from blog.services.saved_post_service import SavedPostService

router = APIRouter(tags=["Users"])


@router.get("/authors", response_model=AuthorList)
async def list_authors(
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Writers with published posts, most prolific first."""
    authors = await user_service.list_authors(db, limit)
    data = [AuthorResponse.model_validate(user).model_copy(update={"post_count": count}) for user, count in authors]
    return AuthorList(data=data, total=len(data))


@router.get("/users/{user_id}", response_model=UserProfile)
async def get_profile(user_id: int, db: AsyncSession = Depends(get_db)):
    """Public profile with post, comment and like counts."""
    user = await user_service.get_user(db, user_id)
    stats = await user_service.get_user_stats(db, user.id)
    return UserProfile.model_validate(user).model_copy(update={"stats": stats})


@router.get("/users/{user_id}/posts", response_model=PostListResponse)
async def get_user_posts(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(6, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    posts, total = await user_service.list_user_posts(db, user_id, page, limit)
    return PostListResponse(data=await PostService(db).to_summaries(posts), pagination=Pagination.build(page, limit, total))


@router.get("/users/{user_id}/comments", response_model=CommentWithPostList)
async def get_user_comments(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user_service.ensure_own_activity(current_user, user_id)
    comments, total = await user_service.list_user_comments(db, user_id, page, limit)
    return CommentWithPostList(
        comments=[CommentWithPost.model_validate(c) for c in comments],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/users/{user_id}/likes", response_model=PostListResponse)
async def get_user_likes(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user_service.ensure_own_activity(current_user, user_id)
    posts, total = await user_service.list_liked_posts(db, user_id, page, limit)
    return PostListResponse(data=await PostService(db).to_summaries(posts), pagination=Pagination.build(page, limit, total))


@router.get("/users/{user_id}/saved", response_model=PostListResponse)
async def get_user_saved(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user_service.ensure_own_activity(current_user, user_id)
    posts, total = await SavedPostService(db).list_saved(user_id, page, limit)
    return PostListResponse(data=await PostService(db).to_summaries(posts), pagination=Pagination.build(page, limit, total))


@router.put("/users/me", response_model=SessionUser)
async def update_me(
    data: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await user_service.update_profile(db, current_user, data)


@router.put("/users/me/password")
async def change_my_password(
    data: PasswordChange,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await user_service.change_password(db, current_user, data.current_password, data.new_password)
    return {"success": True, "message": "Password updated"}
