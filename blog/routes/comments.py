"""
Comment Routes

Reading and writing comments on posts. Moderation lives under the admin routes.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from blog.auth import get_current_user, get_optional_user
from blog.constants.roles import ADMIN_ROLES
from blog.database import get_db
from blog.models.user import User
from blog.schemas.base import Pagination
from blog.schemas.comment import CommentCreate, CommentListResponse, CommentResponse, CommentUpdate
from blog.schemas.engagement import ReactionRequest, ReactionResponse
from blog.services.comment_service import CommentService
from blog.services.reaction_service import ReactionService

router = APIRouter(tags=["Comments"])


@router.get("/comments", response_model=CommentListResponse)
async def list_comments(
    post_id: int = Query(..., alias="postId"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    """
    Active comments for a post, newest first.

    Each top-level comment carries its replies, oldest first.
    """
    comments, total = await CommentService(db).list_for_post(post_id, page=page, limit=limit)
    return CommentListResponse(
        comments=[CommentResponse.model_validate(c) for c in comments],
        pagination=Pagination.build(page, limit, total),
    )


@router.post("/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    data: CommentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    comment = await CommentService(db).create_comment(
        post_id=data.post_id,
        author_id=current_user.id,
        body=data.body,
        parent_id=data.parent_id,
    )
    return CommentResponse.model_validate(comment)


@router.put("/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: int,
    data: CommentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    comment = await CommentService(db).update_comment(comment_id, current_user.id, data.body)
    return CommentResponse.model_validate(comment)


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> None:
    """Authors can delete their own comments. Admins can delete any comment."""
    await CommentService(db).delete_comment(
        comment_id,
        current_user.id,
        is_admin=current_user.role_name in ADMIN_ROLES,
    )


@router.post("/comments/{comment_id}/like", response_model=ReactionResponse)
async def toggle_comment_like(
    comment_id: int,
    data: ReactionRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = await ReactionService(db).toggle_comment_reaction(comment_id, current_user.id, data.type)
    return ReactionResponse(**result)


@router.get("/comments/{comment_id}/like", response_model=ReactionResponse)
async def get_comment_likes(
    comment_id: int,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
):
    result = await ReactionService(db).get_comment_reactions(comment_id, user.id if user else None)
    return ReactionResponse(**result)
