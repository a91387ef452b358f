from datetime import datetime
from typing import Optional

from pydantic import Field

from blog.models.comment import MAX_COMMENT_LENGTH
from blog.schemas.base import CamelModel, Pagination
from blog.schemas.user import AuthorSummary


class CommentCreate(CamelModel):
    post_id: int
    body: str = Field(..., min_length=1, max_length=MAX_COMMENT_LENGTH)
    parent_id: Optional[int] = None


class CommentUpdate(CamelModel):
    body: str = Field(..., min_length=1, max_length=MAX_COMMENT_LENGTH)


class CommentResponse(CamelModel):
    id: int
    body: str
    post_id: int
    parent_id: Optional[int] = None
    is_active: bool
    is_edited: bool
    created_at: datetime
    updated_at: datetime
    author: AuthorSummary
    replies: list["CommentResponse"] = []


class CommentListResponse(CamelModel):
    comments: list[CommentResponse]
    pagination: Pagination


class CommentPostRef(CamelModel):
    id: int
    title: str
    slug: str


class CommentWithPost(CommentResponse):
    post: CommentPostRef


class CommentWithPostList(CamelModel):
    comments: list[CommentWithPost]
    pagination: Pagination


class CommentModerate(CamelModel):
    is_active: bool