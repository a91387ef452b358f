from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from blog.models.post import PostStatus, PostType
from blog.schemas.base import CamelModel, Pagination, reject_null
from blog.schemas.taxonomy import CategorySummary, TagResponse
from blog.schemas.user import AuthorSummary


class PostSummary(CamelModel):
    id: int
    title: str
    slug: str
    excerpt: Optional[str] = None
    cover_image: Optional[str] = None
    status: PostStatus
    post_type: PostType
    reading_time: int
    is_pinned: bool
    is_featured: bool
    published_at: Optional[datetime] = None
    author: AuthorSummary
    category: Optional[CategorySummary] = None
    tags: list[TagResponse] = []
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0


class PostDetail(PostSummary):
    body: str
    word_count: int
    allow_comments: bool
    allow_likes: bool
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PostListResponse(CamelModel):
    data: list[PostSummary]
    pagination: Pagination


class PopularPostsResponse(CamelModel):
    success: bool = True
    data: list[PostSummary]


class PostCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    body: str = Field(..., min_length=1)
    slug: Optional[str] = Field(None, max_length=255)
    excerpt: Optional[str] = None
    cover_image: Optional[str] = None
    status: PostStatus = PostStatus.DRAFT
    post_type: PostType = PostType.ARTICLE
    category_id: Optional[int] = None
    tag_ids: list[int] = []
    allow_comments: bool = True
    allow_likes: bool = True
    is_pinned: bool = False
    is_featured: bool = False
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = None
    published_at: Optional[datetime] = None


class PostUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    body: Optional[str] = Field(None, min_length=1)
    slug: Optional[str] = Field(None, max_length=255)
    excerpt: Optional[str] = None
    cover_image: Optional[str] = None
    status: Optional[PostStatus] = None
    post_type: Optional[PostType] = None
    category_id: Optional[int] = None
    tag_ids: Optional[list[int]] = None
    allow_comments: Optional[bool] = None
    allow_likes: Optional[bool] = None
    is_pinned: Optional[bool] = None
    is_featured: Optional[bool] = None
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = None
    published_at: Optional[datetime] = None

    @field_validator(
        "title", "body", "status", "post_type", "allow_comments", "allow_likes", "is_pinned", "is_featured"
    )
    @classmethod
    def not_null(cls, value):
        return reject_null(value)
