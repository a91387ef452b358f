from typing import Literal, Optional

from blog.models.like import LikeType
from blog.schemas.base import CamelModel, Pagination
from blog.schemas.post import PostSummary


class ViewResponse(CamelModel):
    success: bool
    total_views: Optional[int] = None
    message: str


class ReactionRequest(CamelModel):
    type: LikeType


class ReactionResponse(CamelModel):
    success: bool = True
    like_count: int
    dislike_count: int
    user_reaction: Optional[LikeType] = None
    action: Optional[Literal["added", "removed"]] = None
    type: Optional[LikeType] = None


class SaveResponse(CamelModel):
    success: bool = True
    action: Literal["saved", "unsaved"]
    message: str


class SaveStatus(CamelModel):
    is_saved: bool


class SavedPostList(CamelModel):
    data: list[PostSummary]
    pagination: Pagination
