from datetime import datetime

from blog.schemas.base import CamelModel


class CategoryPostCount(CamelModel):
    id: int
    name: str
    slug: str
    post_count: int


class RecentPost(CamelModel):
    id: int
    title: str
    slug: str
    status: str
    created_at: datetime


class DashboardStats(CamelModel):
    total_posts: int
    published_posts: int
    draft_posts: int
    total_users: int
    total_comments: int
    total_views: int
    total_likes: int
    weekly_views: int
    weekly_users: int
    top_categories: list[CategoryPostCount]
    recent_posts: list[RecentPost]
