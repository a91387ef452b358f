"""Admin dashboard statistics."""

from datetime import timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from blog.models.category import Category
from blog.models.comment import Comment
from blog.models.like import Like, LikeType
from blog.models.post import Post, PostStatus
from blog.models.user import User
from blog.models.view import View
from blog.schemas.stats import CategoryPostCount, DashboardStats, RecentPost
from blog.utils.dates import utcnow

RECENT_PERIOD = timedelta(days=7)
TOP_LIMIT = 5


async def get_dashboard_stats(db: AsyncSession) -> DashboardStats:
    """Site-wide totals plus 7-day activity, top categories and recent posts."""
    week_ago = utcnow() - RECENT_PERIOD

    # Single query for post totals by status
    post_row = (
        await db.execute(
            select(
                func.count(Post.id).label("total"),
                func.count(Post.id).filter(Post.status == PostStatus.PUBLISHED).label("published"),
                func.count(Post.id).filter(Post.status == PostStatus.DRAFT).label("draft"),
            )
        )
    ).one()

    total_users = (await db.execute(select(func.count(User.id)))).scalar() or 0
    weekly_users = (await db.execute(select(func.count(User.id)).where(User.created_at >= week_ago))).scalar() or 0
    total_comments = (
        await db.execute(select(func.count(Comment.id)).where(Comment.is_active.is_(True)))
    ).scalar() or 0
    total_views = (await db.execute(select(func.count(View.id)))).scalar() or 0
    weekly_views = (await db.execute(select(func.count(View.id)).where(View.created_at >= week_ago))).scalar() or 0
    total_likes = (await db.execute(select(func.count(Like.id)).where(Like.type == LikeType.LIKE))).scalar() or 0

    post_count = func.count(Post.id).label("post_count")
    category_rows = await db.execute(
        select(Category.id, Category.name, Category.slug, post_count)
        .outerjoin(Post, Post.category_id == Category.id)
        .group_by(Category.id, Category.name, Category.slug)
        .order_by(post_count.desc(), Category.name)
        .limit(TOP_LIMIT)
    )
    top_categories = [
        CategoryPostCount(id=row.id, name=row.name, slug=row.slug, post_count=row.post_count)
        for row in category_rows.all()
    ]

    recent = await db.execute(select(Post).order_by(Post.created_at.desc(), Post.id.desc()).limit(TOP_LIMIT))
    recent_posts = [
        RecentPost(id=post.id, title=post.title, slug=post.slug, status=post.status.value, created_at=post.created_at)
        for post in recent.scalars().all()
    ]

    return DashboardStats(
        total_posts=post_row.total or 0,
        published_posts=post_row.published or 0,
        draft_posts=post_row.draft or 0,
        total_users=total_users,
        total_comments=total_comments,
        total_views=total_views,
        weekly_views=weekly_views,
        weekly_users=weekly_users,
        total_likes=total_likes,
        top_categories=top_categories,
        recent_posts=recent_posts,
    )
