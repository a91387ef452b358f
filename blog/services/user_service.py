import logging
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from blog.auth import hash_password, verify_password
from blog.constants.roles import DEFAULT_ROLE, DEFAULT_ROLES, RoleName
from blog.exceptions import (
    AuthorizationError,
    DuplicateResourceError,
    InvalidCredentialsError,
    OperationNotAllowedError,
    UserBannedError,
    UserNotFoundError,
    ValidationError,
)
from blog.models.comment import Comment
from blog.models.like import Like, LikeType
from blog.models.post import Post, PostStatus
from blog.models.user import Role, User
from blog.schemas.user import AdminUserUpdate, ProfileUpdate, UserStats
from blog.utils.session import SessionManager

logger = logging.getLogger(__name__)


async def ensure_default_roles(db: AsyncSession) -> None:
    """Create any missing default roles."""
    result = await db.execute(select(Role.name))
    existing = set(result.scalars().all())
    missing = [name for name in DEFAULT_ROLES if name.value not in existing]
    for name in missing:
        db.add(Role(name=name.value, description=DEFAULT_ROLES[name]))
    if missing:
        await db.commit()
        logger.info(f"Seeded roles: {[name.value for name in missing]}")


async def get_role(db: AsyncSession, name: RoleName) -> Role:
    result = await db.execute(select(Role).where(Role.name == name.value))
    role = result.scalars().first()
    if role is None:
        logger.error(f"Role '{name.value}' is missing from the database")
        raise ValidationError(f"Role '{name.value}' does not exist", field="role")
    return role


async def get_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(
        select(User).where(User.id == user_id).execution_options(populate_existing=True)
    )
    user = result.scalars().first()
    if not user:
        raise UserNotFoundError(user_id)
    return user


async def register_user(email: str, username: str, password: str, db: AsyncSession) -> User:
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    if result.scalars().first():
        raise DuplicateResourceError("User", "email", email)

    role = await get_role(db, DEFAULT_ROLE)
    new_user = User(
        email=email.lower(),
        username=username,
        hashed_password=hash_password(password),
        role_id=role.id,
    )
    db.add(new_user)
    await db.commit()

    logger.info(f"User registered: {new_user.email}")
    return await get_user(db, new_user.id)


async def authenticate_user(email: str, password: str, db: AsyncSession) -> User:
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    user = result.scalars().first()
    if not user or not verify_password(password, user.hashed_password):
        logger.warning(f"Login failed for email: {email}")
        raise InvalidCredentialsError()
    if user.is_banned:
        logger.warning(f"Banned user attempted login: {email}")
        raise UserBannedError()
    return user


async def get_user_stats(db: AsyncSession, user_id: int) -> UserStats:
    """Published posts written, active comments made and likes given."""
    post_count = await db.execute(
        select(func.count(Post.id)).where(Post.author_id == user_id, Post.status == PostStatus.PUBLISHED)
    )
    comment_count = await db.execute(
        select(func.count(Comment.id)).where(Comment.author_id == user_id, Comment.is_active.is_(True))
    )
    like_count = await db.execute(select(func.count(Like.id)).where(Like.user_id == user_id))
    return UserStats(
        post_count=post_count.scalar() or 0,
        comment_count=comment_count.scalar() or 0,
        like_count=like_count.scalar() or 0,
    )


async def update_profile(db: AsyncSession, user: User, data: ProfileUpdate) -> User:
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    await db.commit()
    logger.info(f"Profile updated for user {user.id}")
    return await get_user(db, user.id)


async def change_password(db: AsyncSession, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.hashed_password):
        raise ValidationError("Current password is incorrect", field="currentPassword")
    user.hashed_password = hash_password(new_password)
    await db.commit()
    logger.info(f"Password changed for user {user.id}")


async def list_users(
    db: AsyncSession,
    page: int = 1,
    limit: int = 20,
    search: Optional[str] = None,
) -> tuple[list[User], int]:
    count_query = select(func.count(User.id))
    query = select(User).order_by(User.created_at.desc(), User.id.desc())
    if search:
        pattern = f"%{search}%"
        condition = or_(User.username.ilike(pattern), User.email.ilike(pattern))
        count_query = count_query.where(condition)
        query = query.where(condition)

    total = (await db.execute(count_query)).scalar() or 0
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))
    return list(result.scalars().unique().all()), total


async def admin_update_user(
    db: AsyncSession,
    sessions: SessionManager,
    acting_admin: User,
    user_id: int,
    data: AdminUserUpdate,
) -> User:
    """
    Change a user's role or ban state.

    Admins cannot ban or demote themselves. Banning a user ends all of
    their sessions.
    """
    user = await get_user(db, user_id)
    if user.id == acting_admin.id:
        if data.is_banned:
            raise OperationNotAllowedError("You cannot ban yourself")
        if data.role is not None and data.role != RoleName.ADMIN:
            raise OperationNotAllowedError("You cannot remove your own admin role")

    if data.role is not None:
        user.role_id = (await get_role(db, data.role)).id
    if data.is_banned is not None:
        user.is_banned = data.is_banned

    await db.commit()

    if data.is_banned:
        await sessions.delete_all_user_sessions(user.id)
    logger.info(f"Admin {acting_admin.id} updated user {user.id}: {data.model_dump(exclude_unset=True)}")
    return await get_user(db, user.id)


# ============== Activity ==============


def ensure_own_activity(current_user: User, user_id: int) -> None:
    """Comments, likes and saved posts are visible to their owner only."""
    if current_user.id != user_id:
        raise AuthorizationError("You can only view your own activity")


async def list_user_posts(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    limit: int = 6,
) -> tuple[list[Post], int]:
    """Published posts by a user; banned users' pages are closed."""
    user = await get_user(db, user_id)
    if user.is_banned:
        raise AuthorizationError("This user is not active")

    conditions = (Post.author_id == user_id, Post.status == PostStatus.PUBLISHED)
    total = (await db.execute(select(func.count(Post.id)).where(*conditions))).scalar() or 0
    result = await db.execute(
        select(Post)
        .where(*conditions)
        .order_by(Post.published_at.desc(), Post.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def list_user_comments(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[Comment], int]:
    """Every comment the user wrote, hidden ones included, newest first."""
    total = (await db.execute(select(func.count(Comment.id)).where(Comment.author_id == user_id))).scalar() or 0
    result = await db.execute(
        select(Comment)
        .options(selectinload(Comment.post))
        .where(Comment.author_id == user_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def list_liked_posts(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Post], int]:
    """Posts the user liked (dislikes excluded), most recently liked first."""
    conditions = (Like.user_id == user_id, Like.type == LikeType.LIKE)
    total = (await db.execute(select(func.count(Like.id)).where(*conditions))).scalar() or 0
    result = await db.execute(
        select(Post)
        .join(Like, Like.post_id == Post.id)
        .where(*conditions)
        .order_by(Like.created_at.desc(), Like.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def list_authors(db: AsyncSession, limit: int = 50) -> list[tuple[User, int]]:
    """
    Users with at least one published post, paired with how many they have.

    Most prolific first; banned users are left out.
    """
    published = (
        select(Post.author_id, func.count(Post.id).label("post_count"))
        .where(Post.status == PostStatus.PUBLISHED)
        .group_by(Post.author_id)
        .subquery()
    )
    result = await db.execute(
        select(User, published.c.post_count)
        .join(published, published.c.author_id == User.id)
        .where(User.is_banned.is_(False))
        .order_by(published.c.post_count.desc(), User.id.asc())
        .limit(limit)
    )
    return [(user, post_count) for user, post_count in result.all()]
