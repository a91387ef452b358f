import logging
from typing import Callable, Optional

from fastapi import Depends, Request
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from blog.config import settings
from blog.database import get_db
from blog.exceptions import AuthenticationError, AuthorizationError, ServiceUnavailableError, UserBannedError
from blog.models.user import User
from blog.utils.session import get_session_manager

# Initialize logging
logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


# Function to hash a password
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


# Function to verify a password
def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


async def lookup_session(request: Request) -> Optional[dict]:
    """
    Resolve the session cookie to its session payload.

    Returns None when there is no cookie or the session is unknown/expired.
    Errors from the session store propagate to the caller.
    """
    session_id = request.cookies.get(settings.session_cookie_name)
    if not session_id:
        return None
    sessions = get_session_manager(request)
    return await sessions.get_session(session_id)


async def get_optional_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """
    The signed-in user, or None.

    Never fails the request: a missing, expired or unreadable session is
    treated as an anonymous caller.
    """
    try:
        session = await lookup_session(request)
        if not session:
            return None
        result = await db.execute(select(User).where(User.id == session["user_id"]))
        user = result.scalars().first()
    except Exception as e:
        logger.warning(f"Session lookup failed, continuing anonymously: {e}")
        return None

    if user is None or user.is_banned:
        return None
    request.state.user_id = user.id
    return user


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    try:
        session = await lookup_session(request)
    except Exception as e:
        logger.error(f"Session store unavailable: {e}")
        raise ServiceUnavailableError("Session service unavailable", service="sessions") from e
    if not session:
        logger.info("No valid session for request")
        raise AuthenticationError()

    result = await db.execute(select(User).where(User.id == session["user_id"]))
    user = result.scalars().first()
    if user is None:
        logger.warning(f"Session refers to missing user {session['user_id']}")
        raise AuthenticationError()

    if user.is_banned:
        raise UserBannedError()

    request.state.user_id = user.id
    return user


def require_roles(*roles: str) -> Callable[..., User]:
    """Dependency factory: the current user, provided their role is one of `roles`."""

    async def _current_user_with_role(user: User = Depends(get_current_user)) -> User:
        if user.role_name not in roles:
            logger.warning(f"Role '{user.role_name}' refused; requires one of {roles}")
            raise AuthorizationError(f"Role '{user.role_name}' does not have access to this resource")
        return user

    return _current_user_with_role
