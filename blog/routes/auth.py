import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from blog.auth import get_optional_user
from blog.config import settings
from blog.database import get_db
from blog.models.user import User
from blog.schemas.user import SessionResponse, SessionUser, UserLogin, UserRegister
from blog.services.user_service import authenticate_user, register_user
from blog.utils.session import get_session_manager

# Initialize logger
logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post("/register", response_model=SessionUser, status_code=status.HTTP_201_CREATED)
async def register(data: UserRegister, db: AsyncSession = Depends(get_db)):
    return await register_user(data.email, data.username, data.password, db)


@router.post("/login", response_model=SessionResponse)
async def login(
    data: UserLogin,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """
    Sign in with email and password.

    Stores a session and hands its id back in an httponly cookie.
    """
    user = await authenticate_user(data.email, data.password, db)

    sessions = get_session_manager(request)
    session_id = await sessions.create_session(user.id, user.email, user.role_name)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_id,
        max_age=settings.session_expire_seconds,
        httponly=True,
        secure=settings.environment == "production",
        samesite="lax",
    )

    logger.info(f"Session created for user: {user.email}")
    return SessionResponse(user=SessionUser.model_validate(user))


@router.post("/logout")
async def logout(request: Request, response: Response):
    session_id = request.cookies.get(settings.session_cookie_name)
    if session_id:
        await get_session_manager(request).delete_session(session_id)
    response.delete_cookie(settings.session_cookie_name)
    return {"success": True, "message": "Signed out"}


@router.get("/session", response_model=SessionResponse)
async def current_session(user: Optional[User] = Depends(get_optional_user)):
    return SessionResponse(user=SessionUser.model_validate(user) if user else None)
