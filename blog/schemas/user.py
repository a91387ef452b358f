from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from blog.constants.roles import RoleName
from blog.schemas.base import CamelModel, reject_null


class UserRegister(CamelModel):
    username: str = Field(..., min_length=3, max_length=50, description="Username must be between 3 and 50 characters.")
    email: EmailStr = Field(..., description="A valid email address.")
    password: str = Field(..., min_length=8, max_length=128, description="Password must be between 8 and 128 characters.")


class UserLogin(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class AuthorSummary(CamelModel):
    id: int
    username: str
    image: Optional[str] = None


class SessionUser(CamelModel):
    id: int
    username: str
    email: str
    image: Optional[str] = None
    role: Optional[str] = Field(default=None, validation_alias="role_name")


class SessionResponse(CamelModel):
    user: Optional[SessionUser] = None


class UserStats(CamelModel):
    post_count: int = 0
    comment_count: int = 0
    like_count: int = 0


class UserProfile(CamelModel):
    id: int
    username: str
    image: Optional[str] = None
    bio: Optional[str] = None
    role: Optional[str] = Field(default=None, validation_alias="role_name")
    created_at: datetime
    stats: UserStats = UserStats()


class ProfileUpdate(CamelModel):
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    bio: Optional[str] = Field(None, max_length=1000)
    image: Optional[str] = Field(None, max_length=500)

    @field_validator("username")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class PasswordChange(CamelModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=8, max_length=128)


class AdminUserResponse(CamelModel):
    id: int
    username: str
    email: str
    role: Optional[str] = Field(default=None, validation_alias="role_name")
    is_banned: bool
    created_at: datetime


class AdminUserList(CamelModel):
    users: list[AdminUserResponse]
    total: int


class AdminUserUpdate(CamelModel):
    role: Optional[RoleName] = None
    is_banned: Optional[bool] = None


class AuthorResponse(CamelModel):
    id: int
    username: str
    image: Optional[str] = None
    bio: Optional[str] = None
    post_count: int = 0


class AuthorList(CamelModel):
    success: bool = True
    data: list[AuthorResponse]
    total: int
