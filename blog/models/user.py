from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from blog.database import Base
from blog.utils.dates import utcnow


# Role model
class Role(Base):
    __tablename__ = "roles"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)
    description = Column(String(255), nullable=True)
    users = relationship("User", back_populates="role")


# User model
class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), index=True, nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    image = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    is_banned = Column(Boolean, default=False, nullable=False)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    role = relationship("Role", back_populates="users", lazy="joined")
    posts = relationship("Post", back_populates="author")
    comments = relationship("Comment", back_populates="author", cascade="all, delete-orphan", passive_deletes=True)
    likes = relationship("Like", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    comment_likes = relationship(
        "CommentLike", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    saved_posts = relationship("SavedPost", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)

    @property
    def role_name(self) -> str | None:
        return self.role.name if self.role else None

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
