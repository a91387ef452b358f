import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from blog.database import Base
from blog.utils.dates import utcnow


class LikeType(str, enum.Enum):
    LIKE = "LIKE"
    DISLIKE = "DISLIKE"


class Like(Base):
    """A user's reaction to a post; a user holds at most one per post."""

    __tablename__ = "likes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(Enum(LikeType), default=LikeType.LIKE, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user = relationship("User", back_populates="likes")
    post = relationship("Post", back_populates="likes")

    __table_args__ = (UniqueConstraint("user_id", "post_id", name="uq_likes_user_post"),)
