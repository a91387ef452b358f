from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from blog.database import Base
from blog.models.like import LikeType
from blog.utils.dates import utcnow


class CommentLike(Base):
    """A user's reaction to a comment; a user holds at most one per comment."""

    __tablename__ = "comment_likes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    comment_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(Enum(LikeType), default=LikeType.LIKE, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user = relationship("User", back_populates="comment_likes")
    comment = relationship("Comment", back_populates="likes")

    __table_args__ = (UniqueConstraint("user_id", "comment_id", name="uq_comment_likes_user_comment"),)
