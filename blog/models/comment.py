"""
Comment Model

Comments are one level deep: a reply points at a top-level comment through
parent_id. Moderation hides a comment by clearing is_active.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import relationship

from blog.database import Base
from blog.utils.dates import utcnow

MAX_COMMENT_LENGTH = 500


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True, index=True)
    body = Column(Text, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    is_edited = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    post = relationship("Post", back_populates="comments")
    author = relationship("User", back_populates="comments", lazy="selectin")
    parent = relationship("Comment", remote_side=[id], back_populates="replies")
    replies = relationship(
        "Comment",
        back_populates="parent",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="noload",
    )
    likes = relationship("CommentLike", back_populates="comment", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        Index("ix_comments_post_active", "post_id", "is_active"),
        Index("ix_comments_parent_created", "parent_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, post_id={self.post_id}, author_id={self.author_id})>"
