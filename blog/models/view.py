"""Post view accounting records."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from blog.database import Base
from blog.utils.dates import utcnow


class View(Base):
    """One counted view of a post. Rows are written once and never updated."""

    __tablename__ = "views"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    ip_address = Column(String(64), nullable=False)
    user_agent = Column(Text, nullable=True)
    referrer = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    post = relationship("Post", back_populates="views")

    __table_args__ = (
        Index("idx_views_post_created", "post_id", "created_at"),
        Index("idx_views_dedup", "post_id", "ip_address", "created_at"),
    )
