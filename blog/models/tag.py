from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from blog.database import Base
from blog.models.post_tags import post_tags
from blog.utils.dates import utcnow


class Tag(Base):
    __tablename__ = "tags"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, index=True, nullable=False)
    slug = Column(String(120), unique=True, index=True, nullable=False)
    color = Column(String(20), default="#6b7280", nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    posts = relationship("Post", secondary=post_tags, back_populates="tags", passive_deletes=True)
