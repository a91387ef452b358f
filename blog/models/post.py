import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from blog.database import Base
from blog.models.post_tags import post_tags
from blog.utils.dates import utcnow


class PostStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    SCHEDULED = "SCHEDULED"
    ARCHIVED = "ARCHIVED"


class PostType(str, enum.Enum):
    ARTICLE = "ARTICLE"
    REVIEW = "REVIEW"
    INTERVIEW = "INTERVIEW"
    POETRY = "POETRY"
    SHORT_STORY = "SHORT_STORY"
    ESSAY = "ESSAY"
    OPINION = "OPINION"
    NEWS = "NEWS"


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    title = Column(String(255), index=True, nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    excerpt = Column(Text, nullable=True)
    body = Column(Text, nullable=False)
    cover_image = Column(String, nullable=True)
    status = Column(Enum(PostStatus), default=PostStatus.DRAFT, nullable=False)
    post_type = Column(Enum(PostType), default=PostType.ARTICLE, nullable=False)
    reading_time = Column(Integer, default=1, nullable=False)
    word_count = Column(Integer, default=0, nullable=False)

    # Behaviour flags
    allow_comments = Column(Boolean, default=True, nullable=False)
    allow_likes = Column(Boolean, default=True, nullable=False)
    is_pinned = Column(Boolean, default=False, nullable=False)
    is_featured = Column(Boolean, default=False, nullable=False)

    # Metadata fields
    meta_title = Column(String(255), nullable=True)
    meta_description = Column(Text, nullable=True)

    published_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)

    # Relationships
    author = relationship("User", back_populates="posts", lazy="selectin")
    category = relationship("Category", back_populates="posts", lazy="selectin")
    tags = relationship("Tag", secondary=post_tags, back_populates="posts", lazy="selectin")
    views = relationship("View", back_populates="post", cascade="all, delete-orphan", passive_deletes=True)
    likes = relationship("Like", back_populates="post", cascade="all, delete-orphan", passive_deletes=True)
    comments = relationship("Comment", back_populates="post", cascade="all, delete-orphan", passive_deletes=True)
    saved_by = relationship("SavedPost", back_populates="post", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        Index("idx_posts_status_published", "status", "published_at"),
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, slug={self.slug})>"
