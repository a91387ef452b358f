"""add comment likes

Revision ID: b7c8d9e0f1a2
Revises: a1b2c3d4e5f6
Create Date: 2026-10-19 12:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "b7c8d9e0f1a2"
down_revision: str | None = "a1b2c3d4e5f6"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# liketype already exists on PostgreSQL (created with the likes table)
like_type = sa.Enum("LIKE", "DISLIKE", name="liketype").with_variant(
    postgresql.ENUM("LIKE", "DISLIKE", name="liketype", create_type=False), "postgresql"
)


def upgrade() -> None:
    op.create_table(
        "comment_likes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("comment_id", sa.Integer(), sa.ForeignKey("comments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", like_type, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "comment_id", name="uq_comment_likes_user_comment"),
    )
    op.create_index("ix_comment_likes_id", "comment_likes", ["id"])
    op.create_index("ix_comment_likes_comment_id", "comment_likes", ["comment_id"])


def downgrade() -> None:
    op.drop_index("ix_comment_likes_comment_id", table_name="comment_likes")
    op.drop_index("ix_comment_likes_id", table_name="comment_likes")
    op.drop_table("comment_likes")
