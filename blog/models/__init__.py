from .category import Category
from .comment import Comment
from .comment_like import CommentLike
from .like import Like, LikeType
from .post import Post, PostStatus, PostType
from .post_tags import post_tags
from .saved_post import SavedPost
from .tag import Tag
from .user import Role, User
from .view import View

__all__ = [
    "Category",
    "Comment",
    "CommentLike",
    "Like",
    "LikeType",
    "Post",
    "PostStatus",
    "PostType",
    "post_tags",
    "SavedPost",
    "Tag",
    "Role",
    "User",
    "View",
]
