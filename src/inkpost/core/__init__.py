"""Resource handlers for users, posts and comments."""

from .comments import CommentHandler
from .posts import PostHandler
from .service import BlogService
from .types import CommentPage, CommentView, PostView
from .users import UserHandler

__all__ = [
    "BlogService",
    "CommentHandler",
    "CommentPage",
    "CommentView",
    "PostHandler",
    "PostView",
    "UserHandler",
]
