"""Read models returned by the resource handlers."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..storage.documents import AuthorRef


@dataclass
class PostView:
    """A post with its author populated."""

    id: str
    title: str
    content: str
    author: AuthorRef

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "author": self.author.to_dict(),
        }


@dataclass
class CommentView:
    """A comment with its author populated."""

    id: str
    content: str
    post: str
    author: AuthorRef

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "post": self.post,
            "author": self.author.to_dict(),
        }


@dataclass
class CommentPage:
    """One page of a post's comments plus the post's total comment count."""

    comments: List[CommentView] = field(default_factory=list)
    total_comments: int = 0
    page: int = 1
    limit: int = 10

    def to_dict(self) -> Dict[str, Any]:
        return {
            "comments": [c.to_dict() for c in self.comments],
            "totalComments": self.total_comments,
        }
