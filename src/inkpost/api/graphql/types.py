"""
GraphQL object types for Inkpost.
"""

from typing import List, Optional

import strawberry

from ...core.types import CommentPage as CommentPageView
from ...core.types import CommentView, PostView
from ...storage import AuthorRef


@strawberry.type
class Author:
    """Post or comment author."""
    id: strawberry.ID
    username: Optional[str]

    @classmethod
    def from_ref(cls, ref: AuthorRef) -> "Author":
        return cls(id=strawberry.ID(ref.id), username=ref.username)


@strawberry.type
class Post:
    """Blog post."""
    id: strawberry.ID
    title: str
    content: str
    author: Author

    @classmethod
    def from_view(cls, view: PostView) -> "Post":
        return cls(
            id=strawberry.ID(view.id),
            title=view.title,
            content=view.content,
            author=Author.from_ref(view.author),
        )


@strawberry.type
class Comment:
    """Comment on a post."""
    id: strawberry.ID
    content: str
    post: strawberry.ID
    author: Author

    @classmethod
    def from_view(cls, view: CommentView) -> "Comment":
        return cls(
            id=strawberry.ID(view.id),
            content=view.content,
            post=strawberry.ID(view.post),
            author=Author.from_ref(view.author),
        )


@strawberry.type
class CommentPage:
    """One page of a post's comments plus the post's total comment count."""
    comments: List[Comment]
    total_comments: int
    page: int
    limit: int

    @classmethod
    def from_view(cls, view: CommentPageView) -> "CommentPage":
        return cls(
            comments=[Comment.from_view(c) for c in view.comments],
            total_comments=view.total_comments,
            page=view.page,
            limit=view.limit,
        )
