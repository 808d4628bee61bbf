"""Comments on posts, with skip/limit pagination."""

import logging
from typing import Optional

from ..api.common.auth import RequestContext
from ..errors import NotFoundError, ValidationError
from ..storage import COMMENTS, POSTS, AuthorRef, Comment, DocumentNotFoundError
from .base import ResourceHandler
from .types import CommentPage, CommentView

logger = logging.getLogger(__name__)

# Largest skip a BSON int64 can carry.
MAX_SKIP = 2**63 - 1


class CommentHandler(ResourceHandler):
    """Any authenticated user may comment on an existing post."""

    def __init__(self, store, default_page_size: int = 10, max_page_size: int = 100):
        super().__init__(store)
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    async def create_comment(self, ctx: RequestContext, post_id: str, content: str) -> CommentView:
        """Attach a comment by ``ctx`` to a post."""
        if content is None:
            raise ValidationError("Content is required", field="content")
        try:
            await self.store.get(POSTS, post_id)
        except DocumentNotFoundError as e:
            raise NotFoundError(
                "Post not found", resource_type="post", resource_id=post_id, cause=e
            )

        comment_id = await self.store.insert(
            COMMENTS, Comment.new_document(content, ctx.user_id, post_id)
        )
        logger.info(f"User {ctx.user_id} commented {comment_id} on post {post_id}")

        authors = await self.populate_authors([{"author": ctx.user_id}])
        return CommentView(id=comment_id, content=content, post=post_id, author=authors[ctx.user_id])

    def _page_bounds(self, page: Optional[int], limit: Optional[int]):
        page = 1 if page is None else page
        limit = self.default_page_size if limit is None else limit
        if page < 1:
            raise ValidationError("Page must be at least 1", field="page", value=page)
        if limit < 1:
            raise ValidationError("Limit must be at least 1", field="limit", value=limit)
        limit = min(limit, self.max_page_size)
        if (page - 1) * limit > MAX_SKIP:
            raise ValidationError("Page is out of range", field="page", value=page)
        return page, limit

    async def list_comments(
        self, post_id: str, page: Optional[int] = None, limit: Optional[int] = None
    ) -> CommentPage:
        """Return one page of a post's comments in creation order.

        ``total_comments`` counts every comment on the post, independent of the
        page requested. Unknown posts simply have no comments.
        """
        page, limit = self._page_bounds(page, limit)
        filters = {"post": post_id}

        docs = await self.store.find(COMMENTS, filters, skip=(page - 1) * limit, limit=limit)
        total = await self.store.count(COMMENTS, filters)
        authors = await self.populate_authors(docs)

        comments = []
        for doc in docs:
            comment = Comment.from_document(doc)
            comments.append(
                CommentView(
                    id=comment.id,
                    content=comment.content,
                    post=comment.post_id,
                    author=authors.get(
                        comment.author_id, AuthorRef(id=comment.author_id, username=None)
                    ),
                )
            )
        return CommentPage(comments=comments, total_comments=total, page=page, limit=limit)
