"""Blog post CRUD with ownership enforcement."""

import logging
from typing import Dict, List, Optional

from ..api.common.auth import RequestContext
from ..errors import ForbiddenError, NotFoundError, ValidationError
from ..storage import POSTS, AuthorRef, DocumentNotFoundError, Post
from .base import ResourceHandler
from .types import PostView

logger = logging.getLogger(__name__)


class PostHandler(ResourceHandler):
    """Posts are readable by any authenticated user and writable by their author."""

    @staticmethod
    def _not_found(post_id: str, cause: Optional[Exception] = None) -> NotFoundError:
        return NotFoundError(
            "Post not found", resource_type="post", resource_id=post_id, cause=cause
        )

    async def load(self, post_id: str) -> Post:
        """Load a post, mapping a missing document or malformed id to NotFound."""
        try:
            return Post.from_document(await self.store.get(POSTS, post_id))
        except DocumentNotFoundError as e:
            raise self._not_found(post_id, e)

    async def load_owned(self, ctx: RequestContext, post_id: str) -> Post:
        """Load a post and check that ``ctx`` owns it."""
        post = await self.load(post_id)
        if post.author_id != ctx.user_id:
            logger.warning(f"User {ctx.user_id} denied write access to post {post_id}")
            raise ForbiddenError()
        return post

    def _view(self, post: Post, authors: Dict[str, AuthorRef]) -> PostView:
        return PostView(
            id=post.id,
            title=post.title,
            content=post.content,
            author=authors.get(post.author_id, AuthorRef(id=post.author_id, username=None)),
        )

    async def list_posts(self) -> List[PostView]:
        docs = await self.store.find(POSTS)
        authors = await self.populate_authors(docs)
        return [self._view(Post.from_document(doc), authors) for doc in docs]

    async def get_post(self, post_id: str) -> PostView:
        post = await self.load(post_id)
        authors = await self.populate_authors([{"author": post.author_id}])
        return self._view(post, authors)

    async def create_post(self, ctx: RequestContext, title: str, content: str) -> PostView:
        """Create a post owned by ``ctx``."""
        if title is None:
            raise ValidationError("Title is required", field="title")
        if content is None:
            raise ValidationError("Content is required", field="content")

        post_id = await self.store.insert(POSTS, Post.new_document(title, content, ctx.user_id))
        logger.info(f"User {ctx.user_id} created post {post_id}")

        post = Post(id=post_id, title=title, content=content, author_id=ctx.user_id)
        authors = await self.populate_authors([{"author": ctx.user_id}])
        return self._view(post, authors)

    async def update_post(
        self,
        ctx: RequestContext,
        post_id: str,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> PostView:
        """Merge-patch a post.

        Only non-empty values are applied; ``None`` and ``""`` both leave the
        stored field unchanged.
        """
        post = await self.load_owned(ctx, post_id)

        changes = {
            name: value
            for name, value in (("title", title), ("content", content))
            if value
        }
        if changes:
            try:
                doc = await self.store.update(POSTS, post_id, changes)
            except DocumentNotFoundError as e:
                raise self._not_found(post_id, e)
            post = Post.from_document(doc)
            logger.info(f"User {ctx.user_id} updated post {post_id}: {sorted(changes)}")

        authors = await self.populate_authors([{"author": post.author_id}])
        return self._view(post, authors)

    async def delete_post(self, ctx: RequestContext, post_id: str) -> None:
        await self.load_owned(ctx, post_id)
        try:
            await self.store.delete(POSTS, post_id)
        except DocumentNotFoundError as e:
            raise self._not_found(post_id, e)
        logger.info(f"User {ctx.user_id} deleted post {post_id}")
