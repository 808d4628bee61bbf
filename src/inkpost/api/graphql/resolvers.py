"""
GraphQL Resolvers for Inkpost API.

Every resolver except ``register`` and ``login`` authenticates through the
guard first, so auth and ownership rules match the REST surface exactly.
"""

import logging
from typing import List, Optional

import strawberry
from strawberry.types import Info

from ...core import BlogService
from ..common.auth import RequestContext
from .types import Comment, CommentPage, Post

logger = logging.getLogger(__name__)


def get_service(info: Info) -> BlogService:
    return info.context["service"]


def require_context(info: Info) -> RequestContext:
    """Authenticate the request behind ``info``."""
    return get_service(info).guard.authenticate(info.context.get("authorization"))


# Queries

async def resolve_posts(info: Info) -> List[Post]:
    require_context(info)
    return [Post.from_view(view) for view in await get_service(info).posts.list_posts()]


async def resolve_post(info: Info, id: strawberry.ID) -> Post:
    require_context(info)
    return Post.from_view(await get_service(info).posts.get_post(str(id)))


async def resolve_comments(
    info: Info,
    post_id: strawberry.ID,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> CommentPage:
    require_context(info)
    view = await get_service(info).comments.list_comments(str(post_id), page=page, limit=limit)
    return CommentPage.from_view(view)


# Mutations

async def resolve_register(info: Info, username: str, password: str) -> str:
    await get_service(info).users.register(username, password)
    return "User registered successfully"


async def resolve_login(info: Info, username: str, password: str) -> str:
    return await get_service(info).users.login(username, password)


async def resolve_create_post(info: Info, title: str, content: str) -> Post:
    ctx = require_context(info)
    return Post.from_view(await get_service(info).posts.create_post(ctx, title, content))


async def resolve_update_post(
    info: Info,
    id: strawberry.ID,
    title: Optional[str] = None,
    content: Optional[str] = None,
) -> Post:
    ctx = require_context(info)
    view = await get_service(info).posts.update_post(ctx, str(id), title=title, content=content)
    return Post.from_view(view)


async def resolve_delete_post(info: Info, id: strawberry.ID) -> str:
    ctx = require_context(info)
    await get_service(info).posts.delete_post(ctx, str(id))
    return "Post deleted successfully"


async def resolve_create_comment(
    info: Info, post_id: strawberry.ID, content: str
) -> Comment:
    ctx = require_context(info)
    view = await get_service(info).comments.create_comment(ctx, str(post_id), content)
    return Comment.from_view(view)
