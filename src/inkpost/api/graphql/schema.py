"""
GraphQL Schema Definition for Inkpost API.

Queries: posts, post, comments. Mutations: register, login, createPost,
updatePost, deletePost, createComment. Field names are camel-cased by
Strawberry (``total_comments`` is exposed as ``totalComments``).
"""

import logging
from typing import List

import strawberry
from graphql import GraphQLError

from ...errors import InkpostError
from . import resolvers
from .types import Comment, CommentPage, Post

logger = logging.getLogger(__name__)


@strawberry.type
class Query:
    """Root query type."""

    posts: List[Post] = strawberry.field(
        resolver=resolvers.resolve_posts, description="All blog posts."
    )
    post: Post = strawberry.field(
        resolver=resolvers.resolve_post, description="A single blog post."
    )
    comments: CommentPage = strawberry.field(
        resolver=resolvers.resolve_comments, description="One page of a post's comments."
    )


@strawberry.type
class Mutation:
    """Root mutation type."""

    register: str = strawberry.mutation(
        resolver=resolvers.resolve_register, description="Register a user; no token needed."
    )
    login: str = strawberry.mutation(
        resolver=resolvers.resolve_login, description="Exchange credentials for a token."
    )
    create_post: Post = strawberry.mutation(resolver=resolvers.resolve_create_post)
    update_post: Post = strawberry.mutation(resolver=resolvers.resolve_update_post)
    delete_post: str = strawberry.mutation(resolver=resolvers.resolve_delete_post)
    create_comment: Comment = strawberry.mutation(resolver=resolvers.resolve_create_comment)


class InkpostSchema(strawberry.Schema):
    """Schema that logs expected domain errors without tracebacks."""

    def process_errors(self, errors: List[GraphQLError], execution_context=None) -> None:
        unexpected = []
        for error in errors:
            original = error.original_error
            if isinstance(original, InkpostError) and original.status_code < 500:
                path = ".".join(str(p) for p in error.path or [])
                logger.info(f"GraphQL {path} rejected: {error.message}")
            else:
                unexpected.append(error)
        if unexpected:
            super().process_errors(unexpected, execution_context)


# Create the schema
schema = InkpostSchema(query=Query, mutation=Mutation)
