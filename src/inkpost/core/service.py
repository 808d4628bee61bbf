"""Wiring of the handlers behind both API surfaces."""

import logging
from dataclasses import dataclass

from ..api.common.auth import AuthGuard, PasswordHasher, TokenService
from ..config import Settings
from ..storage import DocumentStore
from .comments import CommentHandler
from .posts import PostHandler
from .users import UserHandler

logger = logging.getLogger(__name__)


@dataclass
class BlogService:
    """Everything a request needs, built once from ``Settings`` at startup."""

    settings: Settings
    store: DocumentStore
    token_service: TokenService
    guard: AuthGuard
    users: UserHandler
    posts: PostHandler
    comments: CommentHandler

    @classmethod
    def create(cls, settings: Settings, store: DocumentStore) -> "BlogService":
        token_service = TokenService.from_settings(settings)
        hasher = PasswordHasher(iterations=settings.password_iterations)
        return cls(
            settings=settings,
            store=store,
            token_service=token_service,
            guard=AuthGuard(token_service),
            users=UserHandler(store, hasher, token_service),
            posts=PostHandler(store),
            comments=CommentHandler(
                store,
                default_page_size=settings.default_page_size,
                max_page_size=settings.max_page_size,
            ),
        )

    async def startup(self) -> None:
        await self.store.ensure_indexes()
        logger.info("Document store indexes ensured")
        await self.users.prepare()

    async def shutdown(self) -> None:
        await self.store.close()

    async def health(self) -> dict:
        store_ok = await self.store.ping()
        return {
            "status": "healthy" if store_ok else "degraded",
            "services": {"store": "running" if store_ok else "unreachable"},
        }
