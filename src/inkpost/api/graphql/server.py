"""
GraphQL Server for Inkpost API.

Serves the schema at ``/graphql`` on a FastAPI app. Authentication is not
enforced here: the raw ``Authorization`` header is put in the context and
each resolver decides whether it needs an identity.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from strawberry.fastapi import GraphQLRouter

from ... import __version__
from ...config import Settings
from ...core import BlogService
from ...storage import DocumentStore, create_store
from .schema import schema

logger = logging.getLogger(__name__)


class GraphQLServer:
    """GraphQL server implementation."""

    def __init__(
        self,
        settings: Settings,
        store: Optional[DocumentStore] = None,
        service: Optional[BlogService] = None,
    ):
        """Initialize GraphQL server."""
        self.settings = settings
        self.host = settings.host
        self.port = settings.port
        self.service = service or BlogService.create(settings, store or create_store(settings))

        self.app = FastAPI(
            title="Inkpost GraphQL API",
            description="Blog posts, comments and accounts over GraphQL",
            version=__version__,
            lifespan=self.lifespan,
        )

        if settings.cors_origins:
            self.app.add_middleware(
                CORSMiddleware,
                allow_origins=settings.cors_origins,
                allow_credentials=True,
                allow_methods=["*"],
                allow_headers=["*"],
            )

        # Setup GraphQL router
        self.graphql_app = GraphQLRouter(
            schema=schema,
            context_getter=self.get_context,
            graphql_ide="graphiql" if settings.debug else None,
        )
        self.app.include_router(self.graphql_app, prefix="/graphql")

        # Add health check endpoint
        self.app.add_api_route("/health", self.health_check, methods=["GET"])

        self.app.middleware("http")(self.log_requests)

    @asynccontextmanager
    async def lifespan(self, app: FastAPI):
        await self.service.startup()
        try:
            yield
        finally:
            await self.service.shutdown()

    async def get_context(self, request: Request) -> Dict[str, Any]:
        """Get GraphQL context."""
        return {
            "request": request,
            "service": self.service,
            "authorization": request.headers.get("authorization"),
        }

    async def log_requests(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{request.method} {request.url.path} {response.status_code}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response

    async def health_check(self) -> Dict[str, Any]:
        """Health check endpoint."""
        return {
            **(await self.service.health()),
            "timestamp": time.time(),
            "version": __version__,
        }

    def run(self):
        """Run the GraphQL server."""
        uvicorn.run(
            self.app,
            host=self.host,
            port=self.port,
            log_level="debug" if self.settings.debug else "info",
        )


def create_graphql_server(
    settings: Settings,
    store: Optional[DocumentStore] = None,
    service: Optional[BlogService] = None,
) -> GraphQLServer:
    """Create GraphQL server instance."""
    return GraphQLServer(settings, store=store, service=service)
