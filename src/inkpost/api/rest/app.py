"""
REST API for Inkpost.

FastAPI application exposing registration, login, post CRUD and comments.
Every route except ``/register``, ``/login`` and ``/health`` depends on the
bearer-token guard; errors are returned as ``{"message": ...}`` bodies.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from ... import __version__
from ...config import Settings
from ...core import BlogService
from ...errors import InkpostError
from ...storage import DocumentStore, create_store
from ..common.auth import RequestContext

logger = logging.getLogger(__name__)

# Security
security = HTTPBearer(auto_error=False)


# Pydantic models for request/response validation
class CredentialsRequest(BaseModel):
    """Register or login request."""
    username: str = Field(..., min_length=1, description="Username")
    password: str = Field(..., min_length=1, description="Password")


class PostCreateRequest(BaseModel):
    """Post creation request."""
    title: str = Field(..., description="Post title")
    content: str = Field(..., description="Post content")


class PostUpdateRequest(BaseModel):
    """Post update request. Omitted or empty fields are left unchanged."""
    title: Optional[str] = Field(None, description="New title")
    content: Optional[str] = Field(None, description="New content")


class CommentCreateRequest(BaseModel):
    """Comment creation request."""
    content: str = Field(..., description="Comment text")


# Response models
class MessageResponse(BaseModel):
    message: str


class TokenResponse(BaseModel):
    token: str


class AuthorResponse(BaseModel):
    id: str
    username: Optional[str] = None


class PostResponse(BaseModel):
    """Post with its author populated."""
    id: str
    title: str
    content: str
    author: AuthorResponse


class CommentResponse(BaseModel):
    """Comment with its author populated."""
    id: str
    content: str
    post: str
    author: AuthorResponse


class CommentPageResponse(BaseModel):
    """One page of comments plus the post's total comment count."""
    comments: List[CommentResponse]
    total_comments: int = Field(..., alias="totalComments")


def get_service(request: Request) -> BlogService:
    return request.app.state.service


# Authentication dependency
async def get_request_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> RequestContext:
    """Resolve the caller's identity or reject the request."""
    service = get_service(request)
    token = credentials.credentials if credentials else None
    return service.guard.authenticate_token(token)


def build_router() -> APIRouter:
    """Routes of the REST surface."""
    router = APIRouter()

    @router.post("/register", response_model=MessageResponse)
    async def register(body: CredentialsRequest, service: BlogService = Depends(get_service)):
        """Register a new user."""
        await service.users.register(body.username, body.password)
        return {"message": "User registered successfully"}

    @router.post("/login", response_model=TokenResponse)
    async def login(body: CredentialsRequest, service: BlogService = Depends(get_service)):
        """Exchange credentials for a token."""
        token = await service.users.login(body.username, body.password)
        return {"token": token}

    @router.get("/posts", response_model=List[PostResponse])
    async def list_posts(
        ctx: RequestContext = Depends(get_request_context),
        service: BlogService = Depends(get_service),
    ):
        """Get all blog posts."""
        return [post.to_dict() for post in await service.posts.list_posts()]

    @router.get("/posts/{post_id}", response_model=PostResponse)
    async def get_post(
        post_id: str,
        ctx: RequestContext = Depends(get_request_context),
        service: BlogService = Depends(get_service),
    ):
        """Get a single blog post."""
        return (await service.posts.get_post(post_id)).to_dict()

    @router.post("/posts", response_model=MessageResponse)
    async def create_post(
        body: PostCreateRequest,
        ctx: RequestContext = Depends(get_request_context),
        service: BlogService = Depends(get_service),
    ):
        """Create a new blog post."""
        post = await service.posts.create_post(ctx, body.title, body.content)
        return {"message": f"Post created successfully with id {post.id}"}

    @router.put("/posts/{post_id}", response_model=MessageResponse)
    async def update_post(
        post_id: str,
        body: PostUpdateRequest,
        ctx: RequestContext = Depends(get_request_context),
        service: BlogService = Depends(get_service),
    ):
        """Update a blog post owned by the caller."""
        await service.posts.update_post(ctx, post_id, title=body.title, content=body.content)
        return {"message": "Post updated successfully"}

    @router.delete("/posts/{post_id}", response_model=MessageResponse)
    async def delete_post(
        post_id: str,
        ctx: RequestContext = Depends(get_request_context),
        service: BlogService = Depends(get_service),
    ):
        """Delete a blog post owned by the caller."""
        await service.posts.delete_post(ctx, post_id)
        return {"message": "Post deleted successfully"}

    @router.post("/posts/{post_id}/comments", response_model=MessageResponse)
    async def create_comment(
        post_id: str,
        body: CommentCreateRequest,
        ctx: RequestContext = Depends(get_request_context),
        service: BlogService = Depends(get_service),
    ):
        """Add a comment to a post."""
        await service.comments.create_comment(ctx, post_id, body.content)
        return {"message": "Comment added successfully"}

    @router.get("/posts/{post_id}/comments", response_model=CommentPageResponse)
    async def list_comments(
        post_id: str,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        ctx: RequestContext = Depends(get_request_context),
        service: BlogService = Depends(get_service),
    ):
        """Get one page of a post's comments."""
        return (await service.comments.list_comments(post_id, page=page, limit=limit)).to_dict()

    @router.get("/health")
    async def health_check(service: BlogService = Depends(get_service)):
        """Health check endpoint."""
        return {
            **(await service.health()),
            "timestamp": time.time(),
            "version": __version__,
        }

    return router


def install_error_handlers(app: FastAPI) -> None:
    """Map exceptions to ``{"message": ...}`` responses."""

    @app.exception_handler(InkpostError)
    async def inkpost_error_handler(request: Request, exc: InkpostError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}", exc_info=exc)
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"Invalid request: {location} {first.get('msg', '')}".strip()
        else:
            message = "Invalid request"
        return JSONResponse(status_code=400, content={"message": message})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse(status_code=500, content={"message": "Internal Server Error"})


def install_request_logging(app: FastAPI) -> None:
    """Log method, path, status and duration of every request."""

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
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


def create_app(
    settings: Settings,
    store: Optional[DocumentStore] = None,
    service: Optional[BlogService] = None,
) -> FastAPI:
    """Create the REST application.

    Pass ``store`` (or a prebuilt ``service``) to run against something other
    than the MongoDB database named in ``settings``.
    """
    if service is None:
        service = BlogService.create(settings, store or create_store(settings))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await service.startup()
        try:
            yield
        finally:
            await service.shutdown()

    app = FastAPI(
        title="Inkpost REST API",
        description="Blog posts, comments and accounts",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.service = service

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    install_request_logging(app)
    install_error_handlers(app)
    app.include_router(build_router())
    return app
