"""Document storage for Inkpost.

Backends, document models and index declarations for the users, posts and
comments collections.
"""

from .database import (
    DocumentNotFoundError,
    DocumentStore,
    DocumentStoreError,
    DuplicateDocumentError,
    InMemoryDocumentStore,
    MongoDocumentStore,
    is_valid_id,
)
from .documents import COMMENTS, POSTS, USERS, AuthorRef, Comment, Post, User
from .indexing import INDEXES, IndexSpec, IndexType


def create_store(settings, in_memory: bool = False) -> DocumentStore:
    """Create the document store described by ``settings``."""
    if in_memory:
        return InMemoryDocumentStore()
    return MongoDocumentStore(settings.mongo_uri, settings.mongo_db_name)


__all__ = [
    "AuthorRef",
    "COMMENTS",
    "Comment",
    "DocumentNotFoundError",
    "DocumentStore",
    "DocumentStoreError",
    "DuplicateDocumentError",
    "INDEXES",
    "InMemoryDocumentStore",
    "IndexSpec",
    "IndexType",
    "MongoDocumentStore",
    "POSTS",
    "Post",
    "USERS",
    "User",
    "create_store",
    "is_valid_id",
]
