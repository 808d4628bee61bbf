"""Shared plumbing for the resource handlers."""

import logging
from typing import Any, Dict, Iterable

from ..storage import USERS, AuthorRef, DocumentStore

logger = logging.getLogger(__name__)


class ResourceHandler:
    """Base class for handlers that read and write one document store."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def populate_authors(self, docs: Iterable[Dict[str, Any]]) -> Dict[str, AuthorRef]:
        """Resolve the ``author`` reference of each document to id + username.

        Authors that no longer exist resolve with a ``None`` username.
        """
        author_ids = {doc["author"] for doc in docs if doc.get("author")}
        users = await self.store.get_many(USERS, author_ids)
        return {
            author_id: AuthorRef(
                id=author_id,
                username=users[author_id]["username"] if author_id in users else None,
            )
            for author_id in author_ids
        }
