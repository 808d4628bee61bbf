"""Document store backends for Inkpost.

``DocumentStore`` is the boundary the handlers talk to. ``MongoDocumentStore``
is the production backend (motor); ``InMemoryDocumentStore`` keeps the same
contract inside the process and backs the test suite and ``--memory`` mode.

Ids cross the boundary as 24-character hex strings. A malformed id can never
name a document, so lookups by a malformed id raise ``DocumentNotFoundError``
exactly like a well-formed id that matches nothing.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..errors import StorageError
from .documents import COLLECTIONS, REFERENCE_FIELDS
from .indexing import INDEXES, unique_indexes

logger = logging.getLogger(__name__)


class DocumentStoreError(StorageError):
    """Base exception for document store operations."""

    pass


class DocumentNotFoundError(DocumentStoreError):
    """No document with the requested id exists."""

    pass


class DuplicateDocumentError(DocumentStoreError):
    """A write violated a unique index."""

    pass


def is_valid_id(value: Any) -> bool:
    """Check whether ``value`` is a well-formed document id."""
    return isinstance(value, str) and ObjectId.is_valid(value)


class DocumentStore(ABC):
    """Abstract document store interface."""

    @abstractmethod
    async def insert(self, collection: str, data: Dict[str, Any]) -> str:
        """Insert a document and return its id."""
        pass

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Dict[str, Any]:
        """Get a document by id."""
        pass

    @abstractmethod
    async def get_many(
        self, collection: str, doc_ids: Iterable[str]
    ) -> Dict[str, Dict[str, Any]]:
        """Get the documents with the given ids, keyed by id. Missing ids are skipped."""
        pass

    @abstractmethod
    async def find_one(
        self, collection: str, filters: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """Get the first document matching ``filters``, or None."""
        pass

    @abstractmethod
    async def find(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        """Find documents matching ``filters`` in insertion order. ``limit=0`` means no limit."""
        pass

    @abstractmethod
    async def update(
        self, collection: str, doc_id: str, fields: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Set ``fields`` on a document and return the updated document."""
        pass

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document by id."""
        pass

    @abstractmethod
    async def count(
        self, collection: str, filters: Optional[Dict[str, Any]] = None
    ) -> int:
        """Count documents matching ``filters``."""
        pass

    @abstractmethod
    async def ensure_indexes(self) -> None:
        """Create the declared indexes."""
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Check whether the store is reachable."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the store's resources."""
        pass


class MongoDocumentStore(DocumentStore):
    """MongoDB backend using motor."""

    def __init__(
        self,
        uri: str,
        db_name: str,
        client: Optional[AsyncIOMotorClient] = None,
    ):
        self.uri = uri
        self.db_name = db_name
        self.client = client or AsyncIOMotorClient(uri)
        self.db = self.client[db_name]

    @staticmethod
    def _encode(data: Dict[str, Any]) -> Dict[str, Any]:
        encoded = {}
        for key, value in data.items():
            if key == "id":
                key = "_id"
            if (key == "_id" or key in REFERENCE_FIELDS) and is_valid_id(value):
                value = ObjectId(value)
            encoded[key] = value
        return encoded

    @staticmethod
    def _decode(doc: Dict[str, Any]) -> Dict[str, Any]:
        decoded = {}
        for key, value in doc.items():
            if key == "_id":
                key = "id"
            if isinstance(value, ObjectId):
                value = str(value)
            decoded[key] = value
        return decoded

    def _storage_error(self, e: Exception, collection: str, operation: str) -> StorageError:
        logger.error(f"MongoDB {operation} on {collection} failed: {e}")
        return DocumentStoreError(
            f"Document store {operation} failed",
            collection=collection,
            operation=operation,
            cause=e,
        )

    async def insert(self, collection: str, data: Dict[str, Any]) -> str:
        try:
            result = await self.db[collection].insert_one(self._encode(data))
        except DuplicateKeyError as e:
            raise DuplicateDocumentError(
                f"Duplicate key in {collection}",
                collection=collection,
                operation="insert",
                cause=e,
            )
        except PyMongoError as e:
            raise self._storage_error(e, collection, "insert")
        return str(result.inserted_id)

    async def get(self, collection: str, doc_id: str) -> Dict[str, Any]:
        if not is_valid_id(doc_id):
            raise DocumentNotFoundError(
                f"Object with id {doc_id} not found", collection=collection, operation="get"
            )
        try:
            doc = await self.db[collection].find_one({"_id": ObjectId(doc_id)})
        except PyMongoError as e:
            raise self._storage_error(e, collection, "get")
        if doc is None:
            raise DocumentNotFoundError(
                f"Object with id {doc_id} not found", collection=collection, operation="get"
            )
        return self._decode(doc)

    async def get_many(
        self, collection: str, doc_ids: Iterable[str]
    ) -> Dict[str, Dict[str, Any]]:
        object_ids = list({ObjectId(i) for i in doc_ids if is_valid_id(i)})
        if not object_ids:
            return {}
        try:
            cursor = self.db[collection].find({"_id": {"$in": object_ids}})
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise self._storage_error(e, collection, "get_many")
        return {str(doc["_id"]): self._decode(doc) for doc in docs}

    async def find_one(
        self, collection: str, filters: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        try:
            doc = await self.db[collection].find_one(self._encode(filters))
        except PyMongoError as e:
            raise self._storage_error(e, collection, "find_one")
        return self._decode(doc) if doc is not None else None

    async def find(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        try:
            cursor = self.db[collection].find(self._encode(filters or {})).sort("_id", 1)
            if skip:
                cursor = cursor.skip(skip)
            if limit:
                cursor = cursor.limit(limit)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise self._storage_error(e, collection, "find")
        return [self._decode(doc) for doc in docs]

    async def update(
        self, collection: str, doc_id: str, fields: Dict[str, Any]
    ) -> Dict[str, Any]:
        if not fields:
            return await self.get(collection, doc_id)
        if not is_valid_id(doc_id):
            raise DocumentNotFoundError(
                f"Object with id {doc_id} not found", collection=collection, operation="update"
            )
        try:
            doc = await self.db[collection].find_one_and_update(
                {"_id": ObjectId(doc_id)},
                {"$set": self._encode(fields)},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            raise DuplicateDocumentError(
                f"Duplicate key in {collection}",
                collection=collection,
                operation="update",
                cause=e,
            )
        except PyMongoError as e:
            raise self._storage_error(e, collection, "update")
        if doc is None:
            raise DocumentNotFoundError(
                f"Object with id {doc_id} not found", collection=collection, operation="update"
            )
        return self._decode(doc)

    async def delete(self, collection: str, doc_id: str) -> None:
        if not is_valid_id(doc_id):
            raise DocumentNotFoundError(
                f"Object with id {doc_id} not found", collection=collection, operation="delete"
            )
        try:
            result = await self.db[collection].delete_one({"_id": ObjectId(doc_id)})
        except PyMongoError as e:
            raise self._storage_error(e, collection, "delete")
        if result.deleted_count == 0:
            raise DocumentNotFoundError(
                f"Object with id {doc_id} not found", collection=collection, operation="delete"
            )

    async def count(
        self, collection: str, filters: Optional[Dict[str, Any]] = None
    ) -> int:
        try:
            return await self.db[collection].count_documents(self._encode(filters or {}))
        except PyMongoError as e:
            raise self._storage_error(e, collection, "count")

    async def ensure_indexes(self) -> None:
        for spec in INDEXES:
            try:
                await self.db[spec.collection].create_index(
                    spec.mongo_keys(), unique=spec.unique, name=spec.name
                )
            except PyMongoError as e:
                raise self._storage_error(e, spec.collection, "create_index")
            logger.debug(f"Ensured index {spec.name} on {spec.collection}")

    async def ping(self) -> bool:
        try:
            await self.client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning(f"MongoDB ping failed: {e}")
            return False

    async def close(self) -> None:
        self.client.close()


class InMemoryDocumentStore(DocumentStore):
    """Process-local store with the same contract as the MongoDB backend.

    Unique indexes from ``INDEXES`` are enforced on insert and update.
    """

    def __init__(self):
        self._collections: Dict[str, "OrderedDict[str, Dict[str, Any]]"] = {
            name: OrderedDict() for name in COLLECTIONS
        }
        self._lock = threading.RLock()

    def _collection(self, name: str) -> "OrderedDict[str, Dict[str, Any]]":
        with self._lock:
            return self._collections.setdefault(name, OrderedDict())

    @staticmethod
    def _matches(doc: Dict[str, Any], filters: Optional[Dict[str, Any]]) -> bool:
        return all(doc.get(key) == value for key, value in (filters or {}).items())

    def _check_unique(
        self, collection: str, candidate: Dict[str, Any], exclude_id: Optional[str] = None
    ) -> None:
        for spec in unique_indexes(collection):
            key = tuple(candidate.get(f) for f in spec.fields)
            for doc_id, doc in self._collection(collection).items():
                if doc_id != exclude_id and tuple(doc.get(f) for f in spec.fields) == key:
                    raise DuplicateDocumentError(
                        f"Duplicate key in {collection}: {spec.name}",
                        collection=collection,
                    )

    def _require(self, collection: str, doc_id: str, operation: str) -> Dict[str, Any]:
        doc = self._collection(collection).get(doc_id) if is_valid_id(doc_id) else None
        if doc is None:
            raise DocumentNotFoundError(
                f"Object with id {doc_id} not found",
                collection=collection,
                operation=operation,
            )
        return doc

    async def insert(self, collection: str, data: Dict[str, Any]) -> str:
        with self._lock:
            doc_id = str(ObjectId())
            doc = {**data, "id": doc_id}
            self._check_unique(collection, doc)
            self._collection(collection)[doc_id] = doc
            return doc_id

    async def get(self, collection: str, doc_id: str) -> Dict[str, Any]:
        with self._lock:
            return dict(self._require(collection, doc_id, "get"))

    async def get_many(
        self, collection: str, doc_ids: Iterable[str]
    ) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            docs = self._collection(collection)
            return {i: dict(docs[i]) for i in set(doc_ids) if i in docs}

    async def find_one(
        self, collection: str, filters: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        with self._lock:
            for doc in self._collection(collection).values():
                if self._matches(doc, filters):
                    return dict(doc)
            return None

    async def find(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        with self._lock:
            matched = [
                dict(doc)
                for doc in self._collection(collection).values()
                if self._matches(doc, filters)
            ]
        matched = matched[skip:]
        return matched[:limit] if limit else matched

    async def update(
        self, collection: str, doc_id: str, fields: Dict[str, Any]
    ) -> Dict[str, Any]:
        with self._lock:
            doc = self._require(collection, doc_id, "update")
            updated = {**doc, **fields, "id": doc_id}
            self._check_unique(collection, updated, exclude_id=doc_id)
            self._collection(collection)[doc_id] = updated
            return dict(updated)

    async def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            self._require(collection, doc_id, "delete")
            del self._collection(collection)[doc_id]

    async def count(
        self, collection: str, filters: Optional[Dict[str, Any]] = None
    ) -> int:
        with self._lock:
            return sum(
                1 for doc in self._collection(collection).values() if self._matches(doc, filters)
            )

    async def ensure_indexes(self) -> None:
        # Unique indexes are enforced on every write; nothing to build.
        pass

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        pass
