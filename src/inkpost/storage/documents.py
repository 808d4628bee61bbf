"""Document models stored in the blog database.

Documents travel between the store and the handlers as plain dictionaries
keyed by field name, with ``id`` holding the document id as a string and
reference fields (``author``, ``post``) holding the referenced id as a
string. These dataclasses are the typed view of those dictionaries.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

USERS = "users"
POSTS = "posts"
COMMENTS = "comments"

COLLECTIONS = (USERS, POSTS, COMMENTS)

# Fields holding the id of a document in another collection.
REFERENCE_FIELDS = frozenset({"author", "post"})


@dataclass
class User:
    """Registered user."""

    id: str
    username: str
    password_hash: str

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "User":
        return cls(id=doc["id"], username=doc["username"], password_hash=doc["password"])

    @staticmethod
    def new_document(username: str, password_hash: str) -> Dict[str, Any]:
        return {"username": username, "password": password_hash}


@dataclass
class Post:
    """Blog post. ``author_id`` never changes after creation."""

    id: str
    title: str
    content: str
    author_id: str

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Post":
        return cls(
            id=doc["id"],
            title=doc.get("title") or "",
            content=doc.get("content") or "",
            author_id=doc["author"],
        )

    @staticmethod
    def new_document(title: str, content: str, author_id: str) -> Dict[str, Any]:
        return {"title": title, "content": content, "author": author_id}


@dataclass
class Comment:
    """Comment on a post."""

    id: str
    content: str
    author_id: str
    post_id: str

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Comment":
        return cls(
            id=doc["id"],
            content=doc.get("content") or "",
            author_id=doc["author"],
            post_id=doc["post"],
        )

    @staticmethod
    def new_document(content: str, author_id: str, post_id: str) -> Dict[str, Any]:
        return {"content": content, "author": author_id, "post": post_id}


@dataclass
class AuthorRef:
    """Author populated with the username only."""

    id: str
    username: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "username": self.username}
