"""Index declarations for the blog collections."""

from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

from .documents import COMMENTS, POSTS, USERS


class IndexType(Enum):
    """Index types."""

    ASCENDING = 1
    TEXT = "text"


@dataclass(frozen=True)
class IndexSpec:
    """One index on one collection."""

    collection: str
    fields: Tuple[str, ...]
    index_type: IndexType = IndexType.ASCENDING
    unique: bool = False

    @property
    def name(self) -> str:
        suffix = "text" if self.index_type == IndexType.TEXT else "1"
        return "_".join(f"{f}_{suffix}" for f in self.fields)

    def mongo_keys(self) -> List[Tuple[str, object]]:
        return [(f, self.index_type.value) for f in self.fields]


# The text index on posts is declared for search but no operation uses it yet.
INDEXES: Tuple[IndexSpec, ...] = (
    IndexSpec(USERS, ("username",), unique=True),
    IndexSpec(POSTS, ("title", "content"), index_type=IndexType.TEXT),
    IndexSpec(COMMENTS, ("post",)),
)


def unique_indexes(collection: str) -> List[IndexSpec]:
    """Unique indexes declared for a collection."""
    return [spec for spec in INDEXES if spec.collection == collection and spec.unique]
