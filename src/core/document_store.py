"""
Hierarchical document store contract.

The access-control core talks to its backing store only through the
`DocumentStore` interface defined here. Documents live at paths with an even
number of segments (``collection/id/collection/id``); collections live at
paths with an odd number of segments.
"""

import copy
import logging
import operator
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

FilterOp = Literal["==", "!=", "<", "<=", ">", ">=", "in"]

_FILTER_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda field_value, options: field_value in options,
}


class DocumentStoreError(Exception):
    """Raised when the document store rejects or fails an operation."""

    pass


class DocumentSnapshot(BaseModel):
    """Result of reading a single document."""

    exists: bool = Field(..., description="Whether a document exists at the path")
    data: Dict[str, Any] = Field(
        default_factory=dict, description="Document fields (empty when missing)"
    )


class CollectionDocument(BaseModel):
    """A document returned from a collection listing or query."""

    id: str = Field(..., description="Document identifier within its collection")
    data: Dict[str, Any] = Field(default_factory=dict, description="Document fields")


class FieldFilter(BaseModel):
    """Single-field filter applied by `query_collection`."""

    field: str
    op: FilterOp = "=="
    value: Any = None


class BatchWrite(BaseModel):
    """One write inside an atomic batch."""

    type: Literal["set", "delete"]
    path: str
    data: Optional[Dict[str, Any]] = None


def split_path(path: str) -> List[str]:
    """Split a store path into its non-empty segments."""
    return [segment for segment in path.split("/") if segment]


def validate_document_path(path: str) -> List[str]:
    segments = split_path(path)
    if not segments or len(segments) % 2 != 0:
        raise DocumentStoreError(
            f"Invalid document path '{path}': expected an even number of segments"
        )
    return segments


def validate_collection_path(path: str) -> List[str]:
    segments = split_path(path)
    if len(segments) % 2 != 1:
        raise DocumentStoreError(
            f"Invalid collection path '{path}': expected an odd number of segments"
        )
    return segments


class DocumentStore(ABC):
    """Abstract hierarchical document store."""

    @abstractmethod
    async def get_document(self, path: str) -> DocumentSnapshot:
        """
        Read the document stored at `path`.

        Returns:
            Snapshot with `exists=False` and empty data when nothing is stored
        """
        pass

    @abstractmethod
    async def set_document(self, path: str, data: Dict[str, Any]) -> None:
        """Create or fully overwrite the document at `path`."""
        pass

    @abstractmethod
    async def delete_document(self, path: str) -> None:
        """Delete the document at `path`. Deleting a missing document is a no-op."""
        pass

    @abstractmethod
    async def query_collection(
        self, path: str, field_filter: FieldFilter
    ) -> List[CollectionDocument]:
        """
        Return the documents of the collection at `path` matching a filter.

        Args:
            path: Collection path
            field_filter: Field, operator and value to match

        Returns:
            Matching documents ordered by document id
        """
        pass

    @abstractmethod
    async def list_collection(self, path: str) -> List[CollectionDocument]:
        """Return every document of the collection at `path`, ordered by id."""
        pass

    @abstractmethod
    async def atomic_batch(self, writes: List[BatchWrite]) -> None:
        """
        Apply a list of writes all-or-nothing.

        Raises:
            DocumentStoreError: If the batch cannot be committed; no write
                from the batch is applied in that case
        """
        pass


class InMemoryDocumentStore(DocumentStore):
    """
    Dict-backed document store for local development and tests.

    Documents are keyed by their normalized path. Stored data is deep-copied
    on the way in and out so callers never share mutable state with the store.
    """

    def __init__(self, documents: Optional[Dict[str, Dict[str, Any]]] = None) -> None:
        self._documents: Dict[str, Dict[str, Any]] = {}
        for path, data in (documents or {}).items():
            self._documents["/".join(validate_document_path(path))] = copy.deepcopy(
                data
            )

    async def get_document(self, path: str) -> DocumentSnapshot:
        key = "/".join(validate_document_path(path))
        data = self._documents.get(key)
        if data is None:
            return DocumentSnapshot(exists=False)
        return DocumentSnapshot(exists=True, data=copy.deepcopy(data))

    async def set_document(self, path: str, data: Dict[str, Any]) -> None:
        key = "/".join(validate_document_path(path))
        self._documents[key] = copy.deepcopy(data)

    async def delete_document(self, path: str) -> None:
        key = "/".join(validate_document_path(path))
        self._documents.pop(key, None)

    async def query_collection(
        self, path: str, field_filter: FieldFilter
    ) -> List[CollectionDocument]:
        compare = _FILTER_OPERATORS[field_filter.op]
        matches = []
        for document in await self.list_collection(path):
            if field_filter.field not in document.data:
                continue
            try:
                if compare(document.data[field_filter.field], field_filter.value):
                    matches.append(document)
            except TypeError:
                # Mismatched types never match, as in Firestore
                continue
        return matches

    async def list_collection(self, path: str) -> List[CollectionDocument]:
        segments = validate_collection_path(path)
        depth = len(segments) + 1
        prefix = "/".join(segments) + "/"

        documents = []
        for key in sorted(self._documents):
            if key.startswith(prefix) and key.count("/") + 1 == depth:
                documents.append(
                    CollectionDocument(
                        id=key[len(prefix) :],
                        data=copy.deepcopy(self._documents[key]),
                    )
                )
        return documents

    async def atomic_batch(self, writes: List[BatchWrite]) -> None:
        # Validate every write before applying any of them
        staged = []
        for write in writes:
            key = "/".join(validate_document_path(write.path))
            if write.type == "set" and write.data is None:
                raise DocumentStoreError(f"Batch set for '{write.path}' has no data")
            staged.append((write, key))

        for write, key in staged:
            if write.type == "set":
                self._documents[key] = copy.deepcopy(write.data)
            else:
                self._documents.pop(key, None)

        logger.debug(f"Committed batch of {len(writes)} writes")
