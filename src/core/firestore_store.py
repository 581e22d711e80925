import logging
import os
from typing import Any, Dict, List, Optional

from google.api_core.exceptions import GoogleAPICallError
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter as FirestoreFieldFilter

from .document_store import (
    BatchWrite,
    CollectionDocument,
    DocumentSnapshot,
    DocumentStore,
    DocumentStoreError,
    FieldFilter,
    validate_collection_path,
    validate_document_path,
)

logger = logging.getLogger(__name__)


class FirestoreDocumentStore(DocumentStore):
    """
    Document store backed by Google Cloud Firestore.

    Wraps a `firestore.AsyncClient`. The client is created once per store and
    shared by every caller; API errors are re-raised as `DocumentStoreError`.
    """

    def __init__(
        self,
        project_id: Optional[str] = None,
        database: Optional[str] = None,
        emulator_host: Optional[str] = None,
        client: Optional[firestore.AsyncClient] = None,
    ) -> None:
        if client is None:
            if emulator_host:
                # The Firestore client reads the emulator address from the environment
                os.environ["FIRESTORE_EMULATOR_HOST"] = emulator_host
                logger.info(f"Using Firestore emulator at {emulator_host}")
            client = firestore.AsyncClient(project=project_id, database=database)
        self.client = client

    async def get_document(self, path: str) -> DocumentSnapshot:
        validate_document_path(path)
        try:
            snapshot = await self.client.document(path).get()
        except GoogleAPICallError as e:
            raise DocumentStoreError(f"Failed to read document {path}: {e}") from e

        if not snapshot.exists:
            return DocumentSnapshot(exists=False)
        return DocumentSnapshot(exists=True, data=snapshot.to_dict() or {})

    async def set_document(self, path: str, data: Dict[str, Any]) -> None:
        validate_document_path(path)
        try:
            await self.client.document(path).set(data)
        except GoogleAPICallError as e:
            raise DocumentStoreError(f"Failed to write document {path}: {e}") from e

    async def delete_document(self, path: str) -> None:
        validate_document_path(path)
        try:
            await self.client.document(path).delete()
        except GoogleAPICallError as e:
            raise DocumentStoreError(f"Failed to delete document {path}: {e}") from e

    async def query_collection(
        self, path: str, field_filter: FieldFilter
    ) -> List[CollectionDocument]:
        validate_collection_path(path)
        query = self.client.collection(path).where(
            filter=FirestoreFieldFilter(
                field_filter.field, field_filter.op, field_filter.value
            )
        )
        try:
            return [
                CollectionDocument(id=snapshot.id, data=snapshot.to_dict() or {})
                async for snapshot in query.stream()
            ]
        except GoogleAPICallError as e:
            raise DocumentStoreError(f"Failed to query collection {path}: {e}") from e

    async def list_collection(self, path: str) -> List[CollectionDocument]:
        validate_collection_path(path)
        try:
            return [
                CollectionDocument(id=snapshot.id, data=snapshot.to_dict() or {})
                async for snapshot in self.client.collection(path).stream()
            ]
        except GoogleAPICallError as e:
            raise DocumentStoreError(f"Failed to list collection {path}: {e}") from e

    async def atomic_batch(self, writes: List[BatchWrite]) -> None:
        batch = self.client.batch()
        for write in writes:
            validate_document_path(write.path)
            reference = self.client.document(write.path)
            if write.type == "set":
                if write.data is None:
                    raise DocumentStoreError(
                        f"Batch set for '{write.path}' has no data"
                    )
                batch.set(reference, write.data)
            else:
                batch.delete(reference)

        try:
            await batch.commit()
        except GoogleAPICallError as e:
            raise DocumentStoreError(f"Failed to commit batch: {e}") from e
