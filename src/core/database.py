import logging
from typing import Optional

from src.core.document_store import DocumentStore, InMemoryDocumentStore
from src.core.settings import Settings, settings

logger = logging.getLogger(__name__)

# Shared store instance, created on first use or at application startup
_document_store: Optional[DocumentStore] = None


def build_document_store(config: Settings) -> DocumentStore:
    """Create the document store selected by DOCUMENT_STORE_BACKEND."""
    if config.DOCUMENT_STORE_BACKEND == "firestore":
        from src.core.firestore_store import FirestoreDocumentStore

        project = config.FIRESTORE_PROJECT_ID or "(default)"
        logger.info(f"Connecting to Firestore project {project}")
        return FirestoreDocumentStore(
            project_id=config.FIRESTORE_PROJECT_ID,
            database=config.FIRESTORE_DATABASE,
            emulator_host=config.FIRESTORE_EMULATOR_HOST,
        )

    logger.warning("Using in-memory document store; data is not persisted")
    return InMemoryDocumentStore()


def init_document_store() -> DocumentStore:
    global _document_store
    if _document_store is None:
        _document_store = build_document_store(settings)
    return _document_store


def reset_document_store() -> None:
    global _document_store
    _document_store = None


async def get_store() -> DocumentStore:
    """Document store dependency for FastAPI dependency injection."""
    return init_document_store()
