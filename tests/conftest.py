"""
Global pytest configuration and fixtures for the PathGuard API test suite.
"""

import os
from typing import Any, Dict, Generator
from unittest.mock import AsyncMock, Mock, patch

# Set test environment variables before the application settings load
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-only-32-chars"
os.environ["DOCUMENT_STORE_BACKEND"] = "memory"

import jwt  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from src.core.database import get_store  # noqa: E402
from src.core.document_store import DocumentStore, InMemoryDocumentStore  # noqa: E402
from src.domains.access.evaluator import AccessEvaluator  # noqa: E402
from src.domains.access.service import MembershipManager  # noqa: E402
from src.main import app  # noqa: E402

# Import fixtures from fixture modules
from tests.fixtures.access_fixtures import *  # noqa: F403, F401, E402
from tests.fixtures.auth_fixtures import *  # noqa: F403, F401, E402


@pytest.fixture
def memory_store() -> InMemoryDocumentStore:
    """Empty in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture
def mock_store() -> Mock:
    """
    Mock document store for unit tests that need to force store behaviour.
    """
    store = Mock(spec=DocumentStore)
    # Make async methods return AsyncMock
    store.get_document = AsyncMock()
    store.set_document = AsyncMock()
    store.delete_document = AsyncMock()
    store.query_collection = AsyncMock(return_value=[])
    store.list_collection = AsyncMock(return_value=[])
    store.atomic_batch = AsyncMock()
    return store


@pytest.fixture
def evaluator(memory_store: InMemoryDocumentStore) -> AccessEvaluator:
    return AccessEvaluator(memory_store)


@pytest.fixture
def membership_manager(memory_store: InMemoryDocumentStore) -> MembershipManager:
    return MembershipManager(memory_store)


@pytest.fixture
def test_jwt_secret() -> str:
    """JWT secret for generating test tokens."""
    return "test-secret-key-for-testing-only-32-chars"


@pytest.fixture
def valid_jwt_payload() -> Dict[str, Any]:
    """Valid JWT payload for testing."""
    return {
        "sub": "test-user-id-123",
        "email": "test@example.com",
        "aud": "authenticated",
        "iss": "pathguard",
    }


@pytest.fixture
def valid_jwt_token(test_jwt_secret: str, valid_jwt_payload: Dict[str, Any]) -> str:
    """Generate a valid JWT token for testing."""
    return jwt.encode(valid_jwt_payload, test_jwt_secret, algorithm="HS256")


@pytest.fixture
def invalid_jwt_token() -> str:
    """Generate a token signed with the wrong secret."""
    return jwt.encode({"sub": "test-user-id-123"}, "wrong-secret", algorithm="HS256")


@pytest.fixture
def auth_headers(valid_jwt_token: str) -> Dict[str, str]:
    """Generate authentication headers with valid JWT token."""
    return {"Authorization": f"Bearer {valid_jwt_token}"}


@pytest.fixture
def client(
    memory_store: InMemoryDocumentStore, test_jwt_secret: str
) -> Generator[TestClient, None, None]:
    """
    FastAPI test client wired to the per-test in-memory store.
    """
    app.dependency_overrides[get_store] = lambda: memory_store
    with patch("src.domains.auth.dependencies.settings.JWT_SECRET", test_jwt_secret):
        yield TestClient(app)
    app.dependency_overrides.clear()


# Test data fixtures for consistent test scenarios
@pytest.fixture
def test_user_id() -> str:
    """User id carried by the valid test token."""
    return "test-user-id-123"


@pytest.fixture
def test_org_path() -> str:
    return "organizations/org1"


@pytest.fixture
def test_chat_path() -> str:
    return "organizations/org1/teams/team1/chats/chat1"
