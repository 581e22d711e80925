"""
Tests for AccessEvaluator in src/domains/access/evaluator.py

Covers hierarchical OR semantics, effective level computation and the
fail-closed behaviour of every read path.
"""

from unittest.mock import Mock

import pytest

from src.core.document_store import (
    CollectionDocument,
    DocumentSnapshot,
    DocumentStoreError,
    FieldFilter,
    InMemoryDocumentStore,
)
from src.domains.access.evaluator import AccessEvaluator
from src.shared.permissions.models import AccessLevel
from tests.fixtures.access_fixtures import member_document, resource_document


class TestHasAccess:
    """Test the has_access decision."""

    @pytest.mark.asyncio
    async def test_no_members_anywhere_denies(self, evaluator: AccessEvaluator):
        """Test that a user with no records is denied."""
        assert await evaluator.has_access("x/1", "ghost", AccessLevel.READ) is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("held", list(AccessLevel))
    @pytest.mark.parametrize("required", list(AccessLevel))
    async def test_lattice_monotonicity(
        self, held: AccessLevel, required: AccessLevel
    ):
        """Test a grant satisfies exactly the requirements at or below it."""
        store = InMemoryDocumentStore(
            {"a/1/members/member_u1": member_document("u1", held)}
        )
        evaluator = AccessEvaluator(store)

        expected = list(AccessLevel).index(held) >= list(AccessLevel).index(required)
        assert await evaluator.has_access("a/1/b/2", "u1", required) is expected

    @pytest.mark.asyncio
    async def test_shallow_grant_propagates_to_descendants(self):
        """Test ADMIN at a/1 grants READ on a/1/b/2 with no record there."""
        store = InMemoryDocumentStore(
            {"a/1/members/member_u1": member_document("u1", AccessLevel.ADMIN)}
        )
        evaluator = AccessEvaluator(store)

        assert await evaluator.has_access("a/1/b/2", "u1", AccessLevel.READ) is True

    @pytest.mark.asyncio
    async def test_deep_restrictive_record_does_not_override(
        self, hierarchy_store: InMemoryDocumentStore
    ):
        """Test READ at a/1/b/2 does not take away ADMIN held at a/1."""
        evaluator = AccessEvaluator(hierarchy_store)

        assert (
            await evaluator.has_access("a/1/b/2", "alice", AccessLevel.ADMIN) is True
        )

    @pytest.mark.asyncio
    async def test_deep_grant_does_not_apply_to_ancestor(
        self, hierarchy_store: InMemoryDocumentStore
    ):
        """Test a grant on a/1/b/2 gives nothing on a/1."""
        evaluator = AccessEvaluator(hierarchy_store)

        assert await evaluator.has_access("a/1/b/2", "bob", AccessLevel.WRITE) is True
        assert await evaluator.has_access("a/1", "bob", AccessLevel.READ) is False

    @pytest.mark.asyncio
    async def test_sibling_grant_does_not_apply(
        self, hierarchy_store: InMemoryDocumentStore
    ):
        """Test a grant on a/1/b/2 gives nothing on sibling a/1/b/3."""
        evaluator = AccessEvaluator(hierarchy_store)

        assert await evaluator.has_access("a/1/b/3", "bob", AccessLevel.READ) is False

    @pytest.mark.asyncio
    async def test_short_circuits_on_first_sufficient_prefix(self, mock_store: Mock):
        """Test that deeper prefixes are not read once access is granted."""
        mock_store.query_collection.return_value = [
            CollectionDocument(
                id="member_u1", data=member_document("u1", AccessLevel.ADMIN)
            )
        ]
        evaluator = AccessEvaluator(mock_store)

        assert await evaluator.has_access("a/1/b/2/c/3", "u1", AccessLevel.READ)

        mock_store.query_collection.assert_awaited_once_with(
            "a/1/members", FieldFilter(field="userId", op="==", value="u1")
        )

    @pytest.mark.asyncio
    async def test_checks_prefixes_root_first(self, mock_store: Mock):
        """Test prefixes are queried shallowest first."""
        evaluator = AccessEvaluator(mock_store)

        assert await evaluator.has_access("a/1/b/2", "u1", AccessLevel.READ) is False

        queried = [call.args[0] for call in mock_store.query_collection.await_args_list]
        assert queried == ["a/1/members", "a/1/b/2/members"]

    @pytest.mark.asyncio
    async def test_store_failure_fails_closed(self, mock_store: Mock):
        """Test that read errors deny access instead of raising."""
        mock_store.query_collection.side_effect = ConnectionError("store down")
        evaluator = AccessEvaluator(mock_store)

        assert await evaluator.has_access("a/1", "u1", AccessLevel.READ) is False

    @pytest.mark.asyncio
    async def test_invalid_member_record_is_ignored(self):
        """Test that a malformed record grants nothing."""
        store = InMemoryDocumentStore(
            {"a/1/members/member_u1": {"userId": "u1", "level": "superuser"}}
        )
        evaluator = AccessEvaluator(store)

        assert await evaluator.has_access("a/1", "u1", AccessLevel.READ) is False

    @pytest.mark.asyncio
    async def test_public_marker_is_not_consulted(self):
        """Test that a public chat without members is still denied."""
        store = InMemoryDocumentStore(
            {"chats/c1": resource_document("creator", is_public=True)}
        )
        evaluator = AccessEvaluator(store)

        assert await evaluator.has_access("chats/c1", "u1", AccessLevel.READ) is False


class TestGetUserAccessLevel:
    """Test effective level computation."""

    @pytest.mark.asyncio
    async def test_highest_level_across_ancestors(
        self, hierarchy_store: InMemoryDocumentStore
    ):
        """Test ADMIN at a/1 outranks READ at a/1/b/2."""
        evaluator = AccessEvaluator(hierarchy_store)

        assert await evaluator.get_user_access_level("a/1/b/2", "alice") == (
            AccessLevel.ADMIN
        )

    @pytest.mark.asyncio
    async def test_deeper_higher_level_wins(self):
        """Test a higher level on a deeper path is reported."""
        store = InMemoryDocumentStore(
            {
                "a/1/members/member_u1": member_document("u1", AccessLevel.READ),
                "a/1/b/2/members/member_u1": member_document("u1", AccessLevel.WRITE),
            }
        )
        evaluator = AccessEvaluator(store)

        assert await evaluator.get_user_access_level("a/1/b/2", "u1") == (
            AccessLevel.WRITE
        )
        assert await evaluator.get_user_access_level("a/1", "u1") == AccessLevel.READ

    @pytest.mark.asyncio
    async def test_no_membership_returns_none(self, evaluator: AccessEvaluator):
        """Test a user without records has no level."""
        assert await evaluator.get_user_access_level("x/1", "ghost") is None

    @pytest.mark.asyncio
    async def test_store_failure_returns_none(self, mock_store: Mock):
        """Test read errors report no level instead of raising."""
        mock_store.query_collection.side_effect = ConnectionError("store down")
        evaluator = AccessEvaluator(mock_store)

        assert await evaluator.get_user_access_level("a/1/b/2", "u1") is None


class TestPathExists:
    """Test resource document existence checks."""

    @pytest.mark.asyncio
    async def test_existing_path(self):
        """Test a stored resource document is found."""
        store = InMemoryDocumentStore({"chats/c1": resource_document("u1")})
        evaluator = AccessEvaluator(store)

        assert await evaluator.path_exists("chats/c1") is True

    @pytest.mark.asyncio
    async def test_members_alone_do_not_make_path_exist(self):
        """Test that only the document at the path itself counts."""
        store = InMemoryDocumentStore(
            {"chats/c1/members/member_u1": member_document("u1", AccessLevel.READ)}
        )
        evaluator = AccessEvaluator(store)

        assert await evaluator.path_exists("chats/c1") is False

    @pytest.mark.asyncio
    async def test_store_failure_returns_false(self, mock_store: Mock):
        """Test read errors report the path as missing."""
        mock_store.get_document.side_effect = ConnectionError("store down")
        evaluator = AccessEvaluator(mock_store)

        assert await evaluator.path_exists("chats/c1") is False

    @pytest.mark.asyncio
    async def test_reads_snapshot_exists_flag(self, mock_store: Mock):
        """Test the document at the path itself is read."""
        mock_store.get_document.return_value = DocumentSnapshot(exists=True)
        evaluator = AccessEvaluator(mock_store)

        assert await evaluator.path_exists("chats/c1") is True
        mock_store.get_document.assert_awaited_once_with("chats/c1")


class TestClaimChecks:
    """Test the claim checks that guard resource creation."""

    @pytest.mark.asyncio
    async def test_members_without_resource_document_claim_path(
        self, hierarchy_store: InMemoryDocumentStore
    ):
        """Test that a members collection alone claims the path."""
        evaluator = AccessEvaluator(hierarchy_store)

        assert await evaluator.path_exists("a/1") is False
        assert await evaluator.is_claimed("a/1") is True

    @pytest.mark.asyncio
    async def test_resource_document_claims_path(self):
        """Test that a resource document without members claims the path."""
        store = InMemoryDocumentStore(
            {"chats/pub": resource_document("creator", is_public=True)}
        )
        evaluator = AccessEvaluator(store)

        assert await evaluator.is_claimed("chats/pub") is True

    @pytest.mark.asyncio
    async def test_unused_path_is_not_claimed(self, evaluator: AccessEvaluator):
        """Test that a path with no documents at all is free."""
        assert await evaluator.is_claimed("chats/new") is False

    @pytest.mark.asyncio
    async def test_store_failure_is_raised(self, mock_store: Mock):
        """Test that read errors propagate instead of reporting a free path."""
        mock_store.get_document.side_effect = DocumentStoreError("transient")
        evaluator = AccessEvaluator(mock_store)

        with pytest.raises(DocumentStoreError):
            await evaluator.is_claimed("chats/c1")

    @pytest.mark.asyncio
    async def test_nearest_claimed_ancestor_is_deepest(
        self, hierarchy_store: InMemoryDocumentStore
    ):
        """Test the deepest claimed prefix above the path is returned."""
        evaluator = AccessEvaluator(hierarchy_store)

        assert await evaluator.nearest_claimed_ancestor("a/1/b/2/c/3") == "a/1/b/2"
        assert await evaluator.nearest_claimed_ancestor("a/1/b/9") == "a/1"

    @pytest.mark.asyncio
    async def test_nearest_claimed_ancestor_ignores_path_itself(
        self, hierarchy_store: InMemoryDocumentStore
    ):
        """Test that neither a root path nor an unclaimed tree has an ancestor."""
        evaluator = AccessEvaluator(hierarchy_store)

        assert await evaluator.nearest_claimed_ancestor("a/1") is None
        assert await evaluator.nearest_claimed_ancestor("x/1/y/2") is None
