# src/domains/access/evaluator.py
import asyncio
import logging
from typing import List, Optional

from pydantic import ValidationError

from src.core.document_store import DocumentStore, FieldFilter
from src.shared.permissions.models import AccessLevel, Member
from src.shared.permissions.services import (
    ancestor_prefixes,
    has_required_level,
    members_path,
)

logger = logging.getLogger(__name__)


class AccessEvaluator:
    """
    Answers access questions for hierarchical resource paths.

    A user's grants are looked up in the `members` collection of every
    ancestor prefix of the requested path. Grants combine with OR semantics:
    a sufficient level at any ancestor grants access, and a lower level at a
    deeper path never takes away what a shallower path grants.

    Access reads fail closed: store errors are logged and turned into a
    denial instead of being raised. The claim checks that guard resource
    creation raise instead, so an unreadable path is never taken as free.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    async def has_access(
        self, path: str, user_id: str, required_level: AccessLevel
    ) -> bool:
        """
        Check whether a user holds at least `required_level` on `path`.

        Prefixes are checked root first and the first sufficient grant wins.

        Args:
            path: Resource path to check
            user_id: User requesting access
            required_level: Minimum level needed

        Returns:
            True if some ancestor grants a sufficient level, False otherwise
            (including when the store fails)
        """
        logger.debug(
            f"Checking access for user {user_id} at path {path} "
            f"with level {AccessLevel(required_level).value}"
        )
        try:
            for prefix in ancestor_prefixes(path):
                member = await self._find_member(prefix, user_id)
                if member is None:
                    logger.debug(f"No membership found at {prefix}")
                    continue

                logger.debug(f"Found membership {member.level.value} at {prefix}")
                if has_required_level(member.level, required_level):
                    return True
        except Exception as e:
            logger.error(f"Error checking access for {user_id} at {path}: {e}")
            return False

        logger.debug(f"Access denied for {user_id} at {path}")
        return False

    async def get_user_access_level(
        self, path: str, user_id: str
    ) -> Optional[AccessLevel]:
        """
        Get the highest level a user holds on `path` or any of its ancestors.

        Returns:
            The highest AccessLevel found, or None if the user has no
            membership along the path or the store fails
        """
        prefixes = ancestor_prefixes(path)
        try:
            # Independent reads; results keep root-first order
            members = await asyncio.gather(
                *(self._find_member(prefix, user_id) for prefix in prefixes)
            )
        except Exception as e:
            logger.error(f"Error getting access level for {user_id} at {path}: {e}")
            return None

        highest_level: Optional[AccessLevel] = None
        for member in members:
            if member is None:
                continue
            if highest_level is None or has_required_level(member.level, highest_level):
                highest_level = member.level

        return highest_level

    async def path_exists(self, path: str) -> bool:
        """Check if a document exists at `path` itself."""
        try:
            snapshot = await self.store.get_document(path)
            return snapshot.exists
        except Exception as e:
            logger.error(f"Error checking path existence for {path}: {e}")
            return False

    async def is_claimed(self, path: str) -> bool:
        """
        Check if `path` has a resource document or any membership record.

        Unlike the other checks, store errors are raised: callers use this
        to decide whether a write may go ahead.

        Raises:
            DocumentStoreError: If the store cannot be read
        """
        snapshot = await self.store.get_document(path)
        if snapshot.exists:
            return True
        members = await self.store.list_collection(members_path(path))
        return len(members) > 0

    async def nearest_claimed_ancestor(self, path: str) -> Optional[str]:
        """
        Return the deepest claimed prefix strictly above `path`, if any.

        Raises:
            DocumentStoreError: If the store cannot be read
        """
        for prefix in reversed(ancestor_prefixes(path)[:-1]):
            if await self.is_claimed(prefix):
                return prefix
        return None

    async def _find_member(self, prefix: str, user_id: str) -> Optional[Member]:
        """Return the valid membership record for `user_id` at `prefix`, if any."""
        documents = await self.store.query_collection(
            members_path(prefix), FieldFilter(field="userId", op="==", value=user_id)
        )
        valid: List[Member] = []
        for document in documents:
            try:
                valid.append(Member.model_validate(document.data))
            except ValidationError as e:
                logger.warning(
                    f"Invalid member data at {members_path(prefix)}/{document.id}: {e}"
                )
        return valid[0] if valid else None
