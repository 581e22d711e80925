# src/domains/access/service.py
import logging
from typing import List, Optional

from pydantic import ValidationError

from src.core.document_store import BatchWrite, DocumentStore
from src.domains.access.exceptions import (
    InvalidMemberRecordError,
    MemberNotFoundError,
)
from src.shared.permissions.models import AccessLevel, Member, ResourceDocument
from src.shared.permissions.services import (
    member_document_path,
    members_path,
    utc_now_iso,
)

logger = logging.getLogger(__name__)


class MembershipManager:
    """Creates, updates and removes membership records on resource paths."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def add_member(
        self,
        path: str,
        user_id: str,
        level: AccessLevel,
        added_by: Optional[str] = None,
    ) -> Member:
        """
        Add a member to a path, replacing any existing record for the user.

        The record is written in full; fields of a previous record for the
        same user are not merged.

        Args:
            path: Resource path to grant access on
            user_id: User to grant access to
            level: Access level to grant
            added_by: User performing the grant

        Returns:
            The stored Member record

        Raises:
            DocumentStoreError: If the write fails
        """
        now = utc_now_iso()
        member = Member(
            user_id=user_id,
            level=level,
            added_by=added_by,
            added_at=now,
            updated_at=now,
        )
        try:
            await self.store.set_document(
                member_document_path(path, user_id), member.to_document()
            )
        except Exception as e:
            logger.error(f"Error adding member {user_id} to {path}: {e}")
            raise

        logger.info(
            f"Added member {user_id} with {member.level.value} access to {path}"
        )
        return member

    async def update_member(
        self, path: str, user_id: str, level: AccessLevel
    ) -> Member:
        """
        Change the access level of an existing member.

        `added_by` and `added_at` are preserved; `updated_at` is refreshed.

        Raises:
            MemberNotFoundError: If the user has no record at `path`
            InvalidMemberRecordError: If the stored record is malformed
            DocumentStoreError: If the read or write fails
        """
        document_path = member_document_path(path, user_id)
        try:
            snapshot = await self.store.get_document(document_path)
            if not snapshot.exists:
                raise MemberNotFoundError(path, user_id)

            try:
                existing = Member.model_validate(snapshot.data)
            except ValidationError as e:
                logger.warning(f"Invalid member data {snapshot.data}: {e}")
                raise InvalidMemberRecordError(path, user_id) from e

            updated = existing.model_copy(
                update={"level": AccessLevel(level), "updated_at": utc_now_iso()}
            )
            await self.store.set_document(document_path, updated.to_document())
        except Exception as e:
            logger.error(f"Error updating member {user_id} at {path}: {e}")
            raise

        logger.info(
            f"Updated member {user_id} to {updated.level.value} access at {path}"
        )
        return updated

    async def remove_member(self, path: str, user_id: str) -> None:
        """Remove a member's record. Removing an absent member is a no-op."""
        try:
            await self.store.delete_document(member_document_path(path, user_id))
        except Exception as e:
            logger.error(f"Error removing member {user_id} from {path}: {e}")
            raise

        logger.info(f"Removed member {user_id} from {path}")

    async def get_members(self, path: str) -> List[Member]:
        """
        Get all valid members recorded directly on `path`.

        Invalid records are logged and skipped. Store failures return an
        empty list.
        """
        try:
            documents = await self.store.list_collection(members_path(path))
        except Exception as e:
            logger.error(f"Error getting members for {path}: {e}")
            return []

        members = []
        for document in documents:
            try:
                members.append(Member.model_validate(document.data))
            except ValidationError as e:
                logger.warning(f"Invalid member data {document.data}: {e}")

        logger.debug(f"Found {len(members)} members at {path}")
        return members

    async def initialize_chat(self, path: str, admin_user_id: str) -> None:
        """
        Create a chat document and make `admin_user_id` its admin.

        The resource document and the admin membership are committed in one
        atomic batch, so a chat never exists without its admin.
        """
        now = utc_now_iso()
        resource = ResourceDocument(
            created_at=now, updated_at=now, created_by=admin_user_id
        )
        admin = Member(
            user_id=admin_user_id,
            level=AccessLevel.ADMIN,
            added_by=admin_user_id,
            added_at=now,
            updated_at=now,
        )
        try:
            await self.store.atomic_batch(
                [
                    BatchWrite(type="set", path=path, data=resource.to_document()),
                    BatchWrite(
                        type="set",
                        path=member_document_path(path, admin_user_id),
                        data=admin.to_document(),
                    ),
                ]
            )
        except Exception as e:
            logger.error(f"Error initializing chat at {path}: {e}")
            raise

        logger.info(f"Initialized chat at {path} with admin {admin_user_id}")

    async def grant_org_access(
        self, org_path: str, chat_path: str, admin_user_id: str
    ) -> int:
        """
        Grant every member of an organization READ access to a chat.

        Members keep no more than READ on the chat whatever their level in the
        organization. All grants are written in one atomic batch: either every
        member is added or none is.

        Args:
            org_path: Path whose members are copied
            chat_path: Path receiving the grants
            admin_user_id: User recorded as `added_by` on every grant

        Returns:
            Number of members granted

        Raises:
            DocumentStoreError: If the batch commit fails
        """
        org_members = await self.get_members(org_path)
        if not org_members:
            logger.info(f"No members at {org_path}; nothing to grant on {chat_path}")
            return 0

        now = utc_now_iso()
        writes = []
        for org_member in org_members:
            grant = Member(
                user_id=org_member.user_id,
                level=AccessLevel.READ,
                added_by=admin_user_id,
                added_at=now,
                updated_at=now,
            )
            writes.append(
                BatchWrite(
                    type="set",
                    path=member_document_path(chat_path, org_member.user_id),
                    data=grant.to_document(),
                )
            )

        try:
            await self.store.atomic_batch(writes)
        except Exception as e:
            logger.error(
                f"Error granting org access from {org_path} to {chat_path}: {e}"
            )
            raise

        logger.info(
            f"Granted org access from {org_path} to {chat_path} "
            f"for {len(org_members)} members"
        )
        return len(org_members)

    async def create_public_chat(self, path: str, creator_id: str) -> None:
        """Create a chat document marked public, without member records."""
        now = utc_now_iso()
        resource = ResourceDocument(
            created_at=now, updated_at=now, created_by=creator_id, is_public=True
        )
        try:
            await self.store.set_document(path, resource.to_document())
        except Exception as e:
            logger.error(f"Error creating public chat at {path}: {e}")
            raise

        logger.info(f"Created public chat at {path}")
