from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class AccessLevel(str, Enum):
    """
    Access levels that can be granted on a resource path.

    Levels form a total order: READ < WRITE < ADMIN. A member holding a
    level satisfies every requirement at or below it.
    """

    READ = "read"  # View the resource and its member list
    WRITE = "write"  # Post to and modify the resource
    ADMIN = "admin"  # Manage members of the resource


LEVEL_RANKS: Dict[AccessLevel, int] = {
    AccessLevel.READ: 1,
    AccessLevel.WRITE: 2,
    AccessLevel.ADMIN: 3,
}


class Member(BaseModel):
    """
    A membership record stored under `{path}/members/member_{userId}`.

    Field names are snake_case in Python and camelCase in the store.
    """

    user_id: str = Field(..., alias="userId", min_length=1)
    level: AccessLevel
    added_by: Optional[str] = Field(None, alias="addedBy")
    added_at: str = Field(..., alias="addedAt", description="ISO-8601 timestamp")
    updated_at: Optional[str] = Field(
        None, alias="updatedAt", description="ISO-8601 timestamp"
    )

    model_config = ConfigDict(populate_by_name=True, use_enum_values=False)

    def to_document(self) -> dict:
        """Serialize to the stored document layout."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ResourceDocument(BaseModel):
    """The document stored at a resource path itself."""

    created_at: str = Field(..., alias="createdAt")
    updated_at: str = Field(..., alias="updatedAt")
    created_by: str = Field(..., alias="createdBy")
    is_public: Optional[bool] = Field(None, alias="isPublic")

    model_config = ConfigDict(populate_by_name=True)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
