# src/domains/access/models.py
from typing import Optional

from pydantic import BaseModel, Field

from src.shared.permissions.models import AccessLevel, Member


class AddMemberRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    level: AccessLevel


class UpdateMemberRequest(BaseModel):
    level: AccessLevel


class GrantOrgAccessRequest(BaseModel):
    org_path: str = Field(..., min_length=1, description="Organization path")


class CreateChatRequest(BaseModel):
    is_public: bool = False


class MemberResponse(BaseModel):
    user_id: str
    level: AccessLevel
    added_by: Optional[str]
    added_at: str
    updated_at: Optional[str]

    @classmethod
    def from_member(cls, member: Member) -> "MemberResponse":
        return cls(
            user_id=member.user_id,
            level=member.level,
            added_by=member.added_by,
            added_at=member.added_at,
            updated_at=member.updated_at,
        )


class AccessCheckResponse(BaseModel):
    path: str
    user_id: str
    level: AccessLevel
    has_access: bool


class AccessLevelResponse(BaseModel):
    path: str
    user_id: str
    level: Optional[AccessLevel]


class GrantOrgAccessResponse(BaseModel):
    org_path: str
    chat_path: str
    granted: int


class ChatResponse(BaseModel):
    path: str
    created_by: str
    is_public: bool
