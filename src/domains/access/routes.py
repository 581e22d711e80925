# src/domains/access/routes.py
from typing import List

from fastapi import APIRouter, Depends, Query, status

from src.core.database import get_store
from src.core.document_store import DocumentStore
from src.domains.access.evaluator import AccessEvaluator
from src.domains.access.models import (
    AccessCheckResponse,
    AccessLevelResponse,
    AddMemberRequest,
    ChatResponse,
    CreateChatRequest,
    GrantOrgAccessRequest,
    GrantOrgAccessResponse,
    MemberResponse,
    UpdateMemberRequest,
)
from src.domains.access.service import MembershipManager
from src.domains.auth.dependencies import get_current_user_id
from src.shared.exceptions import NotAuthorizedError, ResourceAlreadyExistsError
from src.shared.permissions.dependencies import require_access
from src.shared.permissions.models import AccessLevel

router = APIRouter(tags=["Access"])


@router.get(
    "/access/check",
    response_model=AccessCheckResponse,
    operation_id="checkAccess",
)
async def check_access(
    path: str = Query(..., min_length=1),
    level: AccessLevel = Query(AccessLevel.READ),
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
) -> AccessCheckResponse:
    """
    Check whether the current user holds at least `level` on `path`.

    Grants on any ancestor of the path count.
    """
    evaluator = AccessEvaluator(store)
    return AccessCheckResponse(
        path=path,
        user_id=user_id,
        level=level,
        has_access=await evaluator.has_access(path, user_id, level),
    )


@router.get(
    "/access/level",
    response_model=AccessLevelResponse,
    operation_id="getAccessLevel",
)
async def get_access_level(
    path: str = Query(..., min_length=1),
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
) -> AccessLevelResponse:
    """Get the current user's effective access level on `path`."""
    evaluator = AccessEvaluator(store)
    return AccessLevelResponse(
        path=path,
        user_id=user_id,
        level=await evaluator.get_user_access_level(path, user_id),
    )


@router.get(
    "/members",
    response_model=List[MemberResponse],
    operation_id="getMembers",
)
async def get_members(
    path: str = Query(..., min_length=1),
    user_id: str = Depends(require_access(AccessLevel.READ)),
    store: DocumentStore = Depends(get_store),
) -> List[MemberResponse]:
    """
    Get the members recorded directly on `path`.

    Members inherited from ancestor paths are not listed. Access is
    restricted to users with READ access on the path.
    """
    service = MembershipManager(store)
    members = await service.get_members(path)
    return [MemberResponse.from_member(member) for member in members]


@router.put(
    "/members",
    response_model=MemberResponse,
    operation_id="addMember",
)
async def add_member(
    request: AddMemberRequest,
    path: str = Query(..., min_length=1),
    user_id: str = Depends(require_access(AccessLevel.ADMIN)),
    store: DocumentStore = Depends(get_store),
) -> MemberResponse:
    """
    Add a member to `path`, replacing any existing record for that user.

    Access is restricted to users with ADMIN access on the path.
    """
    service = MembershipManager(store)
    member = await service.add_member(
        path, request.user_id, request.level, added_by=user_id
    )
    return MemberResponse.from_member(member)


@router.patch(
    "/members/{member_user_id}",
    response_model=MemberResponse,
    operation_id="updateMember",
)
async def update_member(
    member_user_id: str,
    request: UpdateMemberRequest,
    path: str = Query(..., min_length=1),
    user_id: str = Depends(require_access(AccessLevel.ADMIN)),
    store: DocumentStore = Depends(get_store),
) -> MemberResponse:
    """
    Change the access level of an existing member of `path`.

    Returns 404 if the user has no record on the path.
    """
    service = MembershipManager(store)
    member = await service.update_member(path, member_user_id, request.level)
    return MemberResponse.from_member(member)


@router.delete(
    "/members/{member_user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    operation_id="removeMember",
)
async def remove_member(
    member_user_id: str,
    path: str = Query(..., min_length=1),
    user_id: str = Depends(require_access(AccessLevel.ADMIN)),
    store: DocumentStore = Depends(get_store),
) -> None:
    """Remove a member from `path`. Removing an absent member succeeds."""
    service = MembershipManager(store)
    await service.remove_member(path, member_user_id)


@router.post(
    "/members/grant-org",
    response_model=GrantOrgAccessResponse,
    operation_id="grantOrgAccess",
)
async def grant_org_access(
    request: GrantOrgAccessRequest,
    path: str = Query(..., min_length=1),
    user_id: str = Depends(require_access(AccessLevel.ADMIN)),
    store: DocumentStore = Depends(get_store),
) -> GrantOrgAccessResponse:
    """
    Grant every member of an organization READ access to the chat at `path`.

    The caller needs ADMIN on the chat and READ on the organization.
    All grants are applied atomically.
    """
    evaluator = AccessEvaluator(store)
    if not await evaluator.has_access(request.org_path, user_id, AccessLevel.READ):
        raise NotAuthorizedError(
            f"Insufficient access: read required on {request.org_path}"
        )

    service = MembershipManager(store)
    granted = await service.grant_org_access(request.org_path, path, user_id)
    return GrantOrgAccessResponse(
        org_path=request.org_path, chat_path=path, granted=granted
    )


@router.post(
    "/chats",
    response_model=ChatResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="createChat",
)
async def create_chat(
    request: CreateChatRequest,
    path: str = Query(..., min_length=1),
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
) -> ChatResponse:
    """
    Create a chat at `path`.

    Private chats make the creator their admin. Public chats are created
    without any member records.

    A path that already has a resource document or members is refused with
    409. Creating a chat under a claimed ancestor needs ADMIN on that
    ancestor. Store read failures surface as 503.
    """
    evaluator = AccessEvaluator(store)
    if await evaluator.is_claimed(path):
        raise ResourceAlreadyExistsError(f"Chat already exists at {path}")

    ancestor = await evaluator.nearest_claimed_ancestor(path)
    if ancestor and not await evaluator.has_access(
        ancestor, user_id, AccessLevel.ADMIN
    ):
        raise NotAuthorizedError(f"Insufficient access: admin required on {ancestor}")

    service = MembershipManager(store)
    if request.is_public:
        await service.create_public_chat(path, user_id)
    else:
        await service.initialize_chat(path, user_id)

    return ChatResponse(path=path, created_by=user_id, is_public=request.is_public)
