"""
Shared path-scoped permission system.

This module provides the access-level lattice and the path helpers used to
walk a resource's ancestors. Route guards live in `.dependencies`.

Usage:
    from src.shared.permissions import AccessLevel
    from src.shared.permissions.dependencies import require_access

    @router.get("/members")
    async def list_members(
        path: str,
        user_id: str = Depends(require_access(AccessLevel.READ)),
    ):
        pass
"""

from .models import LEVEL_RANKS, AccessLevel, Member, ResourceDocument
from .services import ancestor_prefixes, has_required_level

__all__ = [
    "AccessLevel",
    "LEVEL_RANKS",
    "Member",
    "ResourceDocument",
    "ancestor_prefixes",
    "has_required_level",
]
