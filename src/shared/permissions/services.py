from datetime import datetime, timezone
from typing import List

from .models import LEVEL_RANKS, AccessLevel

MEMBERS_COLLECTION = "members"
MEMBER_DOCUMENT_PREFIX = "member_"


def has_required_level(user_level: AccessLevel, required_level: AccessLevel) -> bool:
    """
    Check if a held access level satisfies a required level.

    Args:
        user_level: The level the member holds
        required_level: The level the operation needs

    Returns:
        True if rank(user_level) >= rank(required_level), False otherwise
    """
    return LEVEL_RANKS[AccessLevel(user_level)] >= LEVEL_RANKS[
        AccessLevel(required_level)
    ]


def ancestor_prefixes(path: str) -> List[str]:
    """
    Expand a resource path into its ancestor prefixes, root first.

    Segments are taken in collection/identifier pairs, so
    ``orgs/o1/chats/c1`` yields ``["orgs/o1", "orgs/o1/chats/c1"]``.
    Paths with an odd segment count are not rejected; the last cut is
    clamped to the segments available.
    """
    segments = [segment for segment in path.split("/") if segment]
    return [
        "/".join(segments[: index + 2]) for index in range(0, len(segments), 2)
    ]


def members_path(path: str) -> str:
    """Path of the members collection scoped to `path`."""
    return f"{path.strip('/')}/{MEMBERS_COLLECTION}"


def member_document_id(user_id: str) -> str:
    """Deterministic member document id, so each user has one record per path."""
    return f"{MEMBER_DOCUMENT_PREFIX}{user_id}"


def member_document_path(path: str, user_id: str) -> str:
    return f"{members_path(path)}/{member_document_id(user_id)}"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
