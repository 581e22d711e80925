from typing import Awaitable, Callable

from fastapi import Depends, Query

from src.core.database import get_store
from src.core.document_store import DocumentStore
from src.domains.access.evaluator import AccessEvaluator
from src.domains.auth.dependencies import get_current_user_id
from src.shared.exceptions import NotAuthorizedError

from .models import AccessLevel


def require_access(
    level: AccessLevel,
) -> Callable[..., Awaitable[str]]:
    """
    Dependency factory for path-scoped authorization.

    Creates a dependency that validates the current user holds at least
    `level` on the resource path given in the `path` query parameter.

    Args:
        level: The access level required to use the endpoint

    Returns:
        Async dependency function that validates access and returns the user id
    """

    async def check_access(
        path: str = Query(..., min_length=1, description="Resource path"),
        user_id: str = Depends(get_current_user_id),
        store: DocumentStore = Depends(get_store),
    ) -> str:
        """
        Validate user has required access level on the path.

        Raises:
            NotAuthorizedError: If user lacks the required level
        """
        evaluator = AccessEvaluator(store)
        if not await evaluator.has_access(path, user_id, level):
            raise NotAuthorizedError(
                f"Insufficient access: {AccessLevel(level).value} required on {path}"
            )

        return user_id

    return check_access
