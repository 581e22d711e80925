"""
Domain-specific exceptions for access control.
"""

from src.shared.exceptions import BaseHTTPException


class AccessException(BaseHTTPException):
    """Base exception for access-control errors."""

    status_code = 400


class MemberNotFoundError(AccessException):
    """Raised when updating a membership record that does not exist."""

    status_code = 404
    message = "Member not found"

    def __init__(self, path: str, user_id: str) -> None:
        self.path = path
        self.user_id = user_id
        super().__init__(f"Member {user_id} not found at {path}")


class InvalidMemberRecordError(AccessException):
    """Raised when a stored membership record cannot be read as a Member."""

    status_code = 409
    message = "Member record is invalid"

    def __init__(self, path: str, user_id: str) -> None:
        self.path = path
        self.user_id = user_id
        super().__init__(f"Member record for {user_id} at {path} is invalid")
