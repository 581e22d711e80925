# src/shared/exceptions.py
from typing import Optional

from fastapi import HTTPException, status


class BaseHTTPException(HTTPException):
    """Base for exceptions that carry their own status code and default message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(status_code=self.status_code, detail=message or self.message)


# Authentication & Authorization Exceptions
class InvalidTokenError(HTTPException):
    def __init__(self, message: str = "Missing or invalid token") -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=message)


class AuthNotConfiguredError(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Token verification not configured",
        )


class NotAuthorizedError(HTTPException):
    def __init__(self, message: str = "Not authorized") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=message)


# Resource Exceptions
class ResourceAlreadyExistsError(HTTPException):
    def __init__(self, message: str = "Resource already exists") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=message)
