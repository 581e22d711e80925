# src/domains/auth/dependencies.py
import jwt
from fastapi import Header
from jwt import PyJWKClient

from src.core.settings import settings
from src.shared.exceptions import AuthNotConfiguredError, InvalidTokenError

from .types import JwtPayload

_jwks_client = PyJWKClient(settings.JWT_JWKS_URL) if settings.JWT_JWKS_URL else None


def decode_jwt(token: str) -> JwtPayload:
    """
    Verifies JWT token. Uses JWT_SECRET for development mode if available,
    otherwise falls back to the configured JWKS endpoint for production.
    """
    # Development mode: prefer JWT_SECRET if available
    if settings.JWT_SECRET:
        try:
            payload = jwt.decode(
                token,
                settings.JWT_SECRET,
                algorithms=["HS256"],
                options={"verify_aud": False},
            )
            return JwtPayload(**dict(payload))
        except jwt.PyJWTError:
            raise InvalidTokenError("Invalid or expired token")

    # Production mode: use JWKS
    if not _jwks_client:
        raise AuthNotConfiguredError()
    try:
        signing_key = _jwks_client.get_signing_key_from_jwt(token).key
        payload = jwt.decode(
            token,
            signing_key,
            algorithms=["RS256"],
            options={"verify_aud": False},
        )
        return JwtPayload(**dict(payload))
    except jwt.PyJWTError:
        raise InvalidTokenError("Invalid or expired token")


def get_current_user_id(authorization: str = Header(None)) -> str:
    """
    Extracts and validates the bearer JWT from the Authorization header.
    Returns the user's id (from the `sub` claim).
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise InvalidTokenError("Missing token")

    token = authorization.split(" ")[1]
    payload = decode_jwt(token)
    if not payload.sub:
        raise InvalidTokenError("Token has no subject")
    return payload.sub
