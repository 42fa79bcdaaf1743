"""
Bearer token authentication dependencies.

Tokens are HS256 JWTs carrying the creator's wallet address. Issuing them
after a wallet signature check happens outside this service.
"""

import logging
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.container import ServiceContainer, get_container
from app.models.creator import Creator, is_valid_address
from .error_handler import UnauthorizedError

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(
    address: str,
    secret: str,
    algorithm: str = "HS256",
    expires_in: timedelta = timedelta(days=7),
) -> str:
    """
    Create a signed access token for a wallet address.

    Args:
        address: 0x-prefixed wallet address
        secret: Signing key (JWT_SECRET)
        algorithm: JWT algorithm (JWT_ALGORITHM)
        expires_in: Token lifetime

    Returns:
        str: Encoded JWT
    """
    payload = {
        "address": address.lower(),
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_access_token(token: str, secret: str, algorithm: str = "HS256") -> Creator:
    """
    Decode a bearer token into a Creator.

    Raises:
        UnauthorizedError: If the token is invalid, expired, or has no address
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token expired")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise UnauthorizedError("Invalid token")

    address = payload.get("address")
    if not is_valid_address(address):
        raise UnauthorizedError("Token does not carry a valid address")
    return Creator.from_address(address)


async def get_optional_creator(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    container: ServiceContainer = Depends(get_container),
) -> Creator | None:
    """FastAPI dependency returning the authenticated creator, if any."""
    if credentials is None:
        return None
    settings = container.settings
    return decode_access_token(credentials.credentials, settings.JWT_SECRET, settings.JWT_ALGORITHM)


async def require_creator(
    creator: Creator | None = Depends(get_optional_creator),
) -> Creator:
    """FastAPI dependency that rejects unauthenticated requests."""
    if creator is None:
        raise UnauthorizedError()
    return creator
