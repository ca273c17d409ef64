"""
Bearer token authentication for the chat API.

Tokens are issued by the CourtConnect booking backend; this service only
verifies them (shared JWT_SECRET_KEY / JWT_ALGORITHM) and reads the caller's
identity from the claims.
"""

import logging
from typing import Annotated, Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from agent.state.schemas import CallerIdentity
from shared.config import get_settings

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def verify_token(token: str) -> dict[str, Any]:
    """Decode and verify a JWT, raising 401 on any failure."""
    settings = get_settings()
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def identity_from_claims(payload: dict[str, Any]) -> CallerIdentity:
    """
    Map token claims to a CallerIdentity.

    The booking backend puts the user id in "id"; standard "sub" is accepted
    too.
    """
    user_id = payload.get("id") or payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has no user id",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return CallerIdentity(
        id=str(user_id),
        username=payload.get("username") or "",
        email=payload.get("email") or "",
    )


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)] = None,
) -> CallerIdentity:
    """Dependency returning the authenticated caller."""
    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return identity_from_claims(verify_token(credentials.credentials))
