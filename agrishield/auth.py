"""
Authentication

Bearer-token verification for the reports API. Tokens are HS256 JWTs issued
by the login service; this module only resolves a token to the acting user
id and exposes the FastAPI dependency that protects report endpoints.

Author: AgriShield Platform Team
Copyright: © 2025 AgriShield District Agriculture Enforcement
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from .config import config

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is a 401 rather than FastAPI's default
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthenticatedUser:
    """Identity resolved from a bearer token"""
    user_id: str
    claims: Dict[str, Any] = field(default_factory=dict)

    @property
    def role(self) -> Optional[str]:
        return self.claims.get('role')


def verify_access_token(token: str) -> Optional[AuthenticatedUser]:
    """
    Resolve a bearer token to the user it was issued for.

    Returns None for malformed, expired or wrongly-signed tokens and for
    tokens that carry no user id.
    """
    if not token:
        return None

    try:
        payload = jwt.decode(
            token,
            config.security.jwt_secret,
            algorithms=[config.security.jwt_algorithm]
        )
    except JWTError as e:
        logger.debug(f"Rejected bearer token: {e}")
        return None

    user_id = payload.get('userId') or payload.get('sub')
    if not user_id:
        logger.debug("Rejected bearer token without userId claim")
        return None

    return AuthenticatedUser(user_id=str(user_id), claims=payload)


async def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> AuthenticatedUser:
    """
    FastAPI dependency to require a valid bearer token

    Usage:
        @router.get("/api/reports")
        async def reports(user: AuthenticatedUser = Depends(require_auth)):
            ...
    """
    if credentials is None or credentials.scheme.lower() != 'bearer':
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = verify_access_token(credentials.credentials)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user
