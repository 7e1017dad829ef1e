"""
Request authentication: Supabase access tokens in, readtrack ``User`` rows out.

Tokens are HS256-signed by Supabase; the issuer and audience claims must match
the configured project. A token whose ``sub`` has never been seen creates the
reader's account on first use.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from readtrack.core.config import settings
from readtrack.database import get_db
from readtrack.models import User
from readtrack.core.user_helpers import get_or_create_user_by_auth_id

logger = logging.getLogger(__name__)

TOKEN_ALGORITHMS = ["HS256"]


def _unauthorized(detail: str = "Not authenticated") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _bearer_token(request: Request) -> str:
    header = request.headers.get("Authorization")
    if not header:
        raise _unauthorized("Missing Authorization header")

    scheme, _, token = header.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer":
        raise _unauthorized("Invalid auth scheme. Expected 'Bearer'")
    if not token or " " in token:
        raise _unauthorized("Invalid Authorization header format. Expected 'Bearer <token>'")
    return token


def _verified_claims(token: str) -> Dict[str, Any]:
    try:
        settings.require_supabase()
    except RuntimeError as e:
        logger.error("Token verification is not configured: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Supabase environment variables not configured. Authentication is not available.",
        )

    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=TOKEN_ALGORITHMS,
            audience=settings.SUPABASE_JWT_AUD,
            issuer=settings.SUPABASE_JWT_ISS,
        )
    except JWTError as e:
        logger.warning("Rejected access token: %s", e)
        raise _unauthorized("Token validation failed")


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
) -> User:
    """Dependency for reader-scoped routes; 401 without a valid token."""
    claims = _verified_claims(_bearer_token(request))

    subject = claims.get("sub")
    if not subject:
        raise _unauthorized("Token missing subject (sub)")

    return get_or_create_user_by_auth_id(
        db=db,
        auth_user_id=str(subject),
        email=str(claims.get("email") or ""),
        endpoint_path=f"{request.method} {request.url.path}",
    )


def get_optional_user(
    request: Request,
    db: Session = Depends(get_db),
) -> Optional[User]:
    """For public routes: anonymous requests get None, a bad token is still a 401."""
    if not request.headers.get("Authorization"):
        return None
    return get_current_user(request, db)
