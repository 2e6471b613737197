# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Bearer-token authentication as FastAPI dependencies.
"""

from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException

from secons.core.dependencies import get_identity_client, get_user_repo
from secons.repositories.user_repository import UserRepository
from secons.services.identity_client import IdentityClient


def get_identity(
    authorization: Optional[str] = Header(default=None),
    identity: IdentityClient = Depends(get_identity_client),
) -> Dict[str, Any]:
    """Verified token claims. No profile is required."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Authentication required")
    token = authorization[len("Bearer "):].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")
    return identity.verify_token(token)


def get_current_user(
    claims: Dict[str, Any] = Depends(get_identity),
    users: UserRepository = Depends(get_user_repo),
) -> Dict[str, Any]:
    """The caller's stored profile. Role and domain come from here, not the token."""
    user = users.get_by_uid(claims["uid"])
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    if not user["is_active"]:
        raise HTTPException(status_code=403, detail="Account deactivated")
    return user


def get_optional_user(
    authorization: Optional[str] = Header(default=None),
    identity: IdentityClient = Depends(get_identity_client),
    users: UserRepository = Depends(get_user_repo),
) -> Optional[Dict[str, Any]]:
    """The caller's active profile when a valid token is sent, else None."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    try:
        claims = identity.verify_token(authorization[len("Bearer "):].strip())
    except HTTPException:
        return None
    user = users.get_by_uid(claims["uid"])
    return user if user and user["is_active"] else None
