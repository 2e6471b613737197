# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""HTTP client for the identity provider (Identity Toolkit REST API)."""
import json
from typing import Any, Dict, Optional

import httpx
from fastapi import HTTPException

from secons.core.config import settings
from secons.core.logging import get_logger

logger = get_logger(__name__)


class IdentityClient:
    """Verifies bearer ID tokens and writes role/domain custom claims."""

    def verify_token(self, id_token: str) -> Dict[str, Any]:
        """
        Resolve an ID token to ``{uid, email, name, role, domain}``.
        Raises HTTPException(401) when the provider rejects the token.
        """
        try:
            with httpx.Client(timeout=settings.IDENTITY_TIMEOUT) as client:
                resp = client.post(
                    f"{settings.IDENTITY_API_URL}/accounts:lookup",
                    params={"key": settings.IDENTITY_API_KEY},
                    json={"idToken": id_token},
                )
        except httpx.RequestError as exc:
            logger.warning("Identity provider unreachable: %s", exc)
            raise HTTPException(status_code=401, detail="Invalid or expired token")

        if resp.status_code != 200:
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        users = resp.json().get("users") or []
        if not users:
            raise HTTPException(status_code=401, detail="Invalid or expired token")

        account = users[0]
        claims = _parse_claims(account.get("customAttributes"))
        return {
            "uid": account["localId"],
            "email": account.get("email", ""),
            "name": account.get("displayName"),
            "role": claims.get("role") or "student",
            "domain": claims.get("domain"),
        }

    def set_claims(self, uid: str, role: str, domain: Optional[str]) -> None:
        """Write ``{role, domain}`` custom claims. Failures are logged and swallowed."""
        try:
            with httpx.Client(timeout=settings.IDENTITY_TIMEOUT) as client:
                resp = client.post(
                    f"{settings.IDENTITY_API_URL}/accounts:update",
                    headers={"Authorization": f"Bearer {settings.IDENTITY_ADMIN_TOKEN}"},
                    json={
                        "localId": uid,
                        "customAttributes": json.dumps({"role": role, "domain": domain}),
                    },
                )
                if resp.status_code != 200:
                    logger.warning("Custom claims update rejected for %s: HTTP %s",
                                   uid, resp.status_code)
        except httpx.RequestError as exc:
            logger.warning("Identity provider unreachable while setting claims: %s", exc)

    def delete_account(self, uid: str) -> None:
        """Remove the sign-in account. Failures are logged and swallowed."""
        try:
            with httpx.Client(timeout=settings.IDENTITY_TIMEOUT) as client:
                resp = client.post(
                    f"{settings.IDENTITY_API_URL}/accounts:delete",
                    headers={"Authorization": f"Bearer {settings.IDENTITY_ADMIN_TOKEN}"},
                    json={"localId": uid},
                )
                if resp.status_code != 200:
                    logger.warning("Account deletion rejected for %s: HTTP %s",
                                   uid, resp.status_code)
        except httpx.RequestError as exc:
            logger.warning("Identity provider unreachable while deleting account: %s", exc)


def _parse_claims(raw: Optional[str]) -> Dict[str, Any]:
    if not raw:
        return {}
    try:
        claims = json.loads(raw)
    except ValueError:
        return {}
    return claims if isinstance(claims, dict) else {}
