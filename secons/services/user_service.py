# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Users & session, GA bootstrap, self-service profile and
role-gated user management.
"""

import math
from typing import Any, Dict, Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError

from secons.core.logging import get_logger
from secons.models.domain import ADMIN_ROLES, DOMAIN_ROLES, Role
from secons.repositories.user_repository import UserRepository
from secons.services.audit_service import AuditAction, AuditService
from secons.services.identity_client import IdentityClient

logger = get_logger(__name__)

SELF_EDITABLE = ("name", "photo_url", "onboarding_complete", "tour_complete")
ADMIN_EDITABLE = ("role", "domain", "is_active")


class UserService:
    def __init__(self, repo: UserRepository, identity: IdentityClient,
                 audit: AuditService) -> None:
        self._repo = repo
        self._identity = identity
        self._audit = audit

    # ── Session ──

    def ga_status(self) -> Dict[str, bool]:
        return {"has_active_ga": self._repo.has_active_ga()}

    def register_ga(self, identity: Dict[str, Any], name: Optional[str] = None) -> Dict[str, Any]:
        """Create the first GA. Closed once any active GA exists."""
        if self._repo.has_active_ga():
            raise HTTPException(status_code=409,
                                detail="A General Animator already exists. Registration is closed.")
        if self._repo.get_by_uid(identity["uid"]) or self._repo.get_by_email(identity["email"]):
            raise HTTPException(status_code=409, detail="An account with this email already exists")

        display_name = (name or identity.get("name") or identity["email"].split("@")[0]).strip()
        try:
            user = self._repo.create_user(identity["uid"], display_name, identity["email"],
                                          Role.GA.value, None)
        except IntegrityError:
            raise HTTPException(status_code=409, detail="An account with this email already exists")
        self._identity.set_claims(identity["uid"], Role.GA.value, None)
        logger.info("GA registered: uid=%s", identity["uid"])
        return user

    def get_profile(self, uid: str) -> Dict[str, Any]:
        user = self._repo.get_by_uid(uid)
        if user is None:
            raise KeyError("User not found")
        return user

    def update_profile(self, user: Dict[str, Any], fields: Dict[str, Any]) -> Dict[str, Any]:
        updates = {k: v for k, v in fields.items() if k in SELF_EDITABLE and v is not None}
        return self._repo.update_user(user["id"], updates)

    # ── Management ──

    def list_users(self, caller: Dict[str, Any], role: Optional[str], domain: Optional[str],
                   search: Optional[str], page: int, limit: int) -> Dict[str, Any]:
        if caller["role"] not in ADMIN_ROLES:
            raise PermissionError("Admin access required")
        total, users = self._repo.list_users(role, domain, search, page, limit)
        return {
            "users": users,
            "total": total,
            "page": page,
            "total_pages": math.ceil(total / limit) if limit else 0,
        }

    def get_user(self, caller: Dict[str, Any], user_id: str) -> Dict[str, Any]:
        user = self._repo.get_by_id(user_id)
        if user is None:
            raise KeyError(f"User {user_id} not found")
        if caller["role"] not in ADMIN_ROLES and user["uid"] != caller["uid"]:
            raise PermissionError("Access denied")
        return user

    def update_user(self, caller: Dict[str, Any], user_id: str,
                    fields: Dict[str, Any]) -> Dict[str, Any]:
        if caller["role"] != Role.GA.value:
            raise PermissionError("Only the GA can change roles and status")
        target = self._repo.get_by_id(user_id)
        if target is None:
            raise KeyError(f"User {user_id} not found")

        updates = {k: v for k, v in fields.items() if k in ADMIN_EDITABLE}
        role = updates.get("role", target["role"])
        if target["uid"] == caller["uid"] and role != target["role"]:
            raise ValueError("You cannot change your own role")
        if role in DOMAIN_ROLES and not updates.get("domain", target["domain"]):
            raise ValueError(f"A {role} must be assigned a domain")

        user = self._repo.update_user(user_id, updates)
        if "role" in updates or "domain" in updates:
            self._identity.set_claims(user["uid"], user["role"], user["domain"])
        if user["role"] != target["role"]:
            self._audit.record(caller, AuditAction.ROLE_CHANGED, "user", user_id,
                               {"from": target["role"], "to": user["role"],
                                "domain": user["domain"]})
        elif updates:
            self._audit.record(caller, AuditAction.USER_UPDATED, "user", user_id,
                               {"fields": sorted(updates)})
        logger.info("User updated: id=%s, fields=%s, by=%s", user_id, sorted(updates), caller["uid"])
        return user

    def deactivate(self, caller: Dict[str, Any], user_id: str) -> Dict[str, str]:
        target = self._repo.get_by_id(user_id)
        if target is None:
            raise KeyError(f"User {user_id} not found")
        is_self = target["uid"] == caller["uid"]
        if caller["role"] != Role.GA.value and not is_self:
            raise PermissionError("Only the GA can deactivate other users")

        self._repo.update_user(user_id, {"is_active": False})
        self._identity.delete_account(target["uid"])
        self._audit.record(caller, AuditAction.USER_DEACTIVATED, "user", user_id,
                           {"uid": target["uid"], "role": target["role"], "self": is_self},
                           severity="WARNING")
        logger.warning("User deactivated: id=%s, role=%s, self=%s", user_id, target["role"], is_self)
        return {"message": "Account deleted" if is_self else "User deactivated"}
