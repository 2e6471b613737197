# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Invitations, access-code issue, validation, email delivery and
redemption into a user profile.
"""

import math
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError

from secons.core.config import settings
from secons.core.logging import get_logger
from secons.core.timeutil import utcnow
from secons.metrics.prometheus import (
    ACCESS_CODES_REDEEMED, INVITATION_EMAILS, INVITATIONS_CREATED,
)
from secons.models.domain import ADMIN_ROLES, DOMAIN_ROLES, Role, has_authority
from secons.repositories.invitation_repository import InvitationRepository
from secons.repositories.user_repository import UserRepository
from secons.services.audit_service import AuditAction, AuditService
from secons.services.access_codes import generate_access_code, normalise_access_code
from secons.services.identity_client import IdentityClient
from secons.services.mail_client import MailClient

logger = get_logger(__name__)


def _is_expired(invitation: Dict[str, Any], now: datetime) -> bool:
    return datetime.fromisoformat(invitation["expires_at"]) <= now


def invitation_email(invitee: str, inviter: str, role: str, domain: Optional[str],
                     code: str) -> Tuple[str, str]:
    """Subject and HTML body for an access-code invitation."""
    login_url = f"{settings.APP_URL}/login?code={code}"
    scope = f"{role.upper()} ({domain})" if domain else role.upper()
    subject = f"You're invited to join SECONS as {scope}"
    html = (
        f"<p>Hi {invitee},</p>"
        f"<p>{inviter} has invited you to join SECONS as <strong>{scope}</strong>.</p>"
        f"<p>Your access code is <strong style=\"letter-spacing:4px\">{code}</strong>.</p>"
        f"<p><a href=\"{login_url}\">Sign in to SECONS</a> and enter the code "
        f"within {settings.INVITATION_TTL_HOURS} hours.</p>"
    )
    return subject, html


class InvitationService:
    def __init__(self, repo: InvitationRepository, user_repo: UserRepository,
                 identity: IdentityClient, mail: MailClient, audit: AuditService) -> None:
        self._repo = repo
        self._users = user_repo
        self._identity = identity
        self._mail = mail
        self._audit = audit

    # ── Issue ──

    def create(self, inviter: Dict[str, Any], role: str, domain: Optional[str] = None,
               name: Optional[str] = None, email: Optional[str] = None) -> Dict[str, Any]:
        self._require_admin(inviter, "Only GA and JGA can create invitations")
        if role == Role.GA.value:
            raise ValueError("Cannot invite a GA. GA registers directly.")
        if not has_authority(inviter["role"], role):
            raise PermissionError("You cannot invite someone with equal or higher authority")
        if role in DOMAIN_ROLES and not domain:
            raise ValueError(f"A domain is required to invite a {role}")

        if email:
            email = email.strip().lower()
            if self._users.get_by_email(email):
                raise HTTPException(status_code=409, detail="This email already has an account")
            if self._repo.find_pending_by_email(email):
                raise HTTPException(status_code=409,
                                    detail="A pending invitation already exists for this email")

        expires_at = utcnow() + timedelta(hours=settings.INVITATION_TTL_HOURS)
        code = generate_access_code(settings.ACCESS_CODE_LENGTH)
        try:
            invitation = self._repo.create_invitation(
                code=code, role=role, domain=domain, name=name.strip() if name else None,
                email=email, invited_by=inviter["uid"], expires_at=expires_at,
            )
        except IntegrityError:
            logger.warning("Access code collision on %s", code)
            raise HTTPException(status_code=409, detail="Access code collision, please retry")

        INVITATIONS_CREATED.labels(role=role).inc()
        self._audit.record(inviter, AuditAction.INVITATION_CREATED, "invitation", invitation["id"],
                           {"role": role, "domain": domain, "email": email})
        logger.info("Invitation created: role=%s, domain=%s, by=%s", role, domain, inviter["uid"])
        return {
            "invitation_id": invitation["id"],
            "code": invitation["code"],
            "role": invitation["role"],
            "domain": invitation["domain"],
            "expires_at": invitation["expires_at"],
        }

    def list_invitations(self, user: Dict[str, Any], status: Optional[str], page: int,
             limit: int) -> Dict[str, Any]:
        self._require_admin(user, "Admin access required")
        total, invitations = self._repo.list_invitations(status=status, page=page, per_page=limit)
        return {
            "invitations": invitations,
            "total": total,
            "page": page,
            "total_pages": math.ceil(total / limit) if limit else 0,
        }

    # ── Validate / send ──

    def validate(self, raw_code: Optional[str]) -> Dict[str, Any]:
        invitation = self._usable_invitation(raw_code)
        return {"role": invitation["role"], "domain": invitation["domain"]}

    def send(self, user: Dict[str, Any], raw_code: str,
             email: Optional[str] = None) -> None:
        self._require_admin(user, "Only admins can send invitations")
        code = normalise_access_code(raw_code)
        invitation = self._repo.get_by_code(code)
        if invitation is None or invitation["used"]:
            raise KeyError("Invitation not found or already used")

        target = invitation["email"]
        if email and email.strip().lower() != invitation["email"]:
            target = email.strip().lower()
            if self._users.get_by_email(target):
                raise HTTPException(status_code=409, detail="Email already registered")
        if not target:
            raise ValueError("Email address is required to send invite")

        subject, html = invitation_email(
            invitation["name"] or "Future Member", user.get("name") or "SECONS Admin",
            invitation["role"], invitation["domain"], code,
        )
        delivered = self._mail.send(target, subject, html)
        INVITATION_EMAILS.labels(status="sent" if delivered else "failed").inc()
        if not delivered:
            raise RuntimeError(f"Invitation email to {target} could not be delivered")
        self._repo.record_email(invitation["id"], target)
        self._audit.record(user, AuditAction.INVITATION_SENT, "invitation", invitation["id"],
                           {"email": target, "role": invitation["role"]})
        logger.info("Invitation emailed: code_id=%s", invitation["id"])

    # ── Redeem ──

    def redeem(self, identity: Dict[str, Any], raw_code: str,
               name: Optional[str] = None) -> Dict[str, Any]:
        """Turn a valid code into a profile for the authenticated identity."""
        if self._users.get_by_uid(identity["uid"]):
            raise HTTPException(status_code=409, detail="Profile already exists")
        invitation = self._usable_invitation(raw_code)

        # Claim the code before anything else is written.
        if not self._repo.mark_used(invitation["id"], identity["uid"]):
            logger.warning("Invitation %s was redeemed concurrently", invitation["id"])
            raise HTTPException(status_code=409, detail="Access code has already been used")

        display_name = (name or identity.get("name") or invitation["name"]
                        or identity["email"].split("@")[0])
        try:
            user = self._users.create_user(
                uid=identity["uid"], name=display_name.strip(), email=identity["email"],
                role=invitation["role"], domain=invitation["domain"],
            )
        except IntegrityError:
            self._repo.release(invitation["id"], identity["uid"])
            raise HTTPException(status_code=409, detail="This email already has an account")
        self._identity.set_claims(identity["uid"], user["role"], user["domain"])

        ACCESS_CODES_REDEEMED.labels(role=user["role"]).inc()
        self._audit.record(user, AuditAction.INVITATION_ACCEPTED, "invitation", invitation["id"],
                           {"role": user["role"], "domain": user["domain"]})
        logger.info("Access code redeemed: uid=%s, role=%s", identity["uid"], user["role"])
        return user

    # ── Private ──

    def _usable_invitation(self, raw_code: Optional[str]) -> Dict[str, Any]:
        code = normalise_access_code(raw_code)
        if len(code) != settings.ACCESS_CODE_LENGTH:
            raise ValueError("Invalid code format")
        invitation = self._repo.get_by_code(code)
        if invitation is None or invitation["used"] or _is_expired(invitation, utcnow()):
            raise KeyError("Invalid or expired access code")
        return invitation

    @staticmethod
    def _require_admin(user: Dict[str, Any], message: str) -> None:
        if user["role"] not in ADMIN_ROLES:
            raise PermissionError(message)
