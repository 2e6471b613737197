# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Audit trail. Other services record privileged actions here; the
GA reads them back.
"""

import math
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from secons.core.logging import get_logger
from secons.metrics.prometheus import AUDIT_EVENTS
from secons.models.domain import Role
from secons.repositories.audit_repository import AuditRepository

logger = get_logger(__name__)


class AuditAction(str, Enum):
    USER_UPDATED = "USER_UPDATED"
    ROLE_CHANGED = "ROLE_CHANGED"
    USER_DEACTIVATED = "USER_DEACTIVATED"
    INVITATION_CREATED = "INVITATION_CREATED"
    INVITATION_SENT = "INVITATION_SENT"
    INVITATION_ACCEPTED = "INVITATION_ACCEPTED"
    POINTS_AWARDED = "POINTS_AWARDED"
    BUDGET_ALLOCATED = "BUDGET_ALLOCATED"
    EXPENSE_APPROVED = "EXPENSE_APPROVED"
    EXPENSE_REJECTED = "EXPENSE_REJECTED"
    MEETING_SCHEDULED = "MEETING_SCHEDULED"
    EVENT_CREATED = "EVENT_CREATED"
    EVENT_PUBLISHED = "EVENT_PUBLISHED"
    EVENT_CANCELLED = "EVENT_CANCELLED"
    SCORE_ENTERED = "SCORE_ENTERED"
    SCORE_UPDATED = "SCORE_UPDATED"


SEVERITIES = ("INFO", "WARNING", "CRITICAL")


class AuditService:
    def __init__(self, repo: AuditRepository) -> None:
        self._repo = repo

    def record(self, actor: Optional[Dict[str, Any]], action: AuditAction,
               target_type: Optional[str] = None, target_id: Optional[str] = None,
               details: Optional[Dict[str, Any]] = None, severity: str = "INFO") -> None:
        """Append one entry. A failed write is logged and never fails the caller."""
        actor_uid = actor["uid"] if actor else None
        try:
            self._repo.record(action.value, actor_uid, target_type, target_id,
                              details or {}, severity)
        except SQLAlchemyError as exc:
            logger.error("Audit write failed: action=%s, actor=%s: %s",
                         action.value, actor_uid, exc)
            return
        AUDIT_EVENTS.labels(action=action.value).inc()

    def list_entries(self, user: Dict[str, Any], action: Optional[str] = None,
                     actor_uid: Optional[str] = None, target_id: Optional[str] = None,
                     page: int = 1, limit: int = 50) -> Dict[str, Any]:
        if user["role"] != Role.GA.value:
            raise PermissionError("Only the GA can read the audit log")
        total, entries = self._repo.list_entries(action, actor_uid, target_id, page, limit)
        return {
            "entries": entries,
            "total": total,
            "page": page,
            "total_pages": math.ceil(total / limit) if limit else 0,
        }
