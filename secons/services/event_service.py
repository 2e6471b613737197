# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Event catalogue, public listing of live events, GA/JGA curation,
bulk import and the category list.
"""

import math
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from pydantic import TypeAdapter, ValidationError
from sqlalchemy.exc import IntegrityError

from secons.core.logging import get_logger
from secons.core.timeutil import as_utc
from secons.metrics.prometheus import EVENTS_CREATED
from secons.models.domain import ADMIN_ROLES, VALID_DOMAINS, Role
from secons.repositories.event_repository import EventRepository
from secons.repositories.user_repository import UserRepository
from secons.services.audit_service import AuditAction, AuditService
from secons.services.notification_service import NotificationService

logger = get_logger(__name__)

EVENT_STATUSES = ("draft", "published", "ongoing", "completed", "cancelled")
PUBLIC_STATUSES = ("published", "ongoing", "completed")
DEFAULT_CATEGORIES = (
    ("sports", "Sports"),
    ("literary", "Literary"),
    ("performing_creative_arts", "Performing & Creative Arts"),
)
BULK_LIMIT = 100
BULK_REQUIRED = ("title", "category", "venue", "start_at", "end_at", "jga_domain")
BULK_OPTIONAL = ("rules", "eligibility", "registration_link", "flier_url")

_timestamp = TypeAdapter(datetime)


def category_slug(name: str) -> str:
    """``Performing & Creative Arts`` -> ``performing_creative_arts``."""
    return re.sub(r"[^a-z0-9]+", "_", name.strip().lower()).strip("_")


def _is_admin(user: Optional[Dict[str, Any]]) -> bool:
    return user is not None and user["role"] in ADMIN_ROLES


class EventService:
    def __init__(self, repo: EventRepository, user_repo: UserRepository,
                 notifications: NotificationService, audit: AuditService) -> None:
        self._repo = repo
        self._users = user_repo
        self._notifications = notifications
        self._audit = audit

    # ── Catalogue ──

    def list_events(self, viewer: Optional[Dict[str, Any]], category: Optional[str] = None,
                    status: Optional[str] = None, domain: Optional[str] = None,
                    page: int = 1, limit: int = 20) -> Dict[str, Any]:
        """Anonymous and non-admin callers only ever see public statuses."""
        if _is_admin(viewer):
            statuses = [status] if status else []
        elif status in PUBLIC_STATUSES:
            statuses = [status]
        else:
            statuses = list(PUBLIC_STATUSES)
        total, events = self._repo.list_events(statuses, category, domain, page, limit)
        return {
            "events": events,
            "total": total,
            "page": page,
            "total_pages": math.ceil(total / limit) if limit else 0,
        }

    def get_event(self, viewer: Optional[Dict[str, Any]], event_id: str) -> Dict[str, Any]:
        event = self._repo.get_event(event_id)
        if event is None or (event["status"] not in PUBLIC_STATUSES and not _is_admin(viewer)):
            raise KeyError("Event not found")
        return event

    def create(self, user: Dict[str, Any], entry: Dict[str, Any]) -> Dict[str, Any]:
        self._require_admin(user, "Only GA or JGA can create events")
        if entry["end_at"] < entry["start_at"]:
            raise ValueError("end_at must not be before start_at")

        event = self._repo.create_event(entry, user["uid"])
        EVENTS_CREATED.labels(category=event["category"]).inc()
        self._audit.record(user, AuditAction.EVENT_CREATED, "event", event["id"],
                           {"title": event["title"], "status": event["status"]})
        logger.info("Event created: id=%s, category=%s, status=%s",
                    event["id"], event["category"], event["status"])

        if event["status"] == "published":
            self._broadcast(user, f"New Event: {event['title']}",
                            f"A new {event['category']} event has been published!")
        return event

    def update(self, user: Dict[str, Any], event_id: str,
               fields: Dict[str, Any]) -> Dict[str, Any]:
        self._require_admin(user, "Only GA or JGA can update events")
        existing = self._repo.get_event(event_id)
        if existing is None:
            raise KeyError("Event not found")

        if "start_at" in fields or "end_at" in fields:
            start_at = fields.get("start_at") or datetime.fromisoformat(existing["start_at"])
            end_at = fields.get("end_at") or datetime.fromisoformat(existing["end_at"])
            if as_utc(end_at) < as_utc(start_at):
                raise ValueError("end_at must not be before start_at")

        event = self._repo.update_event(event_id, fields)
        status = fields.get("status")
        if status and status != existing["status"]:
            if status == "published":
                self._audit.record(user, AuditAction.EVENT_PUBLISHED, "event", event_id,
                                   {"title": event["title"]})
                self._broadcast(user, f"Event Published: {event['title']}",
                                f"The {event['category']} event is now open or live!")
            elif status == "cancelled":
                self._audit.record(user, AuditAction.EVENT_CANCELLED, "event", event_id,
                                   {"title": event["title"],
                                    "reason": event["cancellation_reason"]})
        logger.info("Event updated: id=%s, fields=%s", event_id, sorted(fields))
        return event

    def delete(self, user: Dict[str, Any], event_id: str) -> None:
        if user["role"] != Role.GA.value:
            raise PermissionError("Only GA can delete events")
        if not self._repo.delete_event(event_id):
            raise KeyError("Event not found")
        logger.info("Event deleted: id=%s", event_id)

    def bulk_create(self, user: Dict[str, Any], rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Insert every valid row as a draft; report the rest by 1-based row number."""
        if user["role"] != Role.GA.value:
            raise PermissionError("Only GA can bulk-upload events")
        if len(rows) > BULK_LIMIT:
            raise ValueError(f"Maximum {BULK_LIMIT} events per upload")

        valid: List[Dict[str, Any]] = []
        errors: List[str] = []
        for number, row in enumerate(rows, start=1):
            entry, error = self._bulk_row(row)
            if error:
                errors.append(f"Row {number}: {error}")
            else:
                valid.append(entry)

        inserted = self._repo.create_many(valid, user["uid"])
        logger.info("Bulk event upload: inserted=%d, failed=%d", inserted, len(errors))
        return {"success": inserted, "failed": len(errors), "errors": errors}

    def domains(self, user: Dict[str, Any]) -> Dict[str, Any]:
        self._require_admin(user, "Admin access required")
        grouped: Dict[str, List[Dict[str, str]]] = {}
        for row in self._repo.list_active_titles():
            grouped.setdefault(row["jga_domain"] or "general", []).append(
                {"title": row["title"], "category": row["category"]}
            )
        return {"domains": sorted(grouped), "events_by_domain": grouped}

    # ── Categories ──

    def list_categories(self) -> List[Dict[str, Any]]:
        self._repo.ensure_categories(DEFAULT_CATEGORIES)
        return self._repo.list_categories()

    def create_category(self, user: Dict[str, Any], name: str) -> Dict[str, Any]:
        self._require_admin(user, "Admin access required")
        slug = category_slug(name)
        if not slug:
            raise ValueError("Category name must contain letters or digits")
        if self._repo.get_category(slug):
            raise HTTPException(status_code=409, detail="Category already exists")
        try:
            return self._repo.create_category(slug, name.strip(), user["uid"])
        except IntegrityError:
            raise HTTPException(status_code=409, detail="Category already exists")

    def delete_category(self, user: Dict[str, Any], slug: str) -> None:
        if user["role"] != Role.GA.value:
            raise PermissionError("Only GA can delete categories")
        category = self._repo.get_category(slug)
        if category is None:
            raise KeyError("Category not found")
        if category["is_default"]:
            raise ValueError("Default categories cannot be deleted")
        self._repo.delete_category(slug)

    # ── Private ──

    @staticmethod
    def _bulk_row(row: Dict[str, Any]):
        if any(not str(row.get(k) or "").strip() for k in BULK_REQUIRED):
            return None, f"Missing required fields ({', '.join(BULK_REQUIRED)})"
        category = str(row["category"]).strip().lower()
        if category not in VALID_DOMAINS:
            return None, (f"Invalid category \"{row['category']}\". "
                          f"Must be one of: {', '.join(VALID_DOMAINS)}")
        try:
            start_at = as_utc(_timestamp.validate_python(row["start_at"]))
            end_at = as_utc(_timestamp.validate_python(row["end_at"]))
        except ValidationError:
            return None, "Invalid date format"

        title = str(row["title"]).strip()
        entry = {
            "title": title,
            "category": category,
            "description": str(row.get("description") or "").strip() or f"Event: {title}",
            "venue": str(row["venue"]).strip(),
            "start_at": start_at,
            "end_at": end_at,
            "jga_domain": str(row["jga_domain"]).strip(),
            "status": "draft",
        }
        entry.update({k: row[k] for k in BULK_OPTIONAL if row.get(k)})
        return entry, None

    def _broadcast(self, actor: Dict[str, Any], title: str, body: str) -> None:
        self._notifications.notify(
            self._users.find_active_uids(exclude_uid=actor["uid"]), "system",
            title, body, link="/all-events",
        )

    @staticmethod
    def _require_admin(user: Dict[str, Any], message: str) -> None:
        if user["role"] not in ADMIN_ROLES:
            raise PermissionError(message)
