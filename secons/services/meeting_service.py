# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Meetings, GA-managed, attendees resolved from group tokens at
creation time and notified of changes.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from secons.core.logging import get_logger
from secons.metrics.prometheus import MEETINGS_CREATED
from secons.models.domain import Role
from secons.repositories.meeting_repository import MeetingRepository
from secons.repositories.user_repository import UserRepository
from secons.services.audit_service import AuditAction, AuditService
from secons.services.attendee_resolver import resolve_groups
from secons.services.notification_service import NotificationService

logger = get_logger(__name__)

RESCHEDULE_FIELDS = ("scheduled_at", "location", "meeting_link")


def _schedule_line(scheduled_at: datetime, location: Optional[str]) -> str:
    line = f"Scheduled for {scheduled_at.strftime('%d/%m/%Y %H:%M')} UTC"
    return f"{line} @ {location}" if location else line


class MeetingService:
    def __init__(self, repo: MeetingRepository, user_repo: UserRepository,
                 notifications: NotificationService, audit: AuditService) -> None:
        self._repo = repo
        self._users = user_repo
        self._notifications = notifications
        self._audit = audit

    # ── Queries ──

    def list_for(self, user: Dict[str, Any]) -> List[Dict[str, Any]]:
        if user["role"] == Role.GA.value:
            return self._repo.list_meetings()
        return self._repo.list_meetings(attendee_uid=user["uid"])

    def get(self, meeting_id: str) -> Dict[str, Any]:
        meeting = self._repo.get_meeting(meeting_id)
        if meeting is None:
            raise KeyError(f"Meeting {meeting_id} not found")
        return meeting

    # ── Commands ──

    def create(self, user: Dict[str, Any], title: str, scheduled_at: datetime,
               agenda: Optional[str] = None, location: Optional[str] = None,
               meeting_link: Optional[str] = None,
               attendee_groups: Optional[List[str]] = None,
               specific_attendee_ids: Optional[List[str]] = None) -> Dict[str, Any]:
        self._require_ga(user, "Only GA can create meetings")
        groups = list(attendee_groups or [])
        attendees = list(dict.fromkeys(
            resolve_groups(self._users, groups) + list(specific_attendee_ids or [])
        ))

        meeting = self._repo.create_meeting(
            title=title, agenda=agenda, scheduled_at=scheduled_at, location=location,
            meeting_link=meeting_link, attendee_groups=groups, attendees=attendees,
            created_by=user["id"],
        )
        MEETINGS_CREATED.inc()
        self._audit.record(user, AuditAction.MEETING_SCHEDULED, "meeting", meeting["id"],
                           {"title": title, "attendees": len(attendees)})
        logger.info("Meeting created: id=%s, attendees=%d", meeting["id"], len(attendees))

        self._notifications.notify(
            [uid for uid in attendees if uid != user["uid"]], "meeting",
            f"📅 New Meeting: {title}", _schedule_line(scheduled_at, location),
            link="/meetings",
        )
        return meeting

    def update(self, user: Dict[str, Any], meeting_id: str,
               fields: Dict[str, Any]) -> Dict[str, Any]:
        self._require_ga(user, "Only GAs can update meetings")
        if self._repo.get_meeting(meeting_id) is None:
            raise KeyError(f"Meeting {meeting_id} not found")

        meeting = self._repo.update_meeting(meeting_id, fields)
        if any(f in fields for f in RESCHEDULE_FIELDS):
            self._notifications.notify(
                [uid for uid in meeting["attendees"] if uid != user["uid"]], "meeting",
                f"🔄 Meeting Updated: {meeting['title']}",
                "Check the new details for this meeting.", link="/meetings",
            )
        logger.info("Meeting updated: id=%s, fields=%s", meeting_id, sorted(fields))
        return meeting

    def cancel(self, user: Dict[str, Any], meeting_id: str) -> None:
        self._require_ga(user, "Only GAs can cancel meetings")
        meeting = self._repo.get_meeting(meeting_id)
        if meeting is None:
            raise KeyError(f"Meeting {meeting_id} not found")

        self._repo.delete_meeting(meeting_id)
        self._notifications.notify(
            [uid for uid in meeting["attendees"] if uid != user["uid"]], "meeting",
            f"❌ Meeting Cancelled: {meeting['title']}",
            "This meeting has been cancelled.", link="/meetings",
        )
        logger.info("Meeting cancelled: id=%s", meeting_id)

    @staticmethod
    def _require_ga(user: Dict[str, Any], message: str) -> None:
        if user["role"] != Role.GA.value:
            raise PermissionError(message)
