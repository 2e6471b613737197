# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Announcements, audience targeting, JGA posting restrictions and
notification fan-out.
"""

import math
import re
from typing import Any, Dict, List, Optional

from secons.core.logging import get_logger
from secons.metrics.prometheus import ANNOUNCEMENTS_CREATED
from secons.models.domain import Role
from secons.repositories.announcement_repository import AnnouncementRepository
from secons.repositories.user_repository import UserRepository
from secons.services.notification_service import NotificationService
from secons.services.targeting import is_targeted

logger = get_logger(__name__)

_TAG_RE = re.compile(r"<[^>]*>?")
JGA_AUDIENCE = ("animator", "volunteer")
PREVIEW_LENGTH = 100


def notification_preview(body: str) -> str:
    """Plain-text preview: HTML tags removed, first 100 characters."""
    return _TAG_RE.sub("", body)[:PREVIEW_LENGTH]


class AnnouncementService:
    def __init__(self, repo: AnnouncementRepository, user_repo: UserRepository,
                 notifications: NotificationService) -> None:
        self._repo = repo
        self._users = user_repo
        self._notifications = notifications

    def list_visible(self, user: Dict[str, Any], page: int = 1, limit: int = 20) -> Dict[str, Any]:
        """GA sees everything; others see what targets them or what they wrote."""
        announcements = self._repo.list_announcements(user["uid"])
        if user["role"] != Role.GA.value:
            announcements = [
                a for a in announcements
                if is_targeted(user["role"], user["domain"], a["target_roles"], a["target_domains"])
                or a["created_by"] == user["id"]
            ]
        total = len(announcements)
        start = (page - 1) * limit
        return {
            "announcements": announcements[start:start + limit],
            "total": total,
            "page": page,
            "total_pages": math.ceil(total / limit) if limit else 0,
        }

    def create(self, user: Dict[str, Any], title: str, content: str,
               target_roles: List[str], target_domains: List[str],
               pinned: bool = False) -> Dict[str, Any]:
        if user["role"] not in (Role.GA.value, Role.JGA.value):
            raise PermissionError("Only GAs and JGAs can post announcements")

        roles, domains = list(target_roles), list(target_domains)
        if user["role"] == Role.JGA.value:
            if not user["domain"]:
                raise ValueError("JGA has no domain assigned")
            domains = [user["domain"]]
            roles = [r for r in roles if r in JGA_AUDIENCE] or list(JGA_AUDIENCE)
            pinned = False

        announcement = self._repo.create_announcement(
            title=title, body=content, target_roles=roles, target_domains=domains,
            pinned=pinned, created_by=user["id"], creator_uid=user["uid"],
        )
        ANNOUNCEMENTS_CREATED.inc()
        logger.info("Announcement created: id=%s, roles=%s, domains=%s",
                    announcement["id"], roles, domains)

        recipients = self._users.find_active_uids(roles, domains, exclude_uid=user["uid"])
        self._notifications.notify(
            recipients, "announcement", f"📢 {title}",
            notification_preview(content), link="/announcements",
        )
        return announcement

    def mark_read(self, announcement_id: str, uid: str) -> None:
        if not self._repo.mark_read(announcement_id, uid):
            raise KeyError(f"Announcement {announcement_id} not found")

    def set_pinned(self, user: Dict[str, Any], announcement_id: str,
                   pinned: Optional[bool]) -> Dict[str, Any]:
        if user["role"] != Role.GA.value:
            raise PermissionError("Only GAs can pin announcements")
        if self._repo.get_announcement(announcement_id) is None:
            raise KeyError(f"Announcement {announcement_id} not found")
        if pinned is not None:
            self._repo.set_pinned(announcement_id, pinned)
        return self._repo.get_announcement(announcement_id)

    def delete(self, user: Dict[str, Any], announcement_id: str) -> None:
        if user["role"] != Role.GA.value:
            raise PermissionError("Only GAs can delete announcements")
        if not self._repo.delete_announcement(announcement_id):
            raise KeyError(f"Announcement {announcement_id} not found")
        logger.info("Announcement deleted: id=%s", announcement_id)

    def latest_visible(self, user: Dict[str, Any], count: int = 3) -> List[Dict[str, Any]]:
        return self.list_visible(user, page=1, limit=count)["announcements"]
