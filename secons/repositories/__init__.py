# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Repository package, re-exports every repository."""
from secons.repositories.announcement_repository import AnnouncementRepository
from secons.repositories.audit_repository import AuditRepository
from secons.repositories.chat_repository import ChatRepository
from secons.repositories.event_repository import EventRepository
from secons.repositories.finance_repository import FinanceRepository
from secons.repositories.invitation_repository import InvitationRepository
from secons.repositories.match_repository import MatchRepository
from secons.repositories.meeting_repository import MeetingRepository
from secons.repositories.notification_repository import NotificationRepository
from secons.repositories.team_repository import TeamRepository
from secons.repositories.user_repository import UserRepository

__all__ = [
    "AnnouncementRepository",
    "AuditRepository",
    "ChatRepository",
    "EventRepository",
    "FinanceRepository",
    "InvitationRepository",
    "MatchRepository",
    "MeetingRepository",
    "NotificationRepository",
    "TeamRepository",
    "UserRepository",
]
