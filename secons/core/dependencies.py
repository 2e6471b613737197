# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""FastAPI dependency injection wiring."""
from fastapi import Depends

from secons.core.database import engine
from secons.repositories import (
    AnnouncementRepository, AuditRepository, ChatRepository, EventRepository,
    FinanceRepository, InvitationRepository, MatchRepository, MeetingRepository,
    NotificationRepository, TeamRepository, UserRepository,
)
from secons.services.announcement_service import AnnouncementService
from secons.services.audit_service import AuditService
from secons.services.chat_service import ChatService
from secons.services.dashboard_service import DashboardService
from secons.services.event_service import EventService
from secons.services.finance_service import FinanceService
from secons.services.identity_client import IdentityClient
from secons.services.invitation_service import InvitationService
from secons.services.mail_client import MailClient
from secons.services.match_service import MatchService
from secons.services.meeting_service import MeetingService
from secons.services.notification_service import NotificationService
from secons.services.team_service import TeamService
from secons.services.user_service import UserService

_user_repo = UserRepository(engine)
_team_repo = TeamRepository(engine)
_invitation_repo = InvitationRepository(engine)
_event_repo = EventRepository(engine)

_identity_client = IdentityClient()
_mail_client = MailClient()

_audit_service = AuditService(AuditRepository(engine))
_notification_service = NotificationService(NotificationRepository(engine))
_announcement_service = AnnouncementService(
    AnnouncementRepository(engine), _user_repo, _notification_service,
)
_meeting_service = MeetingService(
    MeetingRepository(engine), _user_repo, _notification_service, _audit_service,
)
_team_service = TeamService(_team_repo, _audit_service)
_finance_service = FinanceService(FinanceRepository(engine), _audit_service)
_dashboard_service = DashboardService(
    _user_repo, _team_repo, _announcement_service, _team_service, _finance_service,
)
_event_service = EventService(_event_repo, _user_repo, _notification_service, _audit_service)
_match_service = MatchService(
    MatchRepository(engine), _event_repo, _team_repo, _team_service, _user_repo,
    _notification_service, _audit_service,
)
_chat_service = ChatService(ChatRepository(engine), _user_repo, _notification_service)


def get_user_repo() -> UserRepository:
    return _user_repo


def get_identity_client() -> IdentityClient:
    return _identity_client


def get_mail_client() -> MailClient:
    return _mail_client


def get_audit_service() -> AuditService:
    return _audit_service


def get_notification_service() -> NotificationService:
    return _notification_service


def get_announcement_service() -> AnnouncementService:
    return _announcement_service


def get_meeting_service() -> MeetingService:
    return _meeting_service


def get_invitation_service(
    identity: IdentityClient = Depends(get_identity_client),
    mail: MailClient = Depends(get_mail_client),
) -> InvitationService:
    return InvitationService(_invitation_repo, _user_repo, identity, mail, _audit_service)


def get_user_service(
    identity: IdentityClient = Depends(get_identity_client),
) -> UserService:
    return UserService(_user_repo, identity, _audit_service)


def get_team_service() -> TeamService:
    return _team_service


def get_finance_service() -> FinanceService:
    return _finance_service


def get_dashboard_service() -> DashboardService:
    return _dashboard_service


def get_event_service() -> EventService:
    return _event_service


def get_match_service() -> MatchService:
    return _match_service


def get_chat_service() -> ChatService:
    return _chat_service
