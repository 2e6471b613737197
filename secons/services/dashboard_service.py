# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Dashboard, read-only aggregate for the landing page.
"""

from typing import Any, Dict

from secons.models.domain import ADMIN_ROLES, Role
from secons.repositories.team_repository import TeamRepository
from secons.repositories.user_repository import UserRepository
from secons.services.announcement_service import AnnouncementService
from secons.services.finance_service import FinanceService
from secons.services.team_service import TeamService


class DashboardService:
    def __init__(self, user_repo: UserRepository, team_repo: TeamRepository,
                 announcements: AnnouncementService, teams: TeamService,
                 finance: FinanceService) -> None:
        self._users = user_repo
        self._team_repo = team_repo
        self._announcements = announcements
        self._teams = teams
        self._finance = finance

    def stats_for(self, user: Dict[str, Any]) -> Dict[str, Any]:
        by_role = self._users.count_by_role()
        finance = None
        # A JGA without a domain has no finance scope.
        if user["role"] == Role.GA.value or (user["role"] in ADMIN_ROLES and user["domain"]):
            summary = self._finance.stats(user)
            finance = {
                "budget": summary["total_budget"],
                "spent": summary["total_spent"],
                "remaining": summary["remaining"],
            }
        return {
            "counts": {
                "total_users": sum(by_role.values()),
                "users_by_role": by_role,
                "total_teams": self._team_repo.count_teams(),
            },
            "announcements": self._announcements.latest_visible(user, 3),
            "leaderboard": self._teams.leaderboard(5),
            "finance": finance,
            "user": {"role": user["role"], "domain": user["domain"]},
        }
