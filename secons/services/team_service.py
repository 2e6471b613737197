# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Sports teams, default roster seeding and the points ledger.
"""

from typing import Any, Dict, List, Optional

from secons.core.config import settings
from secons.core.logging import get_logger
from secons.metrics.prometheus import POINTS_AWARDED
from secons.models.domain import ADMIN_ROLES, Role
from secons.repositories.team_repository import TeamRepository
from secons.services.audit_service import AuditAction, AuditService

logger = get_logger(__name__)

GROUP_CODES: Dict[str, str] = {
    "Commerce": "COM",
    "Professional": "PROF",
    "Life Science": "LIFE",
    "Physical Science": "PHYS",
    "Social Science": "SOC",
    "Humanities": "HUM",
}
SEMESTERS = (2, 4, 6)


def default_roster() -> List[Dict[str, Any]]:
    """The 18 teams: one per (semester, group), named like ``COM2``."""
    return [
        {"name": f"{code}{semester}", "group": group, "semester": semester}
        for semester in SEMESTERS
        for group, code in GROUP_CODES.items()
    ]


class TeamService:
    def __init__(self, repo: TeamRepository, audit: AuditService) -> None:
        self._repo = repo
        self._audit = audit

    def list_teams(self) -> List[Dict[str, Any]]:
        return self._repo.list_teams()

    def get_team(self, team_id: str) -> Dict[str, Any]:
        team = self._repo.get_team(team_id)
        if team is None:
            raise KeyError(f"Team {team_id} not found")
        return team

    def seed(self, user: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Upsert the default roster. Existing points are left untouched."""
        if user["role"] != Role.GA.value:
            raise PermissionError("Only the GA can seed teams")
        roster = default_roster()
        for team in roster:
            self._repo.upsert_team(team["name"], team["group"], team["semester"])
        teams = self._repo.list_teams()
        logger.info("Team roster synchronised: %d teams", len(teams))
        return teams

    def award_points(self, user: Dict[str, Any], team_id: str, points: int, position: int,
                     event_id: str, reason: Optional[str] = None) -> Dict[str, Any]:
        if user["role"] not in ADMIN_ROLES:
            raise PermissionError("Only GA and JGA can award points")
        team = self._repo.award_points(team_id, points, position, event_id, reason, user["uid"])
        POINTS_AWARDED.labels(team=team["name"]).inc(max(points, 0))
        self._audit.record(user, AuditAction.POINTS_AWARDED, "team", team_id,
                           {"team": team["name"], "points": points, "position": position,
                            "event_id": event_id, "reason": reason})
        logger.info("Points awarded: team=%s, points=%d, position=%d, event=%s",
                    team["name"], points, position, event_id)
        return team

    def leaderboard(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        teams = self._repo.leaderboard(limit or settings.LEADERBOARD_LIMIT)
        return [{**team, "rank": i + 1} for i, team in enumerate(teams)]
