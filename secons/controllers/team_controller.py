# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: Teams, points ledger and the sports leaderboard."""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from secons.core.dependencies import get_team_service
from secons.core.errors import envelope, service_errors
from secons.core.security import get_current_user
from secons.schemas.teams import AwardPointsRequest
from secons.services.team_service import TeamService

router = APIRouter(prefix="/api/v1", tags=["Teams"])


@router.get("/teams")
def list_teams(service: TeamService = Depends(get_team_service)):
    return envelope(service.list_teams())


@router.post("/teams/seed")
def seed_teams(user: Dict[str, Any] = Depends(get_current_user),
               service: TeamService = Depends(get_team_service)):
    with service_errors():
        teams = service.seed(user)
    return envelope(teams, f"Successfully synchronized {len(teams)} teams")


@router.get("/teams/{team_id}")
def get_team(team_id: str, service: TeamService = Depends(get_team_service)):
    with service_errors():
        return envelope(service.get_team(team_id))


@router.post("/teams/{team_id}/points")
def award_points(team_id: str, body: AwardPointsRequest,
                 user: Dict[str, Any] = Depends(get_current_user),
                 service: TeamService = Depends(get_team_service)):
    with service_errors():
        team = service.award_points(user, team_id, body.points, body.position,
                                    body.event_id, body.reason)
    return envelope(team, "Points awarded successfully")


@router.get("/sports/leaderboard")
def leaderboard(limit: Optional[int] = Query(default=None, ge=1, le=100),
                service: TeamService = Depends(get_team_service)):
    return envelope(service.leaderboard(limit))
