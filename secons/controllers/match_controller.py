# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: Sports matches, live scoring and the bulk importer."""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from secons.core.dependencies import get_match_service
from secons.core.errors import envelope, service_errors
from secons.core.security import get_current_user
from secons.schemas.matches import MatchCreateRequest, MatchUpdateRequest, SportsBulkRequest
from secons.services.match_service import MatchService

router = APIRouter(prefix="/api/v1/sports", tags=["Sports"])


@router.get("/matches")
def list_matches(
    status: Optional[str] = Query(default=None, pattern="^(scheduled|live|completed|cancelled)$"),
    sport: Optional[str] = None,
    service: MatchService = Depends(get_match_service),
):
    return envelope(service.list_matches(status, sport))


@router.post("/matches", status_code=201)
def create_match(body: MatchCreateRequest,
                 user: Dict[str, Any] = Depends(get_current_user),
                 service: MatchService = Depends(get_match_service)):
    with service_errors():
        match = service.create(user, body.model_dump())
    return envelope(match, "Match created successfully")


@router.get("/matches/{match_id}")
def get_match(match_id: str, service: MatchService = Depends(get_match_service)):
    with service_errors():
        return envelope(service.get_match(match_id))


@router.patch("/matches/{match_id}")
def update_match(match_id: str, body: MatchUpdateRequest,
                 user: Dict[str, Any] = Depends(get_current_user),
                 service: MatchService = Depends(get_match_service)):
    with service_errors():
        match = service.update(user, match_id, body.model_dump(exclude_none=True))
    return envelope(match, "Match updated successfully")


@router.delete("/matches/{match_id}")
def delete_match(match_id: str,
                 user: Dict[str, Any] = Depends(get_current_user),
                 service: MatchService = Depends(get_match_service)):
    with service_errors():
        service.delete(user, match_id)
    return envelope(message="Match deleted successfully")


@router.post("/bulk")
def bulk_import(body: SportsBulkRequest,
                user: Dict[str, Any] = Depends(get_current_user),
                service: MatchService = Depends(get_match_service)):
    with service_errors():
        return envelope(service.bulk_import(
            user, body.event_id,
            [f.model_dump() for f in body.fixtures],
            [m.model_dump() for m in body.matches],
        ))
