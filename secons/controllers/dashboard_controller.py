# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: Dashboard statistics."""
from typing import Any, Dict

from fastapi import APIRouter, Depends

from secons.core.dependencies import get_dashboard_service
from secons.core.errors import envelope
from secons.core.security import get_current_user
from secons.services.dashboard_service import DashboardService

router = APIRouter(prefix="/api/v1", tags=["Dashboard"])


@router.get("/dashboard/stats")
def dashboard_stats(user: Dict[str, Any] = Depends(get_current_user),
                    service: DashboardService = Depends(get_dashboard_service)):
    return envelope(service.stats_for(user))
