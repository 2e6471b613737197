# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: Audit log (GA only)."""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from secons.core.dependencies import get_audit_service
from secons.core.errors import envelope, service_errors
from secons.core.security import get_current_user
from secons.services.audit_service import AuditService

router = APIRouter(prefix="/api/v1", tags=["Audit"])


@router.get("/audit-logs")
def list_audit_logs(
    action: Optional[str] = None,
    actor: Optional[str] = None,
    target_id: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    user: Dict[str, Any] = Depends(get_current_user),
    service: AuditService = Depends(get_audit_service),
):
    with service_errors():
        return envelope(service.list_entries(user, action, actor, target_id, page, limit))
