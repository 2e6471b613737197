# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: User management."""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from secons.core.dependencies import get_user_service
from secons.core.errors import envelope, service_errors
from secons.core.security import get_current_user
from secons.schemas.users import UserAdminUpdateRequest
from secons.services.user_service import UserService

router = APIRouter(prefix="/api/v1", tags=["Users"])


@router.get("/users")
def list_users(
    role: Optional[str] = None,
    domain: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    user: Dict[str, Any] = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    with service_errors():
        return envelope(service.list_users(user, role, domain, search, page, limit))


@router.get("/users/{user_id}")
def get_user(user_id: str,
             user: Dict[str, Any] = Depends(get_current_user),
             service: UserService = Depends(get_user_service)):
    with service_errors():
        return envelope(service.get_user(user, user_id))


@router.patch("/users/{user_id}")
def update_user(user_id: str, body: UserAdminUpdateRequest,
                user: Dict[str, Any] = Depends(get_current_user),
                service: UserService = Depends(get_user_service)):
    with service_errors():
        return envelope(service.update_user(user, user_id, body.model_dump(exclude_none=True)))


@router.delete("/users/{user_id}")
def deactivate_user(user_id: str,
                    user: Dict[str, Any] = Depends(get_current_user),
                    service: UserService = Depends(get_user_service)):
    with service_errors():
        return envelope(service.deactivate(user, user_id))
