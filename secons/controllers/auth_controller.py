# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: Session, GA bootstrap and the caller's own profile."""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from secons.core.dependencies import get_user_service
from secons.core.errors import envelope, service_errors
from secons.core.security import get_current_user, get_identity
from secons.schemas.users import ProfileUpdateRequest, RegisterGARequest
from secons.services.user_service import UserService

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


@router.get("/ga-status")
def ga_status(service: UserService = Depends(get_user_service)):
    return envelope(service.ga_status())


@router.post("/register-ga", status_code=201)
def register_ga(body: Optional[RegisterGARequest] = None,
                identity: Dict[str, Any] = Depends(get_identity),
                service: UserService = Depends(get_user_service)):
    user = service.register_ga(identity, body.name if body else None)
    return envelope(user, "GA account created")


@router.get("/me")
def get_me(user: Dict[str, Any] = Depends(get_current_user)):
    return envelope(user)


@router.patch("/me")
def update_me(body: ProfileUpdateRequest,
              user: Dict[str, Any] = Depends(get_current_user),
              service: UserService = Depends(get_user_service)):
    with service_errors():
        return envelope(service.update_profile(user, body.model_dump(exclude_none=True)))
