# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: Invitations and access codes."""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from secons.core.dependencies import get_invitation_service
from secons.core.errors import envelope, service_errors
from secons.core.security import get_current_user, get_identity
from secons.schemas.invitations import (
    InvitationCreateRequest, InvitationRedeemRequest, InvitationSendRequest,
)
from secons.services.invitation_service import InvitationService

router = APIRouter(prefix="/api/v1/invitations", tags=["Invitations"])


@router.post("", status_code=201)
def create_invitation(body: InvitationCreateRequest,
                      user: Dict[str, Any] = Depends(get_current_user),
                      service: InvitationService = Depends(get_invitation_service)):
    with service_errors():
        return envelope(service.create(
            user, role=body.role, domain=body.domain, name=body.name, email=body.email,
        ))


@router.get("")
def list_invitations(
    status: Optional[str] = Query(default=None, pattern="^(pending|used|expired)$"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=50),
    user: Dict[str, Any] = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service),
):
    with service_errors():
        return envelope(service.list_invitations(user, status, page, limit))


@router.get("/validate")
def validate_code(code: Optional[str] = None,
                  service: InvitationService = Depends(get_invitation_service)):
    with service_errors():
        return envelope(service.validate(code))


@router.post("/send")
def send_invitation(body: InvitationSendRequest,
                    user: Dict[str, Any] = Depends(get_current_user),
                    service: InvitationService = Depends(get_invitation_service)):
    with service_errors():
        service.send(user, body.code, body.email)
    return envelope(message="Invitation sent successfully")


@router.post("/redeem", status_code=201)
def redeem_code(body: InvitationRedeemRequest,
                identity: Dict[str, Any] = Depends(get_identity),
                service: InvitationService = Depends(get_invitation_service)):
    with service_errors():
        return envelope(service.redeem(identity, body.code, body.name), "Welcome to SECONS")
