# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: Meetings."""
from typing import Any, Dict

from fastapi import APIRouter, Depends

from secons.core.dependencies import get_meeting_service
from secons.core.errors import envelope, service_errors
from secons.core.security import get_current_user
from secons.schemas.meetings import MeetingCreateRequest, MeetingUpdateRequest
from secons.services.meeting_service import MeetingService

router = APIRouter(prefix="/api/v1", tags=["Meetings"])


@router.get("/meetings")
def list_meetings(user: Dict[str, Any] = Depends(get_current_user),
                  service: MeetingService = Depends(get_meeting_service)):
    return envelope(service.list_for(user))


@router.post("/meetings", status_code=201)
def create_meeting(body: MeetingCreateRequest,
                   user: Dict[str, Any] = Depends(get_current_user),
                   service: MeetingService = Depends(get_meeting_service)):
    with service_errors():
        return envelope(service.create(
            user, title=body.title, scheduled_at=body.scheduled_at, agenda=body.agenda,
            location=body.location, meeting_link=body.meeting_link,
            attendee_groups=body.attendee_groups,
            specific_attendee_ids=body.specific_attendee_ids,
        ))


@router.patch("/meetings/{meeting_id}")
def update_meeting(meeting_id: str, body: MeetingUpdateRequest,
                   user: Dict[str, Any] = Depends(get_current_user),
                   service: MeetingService = Depends(get_meeting_service)):
    with service_errors():
        return envelope(service.update(user, meeting_id, body.model_dump(exclude_none=True)))


@router.delete("/meetings/{meeting_id}")
def cancel_meeting(meeting_id: str,
                   user: Dict[str, Any] = Depends(get_current_user),
                   service: MeetingService = Depends(get_meeting_service)):
    with service_errors():
        service.cancel(user, meeting_id)
    return envelope(message="Meeting cancelled")
