# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: Announcements."""
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query

from secons.core.dependencies import get_announcement_service
from secons.core.errors import envelope, service_errors
from secons.core.security import get_current_user
from secons.schemas.announcements import AnnouncementCreateRequest, AnnouncementPatchRequest
from secons.services.announcement_service import AnnouncementService

router = APIRouter(prefix="/api/v1", tags=["Announcements"])


@router.get("/announcements")
def list_announcements(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    user: Dict[str, Any] = Depends(get_current_user),
    service: AnnouncementService = Depends(get_announcement_service),
):
    return envelope(service.list_visible(user, page, limit))


@router.post("/announcements", status_code=201)
def create_announcement(body: AnnouncementCreateRequest,
                        user: Dict[str, Any] = Depends(get_current_user),
                        service: AnnouncementService = Depends(get_announcement_service)):
    with service_errors():
        return envelope(service.create(
            user, title=body.title, content=body.content,
            target_roles=body.target_roles, target_domains=body.target_domains,
            pinned=body.pinned,
        ))


@router.patch("/announcements/{announcement_id}")
def patch_announcement(announcement_id: str, body: AnnouncementPatchRequest,
                       user: Dict[str, Any] = Depends(get_current_user),
                       service: AnnouncementService = Depends(get_announcement_service)):
    with service_errors():
        if body.action == "mark_read":
            service.mark_read(announcement_id, user["uid"])
            return envelope(message="Marked as read")
        if body.action == "update":
            return envelope(service.set_pinned(user, announcement_id, body.pinned))
    raise HTTPException(status_code=400, detail="Invalid action")


@router.delete("/announcements/{announcement_id}")
def delete_announcement(announcement_id: str,
                        user: Dict[str, Any] = Depends(get_current_user),
                        service: AnnouncementService = Depends(get_announcement_service)):
    with service_errors():
        service.delete(user, announcement_id)
    return envelope(message="Announcement deleted")
