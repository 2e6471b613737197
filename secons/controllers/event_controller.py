# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: Event catalogue, categories and bulk import."""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from secons.core.dependencies import get_event_service
from secons.core.errors import envelope, service_errors
from secons.core.security import get_current_user, get_optional_user
from secons.schemas.events import (
    CategoryCreateRequest, EventBulkRequest, EventCreateRequest, EventUpdateRequest,
)
from secons.services.event_service import EventService

router = APIRouter(prefix="/api/v1/events", tags=["Events"])


@router.get("")
def list_events(
    category: Optional[str] = None,
    status: Optional[str] = Query(
        default=None, pattern="^(draft|published|ongoing|completed|cancelled)$"),
    domain: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=50),
    viewer: Optional[Dict[str, Any]] = Depends(get_optional_user),
    service: EventService = Depends(get_event_service),
):
    return envelope(service.list_events(viewer, category, status, domain, page, limit))


@router.post("", status_code=201)
def create_event(body: EventCreateRequest,
                 user: Dict[str, Any] = Depends(get_current_user),
                 service: EventService = Depends(get_event_service)):
    with service_errors():
        return envelope(service.create(user, body.model_dump()))


# ── Fixed paths, registered before /{event_id} ──

@router.get("/categories")
def list_categories(service: EventService = Depends(get_event_service)):
    return envelope(service.list_categories())


@router.post("/categories", status_code=201)
def create_category(body: CategoryCreateRequest,
                    user: Dict[str, Any] = Depends(get_current_user),
                    service: EventService = Depends(get_event_service)):
    with service_errors():
        return envelope(service.create_category(user, body.name))


@router.delete("/categories/{slug}")
def delete_category(slug: str,
                    user: Dict[str, Any] = Depends(get_current_user),
                    service: EventService = Depends(get_event_service)):
    with service_errors():
        service.delete_category(user, slug)
    return envelope(message="Category deleted")


@router.get("/domains")
def event_domains(user: Dict[str, Any] = Depends(get_current_user),
                  service: EventService = Depends(get_event_service)):
    with service_errors():
        return envelope(service.domains(user))


@router.post("/bulk", status_code=201)
def bulk_create_events(body: EventBulkRequest,
                       user: Dict[str, Any] = Depends(get_current_user),
                       service: EventService = Depends(get_event_service)):
    with service_errors():
        result = service.bulk_create(user, body.events)
    return envelope(result, f"{result['success']} events created, {result['failed']} failed")


# ── Single event ──

@router.get("/{event_id}")
def get_event(event_id: str,
              viewer: Optional[Dict[str, Any]] = Depends(get_optional_user),
              service: EventService = Depends(get_event_service)):
    with service_errors():
        return envelope(service.get_event(viewer, event_id))


@router.patch("/{event_id}")
def update_event(event_id: str, body: EventUpdateRequest,
                 user: Dict[str, Any] = Depends(get_current_user),
                 service: EventService = Depends(get_event_service)):
    with service_errors():
        return envelope(service.update(user, event_id, body.model_dump(exclude_none=True)))


@router.delete("/{event_id}")
def delete_event(event_id: str,
                 user: Dict[str, Any] = Depends(get_current_user),
                 service: EventService = Depends(get_event_service)):
    with service_errors():
        service.delete(user, event_id)
    return envelope(message="Event deleted")
