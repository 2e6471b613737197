# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: The caller's notification inbox."""
from typing import Any, Dict

from fastapi import APIRouter, Depends

from secons.core.dependencies import get_notification_service
from secons.core.errors import envelope, service_errors
from secons.core.security import get_current_user
from secons.services.notification_service import NotificationService

router = APIRouter(prefix="/api/v1", tags=["Notifications"])


@router.get("/notifications")
def list_notifications(user: Dict[str, Any] = Depends(get_current_user),
                       service: NotificationService = Depends(get_notification_service)):
    return envelope(service.list_for_user(user["uid"]))


@router.patch("/notifications")
def mark_all_read(user: Dict[str, Any] = Depends(get_current_user),
                  service: NotificationService = Depends(get_notification_service)):
    count = service.mark_all_read(user["uid"])
    return envelope({"updated": count}, "All notifications marked as read")


@router.delete("/notifications")
def clear_notifications(user: Dict[str, Any] = Depends(get_current_user),
                        service: NotificationService = Depends(get_notification_service)):
    count = service.clear_all(user["uid"])
    return envelope({"deleted": count}, "Notifications cleared")


@router.patch("/notifications/{notification_id}")
def mark_read(notification_id: str,
              user: Dict[str, Any] = Depends(get_current_user),
              service: NotificationService = Depends(get_notification_service)):
    with service_errors():
        service.mark_read(notification_id, user["uid"])
    return envelope(message="Notification marked as read")


@router.delete("/notifications/{notification_id}")
def delete_notification(notification_id: str,
                        user: Dict[str, Any] = Depends(get_current_user),
                        service: NotificationService = Depends(get_notification_service)):
    with service_errors():
        service.delete(notification_id, user["uid"])
    return envelope(message="Notification deleted")
