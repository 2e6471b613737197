# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: Chat threads and messages."""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from secons.core.dependencies import get_chat_service
from secons.core.errors import envelope, service_errors
from secons.core.security import get_current_user
from secons.schemas.chat import (
    MessageCreateRequest, MessageUpdateRequest, ThreadCreateRequest, ThreadUpdateRequest,
)
from secons.services.chat_service import ChatService

router = APIRouter(prefix="/api/v1/chat", tags=["Chat"])


@router.get("/threads")
def list_threads(user: Dict[str, Any] = Depends(get_current_user),
                 service: ChatService = Depends(get_chat_service)):
    return envelope(service.list_threads(user))


@router.post("/threads", status_code=201)
def create_thread(body: ThreadCreateRequest,
                  user: Dict[str, Any] = Depends(get_current_user),
                  service: ChatService = Depends(get_chat_service)):
    with service_errors():
        return envelope(service.create_thread(
            user, body.type, body.name, body.description, body.domain,
            body.event_id, body.participant_uids,
        ))


@router.get("/threads/{thread_id}")
def get_thread(thread_id: str,
               user: Dict[str, Any] = Depends(get_current_user),
               service: ChatService = Depends(get_chat_service)):
    with service_errors():
        return envelope(service.get_thread(user, thread_id))


@router.patch("/threads/{thread_id}")
def update_thread(thread_id: str, body: ThreadUpdateRequest,
                  user: Dict[str, Any] = Depends(get_current_user),
                  service: ChatService = Depends(get_chat_service)):
    with service_errors():
        return envelope(service.update_thread(user, thread_id, body.model_dump(exclude_none=True)))


@router.get("/threads/{thread_id}/messages")
def list_messages(
    thread_id: str,
    cursor: Optional[str] = None,
    after: Optional[str] = None,
    limit: int = Query(default=50, ge=1, le=100),
    user: Dict[str, Any] = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    with service_errors():
        return envelope(service.list_messages(user, thread_id, cursor, after, limit))


@router.post("/threads/{thread_id}/messages", status_code=201)
def post_message(thread_id: str, body: MessageCreateRequest,
                 user: Dict[str, Any] = Depends(get_current_user),
                 service: ChatService = Depends(get_chat_service)):
    with service_errors():
        return envelope(service.post_message(user, thread_id, body.content, body.reply_to))


@router.post("/threads/{thread_id}/read")
def mark_read(thread_id: str,
              user: Dict[str, Any] = Depends(get_current_user),
              service: ChatService = Depends(get_chat_service)):
    with service_errors():
        return envelope(service.mark_read(user, thread_id))


@router.patch("/threads/{thread_id}/messages/{message_id}")
def edit_message(thread_id: str, message_id: str, body: MessageUpdateRequest,
                 user: Dict[str, Any] = Depends(get_current_user),
                 service: ChatService = Depends(get_chat_service)):
    with service_errors():
        return envelope(service.edit_message(user, thread_id, message_id, body.content))


@router.delete("/threads/{thread_id}/messages/{message_id}")
def delete_message(thread_id: str, message_id: str,
                   user: Dict[str, Any] = Depends(get_current_user),
                   service: ChatService = Depends(get_chat_service)):
    with service_errors():
        service.delete_message(user, thread_id, message_id)
    return envelope(message="Message deleted")
