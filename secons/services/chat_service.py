# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Chat threads and messages. Membership is fixed at creation from
the thread type and edited explicitly afterwards; every read and write is
limited to participants.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from secons.core.logging import get_logger
from secons.core.timeutil import to_db, utcnow
from secons.metrics.prometheus import CHAT_MESSAGES
from secons.models.domain import Role
from secons.repositories.chat_repository import ChatRepository
from secons.repositories.user_repository import UserRepository
from secons.services.notification_service import NotificationService

logger = get_logger(__name__)

# Thread types with restricted creators; the rest are open to any member.
THREAD_CREATORS = {
    "custom": frozenset({Role.GA.value}),
    "workspace": frozenset({Role.GA.value, Role.JGA.value}),
    "volunteer": frozenset({Role.GA.value, Role.JGA.value, Role.ANIMATOR.value}),
}
DIRECT_TYPES = ("custom", "volunteer")
EDIT_WINDOW = timedelta(minutes=15)
DELETED_PLACEHOLDER = "This message was deleted"
PARTICIPANT_FIELDS = ("uid", "name", "role", "domain", "photo_url")

_timestamp = TypeAdapter(datetime)


def _cursor(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    try:
        return to_db(_timestamp.validate_python(value))
    except ValidationError:
        raise ValueError("Invalid cursor")


def _masked(message: Dict[str, Any]) -> Dict[str, Any]:
    if message["deleted_at"]:
        return {**message, "content": DELETED_PLACEHOLDER}
    return message


class ChatService:
    def __init__(self, repo: ChatRepository, user_repo: UserRepository,
                 notifications: NotificationService) -> None:
        self._repo = repo
        self._users = user_repo
        self._notifications = notifications

    # ── Threads ──

    def list_threads(self, user: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        The caller's active threads. A two-person custom or volunteer thread
        is shown under the other participant's name.
        """
        threads = self._repo.list_threads_for(user["uid"])
        direct = {
            t["id"]: next(uid for uid in t["participants"] if uid != user["uid"])
            for t in threads
            if t["type"] in DIRECT_TYPES and len(t["participants"]) == 2
            and user["uid"] in t["participants"]
        }
        names = {u["uid"]: u["name"] for u in self._users.list_by_uids(set(direct.values()))}
        for thread in threads:
            other = direct.get(thread["id"])
            if other in names:
                thread["name"] = names[other]
            if thread["last_message"]:
                thread["last_message"] = _masked(thread["last_message"])
        return threads

    def create_thread(self, user: Dict[str, Any], type_: str, name: str,
                      description: Optional[str] = None, domain: Optional[str] = None,
                      event_id: Optional[str] = None,
                      participant_uids: Optional[List[str]] = None) -> Dict[str, Any]:
        allowed = THREAD_CREATORS.get(type_)
        if allowed is not None and user["role"] not in allowed:
            raise PermissionError(f"You cannot create {type_} threads")

        extra = list(participant_uids or [])
        if type_ == "workspace":
            members = self._users.find_active_uids([Role.GA.value, Role.JGA.value])
        elif type_ == "domain":
            if not domain:
                raise ValueError("Domain required for domain threads")
            members = self._users.find_active_uids([Role.JGA.value, Role.ANIMATOR.value], [domain])
        elif type_ == "event":
            members = self._users.find_active_uids([Role.GA.value]) + extra
        else:
            members = extra
        participants = list(dict.fromkeys([user["uid"]] + members))

        thread = self._repo.create_thread(type_, name.strip(), description, event_id,
                                          domain, user["uid"], participants)
        logger.info("Chat thread created: id=%s, type=%s, participants=%d",
                    thread["id"], type_, len(participants))
        return thread

    def get_thread(self, user: Dict[str, Any], thread_id: str) -> Dict[str, Any]:
        thread = self._thread_for(user, thread_id)
        thread["participant_details"] = [
            {k: u[k] for k in PARTICIPANT_FIELDS}
            for u in self._users.list_by_uids(thread["participants"])
        ]
        return thread

    def update_thread(self, user: Dict[str, Any], thread_id: str,
                      fields: Dict[str, Any]) -> Dict[str, Any]:
        thread = self._repo.get_thread(thread_id)
        if thread is None:
            raise KeyError("Thread not found")
        if thread["created_by"] != user["uid"] and user["role"] != Role.GA.value:
            raise PermissionError("Only the thread creator or GA can update this thread")
        updated = self._repo.update_thread(
            thread_id, fields,
            add=fields.get("add_participants") or (),
            remove=fields.get("remove_participants") or (),
        )
        logger.info("Chat thread updated: id=%s, fields=%s", thread_id, sorted(fields))
        return updated

    # ── Messages ──

    def list_messages(self, user: Dict[str, Any], thread_id: str,
                      cursor: Optional[str] = None, after: Optional[str] = None,
                      limit: int = 50) -> Dict[str, Any]:
        self._thread_for(user, thread_id)
        after_at = _cursor(after)
        page = self._repo.list_messages(thread_id, before=_cursor(cursor), after=after_at,
                                        limit=limit + 1)
        has_more = len(page) > limit
        if has_more:
            # Backward pages drop the oldest extra row; forward pages the newest.
            page = page[:limit] if after_at else page[1:]
        messages = [_masked(m) for m in page]
        return {
            "messages": messages,
            "has_more": has_more,
            "cursor": messages[0]["sent_at"] if messages else None,
        }

    def post_message(self, user: Dict[str, Any], thread_id: str, content: str,
                     reply_to: Optional[str] = None) -> Dict[str, Any]:
        thread = self._thread_for(user, thread_id)
        content = (content or "").strip()
        if not content:
            raise ValueError("Message content is required")

        message = self._repo.add_message(thread_id, user["uid"], content, reply_to)
        CHAT_MESSAGES.labels(thread_type=thread["type"]).inc()
        self._notifications.notify(
            [uid for uid in thread["participants"] if uid != user["uid"]], "chat",
            f"Message from {user['name']}", content, link=f"/chat?thread={thread_id}",
        )
        return message

    def mark_read(self, user: Dict[str, Any], thread_id: str) -> Dict[str, int]:
        self._thread_for(user, thread_id)
        return {"marked_read": self._repo.mark_thread_read(thread_id, user["uid"])}

    def edit_message(self, user: Dict[str, Any], thread_id: str, message_id: str,
                     content: Optional[str]) -> Dict[str, Any]:
        message = self._message_for(user, thread_id, message_id)
        if message["sender_id"] != user["uid"]:
            raise PermissionError("You can only edit your own messages")
        if message["deleted_at"]:
            raise ValueError("Cannot edit a deleted message")
        if utcnow() - datetime.fromisoformat(message["sent_at"]) > EDIT_WINDOW:
            raise ValueError("Edit window expired (15 min)")
        content = (content or "").strip()
        if not content:
            raise ValueError("No changes provided")
        return self._repo.edit_message(message_id, content)

    def delete_message(self, user: Dict[str, Any], thread_id: str, message_id: str) -> None:
        message = self._message_for(user, thread_id, message_id)
        if message["sender_id"] != user["uid"] and user["role"] != Role.GA.value:
            raise PermissionError("You can only delete your own messages")
        self._repo.soft_delete_message(message_id)
        logger.info("Chat message deleted: id=%s, by=%s", message_id, user["uid"])

    # ── Private ──

    def _thread_for(self, user: Dict[str, Any], thread_id: str) -> Dict[str, Any]:
        thread = self._repo.get_thread(thread_id)
        if thread is None:
            raise KeyError("Thread not found")
        if user["uid"] not in thread["participants"]:
            raise PermissionError("Access denied")
        return thread

    def _message_for(self, user: Dict[str, Any], thread_id: str,
                     message_id: str) -> Dict[str, Any]:
        self._thread_for(user, thread_id)
        message = self._repo.get_message(message_id)
        if message is None or message["thread_id"] != thread_id:
            raise KeyError("Message not found")
        return message
