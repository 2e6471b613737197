# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for chat threads, their participants and messages."""
import uuid
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import bindparam, text
from sqlalchemy.engine import Engine

from secons.core.logging import get_logger
from secons.core.timeutil import to_db, to_iso, utcnow

logger = get_logger(__name__)

THREAD_COLS = (
    "id, type, name, description, event_id, domain, created_by, is_archived, "
    "last_message_at, created_at"
)
MESSAGE_COLS = "id, thread_id, sender_id, content, reply_to, pinned, edited, deleted_at, sent_at"

UPDATABLE_FIELDS = ("name", "description", "is_archived")

_UNREAD_FROM = """
    FROM chat_messages m
    WHERE m.thread_id = :thread_id AND m.sender_id <> :uid AND m.deleted_at IS NULL
      AND NOT EXISTS (SELECT 1 FROM chat_message_reads r
                      WHERE r.message_id = m.id AND r.uid = :uid)
"""


def _thread_to_dict(row, participants: List[str]) -> Dict[str, Any]:
    return {
        "id": str(row["id"]),
        "type": row["type"],
        "name": row["name"],
        "description": row["description"],
        "event_id": row["event_id"],
        "domain": row["domain"],
        "created_by": row["created_by"],
        "is_archived": bool(row["is_archived"]),
        "participants": participants,
        "last_message_at": to_iso(row["last_message_at"]),
        "created_at": to_iso(row["created_at"]),
    }


def _message_to_dict(row, read_by: List[str]) -> Dict[str, Any]:
    return {
        "id": str(row["id"]),
        "thread_id": row["thread_id"],
        "sender_id": row["sender_id"],
        "content": row["content"],
        "reply_to": row["reply_to"],
        "pinned": bool(row["pinned"]),
        "edited": bool(row["edited"]),
        "deleted_at": to_iso(row["deleted_at"]),
        "read_by": read_by,
        "sent_at": to_iso(row["sent_at"]),
    }


class ChatRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    # ── Threads ────────────────────────────────────────────────────────

    def create_thread(self, type_: str, name: str, description: Optional[str],
                      event_id: Optional[str], domain: Optional[str], created_by: str,
                      participants: Iterable[str]) -> Dict[str, Any]:
        thread_id = str(uuid.uuid4())
        with self._engine.begin() as conn:
            conn.execute(
                text("""
                    INSERT INTO chat_threads
                        (id, type, name, description, event_id, domain, created_by,
                         is_archived, last_message_at, created_at)
                    VALUES
                        (:id, :type, :name, :description, :event_id, :domain, :created_by,
                         :archived, NULL, :now)
                """),
                {"id": thread_id, "type": type_, "name": name, "description": description,
                 "event_id": event_id, "domain": domain, "created_by": created_by,
                 "archived": False, "now": to_db(utcnow())},
            )
            self._add_participants(conn, thread_id, participants)
            return self._load_thread(conn, thread_id)

    def update_thread(self, thread_id: str, fields: Dict[str, Any],
                      add: Iterable[str] = (),
                      remove: Iterable[str] = ()) -> Optional[Dict[str, Any]]:
        updates = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
        remove = list(remove or ())
        with self._engine.begin() as conn:
            if updates:
                assignments = ", ".join(f"{k} = :{k}" for k in updates)
                conn.execute(
                    text(f"UPDATE chat_threads SET {assignments} WHERE id = :id"),
                    {**updates, "id": thread_id},
                )
            self._add_participants(conn, thread_id, add)
            if remove:
                conn.execute(
                    text("DELETE FROM chat_participants WHERE thread_id = :id AND uid IN :uids")
                    .bindparams(bindparam("uids", expanding=True)),
                    {"id": thread_id, "uids": remove},
                )
            return self._load_thread(conn, thread_id)

    def get_thread(self, thread_id: str) -> Optional[Dict[str, Any]]:
        with self._engine.connect() as conn:
            return self._load_thread(conn, thread_id)

    def list_threads_for(self, uid: str) -> List[Dict[str, Any]]:
        """Non-archived threads ``uid`` belongs to, each with its latest message and unread count."""
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(f"""
                    SELECT {THREAD_COLS} FROM chat_threads
                    WHERE is_archived = :archived
                      AND id IN (SELECT thread_id FROM chat_participants WHERE uid = :uid)
                    ORDER BY COALESCE(last_message_at, created_at) DESC
                """),
                {"archived": False, "uid": uid},
            ).mappings().all()
            threads = []
            for row in rows:
                thread = _thread_to_dict(row, self._participants(conn, row["id"]))
                last = conn.execute(
                    text(f"SELECT {MESSAGE_COLS} FROM chat_messages WHERE thread_id = :id "
                         "ORDER BY sent_at DESC LIMIT 1"),
                    {"id": row["id"]},
                ).mappings().first()
                thread["last_message"] = _message_to_dict(last, []) if last else None
                thread["unread_count"] = conn.execute(
                    text(f"SELECT COUNT(*) {_UNREAD_FROM}"),
                    {"thread_id": row["id"], "uid": uid},
                ).scalar() or 0
                threads.append(thread)
        return threads

    # ── Messages ───────────────────────────────────────────────────────

    def add_message(self, thread_id: str, sender_id: str, content: str,
                    reply_to: Optional[str] = None) -> Dict[str, Any]:
        """Insert, mark read by the sender and bump the thread in one transaction."""
        message_id = str(uuid.uuid4())
        now = to_db(utcnow())
        with self._engine.begin() as conn:
            conn.execute(
                text("""
                    INSERT INTO chat_messages
                        (id, thread_id, sender_id, content, reply_to, pinned, edited,
                         deleted_at, sent_at)
                    VALUES
                        (:id, :thread_id, :sender, :content, :reply_to, :no, :no, NULL, :now)
                """),
                {"id": message_id, "thread_id": thread_id, "sender": sender_id,
                 "content": content, "reply_to": reply_to, "no": False, "now": now},
            )
            conn.execute(
                text("INSERT INTO chat_message_reads (message_id, uid) VALUES (:id, :uid)"),
                {"id": message_id, "uid": sender_id},
            )
            conn.execute(
                text("UPDATE chat_threads SET last_message_at = :now WHERE id = :id"),
                {"now": now, "id": thread_id},
            )
            return self._load_message(conn, message_id)

    def get_message(self, message_id: str) -> Optional[Dict[str, Any]]:
        with self._engine.connect() as conn:
            return self._load_message(conn, message_id)

    def list_messages(self, thread_id: str, before: Optional[str] = None,
                      after: Optional[str] = None, limit: int = 50) -> List[Dict[str, Any]]:
        """
        Up to ``limit`` messages, oldest first. ``before`` pages backwards from
        a sent_at cursor; ``after`` fetches what arrived since one.
        """
        params: Dict[str, Any] = {"thread_id": thread_id, "limit": limit}
        where = "thread_id = :thread_id"
        order = "DESC"
        if after:
            where += " AND sent_at > :after"
            params["after"] = after
            order = "ASC"
        elif before:
            where += " AND sent_at < :before"
            params["before"] = before
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(f"SELECT {MESSAGE_COLS} FROM chat_messages WHERE {where} "
                     f"ORDER BY sent_at {order} LIMIT :limit"),
                params,
            ).mappings().all()
            reads = self._reads(conn, [r["id"] for r in rows])
        messages = [_message_to_dict(r, reads.get(str(r["id"]), [])) for r in rows]
        return messages if order == "ASC" else list(reversed(messages))

    def edit_message(self, message_id: str, content: str) -> Optional[Dict[str, Any]]:
        with self._engine.begin() as conn:
            conn.execute(
                text("UPDATE chat_messages SET content = :content, edited = :yes WHERE id = :id"),
                {"content": content, "yes": True, "id": message_id},
            )
            return self._load_message(conn, message_id)

    def soft_delete_message(self, message_id: str) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                text("UPDATE chat_messages SET deleted_at = :now WHERE id = :id"),
                {"now": to_db(utcnow()), "id": message_id},
            )

    def mark_thread_read(self, thread_id: str, uid: str) -> int:
        with self._engine.begin() as conn:
            unread = [
                r[0] for r in conn.execute(
                    text(f"SELECT m.id {_UNREAD_FROM}"),
                    {"thread_id": thread_id, "uid": uid},
                ).fetchall()
            ]
            if unread:
                conn.execute(
                    text("INSERT INTO chat_message_reads (message_id, uid) VALUES (:id, :uid)"),
                    [{"id": mid, "uid": uid} for mid in unread],
                )
        return len(unread)

    # ── Private ────────────────────────────────────────────────────────

    def _add_participants(self, conn, thread_id: str, uids: Iterable[str]) -> None:
        existing = set(self._participants(conn, thread_id))
        fresh = [uid for uid in dict.fromkeys(uids or ()) if uid not in existing]
        if fresh:
            conn.execute(
                text("INSERT INTO chat_participants (thread_id, uid) VALUES (:id, :uid)"),
                [{"id": thread_id, "uid": uid} for uid in fresh],
            )

    def _participants(self, conn, thread_id: str) -> List[str]:
        return [
            r[0] for r in conn.execute(
                text("SELECT uid FROM chat_participants WHERE thread_id = :id ORDER BY uid"),
                {"id": thread_id},
            ).fetchall()
        ]

    def _reads(self, conn, message_ids: List[str]) -> Dict[str, List[str]]:
        if not message_ids:
            return {}
        reads: Dict[str, List[str]] = {}
        for mid, uid in conn.execute(
            text("SELECT message_id, uid FROM chat_message_reads WHERE message_id IN :ids "
                 "ORDER BY uid").bindparams(bindparam("ids", expanding=True)),
            {"ids": message_ids},
        ).fetchall():
            reads.setdefault(str(mid), []).append(uid)
        return reads

    def _load_thread(self, conn, thread_id: str) -> Optional[Dict[str, Any]]:
        row = conn.execute(
            text(f"SELECT {THREAD_COLS} FROM chat_threads WHERE id = :id"), {"id": thread_id},
        ).mappings().first()
        return _thread_to_dict(row, self._participants(conn, thread_id)) if row else None

    def _load_message(self, conn, message_id: str) -> Optional[Dict[str, Any]]:
        row = conn.execute(
            text(f"SELECT {MESSAGE_COLS} FROM chat_messages WHERE id = :id"), {"id": message_id},
        ).mappings().first()
        if not row:
            return None
        return _message_to_dict(row, self._reads(conn, [message_id]).get(message_id, []))
