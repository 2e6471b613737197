# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for in-app notifications."""
import uuid
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from secons.core.logging import get_logger
from secons.core.timeutil import to_db, to_iso, utcnow

logger = get_logger(__name__)

NOTIFICATION_COLS = "id, user_id, type, title, body, link, is_read, created_at"


def _row_to_dict(row) -> Dict[str, Any]:
    return {
        "id": str(row["id"]),
        "user_id": row["user_id"],
        "type": row["type"],
        "title": row["title"],
        "body": row["body"],
        "link": row["link"],
        "is_read": bool(row["is_read"]),
        "created_at": to_iso(row["created_at"]),
    }


class NotificationRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    # ── Write ──────────────────────────────────────────────────────────

    def create_many(self, user_ids: Iterable[str], type_: str, title: str, body: str,
                    link: Optional[str] = None) -> int:
        """Insert one unread notification per recipient. Returns the number written."""
        now = to_db(utcnow())
        rows = [
            {"id": str(uuid.uuid4()), "user_id": uid, "type": type_, "title": title,
             "body": body, "link": link, "is_read": False, "now": now}
            for uid in dict.fromkeys(user_ids)
        ]
        if not rows:
            return 0
        with self._engine.begin() as conn:
            conn.execute(
                text("""
                    INSERT INTO notifications
                        (id, user_id, type, title, body, link, is_read, created_at)
                    VALUES
                        (:id, :user_id, :type, :title, :body, :link, :is_read, :now)
                """),
                rows,
            )
        return len(rows)

    def mark_all_read(self, user_id: str) -> int:
        with self._engine.begin() as conn:
            result = conn.execute(
                text("UPDATE notifications SET is_read = :read "
                     "WHERE user_id = :uid AND is_read = :unread"),
                {"read": True, "unread": False, "uid": user_id},
            )
        return result.rowcount

    def clear(self, user_id: str) -> int:
        with self._engine.begin() as conn:
            result = conn.execute(
                text("DELETE FROM notifications WHERE user_id = :uid"), {"uid": user_id},
            )
        return result.rowcount

    def mark_read(self, notification_id: str, user_id: str) -> bool:
        with self._engine.begin() as conn:
            result = conn.execute(
                text("UPDATE notifications SET is_read = :read WHERE id = :id AND user_id = :uid"),
                {"read": True, "id": notification_id, "uid": user_id},
            )
        return result.rowcount > 0

    def delete(self, notification_id: str, user_id: str) -> bool:
        with self._engine.begin() as conn:
            result = conn.execute(
                text("DELETE FROM notifications WHERE id = :id AND user_id = :uid"),
                {"id": notification_id, "uid": user_id},
            )
        return result.rowcount > 0

    # ── Read ───────────────────────────────────────────────────────────

    def list_for_user(self, user_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(f"SELECT {NOTIFICATION_COLS} FROM notifications WHERE user_id = :uid "
                     "ORDER BY created_at DESC LIMIT :limit"),
                {"uid": user_id, "limit": limit},
            ).mappings().all()
        return [_row_to_dict(r) for r in rows]

    def unread_count(self, user_id: str) -> int:
        with self._engine.connect() as conn:
            return conn.execute(
                text("SELECT COUNT(*) FROM notifications WHERE user_id = :uid AND is_read = :unread"),
                {"uid": user_id, "unread": False},
            ).scalar() or 0
