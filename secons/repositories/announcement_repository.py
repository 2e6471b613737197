# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for announcements and their read receipts."""
import json
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from secons.core.logging import get_logger
from secons.core.timeutil import to_db, to_iso, utcnow

logger = get_logger(__name__)

ANNOUNCEMENT_COLS = (
    "a.id, a.title, a.body, a.target_roles, a.target_domains, a.pinned, "
    "a.created_by, a.created_at, u.name AS author_name, u.role AS author_role"
)

_FROM = "announcements a LEFT JOIN users u ON u.id = a.created_by"


def _row_to_dict(row, read_ids=None) -> Dict[str, Any]:
    announcement = {
        "id": str(row["id"]),
        "title": row["title"],
        "body": row["body"],
        "target_roles": json.loads(row["target_roles"] or "[]"),
        "target_domains": json.loads(row["target_domains"] or "[]"),
        "pinned": bool(row["pinned"]),
        "created_by": row["created_by"],
        "author": {"name": row["author_name"], "role": row["author_role"]},
        "created_at": to_iso(row["created_at"]),
    }
    if read_ids is not None:
        announcement["is_read_by_me"] = announcement["id"] in read_ids
    return announcement


class AnnouncementRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    # ── Write ──────────────────────────────────────────────────────────

    def create_announcement(self, title: str, body: str, target_roles: List[str],
                            target_domains: List[str], pinned: bool, created_by: str,
                            creator_uid: str) -> Dict[str, Any]:
        """Insert the announcement and record the creator as having read it."""
        announcement_id = str(uuid.uuid4())
        with self._engine.begin() as conn:
            conn.execute(
                text("""
                    INSERT INTO announcements
                        (id, title, body, target_roles, target_domains, pinned, created_by, created_at)
                    VALUES
                        (:id, :title, :body, :roles, :domains, :pinned, :created_by, :now)
                """),
                {"id": announcement_id, "title": title, "body": body,
                 "roles": json.dumps(sorted(target_roles)),
                 "domains": json.dumps(sorted(target_domains)),
                 "pinned": pinned, "created_by": created_by, "now": to_db(utcnow())},
            )
            conn.execute(
                text("INSERT INTO announcement_reads (announcement_id, uid) VALUES (:aid, :uid)"),
                {"aid": announcement_id, "uid": creator_uid},
            )
            row = conn.execute(
                text(f"SELECT {ANNOUNCEMENT_COLS} FROM {_FROM} WHERE a.id = :id"),
                {"id": announcement_id},
            ).mappings().first()
        return _row_to_dict(row, {announcement_id})

    def mark_read(self, announcement_id: str, uid: str) -> bool:
        """Idempotently add ``uid`` to the read set. False if the announcement is absent."""
        with self._engine.begin() as conn:
            exists = conn.execute(
                text("SELECT 1 FROM announcements WHERE id = :id"), {"id": announcement_id},
            ).first()
            if not exists:
                return False
            already = conn.execute(
                text("SELECT 1 FROM announcement_reads WHERE announcement_id = :aid AND uid = :uid"),
                {"aid": announcement_id, "uid": uid},
            ).first()
            if not already:
                conn.execute(
                    text("INSERT INTO announcement_reads (announcement_id, uid) VALUES (:aid, :uid)"),
                    {"aid": announcement_id, "uid": uid},
                )
        return True

    def set_pinned(self, announcement_id: str, pinned: bool) -> bool:
        with self._engine.begin() as conn:
            result = conn.execute(
                text("UPDATE announcements SET pinned = :pinned WHERE id = :id"),
                {"pinned": pinned, "id": announcement_id},
            )
        return result.rowcount > 0

    def delete_announcement(self, announcement_id: str) -> bool:
        with self._engine.begin() as conn:
            conn.execute(
                text("DELETE FROM announcement_reads WHERE announcement_id = :id"),
                {"id": announcement_id},
            )
            result = conn.execute(
                text("DELETE FROM announcements WHERE id = :id"), {"id": announcement_id},
            )
        return result.rowcount > 0

    # ── Read ───────────────────────────────────────────────────────────

    def get_announcement(self, announcement_id: str) -> Optional[Dict[str, Any]]:
        with self._engine.connect() as conn:
            row = conn.execute(
                text(f"SELECT {ANNOUNCEMENT_COLS} FROM {_FROM} WHERE a.id = :id"),
                {"id": announcement_id},
            ).mappings().first()
        return _row_to_dict(row) if row else None

    def list_announcements(self, reader_uid: str) -> List[Dict[str, Any]]:
        """All announcements, pinned first then newest, flagged with the reader's receipt."""
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(f"SELECT {ANNOUNCEMENT_COLS} FROM {_FROM} "
                     "ORDER BY a.pinned DESC, a.created_at DESC"),
            ).mappings().all()
            read_ids = {
                str(r[0]) for r in conn.execute(
                    text("SELECT announcement_id FROM announcement_reads WHERE uid = :uid"),
                    {"uid": reader_uid},
                ).fetchall()
            }
        return [_row_to_dict(r, read_ids) for r in rows]
