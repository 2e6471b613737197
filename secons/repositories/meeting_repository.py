# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for meetings and their resolved attendees."""
import json
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from secons.core.logging import get_logger
from secons.core.timeutil import to_db, to_iso, utcnow

logger = get_logger(__name__)

MEETING_COLS = (
    "id, title, agenda, scheduled_at, location, meeting_link, notes, "
    "attendee_groups, created_by, created_at"
)

UPDATABLE_FIELDS = ("title", "agenda", "scheduled_at", "location", "meeting_link", "notes")


def _row_to_dict(row, attendees: List[str]) -> Dict[str, Any]:
    return {
        "id": str(row["id"]),
        "title": row["title"],
        "agenda": row["agenda"],
        "scheduled_at": to_iso(row["scheduled_at"]),
        "location": row["location"],
        "meeting_link": row["meeting_link"],
        "notes": row["notes"],
        "attendee_groups": json.loads(row["attendee_groups"] or "[]"),
        "attendees": attendees,
        "created_by": row["created_by"],
        "created_at": to_iso(row["created_at"]),
    }


class MeetingRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    # ── Write ──────────────────────────────────────────────────────────

    def create_meeting(self, title: str, agenda: Optional[str], scheduled_at,
                       location: Optional[str], meeting_link: Optional[str],
                       attendee_groups: List[str], attendees: List[str],
                       created_by: str) -> Dict[str, Any]:
        meeting_id = str(uuid.uuid4())
        with self._engine.begin() as conn:
            conn.execute(
                text("""
                    INSERT INTO meetings
                        (id, title, agenda, scheduled_at, location, meeting_link, notes,
                         attendee_groups, created_by, created_at)
                    VALUES
                        (:id, :title, :agenda, :scheduled_at, :location, :link, NULL,
                         :groups, :created_by, :now)
                """),
                {"id": meeting_id, "title": title, "agenda": agenda,
                 "scheduled_at": to_db(scheduled_at), "location": location,
                 "link": meeting_link, "groups": json.dumps(attendee_groups),
                 "created_by": created_by, "now": to_db(utcnow())},
            )
            if attendees:
                conn.execute(
                    text("INSERT INTO meeting_attendees (meeting_id, uid) VALUES (:mid, :uid)"),
                    [{"mid": meeting_id, "uid": uid} for uid in attendees],
                )
            return self._load(conn, meeting_id)

    def update_meeting(self, meeting_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        updates = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
        if "scheduled_at" in updates:
            updates["scheduled_at"] = to_db(updates["scheduled_at"])
        with self._engine.begin() as conn:
            if updates:
                assignments = ", ".join(f"{k} = :{k}" for k in updates)
                conn.execute(
                    text(f"UPDATE meetings SET {assignments} WHERE id = :id"),
                    {**updates, "id": meeting_id},
                )
            return self._load(conn, meeting_id)

    def delete_meeting(self, meeting_id: str) -> bool:
        with self._engine.begin() as conn:
            conn.execute(
                text("DELETE FROM meeting_attendees WHERE meeting_id = :id"), {"id": meeting_id},
            )
            result = conn.execute(
                text("DELETE FROM meetings WHERE id = :id"), {"id": meeting_id},
            )
        return result.rowcount > 0

    # ── Read ───────────────────────────────────────────────────────────

    def get_meeting(self, meeting_id: str) -> Optional[Dict[str, Any]]:
        with self._engine.connect() as conn:
            return self._load(conn, meeting_id)

    def list_meetings(self, attendee_uid: Optional[str] = None) -> List[Dict[str, Any]]:
        """All meetings, or only those ``attendee_uid`` attends, soonest first."""
        params: Dict[str, Any] = {}
        where = ""
        if attendee_uid:
            where = (" WHERE id IN (SELECT meeting_id FROM meeting_attendees "
                     "WHERE uid = :uid)")
            params["uid"] = attendee_uid
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(f"SELECT {MEETING_COLS} FROM meetings{where} ORDER BY scheduled_at ASC"),
                params,
            ).mappings().all()
            attendees: Dict[str, List[str]] = {}
            for mid, uid in conn.execute(
                text("SELECT meeting_id, uid FROM meeting_attendees ORDER BY uid"),
            ).fetchall():
                attendees.setdefault(str(mid), []).append(uid)
        return [_row_to_dict(r, attendees.get(str(r["id"]), [])) for r in rows]

    # ── Private ────────────────────────────────────────────────────────

    def _load(self, conn, meeting_id: str) -> Optional[Dict[str, Any]]:
        row = conn.execute(
            text(f"SELECT {MEETING_COLS} FROM meetings WHERE id = :id"), {"id": meeting_id},
        ).mappings().first()
        if not row:
            return None
        attendees = [
            r[0] for r in conn.execute(
                text("SELECT uid FROM meeting_attendees WHERE meeting_id = :id ORDER BY uid"),
                {"id": meeting_id},
            ).fetchall()
        ]
        return _row_to_dict(row, attendees)
