# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for teams and their points ledger."""
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from secons.core.logging import get_logger
from secons.core.timeutil import to_db, to_iso, utcnow

logger = get_logger(__name__)

TEAM_COLS = "id, name, group_name, semester, total_points, created_at"


def _row_to_dict(row) -> Dict[str, Any]:
    return {
        "id": str(row["id"]),
        "name": row["name"],
        "group": row["group_name"],
        "semester": row["semester"],
        "total_points": row["total_points"] or 0,
        "created_at": to_iso(row["created_at"]),
    }


def _entry_to_dict(row) -> Dict[str, Any]:
    return {
        "event_id": row["event_id"],
        "points": row["points"],
        "position": row["position"],
        "reason": row["reason"],
        "awarded_by": row["awarded_by"],
        "awarded_at": to_iso(row["awarded_at"]),
    }


class TeamRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    # ── Write ──────────────────────────────────────────────────────────

    def upsert_team(self, name: str, group: str, semester: int) -> None:
        """Insert a team keyed on (group, semester) or rename the existing one."""
        with self._engine.begin() as conn:
            updated = conn.execute(
                text("UPDATE teams SET name = :name WHERE group_name = :group_name AND semester = :semester"),
                {"name": name, "group_name": group, "semester": semester},
            )
            if updated.rowcount == 0:
                conn.execute(
                    text("""
                        INSERT INTO teams (id, name, group_name, semester, total_points, created_at)
                        VALUES (:id, :name, :group_name, :semester, 0, :now)
                    """),
                    {"id": str(uuid.uuid4()), "name": name, "group_name": group,
                     "semester": semester, "now": to_db(utcnow())},
                )

    def award_points(self, team_id: str, points: int, position: int, event_id: str,
                     reason: Optional[str], awarded_by: str) -> Dict[str, Any]:
        """
        Increment the running total and append the ledger entry in one
        transaction. Raises KeyError (rolling back) if the team is absent.
        """
        with self._engine.begin() as conn:
            updated = conn.execute(
                text("UPDATE teams SET total_points = total_points + :points WHERE id = :id"),
                {"points": points, "id": team_id},
            )
            if updated.rowcount == 0:
                raise KeyError(f"Team {team_id} not found")
            conn.execute(
                text("""
                    INSERT INTO team_point_entries
                        (team_id, event_id, points, position, reason, awarded_by, awarded_at)
                    VALUES
                        (:team_id, :event_id, :points, :position, :reason, :awarded_by, :now)
                """),
                {"team_id": team_id, "event_id": event_id, "points": points,
                 "position": position, "reason": reason, "awarded_by": awarded_by,
                 "now": to_db(utcnow())},
            )
            row = conn.execute(
                text(f"SELECT {TEAM_COLS} FROM teams WHERE id = :id"), {"id": team_id},
            ).mappings().first()
            team = _row_to_dict(row)
            team["event_points"] = self._entries(conn, team_id)
        return team

    # ── Read ───────────────────────────────────────────────────────────

    def get_team(self, team_id: str) -> Optional[Dict[str, Any]]:
        with self._engine.connect() as conn:
            row = conn.execute(
                text(f"SELECT {TEAM_COLS} FROM teams WHERE id = :id"), {"id": team_id},
            ).mappings().first()
            if not row:
                return None
            team = _row_to_dict(row)
            team["event_points"] = self._entries(conn, team_id)
        return team

    def list_teams(self) -> List[Dict[str, Any]]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(f"SELECT {TEAM_COLS} FROM teams ORDER BY semester, group_name"),
            ).mappings().all()
        return [_row_to_dict(r) for r in rows]

    def leaderboard(self, limit: int = 10) -> List[Dict[str, Any]]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(f"SELECT {TEAM_COLS} FROM teams "
                     "ORDER BY total_points DESC, semester ASC, group_name ASC LIMIT :limit"),
                {"limit": limit},
            ).mappings().all()
        return [_row_to_dict(r) for r in rows]

    def count_teams(self) -> int:
        with self._engine.connect() as conn:
            return conn.execute(text("SELECT COUNT(*) FROM teams")).scalar() or 0

    # ── Private ────────────────────────────────────────────────────────

    def _entries(self, conn, team_id: str) -> List[Dict[str, Any]]:
        rows = conn.execute(
            text("""
                SELECT event_id, points, position, reason, awarded_by, awarded_at
                FROM team_point_entries WHERE team_id = :id ORDER BY id
            """),
            {"id": team_id},
        ).mappings().all()
        return [_entry_to_dict(r) for r in rows]
