# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for sports fixtures, matches and their score history."""
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from secons.core.logging import get_logger
from secons.core.timeutil import to_db, to_iso, utcnow

logger = get_logger(__name__)

MATCH_COLS = (
    "m.id, m.fixture_id, m.event_id, m.team1_id, m.team2_id, m.score_team1, "
    "m.score_team2, m.winner_id, m.status, m.format, m.sport_name, m.venue, "
    "m.round_name, m.scheduled_at, m.points_awarded, m.created_at, m.updated_at, "
    "t1.name AS team1_name, t2.name AS team2_name"
)

_FROM = (
    "matches m LEFT JOIN teams t1 ON t1.id = m.team1_id "
    "LEFT JOIN teams t2 ON t2.id = m.team2_id"
)

UPDATABLE_FIELDS = (
    "score_team1", "score_team2", "winner_id", "status", "venue",
    "round_name", "scheduled_at",
)

_INSERT_MATCH = text("""
    INSERT INTO matches
        (id, fixture_id, event_id, team1_id, team2_id, score_team1, score_team2,
         winner_id, status, format, sport_name, venue, round_name, scheduled_at,
         points_awarded, created_at, updated_at)
    VALUES
        (:id, :fixture_id, :event_id, :team1_id, :team2_id, :score_team1, :score_team2,
         NULL, :status, :format, :sport_name, :venue, :round_name, :scheduled_at,
         :awarded, :now, :now)
""")

_INSERT_SCORE = text("""
    INSERT INTO match_score_entries
        (match_id, score_team1, score_team2, entered_by, reason, entered_at)
    VALUES
        (:match_id, :score_team1, :score_team2, :entered_by, :reason, :now)
""")


def _row_to_dict(row) -> Dict[str, Any]:
    return {
        "id": str(row["id"]),
        "fixture_id": row["fixture_id"],
        "event_id": row["event_id"],
        "team1": {"id": row["team1_id"], "name": row["team1_name"]},
        "team2": {"id": row["team2_id"], "name": row["team2_name"]},
        "score_team1": row["score_team1"],
        "score_team2": row["score_team2"],
        "winner_id": row["winner_id"],
        "status": row["status"],
        "format": row["format"],
        "sport_name": row["sport_name"],
        "venue": row["venue"],
        "round_name": row["round_name"],
        "scheduled_at": to_iso(row["scheduled_at"]),
        "points_awarded": bool(row["points_awarded"]),
        "created_at": to_iso(row["created_at"]),
        "updated_at": to_iso(row["updated_at"]),
    }


def _fixture_to_dict(row) -> Dict[str, Any]:
    return {
        "id": str(row["id"]),
        "event_id": row["event_id"],
        "format": row["format"],
        "status": row["status"],
        "created_by": row["created_by"],
        "created_at": to_iso(row["created_at"]),
    }


def _match_params(entry: Dict[str, Any], now: str) -> Dict[str, Any]:
    return {
        "id": str(uuid.uuid4()),
        "fixture_id": entry.get("fixture_id"),
        "event_id": entry["event_id"],
        "team1_id": entry["team1_id"],
        "team2_id": entry["team2_id"],
        "score_team1": entry.get("score_team1") or 0,
        "score_team2": entry.get("score_team2") or 0,
        "status": entry.get("status") or "scheduled",
        "format": entry.get("format") or "standard",
        "sport_name": entry["sport_name"],
        "venue": entry.get("venue"),
        "round_name": entry.get("round_name"),
        "scheduled_at": to_db(entry.get("scheduled_at")),
        "awarded": False,
        "now": now,
    }


class MatchRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    # ── Fixtures ───────────────────────────────────────────────────────

    def create_fixture(self, event_id: str, format_: str, created_by: str,
                       status: str = "active") -> Dict[str, Any]:
        fixture_id = str(uuid.uuid4())
        with self._engine.begin() as conn:
            conn.execute(
                text("INSERT INTO fixtures (id, event_id, format, status, created_by, created_at) "
                     "VALUES (:id, :event_id, :format, :status, :created_by, :now)"),
                {"id": fixture_id, "event_id": event_id, "format": format_, "status": status,
                 "created_by": created_by, "now": to_db(utcnow())},
            )
            row = conn.execute(
                text("SELECT id, event_id, format, status, created_by, created_at "
                     "FROM fixtures WHERE id = :id"),
                {"id": fixture_id},
            ).mappings().first()
        return _fixture_to_dict(row)

    def get_fixture(self, fixture_id: str) -> Optional[Dict[str, Any]]:
        with self._engine.connect() as conn:
            row = conn.execute(
                text("SELECT id, event_id, format, status, created_by, created_at "
                     "FROM fixtures WHERE id = :id"),
                {"id": fixture_id},
            ).mappings().first()
        return _fixture_to_dict(row) if row else None

    # ── Matches: write ─────────────────────────────────────────────────

    def create_match(self, entry: Dict[str, Any], entered_by: str,
                     reason: str) -> Dict[str, Any]:
        """Insert the match with its opening score-history entry."""
        now = to_db(utcnow())
        params = _match_params(entry, now)
        with self._engine.begin() as conn:
            conn.execute(_INSERT_MATCH, params)
            conn.execute(_INSERT_SCORE, {
                "match_id": params["id"], "score_team1": params["score_team1"],
                "score_team2": params["score_team2"], "entered_by": entered_by,
                "reason": reason, "now": now,
            })
            return self._load(conn, params["id"])

    def create_matches(self, entries: List[Dict[str, Any]]) -> int:
        if not entries:
            return 0
        now = to_db(utcnow())
        with self._engine.begin() as conn:
            conn.execute(_INSERT_MATCH, [_match_params(e, now) for e in entries])
        return len(entries)

    def update_match(self, match_id: str, fields: Dict[str, Any],
                     entered_by: Optional[str] = None,
                     reason: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """
        Apply ``fields``; when ``entered_by`` is given, append the resulting
        score to the history in the same transaction.
        """
        updates = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
        if "scheduled_at" in updates:
            updates["scheduled_at"] = to_db(updates["scheduled_at"])
        now = to_db(utcnow())
        with self._engine.begin() as conn:
            if updates:
                assignments = ", ".join(f"{k} = :{k}" for k in updates)
                conn.execute(
                    text(f"UPDATE matches SET {assignments}, updated_at = :now WHERE id = :id"),
                    {**updates, "now": now, "id": match_id},
                )
            match = self._load(conn, match_id)
            if match is not None and entered_by:
                conn.execute(_INSERT_SCORE, {
                    "match_id": match_id, "score_team1": match["score_team1"],
                    "score_team2": match["score_team2"], "entered_by": entered_by,
                    "reason": reason, "now": now,
                })
        return match

    def claim_points(self, match_id: str) -> bool:
        """Flip ``points_awarded`` once. False if it was already set."""
        with self._engine.begin() as conn:
            result = conn.execute(
                text("UPDATE matches SET points_awarded = :awarded "
                     "WHERE id = :id AND points_awarded = :pending"),
                {"awarded": True, "pending": False, "id": match_id},
            )
        return result.rowcount > 0

    def delete_match(self, match_id: str) -> bool:
        with self._engine.begin() as conn:
            conn.execute(
                text("DELETE FROM match_score_entries WHERE match_id = :id"), {"id": match_id},
            )
            result = conn.execute(text("DELETE FROM matches WHERE id = :id"), {"id": match_id})
        return result.rowcount > 0

    # ── Matches: read ──────────────────────────────────────────────────

    def get_match(self, match_id: str) -> Optional[Dict[str, Any]]:
        with self._engine.connect() as conn:
            match = self._load(conn, match_id)
            if match is None:
                return None
            rows = conn.execute(
                text("SELECT score_team1, score_team2, entered_by, reason, entered_at "
                     "FROM match_score_entries WHERE match_id = :id ORDER BY id"),
                {"id": match_id},
            ).mappings().all()
        match["score_history"] = [
            {"score_team1": r["score_team1"], "score_team2": r["score_team2"],
             "entered_by": r["entered_by"], "reason": r["reason"],
             "entered_at": to_iso(r["entered_at"])}
            for r in rows
        ]
        return match

    def list_matches(self, status: Optional[str] = None, sport: Optional[str] = None,
                     limit: int = 20) -> List[Dict[str, Any]]:
        """Most recently touched first. ``sport`` is a case-insensitive substring."""
        conditions: List[str] = []
        params: Dict[str, Any] = {"limit": limit}
        if status:
            conditions.append("m.status = :status")
            params["status"] = status
        if sport:
            conditions.append("LOWER(m.sport_name) LIKE :sport")
            params["sport"] = f"%{sport.strip().lower()}%"
        where = (" WHERE " + " AND ".join(conditions)) if conditions else ""
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(f"SELECT {MATCH_COLS} FROM {_FROM}{where} "
                     "ORDER BY m.updated_at DESC LIMIT :limit"),
                params,
            ).mappings().all()
        return [_row_to_dict(r) for r in rows]

    def has_live_match(self, event_id: str, exclude_id: Optional[str] = None) -> bool:
        with self._engine.connect() as conn:
            row = conn.execute(
                text("SELECT 1 FROM matches WHERE event_id = :event_id "
                     "AND status = :live AND id <> :exclude"),
                {"event_id": event_id, "live": "live", "exclude": exclude_id or ""},
            ).first()
        return row is not None

    # ── Private ────────────────────────────────────────────────────────

    def _load(self, conn, match_id: str) -> Optional[Dict[str, Any]]:
        row = conn.execute(
            text(f"SELECT {MATCH_COLS} FROM {_FROM} WHERE m.id = :id"), {"id": match_id},
        ).mappings().first()
        return _row_to_dict(row) if row else None
