# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for the event catalogue and its categories."""
import uuid
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import bindparam, text
from sqlalchemy.engine import Engine

from secons.core.logging import get_logger
from secons.core.timeutil import to_db, to_iso, utcnow

logger = get_logger(__name__)

EVENT_COLS = (
    "id, title, category, description, rules, eligibility, venue, start_at, end_at, "
    "flier_url, registration_link, status, cancellation_reason, jga_domain, "
    "participant_count, created_by, created_at, updated_at"
)

UPDATABLE_FIELDS = (
    "title", "category", "description", "rules", "eligibility", "venue",
    "start_at", "end_at", "flier_url", "registration_link", "status",
    "cancellation_reason", "jga_domain",
)

_INSERT = text("""
    INSERT INTO events
        (id, title, category, description, rules, eligibility, venue, start_at, end_at,
         flier_url, registration_link, status, cancellation_reason, jga_domain,
         participant_count, created_by, created_at, updated_at)
    VALUES
        (:id, :title, :category, :description, :rules, :eligibility, :venue, :start_at,
         :end_at, :flier_url, :registration_link, :status, NULL, :jga_domain,
         0, :created_by, :now, :now)
""")


def _row_to_dict(row) -> Dict[str, Any]:
    return {
        "id": str(row["id"]),
        "title": row["title"],
        "category": row["category"],
        "description": row["description"],
        "rules": row["rules"],
        "eligibility": row["eligibility"],
        "venue": row["venue"],
        "start_at": to_iso(row["start_at"]),
        "end_at": to_iso(row["end_at"]),
        "flier_url": row["flier_url"],
        "registration_link": row["registration_link"],
        "status": row["status"],
        "cancellation_reason": row["cancellation_reason"],
        "jga_domain": row["jga_domain"],
        "participant_count": row["participant_count"] or 0,
        "created_by": row["created_by"],
        "created_at": to_iso(row["created_at"]),
        "updated_at": to_iso(row["updated_at"]),
    }


def _category_to_dict(row) -> Dict[str, Any]:
    return {
        "slug": row["slug"],
        "name": row["name"],
        "is_default": bool(row["is_default"]),
    }


def _insert_params(entry: Dict[str, Any], created_by: str, now: str) -> Dict[str, Any]:
    return {
        "id": str(uuid.uuid4()),
        "title": entry["title"],
        "category": entry["category"],
        "description": entry["description"],
        "rules": entry.get("rules"),
        "eligibility": entry.get("eligibility"),
        "venue": entry["venue"],
        "start_at": to_db(entry["start_at"]),
        "end_at": to_db(entry["end_at"]),
        "flier_url": entry.get("flier_url"),
        "registration_link": entry.get("registration_link"),
        "status": entry.get("status") or "draft",
        "jga_domain": entry["jga_domain"],
        "created_by": created_by,
        "now": now,
    }


class EventRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    # ── Write ──────────────────────────────────────────────────────────

    def create_event(self, entry: Dict[str, Any], created_by: str) -> Dict[str, Any]:
        params = _insert_params(entry, created_by, to_db(utcnow()))
        with self._engine.begin() as conn:
            conn.execute(_INSERT, params)
            return self._load(conn, params["id"])

    def create_many(self, entries: List[Dict[str, Any]], created_by: str) -> int:
        """Insert every entry in one transaction."""
        if not entries:
            return 0
        now = to_db(utcnow())
        with self._engine.begin() as conn:
            conn.execute(_INSERT, [_insert_params(e, created_by, now) for e in entries])
        return len(entries)

    def update_event(self, event_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        updates = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
        for key in ("start_at", "end_at"):
            if key in updates:
                updates[key] = to_db(updates[key])
        with self._engine.begin() as conn:
            if updates:
                assignments = ", ".join(f"{k} = :{k}" for k in updates)
                conn.execute(
                    text(f"UPDATE events SET {assignments}, updated_at = :now WHERE id = :id"),
                    {**updates, "now": to_db(utcnow()), "id": event_id},
                )
            return self._load(conn, event_id)

    def delete_event(self, event_id: str) -> bool:
        """Remove the event together with its fixtures, matches and score history."""
        with self._engine.begin() as conn:
            conn.execute(
                text("DELETE FROM match_score_entries WHERE match_id IN "
                     "(SELECT id FROM matches WHERE event_id = :id)"),
                {"id": event_id},
            )
            conn.execute(text("DELETE FROM matches WHERE event_id = :id"), {"id": event_id})
            conn.execute(text("DELETE FROM fixtures WHERE event_id = :id"), {"id": event_id})
            result = conn.execute(text("DELETE FROM events WHERE id = :id"), {"id": event_id})
        return result.rowcount > 0

    # ── Read ───────────────────────────────────────────────────────────

    def get_event(self, event_id: str) -> Optional[Dict[str, Any]]:
        with self._engine.connect() as conn:
            return self._load(conn, event_id)

    def find_by_title(self, title: str, category: str) -> Optional[Dict[str, Any]]:
        with self._engine.connect() as conn:
            row = conn.execute(
                text(f"SELECT {EVENT_COLS} FROM events "
                     "WHERE LOWER(title) = :title AND category = :category "
                     "ORDER BY created_at LIMIT 1"),
                {"title": title.strip().lower(), "category": category},
            ).mappings().first()
        return _row_to_dict(row) if row else None

    def list_events(self, statuses: Iterable[str] = (), category: Optional[str] = None,
                    domain: Optional[str] = None, page: int = 1,
                    per_page: int = 20) -> Tuple[int, List[Dict[str, Any]]]:
        """Newest start first. Empty ``statuses`` means every status."""
        statuses = list(statuses or ())
        conditions: List[str] = []
        params: Dict[str, Any] = {}
        if statuses:
            conditions.append("status IN :statuses")
            params["statuses"] = statuses
        if category:
            conditions.append("category = :category")
            params["category"] = category
        if domain:
            conditions.append("jga_domain = :domain")
            params["domain"] = domain
        where = (" WHERE " + " AND ".join(conditions)) if conditions else ""

        count_stmt = text(f"SELECT COUNT(*) FROM events{where}")
        list_stmt = text(f"SELECT {EVENT_COLS} FROM events{where} "
                         "ORDER BY start_at DESC LIMIT :limit OFFSET :offset")
        if statuses:
            count_stmt = count_stmt.bindparams(bindparam("statuses", expanding=True))
            list_stmt = list_stmt.bindparams(bindparam("statuses", expanding=True))

        with self._engine.connect() as conn:
            total = conn.execute(count_stmt, params).scalar()
            params["limit"] = per_page
            params["offset"] = (page - 1) * per_page
            rows = conn.execute(list_stmt, params).mappings().all()
        return total or 0, [_row_to_dict(r) for r in rows]

    def list_active_titles(self) -> List[Dict[str, Any]]:
        """Title, category and domain of every event that is not cancelled."""
        with self._engine.connect() as conn:
            rows = conn.execute(
                text("SELECT title, category, jga_domain FROM events "
                     "WHERE status <> :cancelled ORDER BY jga_domain, title"),
                {"cancelled": "cancelled"},
            ).mappings().all()
        return [dict(r) for r in rows]

    # ── Categories ─────────────────────────────────────────────────────

    def ensure_categories(self, defaults: Iterable[Tuple[str, str]]) -> None:
        """Insert any missing default (slug, name) pairs."""
        with self._engine.begin() as conn:
            existing = {r[0] for r in conn.execute(text("SELECT slug FROM event_categories"))}
            missing = [
                {"slug": slug, "name": name, "is_default": True, "now": to_db(utcnow())}
                for slug, name in defaults if slug not in existing
            ]
            if missing:
                conn.execute(
                    text("INSERT INTO event_categories (slug, name, is_default, created_by, created_at) "
                         "VALUES (:slug, :name, :is_default, NULL, :now)"),
                    missing,
                )

    def list_categories(self) -> List[Dict[str, Any]]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                text("SELECT slug, name, is_default FROM event_categories "
                     "ORDER BY is_default DESC, name ASC"),
            ).mappings().all()
        return [_category_to_dict(r) for r in rows]

    def get_category(self, slug: str) -> Optional[Dict[str, Any]]:
        with self._engine.connect() as conn:
            row = conn.execute(
                text("SELECT slug, name, is_default FROM event_categories WHERE slug = :slug"),
                {"slug": slug},
            ).mappings().first()
        return _category_to_dict(row) if row else None

    def create_category(self, slug: str, name: str, created_by: str) -> Dict[str, Any]:
        """Raises IntegrityError when the slug or name is taken."""
        with self._engine.begin() as conn:
            conn.execute(
                text("INSERT INTO event_categories (slug, name, is_default, created_by, created_at) "
                     "VALUES (:slug, :name, :is_default, :created_by, :now)"),
                {"slug": slug, "name": name, "is_default": False,
                 "created_by": created_by, "now": to_db(utcnow())},
            )
        return {"slug": slug, "name": name, "is_default": False}

    def delete_category(self, slug: str) -> bool:
        with self._engine.begin() as conn:
            result = conn.execute(
                text("DELETE FROM event_categories WHERE slug = :slug"), {"slug": slug},
            )
        return result.rowcount > 0

    # ── Private ────────────────────────────────────────────────────────

    def _load(self, conn, event_id: str) -> Optional[Dict[str, Any]]:
        row = conn.execute(
            text(f"SELECT {EVENT_COLS} FROM events WHERE id = :id"), {"id": event_id},
        ).mappings().first()
        return _row_to_dict(row) if row else None
