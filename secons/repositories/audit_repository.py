# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for the append-only audit trail."""
import json
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Engine

from secons.core.timeutil import to_db, to_iso, utcnow

AUDIT_COLS = "id, action, severity, actor_uid, target_type, target_id, details, created_at"


def _row_to_dict(row) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "action": row["action"],
        "severity": row["severity"],
        "actor_uid": row["actor_uid"],
        "target_type": row["target_type"],
        "target_id": row["target_id"],
        "details": json.loads(row["details"] or "{}"),
        "created_at": to_iso(row["created_at"]),
    }


class AuditRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    def record(self, action: str, actor_uid: Optional[str], target_type: Optional[str],
               target_id: Optional[str], details: Dict[str, Any],
               severity: str = "INFO") -> None:
        with self._engine.begin() as conn:
            conn.execute(
                text("""
                    INSERT INTO audit_logs
                        (action, severity, actor_uid, target_type, target_id, details, created_at)
                    VALUES
                        (:action, :severity, :actor, :target_type, :target_id, :details, :now)
                """),
                {"action": action, "severity": severity, "actor": actor_uid,
                 "target_type": target_type, "target_id": target_id,
                 "details": json.dumps(details, default=str), "now": to_db(utcnow())},
            )

    def list_entries(self, action: Optional[str] = None, actor_uid: Optional[str] = None,
                     target_id: Optional[str] = None, page: int = 1,
                     per_page: int = 50) -> Tuple[int, List[Dict[str, Any]]]:
        """Newest first. Insertion order breaks timestamp ties."""
        conditions: List[str] = []
        params: Dict[str, Any] = {}
        if action:
            conditions.append("action = :action")
            params["action"] = action
        if actor_uid:
            conditions.append("actor_uid = :actor")
            params["actor"] = actor_uid
        if target_id:
            conditions.append("target_id = :target_id")
            params["target_id"] = target_id
        where = (" WHERE " + " AND ".join(conditions)) if conditions else ""

        with self._engine.connect() as conn:
            total = conn.execute(text(f"SELECT COUNT(*) FROM audit_logs{where}"), params).scalar()
            params["limit"] = per_page
            params["offset"] = (page - 1) * per_page
            rows = conn.execute(
                text(f"SELECT {AUDIT_COLS} FROM audit_logs{where} "
                     "ORDER BY created_at DESC, id DESC LIMIT :limit OFFSET :offset"),
                params,
            ).mappings().all()
        return total or 0, [_row_to_dict(r) for r in rows]
