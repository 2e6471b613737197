# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for finance transactions (budget allocations and expenses)."""
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from secons.core.logging import get_logger
from secons.core.timeutil import to_db, to_iso, utcnow

logger = get_logger(__name__)

FINANCE_COLS = (
    "f.id, f.type, f.domain, f.event_id, f.amount, f.description, f.category, "
    "f.receipt_url, f.submitted_by, f.approved_by, f.approval_note, f.status, "
    "f.created_at, f.updated_at, s.name AS submitter_name, s.role AS submitter_role"
)

_FROM = "finance_transactions f LEFT JOIN users s ON s.uid = f.submitted_by"

UPDATABLE_FIELDS = (
    "description", "amount", "category", "receipt_url",
    "status", "approved_by", "approval_note",
)


def _row_to_dict(row) -> Dict[str, Any]:
    return {
        "id": str(row["id"]),
        "type": row["type"],
        "domain": row["domain"],
        "event_id": row["event_id"],
        "amount": float(row["amount"]),
        "description": row["description"],
        "category": row["category"],
        "receipt_url": row["receipt_url"],
        "submitted_by": row["submitted_by"],
        "submitter": {"name": row["submitter_name"], "role": row["submitter_role"]},
        "approved_by": row["approved_by"],
        "approval_note": row["approval_note"],
        "status": row["status"],
        "created_at": to_iso(row["created_at"]),
        "updated_at": to_iso(row["updated_at"]),
    }


class FinanceRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    # ── Write ──────────────────────────────────────────────────────────

    def create_transaction(self, entry: Dict[str, Any]) -> Dict[str, Any]:
        transaction_id = str(uuid.uuid4())
        now = to_db(utcnow())
        with self._engine.begin() as conn:
            conn.execute(
                text("""
                    INSERT INTO finance_transactions
                        (id, type, domain, event_id, amount, description, category,
                         receipt_url, submitted_by, approved_by, approval_note, status,
                         created_at, updated_at)
                    VALUES
                        (:id, :type, :domain, :event_id, :amount, :description, :category,
                         :receipt_url, :submitted_by, :approved_by, NULL, :status, :now, :now)
                """),
                {
                    "id": transaction_id,
                    "type": entry["type"],
                    "domain": entry["domain"],
                    "event_id": entry.get("event_id"),
                    "amount": entry["amount"],
                    "description": entry["description"],
                    "category": entry["category"],
                    "receipt_url": entry.get("receipt_url"),
                    "submitted_by": entry["submitted_by"],
                    "approved_by": entry.get("approved_by"),
                    "status": entry["status"],
                    "now": now,
                },
            )
            return self._load(conn, transaction_id)

    def update_transaction(self, transaction_id: str,
                           fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        updates = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
        with self._engine.begin() as conn:
            if updates:
                assignments = ", ".join(f"{k} = :{k}" for k in updates)
                conn.execute(
                    text(f"UPDATE finance_transactions SET {assignments}, updated_at = :now "
                         "WHERE id = :id"),
                    {**updates, "now": to_db(utcnow()), "id": transaction_id},
                )
            return self._load(conn, transaction_id)

    def delete_transaction(self, transaction_id: str) -> bool:
        with self._engine.begin() as conn:
            result = conn.execute(
                text("DELETE FROM finance_transactions WHERE id = :id"), {"id": transaction_id},
            )
        return result.rowcount > 0

    # ── Read ───────────────────────────────────────────────────────────

    def get_transaction(self, transaction_id: str) -> Optional[Dict[str, Any]]:
        with self._engine.connect() as conn:
            return self._load(conn, transaction_id)

    def list_transactions(self, type_: Optional[str] = None, status: Optional[str] = None,
                          domain: Optional[str] = None,
                          submitted_by: Optional[str] = None) -> List[Dict[str, Any]]:
        conditions: List[str] = []
        params: Dict[str, Any] = {}
        if type_:
            conditions.append("f.type = :type")
            params["type"] = type_
        if status:
            conditions.append("f.status = :status")
            params["status"] = status
        if domain:
            conditions.append("f.domain = :domain")
            params["domain"] = domain
        if submitted_by:
            conditions.append("f.submitted_by = :submitted_by")
            params["submitted_by"] = submitted_by
        where = (" WHERE " + " AND ".join(conditions)) if conditions else ""

        with self._engine.connect() as conn:
            rows = conn.execute(
                text(f"SELECT {FINANCE_COLS} FROM {_FROM}{where} ORDER BY f.created_at DESC"),
                params,
            ).mappings().all()
        return [_row_to_dict(r) for r in rows]

    def totals_by_domain(self, domain: Optional[str] = None) -> Dict[str, Dict[str, float]]:
        """
        Approved amounts grouped by domain: ``{domain: {"budget": x, "spent": y}}``.
        Pending and rejected rows count towards neither figure.
        """
        params: Dict[str, Any] = {"approved": "approved"}
        where = "status = :approved"
        if domain:
            where += " AND domain = :domain"
            params["domain"] = domain
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(f"SELECT domain, type, SUM(amount) FROM finance_transactions "
                     f"WHERE {where} GROUP BY domain, type"),
                params,
            ).fetchall()
        totals: Dict[str, Dict[str, float]] = {}
        for row_domain, row_type, total in rows:
            bucket = totals.setdefault(row_domain, {"budget": 0.0, "spent": 0.0})
            key = "budget" if row_type == "budget_allocation" else "spent"
            bucket[key] += float(total or 0)
        return totals

    # ── Private ────────────────────────────────────────────────────────

    def _load(self, conn, transaction_id: str) -> Optional[Dict[str, Any]]:
        row = conn.execute(
            text(f"SELECT {FINANCE_COLS} FROM {_FROM} WHERE f.id = :id"), {"id": transaction_id},
        ).mappings().first()
        return _row_to_dict(row) if row else None
