# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for invitations (access codes)."""
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Engine

from secons.core.logging import get_logger
from secons.core.timeutil import to_db, to_iso, utcnow

logger = get_logger(__name__)

INVITATION_COLS = (
    "id, code, email, name, role, domain, invited_by, used, used_by, "
    "expires_at, last_emailed_at, created_at"
)


def _row_to_dict(row) -> Dict[str, Any]:
    return {
        "id": str(row["id"]),
        "code": row["code"],
        "email": row["email"],
        "name": row["name"],
        "role": row["role"],
        "domain": row["domain"],
        "invited_by": row["invited_by"],
        "used": bool(row["used"]),
        "used_by": row["used_by"],
        "expires_at": to_iso(row["expires_at"]),
        "last_emailed_at": to_iso(row["last_emailed_at"]),
        "created_at": to_iso(row["created_at"]),
    }


class InvitationRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    # ── Write ──────────────────────────────────────────────────────────

    def create_invitation(self, code: str, role: str, domain: Optional[str],
                          name: Optional[str], email: Optional[str], invited_by: str,
                          expires_at: datetime) -> Dict[str, Any]:
        """Insert a new code. IntegrityError propagates on a duplicate code."""
        invitation_id = str(uuid.uuid4())
        with self._engine.begin() as conn:
            conn.execute(
                text("""
                    INSERT INTO invitations
                        (id, code, email, name, role, domain, invited_by, used, used_by,
                         expires_at, last_emailed_at, created_at)
                    VALUES
                        (:id, :code, :email, :name, :role, :domain, :invited_by, :used, NULL,
                         :expires_at, NULL, :now)
                """),
                {"id": invitation_id, "code": code, "email": email, "name": name,
                 "role": role, "domain": domain, "invited_by": invited_by, "used": False,
                 "expires_at": to_db(expires_at), "now": to_db(utcnow())},
            )
            row = conn.execute(
                text(f"SELECT {INVITATION_COLS} FROM invitations WHERE id = :id"),
                {"id": invitation_id},
            ).mappings().first()
        return _row_to_dict(row)

    def mark_used(self, invitation_id: str, used_by: str) -> bool:
        """Flip ``used`` once. False if another redemption got there first."""
        with self._engine.begin() as conn:
            result = conn.execute(
                text("UPDATE invitations SET used = :used, used_by = :used_by "
                     "WHERE id = :id AND used = :unused"),
                {"used": True, "unused": False, "used_by": used_by, "id": invitation_id},
            )
        return result.rowcount > 0

    def release(self, invitation_id: str, used_by: str) -> None:
        """Undo a claim made by ``used_by`` whose profile could not be created."""
        with self._engine.begin() as conn:
            conn.execute(
                text("UPDATE invitations SET used = :unused, used_by = NULL "
                     "WHERE id = :id AND used_by = :used_by"),
                {"unused": False, "id": invitation_id, "used_by": used_by},
            )

    def record_email(self, invitation_id: str, email: str) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                text("UPDATE invitations SET email = :email, last_emailed_at = :now WHERE id = :id"),
                {"email": email, "now": to_db(utcnow()), "id": invitation_id},
            )

    # ── Read ───────────────────────────────────────────────────────────

    def get_by_code(self, code: str) -> Optional[Dict[str, Any]]:
        with self._engine.connect() as conn:
            row = conn.execute(
                text(f"SELECT {INVITATION_COLS} FROM invitations WHERE code = :code"),
                {"code": code},
            ).mappings().first()
        return _row_to_dict(row) if row else None

    def find_pending_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        with self._engine.connect() as conn:
            row = conn.execute(
                text(f"SELECT {INVITATION_COLS} FROM invitations "
                     "WHERE email = :email AND used = :used AND expires_at > :now"),
                {"email": email, "used": False, "now": to_db(utcnow())},
            ).mappings().first()
        return _row_to_dict(row) if row else None

    def list_invitations(self, status: Optional[str] = None, invited_by: Optional[str] = None,
                         page: int = 1, per_page: int = 20) -> Tuple[int, List[Dict[str, Any]]]:
        conditions: List[str] = []
        params: Dict[str, Any] = {}
        now = to_db(utcnow())
        if status == "used":
            conditions.append("used = :used")
            params["used"] = True
        elif status == "pending":
            conditions.append("used = :used AND expires_at > :now")
            params.update(used=False, now=now)
        elif status == "expired":
            conditions.append("used = :used AND expires_at <= :now")
            params.update(used=False, now=now)
        if invited_by:
            conditions.append("invited_by = :invited_by")
            params["invited_by"] = invited_by
        where = (" WHERE " + " AND ".join(conditions)) if conditions else ""

        with self._engine.connect() as conn:
            total = conn.execute(text(f"SELECT COUNT(*) FROM invitations{where}"), params).scalar()
            params["limit"] = per_page
            params["offset"] = (page - 1) * per_page
            rows = conn.execute(
                text(f"SELECT {INVITATION_COLS} FROM invitations{where} "
                     "ORDER BY created_at DESC LIMIT :limit OFFSET :offset"),
                params,
            ).mappings().all()
        return total or 0, [_row_to_dict(r) for r in rows]
