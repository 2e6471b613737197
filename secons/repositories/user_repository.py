# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for user profiles."""
import uuid
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import bindparam, text
from sqlalchemy.engine import Engine

from secons.core.logging import get_logger
from secons.core.timeutil import to_db, to_iso, utcnow
from secons.models.domain import AllUsers, GroupToken, RoleDomain, RoleOnly

logger = get_logger(__name__)

USER_COLS = (
    "id, uid, name, email, role, domain, photo_url, is_active, "
    "onboarding_complete, tour_complete, created_at, updated_at"
)

UPDATABLE_FIELDS = (
    "name", "role", "domain", "photo_url", "is_active",
    "onboarding_complete", "tour_complete",
)


def _row_to_dict(row) -> Dict[str, Any]:
    return {
        "id": str(row["id"]),
        "uid": row["uid"],
        "name": row["name"],
        "email": row["email"],
        "role": row["role"],
        "domain": row["domain"],
        "photo_url": row["photo_url"],
        "is_active": bool(row["is_active"]),
        "onboarding_complete": bool(row["onboarding_complete"]),
        "tour_complete": bool(row["tour_complete"]),
        "created_at": to_iso(row["created_at"]),
        "updated_at": to_iso(row["updated_at"]),
    }


class UserRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    # ── Write ──────────────────────────────────────────────────────────

    def create_user(self, uid: str, name: str, email: str, role: str,
                    domain: Optional[str]) -> Dict[str, Any]:
        user_id = str(uuid.uuid4())
        now = to_db(utcnow())
        with self._engine.begin() as conn:
            conn.execute(
                text("""
                    INSERT INTO users
                        (id, uid, name, email, role, domain, photo_url, is_active,
                         onboarding_complete, tour_complete, created_at, updated_at)
                    VALUES
                        (:id, :uid, :name, :email, :role, :domain, NULL, :active,
                         :onboarding, :tour, :now, :now)
                """),
                {"id": user_id, "uid": uid, "name": name, "email": email.lower(),
                 "role": role, "domain": domain, "active": True,
                 "onboarding": False, "tour": False, "now": now},
            )
            row = conn.execute(
                text(f"SELECT {USER_COLS} FROM users WHERE id = :id"), {"id": user_id},
            ).mappings().first()
        return _row_to_dict(row)

    def update_user(self, user_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        updates = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
        with self._engine.begin() as conn:
            if updates:
                assignments = ", ".join(f"{k} = :{k}" for k in updates)
                conn.execute(
                    text(f"UPDATE users SET {assignments}, updated_at = :now WHERE id = :id"),
                    {**updates, "now": to_db(utcnow()), "id": user_id},
                )
            row = conn.execute(
                text(f"SELECT {USER_COLS} FROM users WHERE id = :id"), {"id": user_id},
            ).mappings().first()
        return _row_to_dict(row) if row else None

    # ── Read ───────────────────────────────────────────────────────────

    def get_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self._fetch_one("id = :v", user_id)

    def get_by_uid(self, uid: str) -> Optional[Dict[str, Any]]:
        return self._fetch_one("uid = :v", uid)

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return self._fetch_one("email = :v", email.strip().lower())

    def has_active_ga(self) -> bool:
        with self._engine.connect() as conn:
            row = conn.execute(
                text("SELECT 1 FROM users WHERE role = 'ga' AND is_active = :active"),
                {"active": True},
            ).first()
        return row is not None

    def list_users(self, role: Optional[str] = None, domain: Optional[str] = None,
                   search: Optional[str] = None, page: int = 1,
                   per_page: int = 20) -> Tuple[int, List[Dict[str, Any]]]:
        conditions: List[str] = []
        params: Dict[str, Any] = {}
        if role:
            conditions.append("role = :role")
            params["role"] = role
        if domain:
            conditions.append("domain = :domain")
            params["domain"] = domain
        if search:
            conditions.append("(LOWER(name) LIKE :search OR LOWER(email) LIKE :search)")
            params["search"] = f"%{search.strip().lower()}%"
        where = (" WHERE " + " AND ".join(conditions)) if conditions else ""

        with self._engine.connect() as conn:
            total = conn.execute(text(f"SELECT COUNT(*) FROM users{where}"), params).scalar()
            params["limit"] = per_page
            params["offset"] = (page - 1) * per_page
            rows = conn.execute(
                text(f"SELECT {USER_COLS} FROM users{where} "
                     "ORDER BY role, name LIMIT :limit OFFSET :offset"),
                params,
            ).mappings().all()
        return total or 0, [_row_to_dict(r) for r in rows]

    def count_by_role(self) -> Dict[str, int]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                text("SELECT role, COUNT(*) FROM users WHERE is_active = :active GROUP BY role"),
                {"active": True},
            ).fetchall()
        return {r[0]: r[1] for r in rows}

    def find_active_uids(self, roles: Iterable[str] = (), domains: Iterable[str] = (),
                         exclude_uid: Optional[str] = None) -> List[str]:
        """Active users matching a role/domain audience; empty filters are unconstrained."""
        roles, domains = list(roles or ()), list(domains or ())
        conditions = ["is_active = :active"]
        params: Dict[str, Any] = {"active": True}
        expanding = []
        if roles:
            conditions.append("role IN :roles")
            params["roles"] = roles
            expanding.append(bindparam("roles", expanding=True))
        if domains:
            conditions.append("domain IN :domains")
            params["domains"] = domains
            expanding.append(bindparam("domains", expanding=True))
        if exclude_uid:
            conditions.append("uid <> :exclude_uid")
            params["exclude_uid"] = exclude_uid

        stmt = text(f"SELECT uid FROM users WHERE {' AND '.join(conditions)} ORDER BY uid")
        if expanding:
            stmt = stmt.bindparams(*expanding)
        with self._engine.connect() as conn:
            return [r[0] for r in conn.execute(stmt, params).fetchall()]

    def find_uids_in_groups(self, groups: List[GroupToken]) -> List[str]:
        """Single query over the disjunction of the given attendee groups."""
        params: Dict[str, Any] = {"active": True}
        if any(isinstance(g, AllUsers) for g in groups):
            where = "is_active = :active"
        else:
            clauses: List[str] = []
            for i, group in enumerate(groups):
                if isinstance(group, RoleOnly):
                    clauses.append(f"(role = :role_{i})")
                    params[f"role_{i}"] = group.role
                elif isinstance(group, RoleDomain):
                    clauses.append(f"(role = :role_{i} AND domain = :domain_{i})")
                    params[f"role_{i}"] = group.role
                    params[f"domain_{i}"] = group.domain
            if not clauses:
                return []
            where = f"is_active = :active AND ({' OR '.join(clauses)})"

        with self._engine.connect() as conn:
            rows = conn.execute(
                text(f"SELECT uid FROM users WHERE {where} ORDER BY uid"), params,
            ).fetchall()
        return [r[0] for r in rows]

    def list_by_uids(self, uids: Iterable[str]) -> List[Dict[str, Any]]:
        uids = list(uids or ())
        if not uids:
            return []
        stmt = text(f"SELECT {USER_COLS} FROM users WHERE uid IN :uids ORDER BY name").bindparams(
            bindparam("uids", expanding=True),
        )
        with self._engine.connect() as conn:
            rows = conn.execute(stmt, {"uids": uids}).mappings().all()
        return [_row_to_dict(r) for r in rows]

    def verify_connection(self):
        with self._engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    # ── Private ────────────────────────────────────────────────────────

    def _fetch_one(self, condition: str, value: Any) -> Optional[Dict[str, Any]]:
        with self._engine.connect() as conn:
            row = conn.execute(
                text(f"SELECT {USER_COLS} FROM users WHERE {condition}"), {"v": value},
            ).mappings().first()
        return _row_to_dict(row) if row else None
