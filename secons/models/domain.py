# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models, pure data structures, NO FastAPI dependency.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class Role(str, Enum):
    GA = "ga"
    JGA = "jga"
    ANIMATOR = "animator"
    VOLUNTEER = "volunteer"
    STUDENT = "student"


class Domain(str, Enum):
    SPORTS = "sports"
    LITERARY = "literary"
    PERFORMING_CREATIVE_ARTS = "performing_creative_arts"
    CLUB = "club"
    MISCELLANEOUS = "miscellaneous"


VALID_ROLES: tuple[str, ...] = tuple(r.value for r in Role)
VALID_DOMAINS: tuple[str, ...] = tuple(d.value for d in Domain)
ADMIN_ROLES: frozenset[str] = frozenset({Role.GA.value, Role.JGA.value})
# Roles scoped to exactly one domain
DOMAIN_ROLES: frozenset[str] = frozenset({Role.JGA.value, Role.ANIMATOR.value, Role.VOLUNTEER.value})
INVITABLE_ROLES: tuple[str, ...] = ("jga", "animator", "volunteer", "student")

# Lower number = higher authority
ROLE_HIERARCHY: dict[str, int] = {
    Role.GA.value: 1,
    Role.JGA.value: 2,
    Role.ANIMATOR.value: 3,
    Role.VOLUNTEER.value: 4,
    Role.STUDENT.value: 5,
}


def has_authority(acting_role: str, target_role: str) -> bool:
    """True iff ``acting_role`` strictly outranks ``target_role``."""
    return ROLE_HIERARCHY[acting_role] < ROLE_HIERARCHY[target_role]


# ── Meeting attendee groups ──
# Tokens arrive as strings ("all", "jga_all", "animator_sports", ...) and are
# parsed once into one of the three shapes below.

GROUP_ROLES: tuple[str, ...] = ("jga", "animator", "volunteer")


@dataclass(frozen=True)
class AllUsers:
    pass


@dataclass(frozen=True)
class RoleOnly:
    role: str


@dataclass(frozen=True)
class RoleDomain:
    role: str
    domain: str


GroupToken = Union[AllUsers, RoleOnly, RoleDomain]


def parse_group_token(token: str) -> Optional[GroupToken]:
    """Parse one attendee-group token. Unknown tokens return None."""
    token = token.strip().lower()
    if token == "all":
        return AllUsers()
    role, sep, rest = token.partition("_")
    if not sep or role not in GROUP_ROLES:
        return None
    if rest == "all":
        return RoleOnly(role)
    if rest in VALID_DOMAINS:
        return RoleDomain(role, rest)
    return None


def parse_group_tokens(tokens) -> list[GroupToken]:
    parsed: list[GroupToken] = []
    for token in tokens or ():
        group = parse_group_token(token)
        if group is not None and group not in parsed:
            parsed.append(group)
    return parsed
