# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Meeting attendee-group resolution.
Expands group tokens into the uids of active users with one query.
"""

from typing import Iterable, List, Optional

from secons.models.domain import AllUsers, parse_group_tokens
from secons.repositories.user_repository import UserRepository


def resolve_groups(user_repo: UserRepository, groups: Optional[Iterable[str]]) -> List[str]:
    """
    ``"all"`` selects every active user and makes other tokens irrelevant.
    Empty input, or input with no recognised token, returns [] without
    touching the database.
    """
    parsed = parse_group_tokens(groups)
    if not parsed:
        return []
    if any(isinstance(g, AllUsers) for g in parsed):
        parsed = [AllUsers()]
    return user_repo.find_uids_in_groups(parsed)
