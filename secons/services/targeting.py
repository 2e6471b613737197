# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Audience targeting, pure computation, no side effects.
"""

from typing import Iterable, Optional


def is_targeted(
    user_role: str,
    user_domain: Optional[str],
    target_roles: Iterable[str],
    target_domains: Iterable[str],
) -> bool:
    """
    Decide whether a user receives a broadcast.

    An empty set on either dimension leaves that dimension unconstrained.
    When both are set the user must match both (role AND domain).
    """
    roles = set(target_roles or ())
    domains = set(target_domains or ())

    if not roles and not domains:
        return True

    role_match = not roles or user_role in roles
    domain_match = not domains or (user_domain is not None and user_domain in domains)
    return role_match and domain_match
