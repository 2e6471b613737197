# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Access-code generation, pure computation, no I/O.
"""

import secrets

# Uppercase letters and digits without the look-alikes I, O, 0 and 1.
ACCESS_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ACCESS_CODE_LENGTH = 6


def generate_access_code(length: int = ACCESS_CODE_LENGTH) -> str:
    """Return a random code. Uniqueness is enforced by the invitations table."""
    return "".join(secrets.choice(ACCESS_CODE_ALPHABET) for _ in range(length))


def normalise_access_code(code: str | None) -> str:
    return (code or "").strip().upper()
