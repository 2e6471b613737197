# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Request schemas for announcements."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from secons.models.domain import VALID_DOMAINS, VALID_ROLES


class AnnouncementCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=10000)
    target_roles: list[str] = Field(default_factory=list)
    target_domains: list[str] = Field(default_factory=list)
    pinned: bool = False

    @field_validator("title", "content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title and content are required")
        return v.strip()

    @field_validator("target_roles")
    @classmethod
    def known_roles(cls, v: list[str]) -> list[str]:
        v = [r.strip().lower() for r in v]
        unknown = [r for r in v if r not in VALID_ROLES]
        if unknown:
            raise ValueError(f"Unknown target roles: {unknown}")
        return sorted(set(v))

    @field_validator("target_domains")
    @classmethod
    def known_domains(cls, v: list[str]) -> list[str]:
        v = [d.strip().lower() for d in v]
        unknown = [d for d in v if d not in VALID_DOMAINS]
        if unknown:
            raise ValueError(f"Unknown target domains: {unknown}")
        return sorted(set(v))


class AnnouncementPatchRequest(BaseModel):
    """``mark_read`` for any reader, ``update`` (pin/unpin) for the GA."""
    action: str
    pinned: Optional[bool] = None
