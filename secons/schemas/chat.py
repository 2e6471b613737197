# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Request schemas for chat threads and messages."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from secons.models.domain import VALID_DOMAINS


class ThreadCreateRequest(BaseModel):
    type: str = Field(..., pattern="^(workspace|domain|event|volunteer|custom)$")
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    domain: Optional[str] = None
    event_id: Optional[str] = None
    participant_uids: list[str] = Field(default_factory=list)

    @field_validator("domain")
    @classmethod
    def known_domain(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        v = v.strip().lower()
        if v not in VALID_DOMAINS:
            raise ValueError(f"domain must be one of {VALID_DOMAINS}")
        return v


class ThreadUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    is_archived: Optional[bool] = None
    add_participants: list[str] = Field(default_factory=list)
    remove_participants: list[str] = Field(default_factory=list)


class MessageCreateRequest(BaseModel):
    content: str = Field(default="", max_length=5000)
    reply_to: Optional[str] = None


class MessageUpdateRequest(BaseModel):
    content: Optional[str] = Field(default=None, max_length=5000)
