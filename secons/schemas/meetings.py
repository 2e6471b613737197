# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Request schemas for meetings."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from secons.core.timeutil import as_utc


class MeetingCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    scheduled_at: datetime
    agenda: Optional[str] = Field(default=None, max_length=5000)
    location: Optional[str] = Field(default=None, max_length=200)
    meeting_link: Optional[str] = Field(default=None, max_length=2000)
    attendee_groups: list[str] = Field(default_factory=list,
                                       description="Group tokens, e.g. 'all', 'jga_sports'")
    specific_attendee_ids: list[str] = Field(default_factory=list)

    @field_validator("scheduled_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class MeetingUpdateRequest(BaseModel):
    """Partial update model for PATCH /api/v1/meetings/{id}."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    agenda: Optional[str] = Field(default=None, max_length=5000)
    scheduled_at: Optional[datetime] = None
    location: Optional[str] = Field(default=None, max_length=200)
    meeting_link: Optional[str] = Field(default=None, max_length=2000)
    notes: Optional[str] = Field(default=None, max_length=10000)

    @field_validator("scheduled_at")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)
