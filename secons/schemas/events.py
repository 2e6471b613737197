# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Request schemas for the event catalogue."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from secons.core.timeutil import as_utc
from secons.models.domain import VALID_DOMAINS

STATUS_PATTERN = "^(draft|published|ongoing|completed|cancelled)$"


def _known_category(v: Optional[str]) -> Optional[str]:
    if v is not None:
        v = v.strip().lower()
        if v not in VALID_DOMAINS:
            raise ValueError(f"category must be one of {VALID_DOMAINS}")
    return v


class EventCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    category: str
    description: str = Field(..., min_length=1, max_length=10000)
    rules: Optional[str] = Field(default=None, max_length=10000)
    eligibility: Optional[str] = Field(default=None, max_length=5000)
    venue: str = Field(..., min_length=1, max_length=200)
    start_at: datetime
    end_at: datetime
    flier_url: Optional[str] = Field(default=None, max_length=2000)
    registration_link: Optional[str] = Field(default=None, max_length=2000)
    status: str = Field(default="draft", pattern=STATUS_PATTERN)
    jga_domain: str = Field(..., min_length=1, max_length=64)

    @field_validator("category")
    @classmethod
    def known_category(cls, v: str) -> str:
        return _known_category(v)

    @field_validator("start_at", "end_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class EventUpdateRequest(BaseModel):
    """Partial update model for PATCH /api/v1/events/{id}."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    category: Optional[str] = None
    description: Optional[str] = Field(default=None, min_length=1, max_length=10000)
    rules: Optional[str] = Field(default=None, max_length=10000)
    eligibility: Optional[str] = Field(default=None, max_length=5000)
    venue: Optional[str] = Field(default=None, min_length=1, max_length=200)
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    flier_url: Optional[str] = Field(default=None, max_length=2000)
    registration_link: Optional[str] = Field(default=None, max_length=2000)
    status: Optional[str] = Field(default=None, pattern=STATUS_PATTERN)
    cancellation_reason: Optional[str] = Field(default=None, max_length=2000)
    jga_domain: Optional[str] = Field(default=None, min_length=1, max_length=64)

    @field_validator("category")
    @classmethod
    def known_category(cls, v: Optional[str]) -> Optional[str]:
        return _known_category(v)

    @field_validator("start_at", "end_at")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class EventBulkRequest(BaseModel):
    """Rows are validated one by one so a bad row does not sink the upload."""
    events: List[Dict[str, Any]] = Field(..., min_length=1)


class CategoryCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
