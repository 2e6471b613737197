# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Request schemas for the points ledger."""

from typing import Optional

from pydantic import BaseModel, Field


class AwardPointsRequest(BaseModel):
    points: int
    position: int = Field(..., ge=0)
    event_id: str = Field(..., min_length=1, max_length=64)
    reason: Optional[str] = Field(default=None, max_length=500)
