# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Request schemas for fixtures, matches and the sports bulk importer."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from secons.core.timeutil import as_utc

MATCH_STATUS = "^(scheduled|live|completed|cancelled)$"
MATCH_FORMAT = "^(standard|heats|timed)$"
FIXTURE_FORMAT = "^(pool_knockout|round_robin|knockout|custom)$"


class MatchCreateRequest(BaseModel):
    team1_id: str = Field(..., min_length=1)
    team2_id: str = Field(..., min_length=1)
    sport_name: str = Field(..., min_length=1, max_length=64)
    event_id: Optional[str] = None
    fixture_id: Optional[str] = None
    score_team1: int = Field(default=0, ge=0)
    score_team2: int = Field(default=0, ge=0)
    status: str = Field(default="scheduled", pattern=MATCH_STATUS)
    format: str = Field(default="standard", pattern=MATCH_FORMAT)
    venue: Optional[str] = Field(default=None, max_length=200)
    round_name: Optional[str] = Field(default=None, max_length=64)
    scheduled_at: Optional[datetime] = None

    @field_validator("scheduled_at")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class MatchUpdateRequest(BaseModel):
    score_team1: Optional[int] = Field(default=None, ge=0)
    score_team2: Optional[int] = Field(default=None, ge=0)
    status: Optional[str] = Field(default=None, pattern=MATCH_STATUS)
    winner: Optional[str] = Field(default=None, description="Team id, or 'draw'")
    note: Optional[str] = Field(default=None, max_length=500)
    venue: Optional[str] = Field(default=None, max_length=200)
    round_name: Optional[str] = Field(default=None, max_length=64)
    scheduled_at: Optional[datetime] = None

    @field_validator("scheduled_at")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class FixtureRow(BaseModel):
    event_id: Optional[str] = None
    format: str = Field(default="knockout", pattern=FIXTURE_FORMAT)


class MatchRow(BaseModel):
    team1_name: str
    team2_name: str
    score_team1: int = Field(default=0, ge=0)
    score_team2: int = Field(default=0, ge=0)
    status: str = Field(default="scheduled", pattern=MATCH_STATUS)
    format: str = Field(default="standard", pattern=MATCH_FORMAT)
    sport_name: str = Field(default="Sports Activity", max_length=64)
    venue: str = Field(default="TBD", max_length=200)
    round_name: Optional[str] = Field(default=None, max_length=64)
    scheduled_at: Optional[datetime] = None

    @field_validator("scheduled_at")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class SportsBulkRequest(BaseModel):
    event_id: Optional[str] = None
    fixtures: List[FixtureRow] = Field(default_factory=list)
    matches: List[MatchRow] = Field(default_factory=list)
