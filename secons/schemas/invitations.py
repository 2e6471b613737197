# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Request schemas for invitations and access codes."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from secons.models.domain import VALID_DOMAINS, VALID_ROLES


class InvitationCreateRequest(BaseModel):
    role: str
    domain: Optional[str] = None
    name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)

    @field_validator("role")
    @classmethod
    def normalise_role(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in VALID_ROLES:
            raise ValueError(f"role must be one of {VALID_ROLES}")
        return v

    @field_validator("domain")
    @classmethod
    def normalise_domain(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        v = v.strip().lower()
        if v not in VALID_DOMAINS:
            raise ValueError(f"domain must be one of {VALID_DOMAINS}")
        return v

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v


class InvitationSendRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=16)
    email: Optional[str] = Field(default=None, max_length=255)


class InvitationRedeemRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=16)
    name: Optional[str] = Field(default=None, max_length=100)
