# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Request schemas for the session and user management endpoints."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from secons.models.domain import VALID_DOMAINS, VALID_ROLES


class RegisterGARequest(BaseModel):
    name: Optional[str] = Field(default=None, max_length=100)


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    photo_url: Optional[str] = Field(default=None, max_length=2000)
    onboarding_complete: Optional[bool] = None
    tour_complete: Optional[bool] = None


class UserAdminUpdateRequest(BaseModel):
    role: Optional[str] = None
    domain: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("role")
    @classmethod
    def known_role(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            v = v.strip().lower()
            if v not in VALID_ROLES:
                raise ValueError(f"role must be one of {VALID_ROLES}")
        return v

    @field_validator("domain")
    @classmethod
    def known_domain(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            v = v.strip().lower()
            if v not in VALID_DOMAINS:
                raise ValueError(f"domain must be one of {VALID_DOMAINS}")
        return v
