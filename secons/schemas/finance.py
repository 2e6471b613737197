# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Request schemas for finance transactions."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from secons.models.domain import VALID_DOMAINS

VALID_TYPES = ("budget_allocation", "expense")
VALID_CATEGORIES = (
    "venue", "equipment", "printing", "food_beverages",
    "decorations", "transport", "prizes", "miscellaneous",
)
VALID_STATUSES = ("pending", "approved", "rejected")


class FinanceCreateRequest(BaseModel):
    type: str = Field(..., pattern="^(budget_allocation|expense)$")
    domain: str
    amount: float = Field(..., gt=0)
    description: str = Field(..., min_length=1, max_length=2000)
    category: str
    event_id: Optional[str] = Field(default=None, max_length=64)
    receipt_url: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("domain")
    @classmethod
    def known_domain(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in VALID_DOMAINS:
            raise ValueError(f"domain must be one of {VALID_DOMAINS}")
        return v

    @field_validator("category")
    @classmethod
    def known_category(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in VALID_CATEGORIES:
            raise ValueError(f"category must be one of {VALID_CATEGORIES}")
        return v


class FinanceUpdateRequest(BaseModel):
    status: Optional[str] = Field(default=None, pattern="^(pending|approved|rejected)$")
    approval_note: Optional[str] = Field(default=None, max_length=2000)
    description: Optional[str] = Field(default=None, min_length=1, max_length=2000)
    amount: Optional[float] = Field(default=None, gt=0)
    category: Optional[str] = None
    receipt_url: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("category")
    @classmethod
    def known_category(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            v = v.strip().lower()
            if v not in VALID_CATEGORIES:
                raise ValueError(f"category must be one of {VALID_CATEGORIES}")
        return v
