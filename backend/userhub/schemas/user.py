"""User Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - UserCreate.name: 1-100 chars, stripped, non-empty
    - email: local@domain.tld shape, lower-cased
    - UserUpdate requires at least one field

Design Decisions:
    - Pattern check over EmailStr: no email-validator dependency
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _clean_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("name cannot be empty or whitespace")
    return v


class UserCreate(BaseModel):
    """User creation payload."""
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(max_length=254, pattern=EMAIL_PATTERN)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _clean_name(v)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class UserUpdate(BaseModel):
    """Partial user update — only provided fields change."""
    name: str | None = Field(None, min_length=1, max_length=100)
    email: str | None = Field(None, max_length=254, pattern=EMAIL_PATTERN)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        return _clean_name(v) if v is not None else v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str | None) -> str | None:
        return v.lower() if v is not None else v

    @model_validator(mode="after")
    def require_one_field(self):
        if self.name is None and self.email is None:
            raise ValueError("update requires at least one of: name, email")
        return self


class UserResponse(BaseModel):
    """User response — public-facing user data."""
    model_config = {"from_attributes": True}

    id: UUID
    name: str
    email: str
    created_at: datetime
    updated_at: datetime
