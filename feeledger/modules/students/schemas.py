"""Schemas for Students module."""

from datetime import datetime

from pydantic import Field

from feeledger.shared.schemas.base import BaseSchema


class StudentCreate(BaseSchema):
    """Schema for registering a student."""

    admission_number: str = Field(..., min_length=1, max_length=50)
    full_name: str = Field(..., min_length=1, max_length=200)
    academic_unit: str | None = Field(None, max_length=100)


class StudentResponse(BaseSchema):
    """Schema for student response."""

    id: int
    admission_number: str
    full_name: str
    academic_unit: str | None
    is_active: bool
    created_at: datetime


class StudentFilters(BaseSchema):
    """Filters for listing students."""

    search: str | None = None
    academic_unit: str | None = None
    include_inactive: bool = False
    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=100)
