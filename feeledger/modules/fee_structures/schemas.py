"""Pydantic schemas for Fee Structures module."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import Field

from feeledger.shared.schemas.base import BaseSchema
from feeledger.modules.fee_structures.models import FeeFrequency, FeeType


class FeeComponentInput(BaseSchema):
    """Component as submitted by the administrator."""

    name: str = Field(..., max_length=200)
    fee_type: FeeType
    description: str | None = None
    amount: Decimal = Field(..., ge=0)
    frequency: FeeFrequency
    is_mandatory: bool = True
    due_date: date | None = None
    late_fee_applicable: bool = False
    late_fee_amount: Decimal | None = Field(None, ge=0)
    late_fee_percentage: Decimal | None = Field(None, ge=0, le=100)


class FeeStructureCreate(BaseSchema):
    """Schema for creating a fee structure."""

    name: str = Field(..., max_length=200)
    description: str | None = None
    academic_year: str = Field(..., max_length=20)
    academic_unit: str | None = Field(None, max_length=100)
    components: list[FeeComponentInput] = []


class FeeStructureUpdate(BaseSchema):
    """Schema for updating an unlocked fee structure. Components replace the full set."""

    name: str | None = Field(None, max_length=200)
    description: str | None = None
    academic_unit: str | None = Field(None, max_length=100)
    is_active: bool | None = None
    components: list[FeeComponentInput] | None = None


class FeeComponentResponse(BaseSchema):
    """Schema for fee component response."""

    id: int
    name: str
    fee_type: str
    description: str | None
    amount: Decimal
    frequency: str
    is_mandatory: bool
    due_date: date | None
    late_fee_applicable: bool
    late_fee_amount: Decimal | None
    late_fee_percentage: Decimal | None
    display_order: int


class FeeStructureResponse(BaseSchema):
    """Schema for fee structure response."""

    id: int
    name: str
    description: str | None
    academic_year: str
    academic_unit: str | None
    is_active: bool
    is_locked: bool
    total_amount: Decimal
    assigned_count: int = 0
    components: list[FeeComponentResponse]
    created_at: datetime
    updated_at: datetime


class FeeStructureFilters(BaseSchema):
    """Filters for listing fee structures."""

    academic_year: str | None = None
    academic_unit: str | None = None
    include_inactive: bool = False
    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=100)
