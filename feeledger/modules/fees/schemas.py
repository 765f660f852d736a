"""Pydantic schemas for Student Fees module."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import Field

from feeledger.shared.schemas.base import BaseSchema
from feeledger.modules.fee_structures.schemas import FeeComponentResponse
from feeledger.modules.fees.ledger import display_status
from feeledger.modules.fees.models import FeeStatus, ReductionType, StudentFee


# --- Input Schemas ---


class DiscountInput(BaseSchema):
    """Discount requested at assignment time or later."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    value_type: ReductionType
    value: Decimal = Field(..., ge=0)
    reason: str | None = None


class ScholarshipInput(DiscountInput):
    """Scholarship requested at assignment time or later."""

    provider: str | None = Field(None, max_length=200)


class FeeAssign(BaseSchema):
    """Schema for assigning a fee structure to a student."""

    student_id: int
    fee_structure_id: int
    discounts: list[DiscountInput] = []
    scholarships: list[ScholarshipInput] = []
    due_date: date | None = None


class ReductionsAdd(BaseSchema):
    """Schema for adding discounts/scholarships to an existing account."""

    discounts: list[DiscountInput] = []
    scholarships: list[ScholarshipInput] = []


class StudentFeeFilters(BaseSchema):
    """Filters for listing student fee accounts."""

    student_id: int | None = None
    fee_structure_id: int | None = None
    academic_year: str | None = None
    status: FeeStatus | None = None
    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=100)


# --- Response Schemas ---


class DiscountResponse(BaseSchema):
    id: int
    name: str
    description: str | None
    value_type: str
    value: Decimal
    amount: Decimal
    reason: str | None
    created_at: datetime


class ScholarshipResponse(DiscountResponse):
    provider: str | None


class StudentFeeResponse(BaseSchema):
    """Schema for student fee account response."""

    id: int
    student_id: int
    fee_structure_id: int
    academic_year: str
    total_amount: Decimal
    discount_amount: Decimal
    scholarship_amount: Decimal
    final_amount: Decimal
    paid_amount: Decimal
    balance_amount: Decimal
    status: str
    display_status: str | None = None
    due_date: date | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_account(cls, account: StudentFee, today: date | None = None) -> "StudentFeeResponse":
        response = cls.model_validate(account)
        response.display_status = display_status(account.status, account.due_date, today).value
        return response


class LedgerPayment(BaseSchema):
    """Payment line of a ledger."""

    id: int
    receipt_number: str
    amount: Decimal
    payment_method: str
    transaction_id: str | None
    reference_number: str | None
    paid_at: datetime
    remarks: str | None


class AccountLedger(BaseSchema):
    """One fee account with everything that produced its figures."""

    account: StudentFeeResponse
    fee_structure_name: str
    components: list[FeeComponentResponse]
    discounts: list[DiscountResponse]
    scholarships: list[ScholarshipResponse]
    payments: list[LedgerPayment]


class LedgerSummary(BaseSchema):
    total_fees: Decimal
    total_paid: Decimal
    total_pending: Decimal
    total_discount: Decimal
    total_scholarship: Decimal


class LedgerStudent(BaseSchema):
    id: int
    admission_number: str
    full_name: str
    academic_unit: str | None


class StudentLedgerResponse(BaseSchema):
    """Read-only fee ledger of a student."""

    student: LedgerStudent
    summary: LedgerSummary
    accounts: list[AccountLedger]
