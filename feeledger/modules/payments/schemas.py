"""Pydantic schemas for Payments module."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import Field

from feeledger.shared.schemas.base import BaseSchema
from feeledger.modules.fees.schemas import StudentFeeResponse
from feeledger.modules.payments.models import PaymentMethod


class PaymentCollect(BaseSchema):
    """
    Schema for collecting a payment.

    Amount and method are validated by the collector so that callers get the
    ledger's own errors (InvalidAmountError, InvalidMethodError, MissingFieldError).
    """

    student_fee_id: int
    amount: Decimal
    payment_method: str
    transaction_id: str | None = Field(None, max_length=100)
    transaction_date: date | None = None
    reference_number: str | None = Field(None, max_length=100)
    bank_name: str | None = Field(None, max_length=200)
    branch_name: str | None = Field(None, max_length=200)
    remarks: str | None = None


class PaymentResponse(BaseSchema):
    """Schema for payment response."""

    id: int
    receipt_number: str
    student_fee_id: int
    student_id: int
    amount: Decimal
    payment_method: str
    transaction_id: str | None
    transaction_date: date | None
    reference_number: str | None
    bank_name: str | None
    branch_name: str | None
    paid_at: datetime
    remarks: str | None
    recorded_by: str | None
    created_at: datetime


class CollectionResponse(BaseSchema):
    """Created payment plus the account after the payment."""

    payment: PaymentResponse
    account: StudentFeeResponse


class PaymentFilters(BaseSchema):
    """Filters for listing payments."""

    student_id: int | None = None
    student_fee_id: int | None = None
    payment_method: PaymentMethod | None = None
    date_from: date | None = None
    date_to: date | None = None
    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=100)
