"""Schemas for fee reports API (staff)."""

from datetime import date
from decimal import Decimal

from feeledger.shared.schemas.base import BaseSchema


class CollectionSummaryTotals(BaseSchema):
    """Totals over all payments in the period."""

    total_collection: Decimal
    total_payments: int
    average_payment: Decimal


class CollectionBreakdownRow(BaseSchema):
    """Collected amount for one payment method, day or class."""

    label: str
    total_amount: Decimal
    payments_count: int


class CollectionSummaryResponse(BaseSchema):
    """Collection summary report response."""

    date_from: date | None
    date_to: date | None
    academic_year: str | None
    summary: CollectionSummaryTotals
    by_payment_method: list[CollectionBreakdownRow]
    by_date: list[CollectionBreakdownRow]
    by_class: list[CollectionBreakdownRow]


class DuesSummary(BaseSchema):
    """Totals over all unpaid accounts in the report."""

    total_dues: Decimal
    total_accounts: int
    overdue_count: int
    average_due: Decimal


class DuesClassRow(BaseSchema):
    """Outstanding balance of one class/section."""

    academic_unit: str
    total_dues: Decimal
    accounts_count: int
    overdue_count: int


class DuesDetailRow(BaseSchema):
    """One unpaid fee account."""

    student_fee_id: int
    admission_number: str
    student_name: str
    academic_unit: str
    fee_structure_name: str
    final_amount: Decimal
    paid_amount: Decimal
    balance_amount: Decimal
    due_date: date | None
    is_overdue: bool
    status: str


class DuesReportResponse(BaseSchema):
    """Dues report response."""

    as_at_date: date
    summary: DuesSummary
    by_class: list[DuesClassRow]
    details: list[DuesDetailRow]
