"""Service for fee reports (staff)."""

from collections import defaultdict
from datetime import date, datetime, time, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.shared.utils.money import ZERO, round_money
from feeledger.modules.fee_structures.models import FeeStructure
from feeledger.modules.fees.ledger import display_status
from feeledger.modules.fees.models import FeeStatus, StudentFee
from feeledger.modules.payments.models import Payment
from feeledger.modules.students.models import Student
from feeledger.modules.reports.schemas import (
    CollectionBreakdownRow,
    CollectionSummaryTotals,
    DuesClassRow,
    DuesDetailRow,
    DuesSummary,
)

UNASSIGNED_UNIT = "Unassigned"


def _average(total: Decimal, count: int) -> Decimal:
    return round_money(total / count) if count else ZERO


def _breakdown(groups: dict[str, list], by_total: bool = False) -> list[CollectionBreakdownRow]:
    rows = [
        CollectionBreakdownRow(label=label, total_amount=round_money(total), payments_count=count)
        for label, (total, count) in groups.items()
    ]
    if by_total:
        return sorted(rows, key=lambda r: (-r.total_amount, r.label))
    return sorted(rows, key=lambda r: r.label)


class ReportsService:
    """Build fee collection and dues reports."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def collection_summary(
        self,
        date_from: date | None = None,
        date_to: date | None = None,
        academic_year: str | None = None,
    ) -> dict:
        """
        Collection Summary: money collected in a period.

        Totals (amount, count, average) plus breakdowns by payment method
        (largest first), by day of payment and by the student's class.
        date_from/date_to: inclusive days on paid_at (UTC). academic_year
        filters on the fee account the payment was collected against.
        """
        query = (
            select(Payment.amount, Payment.payment_method, Payment.paid_at, Student.academic_unit)
            .join(StudentFee, Payment.student_fee_id == StudentFee.id)
            .join(Student, Payment.student_id == Student.id)
        )
        if date_from:
            query = query.where(
                Payment.paid_at >= datetime.combine(date_from, time.min, tzinfo=timezone.utc)
            )
        if date_to:
            query = query.where(
                Payment.paid_at <= datetime.combine(date_to, time.max, tzinfo=timezone.utc)
            )
        if academic_year:
            query = query.where(StudentFee.academic_year == academic_year)

        rows = (await self.db.execute(query)).all()

        total = ZERO
        by_method: dict[str, list] = defaultdict(lambda: [ZERO, 0])
        by_date: dict[str, list] = defaultdict(lambda: [ZERO, 0])
        by_class: dict[str, list] = defaultdict(lambda: [ZERO, 0])
        for amount, method, paid_at, academic_unit in rows:
            amount = round_money(amount)
            total += amount
            for groups, label in (
                (by_method, method),
                (by_date, paid_at.date().isoformat()),
                (by_class, academic_unit or UNASSIGNED_UNIT),
            ):
                groups[label][0] += amount
                groups[label][1] += 1

        return {
            "date_from": date_from,
            "date_to": date_to,
            "academic_year": academic_year,
            "summary": CollectionSummaryTotals(
                total_collection=round_money(total),
                total_payments=len(rows),
                average_payment=_average(total, len(rows)),
            ),
            "by_payment_method": _breakdown(by_method, by_total=True),
            "by_date": _breakdown(by_date),
            "by_class": _breakdown(by_class),
        }

    async def dues_report(
        self,
        academic_year: str | None = None,
        academic_unit: str | None = None,
        overdue_only: bool = False,
        as_at_date: date | None = None,
    ) -> dict:
        """
        Dues: fee accounts with an outstanding balance.

        Only PENDING/PARTIAL accounts with balance > 0. An account is overdue
        when its due date is before as_at_date (default today). Totals, a
        per-class breakdown and one detail row per account.
        """
        as_at = as_at_date or date.today()

        query = (
            select(StudentFee, Student, FeeStructure.name)
            .join(Student, StudentFee.student_id == Student.id)
            .join(FeeStructure, StudentFee.fee_structure_id == FeeStructure.id)
            .where(
                StudentFee.status.in_([FeeStatus.PENDING.value, FeeStatus.PARTIAL.value]),
                StudentFee.balance_amount > 0,
            )
            .order_by(Student.academic_unit, Student.admission_number, StudentFee.id)
        )
        if academic_year:
            query = query.where(StudentFee.academic_year == academic_year)
        if academic_unit:
            query = query.where(Student.academic_unit == academic_unit)
        if overdue_only:
            query = query.where(
                StudentFee.due_date.is_not(None), StudentFee.due_date < as_at
            )

        details: list[DuesDetailRow] = []
        by_class: dict[str, dict] = defaultdict(
            lambda: {"total_dues": ZERO, "accounts_count": 0, "overdue_count": 0}
        )
        for account, student, structure_name in (await self.db.execute(query)).all():
            unit = student.academic_unit or UNASSIGNED_UNIT
            is_overdue = account.due_date is not None and account.due_date < as_at
            balance = round_money(account.balance_amount)
            details.append(
                DuesDetailRow(
                    student_fee_id=account.id,
                    admission_number=student.admission_number,
                    student_name=student.full_name,
                    academic_unit=unit,
                    fee_structure_name=structure_name,
                    final_amount=round_money(account.final_amount),
                    paid_amount=round_money(account.paid_amount),
                    balance_amount=balance,
                    due_date=account.due_date,
                    is_overdue=is_overdue,
                    status=display_status(account.status, account.due_date, as_at).value,
                )
            )
            by_class[unit]["total_dues"] += balance
            by_class[unit]["accounts_count"] += 1
            by_class[unit]["overdue_count"] += int(is_overdue)

        total_dues = sum((d.balance_amount for d in details), ZERO)
        return {
            "as_at_date": as_at,
            "summary": DuesSummary(
                total_dues=round_money(total_dues),
                total_accounts=len(details),
                overdue_count=sum(1 for d in details if d.is_overdue),
                average_due=_average(total_dues, len(details)),
            ),
            "by_class": [
                DuesClassRow(academic_unit=unit, **values)
                for unit, values in sorted(by_class.items())
            ],
            "details": details,
        }
