"""
Fee ledger rules.

Pure functions shared by fee assignment and payment collection. Nothing here
touches the database; callers persist the figures these functions return.

    final   = total - discount - scholarship    (never negative)
    balance = final - paid                      (never negative)
    status  = PAID     if final == 0 or paid >= final
              PENDING  if paid == 0
              PARTIAL  otherwise
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from feeledger.core.exceptions import ValidationError
from feeledger.shared.utils.money import ZERO, round_money
from feeledger.modules.fees.models import FeeStatus, ReductionType

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class ReductionRequest:
    """One discount or scholarship to apply: FIXED amount or PERCENTAGE of total."""

    value_type: ReductionType
    value: Decimal


@dataclass(frozen=True)
class ReductionResult:
    """Computed reduction amounts, in request order."""

    discount_amounts: list[Decimal]
    scholarship_amounts: list[Decimal]
    discount_amount: Decimal
    scholarship_amount: Decimal

    @property
    def total_reduction(self) -> Decimal:
        return self.discount_amount + self.scholarship_amount


@dataclass(frozen=True)
class AccountFigures:
    """Derived figures of a student fee account."""

    final_amount: Decimal
    balance_amount: Decimal
    status: FeeStatus


def reduction_amount(value_type: ReductionType | str, value: Decimal, total_amount: Decimal) -> Decimal:
    """Amount a single discount/scholarship takes off the total."""
    value = Decimal(str(value))
    if value < 0:
        raise ValidationError("Reduction value cannot be negative", field="value")

    if value_type == ReductionType.FIXED:
        return round_money(value)
    if value_type == ReductionType.PERCENTAGE:
        if value > HUNDRED:
            raise ValidationError("Percentage cannot exceed 100%", field="value")
        return round_money(total_amount * value / HUNDRED)
    raise ValidationError(f"Unknown reduction type: {value_type}", field="value_type")


def apply_reductions(
    total_amount: Decimal,
    discounts: Iterable[ReductionRequest] = (),
    scholarships: Iterable[ReductionRequest] = (),
    existing_discount: Decimal = ZERO,
    existing_scholarship: Decimal = ZERO,
) -> ReductionResult:
    """
    Compute discount and scholarship amounts against the gross total.

    Reductions are additive, so order does not matter; the joint sum
    (including reductions already on the account) may not exceed the total.
    """
    total_amount = round_money(total_amount)
    discount_amounts = [reduction_amount(d.value_type, d.value, total_amount) for d in discounts]
    scholarship_amounts = [
        reduction_amount(s.value_type, s.value, total_amount) for s in scholarships
    ]

    discount_amount = round_money(sum(discount_amounts, existing_discount))
    scholarship_amount = round_money(sum(scholarship_amounts, existing_scholarship))

    if discount_amount + scholarship_amount > total_amount:
        raise ValidationError(
            f"Discounts ({discount_amount}) and scholarships ({scholarship_amount}) "
            f"exceed total fee amount ({total_amount})",
            field="discounts",
        )

    return ReductionResult(
        discount_amounts=discount_amounts,
        scholarship_amounts=scholarship_amounts,
        discount_amount=discount_amount,
        scholarship_amount=scholarship_amount,
    )


def derive_status(final_amount: Decimal, paid_amount: Decimal) -> FeeStatus:
    """Stored status from what is owed and what has been paid."""
    if final_amount <= 0 or paid_amount >= final_amount:
        return FeeStatus.PAID
    if paid_amount <= 0:
        return FeeStatus.PENDING
    return FeeStatus.PARTIAL


def recompute(
    total_amount: Decimal,
    discount_amount: Decimal,
    scholarship_amount: Decimal,
    paid_amount: Decimal,
) -> AccountFigures:
    """Final amount, balance and status for the given inputs. Deterministic."""
    final_amount = max(ZERO, round_money(total_amount - discount_amount - scholarship_amount))
    balance_amount = max(ZERO, round_money(final_amount - paid_amount))
    return AccountFigures(
        final_amount=final_amount,
        balance_amount=balance_amount,
        status=derive_status(final_amount, round_money(paid_amount)),
    )


def display_status(status: FeeStatus | str, due_date: date | None, today: date | None = None) -> FeeStatus:
    """Status shown to users: unpaid accounts past their due date read as OVERDUE."""
    status = FeeStatus(status)
    if due_date is None or status == FeeStatus.PAID:
        return status
    today = today or date.today()
    if today > due_date:
        return FeeStatus.OVERDUE
    return status
