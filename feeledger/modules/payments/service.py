"""Service for Payments module: payment collection against fee accounts."""

import logging
from dataclasses import dataclass
from datetime import datetime, time, timezone
from decimal import Decimal, InvalidOperation

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.core.audit.service import AuditAction, AuditService
from feeledger.core.auth.models import Actor
from feeledger.core.config import settings
from feeledger.core.documents.receipts import ReceiptIssuer, get_receipt_issuer
from feeledger.core.exceptions import ConflictError, InvalidAmountError, NotFoundError
from feeledger.shared.utils.money import format_money, round_money
from feeledger.modules.fees.models import StudentFee
from feeledger.modules.fees.service import StudentFeeService
from feeledger.modules.payments.locks import AccountLocks, account_locks
from feeledger.modules.payments.models import Payment
from feeledger.modules.payments.schemas import PaymentCollect, PaymentFilters
from feeledger.modules.payments.tenders import Tender, build_tender
from feeledger.modules.students.models import Student

logger = logging.getLogger(__name__)


@dataclass
class CollectionResult:
    """Payment written by a collection and the account after it."""

    payment: Payment
    account: StudentFee


def validate_amount(amount: Decimal | int | float | str | None) -> Decimal:
    """Positive money amount with at most 2 decimal places, or InvalidAmountError."""
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountError("Valid payment amount is required", amount=amount) from None
    if not value.is_finite() or value <= 0:
        raise InvalidAmountError("Valid payment amount is required", amount=amount)
    if value != round_money(value):
        raise InvalidAmountError(
            "Payment amount cannot have more than 2 decimal places", amount=amount
        )
    return round_money(value)


class PaymentService:
    """
    Collects payments against student fee accounts.

    The balance check, the payment insert, the account recompute and the audit
    entry run in one transaction inside an exclusive per-account scope, so two
    concurrent collections against the same account cannot both pass the
    balance check.
    """

    def __init__(
        self,
        db: AsyncSession,
        receipt_issuer: ReceiptIssuer | None = None,
        locks: AccountLocks | None = None,
    ):
        self.db = db
        self.audit = AuditService(db)
        self.fees = StudentFeeService(db)
        self.receipt_issuer = receipt_issuer or get_receipt_issuer(db)
        self.locks = locks or account_locks

    async def collect(self, data: PaymentCollect, actor: Actor | None = None) -> CollectionResult:
        """
        Collect a payment.

        A rejection after the account row is locked rolls the session back,
        which expires every object the caller loaded through this session;
        refresh or re-read them before use.

        Raises:
            InvalidAmountError: amount <= 0 or above the current balance
            InvalidMethodError: unknown payment method
            MissingFieldError: transaction id / reference number missing for the method
            NotFoundError: fee account does not exist
            ConflictError: fee account is already fully paid
        """
        # Input checks first: nothing is read or written when these fail
        amount = validate_amount(data.amount)
        tender = build_tender(
            data.payment_method,
            transaction_id=data.transaction_id,
            reference_number=data.reference_number,
            bank_name=data.bank_name,
            branch_name=data.branch_name,
        )

        async with self.locks.hold(data.student_fee_id):
            try:
                return await self._collect_locked(data, amount, tender, actor)
            except Exception:
                await self.db.rollback()
                raise

    async def _collect_locked(
        self, data: PaymentCollect, amount: Decimal, tender: Tender, actor: Actor | None
    ) -> CollectionResult:
        account = await self.fees.get_account(data.student_fee_id, for_update=True)

        if account.is_paid:
            logger.warning("Payment rejected: fee account %s is already paid", account.id)
            raise ConflictError("Fee account is already fully paid")
        if amount > account.balance_amount:
            logger.warning(
                "Payment rejected: %s exceeds balance %s on fee account %s",
                amount,
                account.balance_amount,
                account.id,
            )
            raise InvalidAmountError(
                f"Payment amount ({amount}) cannot exceed balance amount ({account.balance_amount})",
                amount=amount,
                balance=account.balance_amount,
            )

        student = await self._get_student(account.student_id)

        payment = Payment(
            student_fee_id=account.id,
            student_id=account.student_id,
            amount=amount,
            payment_method=tender.method.value,
            transaction_id=tender.transaction_id,
            transaction_date=data.transaction_date,
            reference_number=tender.reference_number,
            bank_name=tender.bank_name,
            branch_name=tender.branch_name,
            paid_at=datetime.now(timezone.utc),
            remarks=data.remarks,
            recorded_by=actor.id if actor else None,
        )
        payment.receipt_number = await self.receipt_issuer.issue(payment)
        self.db.add(payment)
        await self.db.flush()

        previous_status = account.status
        await self.fees.recompute_account(account)

        await self.audit.log(
            action=AuditAction.COLLECT_PAYMENT,
            entity_type="Payment",
            entity_id=payment.id,
            entity_identifier=payment.receipt_number,
            actor=actor,
            old_values={"status": previous_status},
            new_values={
                "student_fee_id": account.id,
                "amount": str(amount),
                "payment_method": payment.payment_method,
                "receipt_number": payment.receipt_number,
                "balance_amount": str(account.balance_amount),
                "status": account.status,
            },
            comment=(
                f"Payment of {format_money(amount, settings.currency_symbol)} collected from "
                f"{student.full_name} ({student.admission_number}) via {payment.payment_method}"
            ),
        )

        await self.db.commit()
        logger.info(
            "Payment %s of %s collected on fee account %s (balance %s, %s)",
            payment.receipt_number,
            amount,
            account.id,
            account.balance_amount,
            account.status,
        )

        return CollectionResult(
            payment=await self.get_payment(payment.id),
            account=await self.fees.get_account(account.id),
        )

    # --- Queries ---

    async def get_payment(self, payment_id: int) -> Payment:
        """Get payment by ID."""
        result = await self.db.execute(select(Payment).where(Payment.id == payment_id))
        payment = result.scalar_one_or_none()
        if not payment:
            raise NotFoundError("Payment", payment_id)
        return payment

    async def get_payment_by_receipt(self, receipt_number: str) -> Payment:
        """Look up a payment by its receipt number."""
        result = await self.db.execute(
            select(Payment).where(Payment.receipt_number == receipt_number.strip())
        )
        payment = result.scalar_one_or_none()
        if not payment:
            raise NotFoundError(f"Payment with receipt number {receipt_number} not found")
        return payment

    async def list_payments(self, filters: PaymentFilters) -> tuple[list[Payment], int]:
        """List payments with filters."""
        query = select(Payment)

        if filters.student_id:
            query = query.where(Payment.student_id == filters.student_id)
        if filters.student_fee_id:
            query = query.where(Payment.student_fee_id == filters.student_fee_id)
        if filters.payment_method:
            query = query.where(Payment.payment_method == filters.payment_method.value)
        if filters.date_from:
            query = query.where(
                Payment.paid_at >= datetime.combine(filters.date_from, time.min, tzinfo=timezone.utc)
            )
        if filters.date_to:
            query = query.where(
                Payment.paid_at <= datetime.combine(filters.date_to, time.max, tzinfo=timezone.utc)
            )

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        query = query.order_by(Payment.paid_at.desc(), Payment.id.desc())
        query = query.offset((filters.page - 1) * filters.limit).limit(filters.limit)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def _get_student(self, student_id: int) -> Student:
        result = await self.db.execute(select(Student).where(Student.id == student_id))
        student = result.scalar_one_or_none()
        if not student:
            raise NotFoundError("Student", student_id)
        return student
