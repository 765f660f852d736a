"""Service for Student Fees module."""

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from feeledger.core.audit.service import AuditAction, AuditService
from feeledger.core.auth.models import Actor
from feeledger.core.exceptions import ConflictError, DuplicateError, NotFoundError, ValidationError
from feeledger.shared.utils.money import ZERO, round_money
from feeledger.modules.fee_structures.models import FeeStructure
from feeledger.modules.fee_structures.schemas import FeeComponentResponse
from feeledger.modules.fee_structures.service import FeeStructureService
from feeledger.modules.fees.ledger import ReductionRequest, apply_reductions, recompute
from feeledger.modules.fees.models import (
    FeeDiscount,
    FeeScholarship,
    FeeStatus,
    ReductionType,
    StudentFee,
)
from feeledger.modules.fees.schemas import (
    AccountLedger,
    DiscountInput,
    DiscountResponse,
    FeeAssign,
    LedgerPayment,
    LedgerStudent,
    LedgerSummary,
    ReductionsAdd,
    ScholarshipInput,
    ScholarshipResponse,
    StudentFeeFilters,
    StudentFeeResponse,
    StudentLedgerResponse,
)
from feeledger.modules.payments.locks import account_locks
from feeledger.modules.payments.models import Payment
from feeledger.modules.students.models import Student

logger = logging.getLogger(__name__)


def _requests(items: list[DiscountInput]) -> list[ReductionRequest]:
    return [ReductionRequest(value_type=ReductionType(i.value_type), value=i.value) for i in items]


class StudentFeeService:
    """Service for student fee accounts: assignment, reductions and ledger."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)
        self.structures = FeeStructureService(db)

    # --- Assignment ---

    async def assign_structure(self, data: FeeAssign, actor: Actor | None = None) -> StudentFee:
        """
        Create a student's fee account from a structure.

        The account, its discounts and scholarships, the structure lock and the
        audit entry are written in a single transaction.
        """
        student = await self._get_student(data.student_id)
        structure = await self.structures.get_structure(data.fee_structure_id, for_update=True)

        if not structure.is_active:
            raise ValidationError(
                f"Fee structure '{structure.name}' is archived", field="fee_structure_id"
            )

        existing = await self.db.execute(
            select(StudentFee.id).where(
                StudentFee.student_id == data.student_id,
                StudentFee.fee_structure_id == data.fee_structure_id,
            )
        )
        if existing.scalar_one_or_none():
            raise DuplicateError("StudentFee", "fee_structure_id", data.fee_structure_id)

        total_amount = structure.total_amount
        reductions = apply_reductions(
            total_amount, _requests(data.discounts), _requests(data.scholarships)
        )
        figures = recompute(
            total_amount, reductions.discount_amount, reductions.scholarship_amount, ZERO
        )

        account = StudentFee(
            student_id=student.id,
            fee_structure_id=structure.id,
            academic_year=structure.academic_year,
            total_amount=total_amount,
            discount_amount=reductions.discount_amount,
            scholarship_amount=reductions.scholarship_amount,
            final_amount=figures.final_amount,
            paid_amount=ZERO,
            balance_amount=figures.balance_amount,
            status=figures.status.value,
            due_date=data.due_date,
            assigned_by=actor.id if actor else None,
            discounts=[],
            scholarships=[],
        )
        self.db.add(account)
        await self.db.flush()

        self._add_reduction_rows(
            account, data.discounts, data.scholarships, reductions.discount_amounts,
            reductions.scholarship_amounts, actor,
        )
        await self.structures.lock_structure(structure, actor)

        await self.audit.log(
            action=AuditAction.ASSIGN_FEE,
            entity_type="StudentFee",
            entity_id=account.id,
            entity_identifier=student.admission_number,
            actor=actor,
            new_values={
                "student_id": student.id,
                "fee_structure_id": structure.id,
                "total_amount": str(total_amount),
                "discount_amount": str(reductions.discount_amount),
                "scholarship_amount": str(reductions.scholarship_amount),
                "final_amount": str(figures.final_amount),
            },
            comment=f"Fee structure assigned to student {student.full_name} ({student.admission_number})",
        )

        await self.db.commit()
        logger.info(
            "Fee structure %s assigned to student %s: final %s",
            structure.id,
            student.admission_number,
            figures.final_amount,
        )
        return await self.get_account(account.id)

    async def add_reductions(
        self, account_id: int, data: ReductionsAdd, actor: Actor | None = None
    ) -> StudentFee:
        """Add discounts/scholarships to an existing account and recompute it."""
        if not data.discounts and not data.scholarships:
            raise ValidationError("At least one discount or scholarship is required")

        async with account_locks.hold(account_id):
            account = await self.get_account(account_id, for_update=True)
            if account.is_paid:
                raise ConflictError("Cannot apply reductions to a fully paid fee account")

            reductions = apply_reductions(
                account.total_amount,
                _requests(data.discounts),
                _requests(data.scholarships),
                existing_discount=account.discount_amount,
                existing_scholarship=account.scholarship_amount,
            )
            figures = recompute(
                account.total_amount,
                reductions.discount_amount,
                reductions.scholarship_amount,
                account.paid_amount,
            )
            if figures.final_amount < account.paid_amount:
                raise ValidationError(
                    f"Reductions would bring the payable amount ({figures.final_amount}) "
                    f"below the amount already paid ({account.paid_amount})",
                    field="discounts",
                )

            old_values = {
                "discount_amount": str(account.discount_amount),
                "scholarship_amount": str(account.scholarship_amount),
                "final_amount": str(account.final_amount),
                "status": account.status,
            }
            self._add_reduction_rows(
                account, data.discounts, data.scholarships, reductions.discount_amounts,
                reductions.scholarship_amounts, actor,
            )
            account.discount_amount = reductions.discount_amount
            account.scholarship_amount = reductions.scholarship_amount
            self._apply_figures(account, figures)
            await self.db.flush()

            await self.audit.log(
                action=AuditAction.APPLY_REDUCTIONS,
                entity_type="StudentFee",
                entity_id=account.id,
                actor=actor,
                old_values=old_values,
                new_values={
                    "discount_amount": str(account.discount_amount),
                    "scholarship_amount": str(account.scholarship_amount),
                    "final_amount": str(account.final_amount),
                    "status": account.status,
                },
            )

            await self.db.commit()
            logger.info("Reductions applied to fee account %s: final %s", account.id, account.final_amount)
            return await self.get_account(account.id)

    # --- Recompute ---

    async def payments_total(self, account_id: int) -> Decimal:
        """Sum of all payments recorded against the account."""
        result = await self.db.execute(
            select(func.coalesce(func.sum(Payment.amount), 0)).where(
                Payment.student_fee_id == account_id
            )
        )
        return round_money(Decimal(str(result.scalar() or 0)))

    async def recompute_account(self, account: StudentFee) -> StudentFee:
        """
        Refresh paid/final/balance/status from the stored payments.

        Idempotent; does not commit.
        """
        paid_amount = await self.payments_total(account.id)
        figures = recompute(
            account.total_amount, account.discount_amount, account.scholarship_amount, paid_amount
        )
        account.paid_amount = paid_amount
        self._apply_figures(account, figures)
        await self.db.flush()
        return account

    # --- Queries ---

    async def get_account(self, account_id: int, for_update: bool = False) -> StudentFee:
        """Get student fee account by ID with its reductions loaded."""
        query = (
            select(StudentFee)
            .where(StudentFee.id == account_id)
            .options(
                selectinload(StudentFee.discounts),
                selectinload(StudentFee.scholarships),
            )
        )
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        account = result.scalar_one_or_none()
        if not account:
            raise NotFoundError("Student fee record", account_id)
        return account

    async def list_accounts(
        self, filters: StudentFeeFilters, today: date | None = None
    ) -> tuple[list[StudentFee], int]:
        """List fee accounts. OVERDUE filters unpaid accounts past their due date."""
        query = select(StudentFee)

        if filters.student_id:
            query = query.where(StudentFee.student_id == filters.student_id)
        if filters.fee_structure_id:
            query = query.where(StudentFee.fee_structure_id == filters.fee_structure_id)
        if filters.academic_year:
            query = query.where(StudentFee.academic_year == filters.academic_year)
        if filters.status == FeeStatus.OVERDUE:
            query = query.where(
                StudentFee.status.in_([FeeStatus.PENDING.value, FeeStatus.PARTIAL.value]),
                StudentFee.due_date.is_not(None),
                StudentFee.due_date < (today or date.today()),
            )
        elif filters.status:
            query = query.where(StudentFee.status == filters.status.value)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        query = query.order_by(StudentFee.created_at.desc(), StudentFee.id.desc())
        query = query.offset((filters.page - 1) * filters.limit).limit(filters.limit)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def get_student_accounts(self, student_id: int) -> list[StudentFee]:
        """All accounts of a student with structure, reductions and payments loaded."""
        result = await self.db.execute(
            select(StudentFee)
            .where(StudentFee.student_id == student_id)
            .options(
                selectinload(StudentFee.fee_structure).selectinload(FeeStructure.components),
                selectinload(StudentFee.discounts),
                selectinload(StudentFee.scholarships),
                selectinload(StudentFee.payments),
            )
            .order_by(StudentFee.created_at.desc(), StudentFee.id.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_fee_ledger(self, student_id: int, today: date | None = None) -> StudentLedgerResponse:
        """Read-only projection of a student's fee accounts, reductions and payments."""
        student = await self._get_student(student_id)
        accounts = await self.get_student_accounts(student_id)

        ledgers = [
            AccountLedger(
                account=StudentFeeResponse.from_account(account, today),
                fee_structure_name=account.fee_structure.name,
                components=[
                    FeeComponentResponse.model_validate(c) for c in account.fee_structure.components
                ],
                discounts=[DiscountResponse.model_validate(d) for d in account.discounts],
                scholarships=[ScholarshipResponse.model_validate(s) for s in account.scholarships],
                payments=[LedgerPayment.model_validate(p) for p in account.payments],
            )
            for account in accounts
        ]
        summary = LedgerSummary(
            total_fees=round_money(sum((a.final_amount for a in accounts), ZERO)),
            total_paid=round_money(sum((a.paid_amount for a in accounts), ZERO)),
            total_pending=round_money(sum((a.balance_amount for a in accounts), ZERO)),
            total_discount=round_money(sum((a.discount_amount for a in accounts), ZERO)),
            total_scholarship=round_money(sum((a.scholarship_amount for a in accounts), ZERO)),
        )
        return StudentLedgerResponse(
            student=LedgerStudent.model_validate(student),
            summary=summary,
            accounts=ledgers,
        )

    # --- Helpers ---

    def _add_reduction_rows(
        self,
        account: StudentFee,
        discounts: list[DiscountInput],
        scholarships: list[ScholarshipInput],
        discount_amounts: list[Decimal],
        scholarship_amounts: list[Decimal],
        actor: Actor | None,
    ) -> None:
        approved_by = actor.id if actor else None
        for item, amount in zip(discounts, discount_amounts):
            account.discounts.append(
                FeeDiscount(
                    name=item.name,
                    description=item.description,
                    value_type=item.value_type.value,
                    value=item.value,
                    amount=amount,
                    reason=item.reason,
                    approved_by=approved_by,
                )
            )
        for item, amount in zip(scholarships, scholarship_amounts):
            account.scholarships.append(
                FeeScholarship(
                    name=item.name,
                    description=item.description,
                    value_type=item.value_type.value,
                    value=item.value,
                    amount=amount,
                    reason=item.reason,
                    provider=item.provider,
                    approved_by=approved_by,
                )
            )

    @staticmethod
    def _apply_figures(account: StudentFee, figures) -> None:
        account.final_amount = figures.final_amount
        account.balance_amount = figures.balance_amount
        account.status = figures.status.value

    async def _get_student(self, student_id: int) -> Student:
        result = await self.db.execute(select(Student).where(Student.id == student_id))
        student = result.scalar_one_or_none()
        if not student:
            raise NotFoundError("Student", student_id)
        return student
