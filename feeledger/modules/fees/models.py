"""StudentFee account and discount/scholarship models."""

from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import (
    BigInteger,
    Date,
    DateTime,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from feeledger.core.database.base import Base, BigIntPK, MoneyAmount


class FeeStatus(StrEnum):
    """Status of a student fee account. OVERDUE is never stored."""

    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


class ReductionType(StrEnum):
    """How a discount or scholarship value is interpreted."""

    FIXED = "FIXED"
    PERCENTAGE = "PERCENTAGE"


class StudentFee(Base):
    """
    Per-student instance of a fee structure.

    Figures are maintained by the ledger rules:
        final_amount   = total_amount - discount_amount - scholarship_amount
        balance_amount = final_amount - paid_amount
    Only payment collection changes paid/balance/status; only reductions
    change the discount/scholarship figures.
    """

    __tablename__ = "student_fees"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    student_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("students.id"), nullable=False, index=True
    )
    fee_structure_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("fee_structures.id"), nullable=False, index=True
    )
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    total_amount: Mapped[Decimal] = mapped_column(MoneyAmount, nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(
        MoneyAmount, nullable=False, default=Decimal("0.00")
    )
    scholarship_amount: Mapped[Decimal] = mapped_column(
        MoneyAmount, nullable=False, default=Decimal("0.00")
    )
    final_amount: Mapped[Decimal] = mapped_column(MoneyAmount, nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(
        MoneyAmount, nullable=False, default=Decimal("0.00")
    )
    balance_amount: Mapped[Decimal] = mapped_column(MoneyAmount, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=FeeStatus.PENDING.value, index=True
    )
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    assigned_by: Mapped[str | None] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("student_id", "fee_structure_id", name="uq_student_fee_structure"),
    )

    # Relationships
    student: Mapped["Student"] = relationship("Student", back_populates="fee_accounts")
    fee_structure: Mapped["FeeStructure"] = relationship("FeeStructure")
    discounts: Mapped[list["FeeDiscount"]] = relationship(
        "FeeDiscount", back_populates="student_fee", order_by="FeeDiscount.id"
    )
    scholarships: Mapped[list["FeeScholarship"]] = relationship(
        "FeeScholarship", back_populates="student_fee", order_by="FeeScholarship.id"
    )
    payments: Mapped[list["Payment"]] = relationship(
        "Payment", back_populates="student_fee", order_by="Payment.paid_at.desc()"
    )

    @property
    def is_paid(self) -> bool:
        return self.status == FeeStatus.PAID.value


class FeeDiscount(Base):
    """Discount applied to a student fee account."""

    __tablename__ = "fee_discounts"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    student_fee_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("student_fees.id", ondelete="CASCADE"), nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    value_type: Mapped[str] = mapped_column(String(20), nullable=False)  # FIXED | PERCENTAGE
    value: Mapped[Decimal] = mapped_column(MoneyAmount, nullable=False)
    amount: Mapped[Decimal] = mapped_column(MoneyAmount, nullable=False)  # Actual amount deducted
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    approved_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    student_fee: Mapped["StudentFee"] = relationship("StudentFee", back_populates="discounts")


class FeeScholarship(Base):
    """Scholarship applied to a student fee account."""

    __tablename__ = "fee_scholarships"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    student_fee_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("student_fees.id", ondelete="CASCADE"), nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    value_type: Mapped[str] = mapped_column(String(20), nullable=False)
    value: Mapped[Decimal] = mapped_column(MoneyAmount, nullable=False)
    amount: Mapped[Decimal] = mapped_column(MoneyAmount, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    provider: Mapped[str | None] = mapped_column(String(200), nullable=True)

    approved_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    student_fee: Mapped["StudentFee"] = relationship("StudentFee", back_populates="scholarships")


# Import at the end to avoid circular imports
from feeledger.modules.students.models import Student  # noqa: E402
from feeledger.modules.fee_structures.models import FeeStructure  # noqa: E402
from feeledger.modules.payments.models import Payment  # noqa: E402
