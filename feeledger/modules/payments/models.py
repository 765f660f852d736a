"""Payment model."""

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
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from feeledger.core.database.base import Base, BigIntPK, MoneyAmount


class PaymentMethod(StrEnum):
    """Payment method options."""

    CASH = "CASH"
    CHEQUE = "CHEQUE"
    DEMAND_DRAFT = "DEMAND_DRAFT"
    BANK_TRANSFER = "BANK_TRANSFER"
    ONLINE = "ONLINE"
    UPI = "UPI"
    CARD = "CARD"
    NET_BANKING = "NET_BANKING"


class Payment(Base):
    """
    Payment collected against a student fee account.

    Immutable once written: corrections are not edits (see DESIGN.md).
    """

    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    receipt_number: Mapped[str] = mapped_column(
        String(50), nullable=False, unique=True, index=True
    )

    student_fee_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("student_fees.id"), nullable=False, index=True
    )
    student_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("students.id"), nullable=False, index=True
    )

    amount: Mapped[Decimal] = mapped_column(MoneyAmount, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    transaction_id: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )  # UPI/card/bank transaction ID
    transaction_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    reference_number: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )  # Cheque / DD number
    bank_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    branch_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    paid_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    recorded_by: Mapped[str | None] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    student_fee: Mapped["StudentFee"] = relationship("StudentFee", back_populates="payments")
    student: Mapped["Student"] = relationship("Student")


# Import for type hints
from feeledger.modules.students.models import Student  # noqa: E402
from feeledger.modules.fees.models import StudentFee  # noqa: E402
