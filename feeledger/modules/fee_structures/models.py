"""FeeStructure and FeeComponent models."""

from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from feeledger.core.database.base import Base, BigIntPK, MoneyAmount
from feeledger.shared.utils.money import ZERO, round_money


class FeeType(StrEnum):
    """What a fee component is charged for."""

    TUITION = "TUITION"
    ADMISSION = "ADMISSION"
    EXAMINATION = "EXAMINATION"
    LIBRARY = "LIBRARY"
    LABORATORY = "LABORATORY"
    TRANSPORT = "TRANSPORT"
    HOSTEL = "HOSTEL"
    SPORTS = "SPORTS"
    UNIFORM = "UNIFORM"
    MISCELLANEOUS = "MISCELLANEOUS"


class FeeFrequency(StrEnum):
    """How often a fee component is charged."""

    ONE_TIME = "ONE_TIME"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    HALF_YEARLY = "HALF_YEARLY"
    ANNUAL = "ANNUAL"


class FeeStructure(Base):
    """
    Named bundle of fee components for an academic year (and optionally a unit).

    Locked as soon as the first student fee account references it; a locked
    structure can only be archived, never edited or deleted.
    """

    __tablename__ = "fee_structures"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    academic_year: Mapped[str] = mapped_column(
        String(20), nullable=False, index=True
    )  # e.g. "2025-2026"
    academic_unit: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )  # NULL = applies to all units

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_locked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    components: Mapped[list["FeeComponent"]] = relationship(
        "FeeComponent",
        back_populates="fee_structure",
        cascade="all, delete-orphan",
        order_by="FeeComponent.display_order",
    )

    @property
    def total_amount(self) -> Decimal:
        return round_money(sum((c.amount for c in self.components), ZERO))


class FeeComponent(Base):
    """Single fee line of a structure (tuition, transport, ...)."""

    __tablename__ = "fee_components"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    fee_structure_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("fee_structures.id", ondelete="CASCADE"), nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    fee_type: Mapped[str] = mapped_column(String(30), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    amount: Mapped[Decimal] = mapped_column(MoneyAmount, nullable=False)
    frequency: Mapped[str] = mapped_column(String(20), nullable=False)
    is_mandatory: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Late fee terms (informational, applied by the finance office)
    late_fee_applicable: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    late_fee_amount: Mapped[Decimal | None] = mapped_column(MoneyAmount, nullable=True)
    late_fee_percentage: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)

    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Relationships
    fee_structure: Mapped["FeeStructure"] = relationship(
        "FeeStructure", back_populates="components"
    )
