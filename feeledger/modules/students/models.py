"""Student model."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from feeledger.core.database.base import Base, BigIntPK


class Student(Base):
    """Student enrolled in the institution. Fee accounts hang off this row."""

    __tablename__ = "students"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    admission_number: Mapped[str] = mapped_column(
        String(50), nullable=False, unique=True, index=True
    )
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    academic_unit: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )  # class/section, e.g. "Grade 5 - A"
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    fee_accounts: Mapped[list["StudentFee"]] = relationship(
        "StudentFee", back_populates="student"
    )


from feeledger.modules.fees.models import StudentFee  # noqa: E402
