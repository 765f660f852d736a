from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from feeledger.core.database.base import Base


class NumberSequence(Base):
    """Last number handed out for one prefix in one year (e.g. RCP / 2026)."""

    __tablename__ = "document_sequences"
    __table_args__ = (
        UniqueConstraint("prefix", "year", name="uq_document_sequence_prefix_year"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    prefix: Mapped[str] = mapped_column(String(20), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    last_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def advance(self) -> str:
        """Take the next number. The caller must hold the row lock."""
        self.last_number += 1
        return f"{self.prefix}-{self.year}-{self.last_number:06d}"
