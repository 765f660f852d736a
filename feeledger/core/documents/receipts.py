"""Receipt number issuance for collected payments."""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.core.config import settings
from feeledger.core.documents.number_generator import DocumentNumberGenerator

if TYPE_CHECKING:
    from feeledger.modules.payments.models import Payment


class ReceiptIssuer(Protocol):
    """Produces a receipt number unique within the institution's payment history."""

    async def issue(self, payment: "Payment") -> str: ...


class SequentialReceiptIssuer:
    """RCP-2026-000001 style numbers from a locked per-year counter."""

    def __init__(self, session: AsyncSession, prefix: str | None = None):
        self.generator = DocumentNumberGenerator(session)
        self.prefix = prefix or settings.receipt_prefix

    async def issue(self, payment: "Payment") -> str:
        year = (payment.paid_at or datetime.now(timezone.utc)).year
        return await self.generator.generate(self.prefix, year)


class UuidReceiptIssuer:
    """RCP-9F3A0C71B2E4 style numbers, no shared counter."""

    def __init__(self, prefix: str | None = None):
        self.prefix = prefix or settings.receipt_prefix

    async def issue(self, payment: "Payment") -> str:
        return f"{self.prefix}-{uuid.uuid4().hex[:12].upper()}"


def get_receipt_issuer(session: AsyncSession) -> ReceiptIssuer:
    """Receipt issuer selected by RECEIPT_NUMBERING."""
    if settings.receipt_numbering == "uuid":
        return UuidReceiptIssuer()
    return SequentialReceiptIssuer(session)
