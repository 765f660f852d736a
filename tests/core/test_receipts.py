import re
from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.core.config import settings
from feeledger.core.documents import (
    SequentialReceiptIssuer,
    UuidReceiptIssuer,
    get_receipt_issuer,
)
from feeledger.modules.payments.models import Payment


def _payment(year: int = 2026) -> Payment:
    return Payment(paid_at=datetime(year, 7, 1, 10, 30, tzinfo=timezone.utc))


class TestSequentialReceiptIssuer:
    async def test_numbers_follow_payment_year(self, db_session: AsyncSession):
        issuer = SequentialReceiptIssuer(db_session)

        first = await issuer.issue(_payment(2026))
        second = await issuer.issue(_payment(2026))
        next_year = await issuer.issue(_payment(2027))

        assert first == "RCP-2026-000001"
        assert second == "RCP-2026-000002"
        assert next_year == "RCP-2027-000001"

    async def test_custom_prefix(self, db_session: AsyncSession):
        issuer = SequentialReceiptIssuer(db_session, prefix="FEE")
        assert await issuer.issue(_payment()) == "FEE-2026-000001"

    async def test_unstamped_payment_uses_current_year(self, db_session: AsyncSession):
        number = await SequentialReceiptIssuer(db_session).issue(Payment())
        assert number == f"RCP-{datetime.now(timezone.utc).year}-000001"


class TestUuidReceiptIssuer:
    async def test_format_and_uniqueness(self):
        issuer = UuidReceiptIssuer()
        numbers = {await issuer.issue(_payment()) for _ in range(200)}

        assert len(numbers) == 200
        for number in numbers:
            assert re.fullmatch(r"RCP-[0-9A-F]{12}", number)


class TestGetReceiptIssuer:
    def test_sequential_by_default(self, db_session: AsyncSession):
        assert isinstance(get_receipt_issuer(db_session), SequentialReceiptIssuer)

    def test_uuid_when_configured(self, db_session: AsyncSession, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(settings, "receipt_numbering", "uuid")
        assert isinstance(get_receipt_issuer(db_session), UuidReceiptIssuer)
