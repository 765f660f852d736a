from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.core.documents.models import NumberSequence


class DocumentNumberGenerator:
    """
    Hands out PREFIX-YYYY-NNNNNN numbers from a counter row per (prefix, year).

    The counter row is read with SELECT ... FOR UPDATE, so numbers taken in
    concurrent transactions never repeat; a number taken in a transaction that
    rolls back is reused by the next caller.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def generate(self, prefix: str, year: int) -> str:
        sequence = await self._locked_sequence(prefix, year)
        number = sequence.advance()
        await self.session.flush()
        return number

    async def _locked_sequence(self, prefix: str, year: int) -> NumberSequence:
        stmt = (
            select(NumberSequence)
            .where(NumberSequence.prefix == prefix, NumberSequence.year == year)
            .with_for_update()
        )
        sequence = (await self.session.execute(stmt)).scalar_one_or_none()
        if sequence is not None:
            return sequence

        # First number of the year for this prefix
        self.session.add(NumberSequence(prefix=prefix, year=year, last_number=0))
        await self.session.flush()
        return (await self.session.execute(stmt)).scalar_one()
