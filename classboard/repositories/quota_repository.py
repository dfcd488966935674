"""
Quota repository for daily submission counters.
"""
from datetime import date
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, and_
from sqlalchemy.exc import IntegrityError
from classboard.models.quota_counter import QuotaCounter
from classboard.repositories.base_repository import BaseRepository


class QuotaRepository(BaseRepository[QuotaCounter]):
    """
    Repository for QuotaCounter model operations.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(QuotaCounter, session)

    def _matches(self, identity: str, kind: str, day: date):
        return and_(
            QuotaCounter.identity == identity,
            QuotaCounter.kind == kind,
            QuotaCounter.counter_date == day
        )

    async def get_count(self, identity: str, kind: str, day: date) -> int:
        """Get the submission count for an identity and kind on a day."""
        result = await self.session.execute(
            select(QuotaCounter.count).where(self._matches(identity, kind, day))
        )
        count = result.scalar_one_or_none()
        return count or 0

    async def increment(self, identity: str, kind: str, day: date) -> int:
        """
        Increment the counter by one and return the new count.

        The increment is a single UPDATE so concurrent writers never lose
        a count; the first submission of the day inserts the row instead.
        """
        result = await self.session.execute(
            update(QuotaCounter)
            .where(self._matches(identity, kind, day))
            .values(count=QuotaCounter.count + 1)
        )
        if result.rowcount == 0:
            try:
                self.session.add(QuotaCounter(identity=identity, kind=kind, counter_date=day, count=1))
                await self.session.commit()
                return 1
            except IntegrityError:
                # Another writer created today's row first
                await self.session.rollback()
                await self.session.execute(
                    update(QuotaCounter)
                    .where(self._matches(identity, kind, day))
                    .values(count=QuotaCounter.count + 1)
                )

        await self.session.commit()
        return await self.get_count(identity, kind, day)
