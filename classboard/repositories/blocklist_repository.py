"""
Blocklist repository for banned client identities.
"""
from typing import Optional, Set
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from classboard.models.blocked_identity import BlockedIdentity
from classboard.repositories.base_repository import BaseRepository


class BlocklistRepository(BaseRepository[BlockedIdentity]):
    """
    Repository for BlockedIdentity model operations.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(BlockedIdentity, session)

    async def list_identities(self) -> Set[str]:
        """Get every blocked identity."""
        result = await self.session.execute(select(BlockedIdentity.ip_address))
        return set(result.scalars().all())

    async def get_by_ip(self, ip_address: str) -> Optional[BlockedIdentity]:
        """Get a blocklist entry by identity."""
        result = await self.session.execute(
            select(BlockedIdentity).where(BlockedIdentity.ip_address == ip_address)
        )
        return result.scalar_one_or_none()

    async def block(self, ip_address: str, reason: Optional[str] = None) -> BlockedIdentity:
        """Add an identity to the blocklist, returning the existing entry if present."""
        existing = await self.get_by_ip(ip_address)
        if existing:
            return existing
        return await self.create(ip_address=ip_address, reason=reason)

    async def unblock(self, ip_address: str) -> bool:
        """Remove an identity from the blocklist."""
        result = await self.session.execute(
            delete(BlockedIdentity).where(BlockedIdentity.ip_address == ip_address)
        )
        await self.session.commit()
        return result.rowcount > 0
