"""
Upload repository for the image buckets.
"""
from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from classboard.models.upload import StoredUpload
from classboard.repositories.base_repository import BaseRepository


class UploadRepository(BaseRepository[StoredUpload]):
    """
    Repository for StoredUpload model operations.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(StoredUpload, session)

    async def create_upload(self, key: str, data: bytes,
                            content_type: Optional[str] = None,
                            bucket: str = "images") -> StoredUpload:
        """Store an uploaded blob under its key."""
        return await self.create(
            bucket=bucket,
            key=key,
            data=data,
            size=len(data),
            content_type=content_type
        )

    async def get_by_key(self, key: str) -> Optional[StoredUpload]:
        """Get an upload by storage key."""
        result = await self.session.execute(
            select(StoredUpload).where(StoredUpload.key == key)
        )
        return result.scalar_one_or_none()

    async def list_uploads(self, limit: int = 100, newest_first: bool = True,
                           bucket: Optional[str] = None) -> List[StoredUpload]:
        """List uploads by creation time, optionally from one bucket only."""
        order = StoredUpload.created_at.desc() if newest_first else StoredUpload.created_at.asc()
        tiebreak = StoredUpload.id.desc() if newest_first else StoredUpload.id.asc()
        query = select(StoredUpload)
        if bucket is not None:
            query = query.where(StoredUpload.bucket == bucket)
        result = await self.session.execute(query.order_by(order, tiebreak).limit(limit))
        return result.scalars().all()
