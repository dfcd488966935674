"""
Message repository for the anonymous chat.
"""
from typing import Optional, List, Dict, Any
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from classboard.models.chat_message import ChatMessage
from classboard.repositories.base_repository import BaseRepository


class MessageRepository(BaseRepository[ChatMessage]):
    """
    Repository for ChatMessage model operations.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(ChatMessage, session)

    async def create_message(self, message: str, sender: Dict[str, Any],
                             timestamp: datetime, user_ip: Optional[str] = None) -> ChatMessage:
        """Store a chat message."""
        return await self.create(
            message=message,
            sender=sender,
            timestamp=timestamp,
            user_ip=user_ip
        )

    async def list_messages(self, since: Optional[datetime] = None) -> List[ChatMessage]:
        """Get messages in timestamp order, optionally only those newer than since."""
        query = select(ChatMessage).order_by(ChatMessage.timestamp.asc(), ChatMessage.id.asc())
        if since is not None:
            query = query.where(ChatMessage.timestamp > since)
        result = await self.session.execute(query)
        return result.scalars().all()
