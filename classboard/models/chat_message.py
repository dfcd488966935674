"""
Chat message model for the anonymous board.
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, JSON
from classboard.database.base import Base


class ChatMessage(Base):
    """
    A single anonymous chat message.
    """
    __tablename__ = "chats"

    id = Column(Integer, primary_key=True, index=True)
    message = Column(String(255), nullable=False)
    sender = Column(JSON, nullable=False, default=dict)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    user_ip = Column(String(64), nullable=True, index=True)

    def __repr__(self):
        return f"<ChatMessage(id={self.id}, timestamp={self.timestamp}, user_ip='{self.user_ip}')>"
