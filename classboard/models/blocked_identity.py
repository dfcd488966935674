"""
Blocked identity model backing the blocklist.
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime
from classboard.database.base import Base


class BlockedIdentity(Base):
    """
    A client identity banned from submitting.
    """
    __tablename__ = "blocked_identities"

    id = Column(Integer, primary_key=True, index=True)
    ip_address = Column(String(64), unique=True, nullable=False, index=True)
    reason = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<BlockedIdentity(id={self.id}, ip_address='{self.ip_address}')>"
