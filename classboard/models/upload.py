"""
Stored upload model for the image buckets.
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, LargeBinary
from classboard.database.base import Base


class StoredUpload(Base):
    """
    An uploaded image kept in a database bucket.
    """
    __tablename__ = "uploads"

    id = Column(Integer, primary_key=True, index=True)
    bucket = Column(String(64), nullable=False, default="images", index=True)
    key = Column(String(255), unique=True, nullable=False, index=True)
    content_type = Column(String(128), nullable=True)
    size = Column(Integer, nullable=False, default=0)
    data = Column(LargeBinary, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<StoredUpload(id={self.id}, bucket='{self.bucket}', key='{self.key}', size={self.size})>"
