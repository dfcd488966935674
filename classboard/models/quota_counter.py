"""
Quota counter model for tracking daily submissions per identity and kind.
"""
from sqlalchemy import Column, Integer, String, Date, UniqueConstraint
from classboard.database.base import Base


class QuotaCounter(Base):
    """
    Daily submission count for one identity and one submission kind.
    """
    __tablename__ = "quota_counters"
    __table_args__ = (
        UniqueConstraint("identity", "kind", "counter_date", name="uq_quota_identity_kind_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    identity = Column(String(64), nullable=False, index=True)
    kind = Column(String(16), nullable=False)
    counter_date = Column(Date, nullable=False, index=True)
    count = Column(Integer, default=0, nullable=False)

    def __repr__(self):
        return (
            f"<QuotaCounter(identity='{self.identity}', kind={self.kind}, "
            f"date={self.counter_date}, count={self.count})>"
        )