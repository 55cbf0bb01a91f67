from sqlalchemy import Column, Integer, String

from models.base import Base


class OrderSequence(Base):
    """
    Per-day order number counter.

    One row per calendar day (YYMMDD); `value` is the last sequence number
    handed out that day. Incremented with a single upsert statement so that
    concurrent order creations never read the same value.
    """
    __tablename__ = 'order_sequences'

    day = Column(String(6), primary_key=True)
    value = Column(Integer, nullable=False, default=0)
