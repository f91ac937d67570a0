from sqlalchemy import BigInteger, Column, String

from .base import Base


class Counter(Base):
    """Named counters, incremented inside the transaction that consumes them."""

    __tablename__ = "counters"

    name = Column(String(64), primary_key=True)
    value = Column(BigInteger, nullable=False, default=0)
