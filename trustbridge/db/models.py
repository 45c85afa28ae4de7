"""SQLAlchemy models mirroring the legacy users.json structure."""
from __future__ import annotations

from sqlalchemy import (
    JSON,
    BigInteger,
    Column,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .session import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True)
    username = Column(String(20), nullable=False)
    # case-folded username; carries the uniqueness guarantee
    username_key = Column(String(20), nullable=False, unique=True, index=True)
    password_hash = Column(Text, nullable=False)
    token = Column(String(128), nullable=True, unique=True, index=True)
    created_at = Column(BigInteger, nullable=False)

    transactions = relationship(
        "Transaction",
        back_populates="user",
        cascade="all,delete-orphan",
        order_by="Transaction.seq",
    )


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (UniqueConstraint("user_id", "tx_id", name="uq_transactions_user_tx"),)

    seq = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    tx_id = Column(String(255), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    updated_at = Column(BigInteger, nullable=False)

    user = relationship("User", back_populates="transactions")
