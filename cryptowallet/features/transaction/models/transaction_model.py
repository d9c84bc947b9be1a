import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Integer,
    String,
    Numeric,
    DateTime,
    ForeignKey,
    Enum,
    JSON,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from cryptowallet.database.db import Base
from cryptowallet.features.wallet.models.wallet_model import Wallet


class TransactionType(str, enum.Enum):
    TRANSFER = "transfer"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


def _utcnow():
    return datetime.now(timezone.utc)


class Transaction(Base):
    """
    Ledger row. Written once; status changes only for pending requests.
    """

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    transaction_id = Column(String(40), unique=True, index=True, nullable=False)
    from_wallet_id = Column(Integer, ForeignKey("wallets.id"), index=True, nullable=True)
    to_wallet_id = Column(Integer, ForeignKey("wallets.id"), index=True, nullable=True)
    type = Column(Enum(TransactionType), nullable=False)
    status = Column(Enum(TransactionStatus), nullable=False, default=TransactionStatus.PENDING)
    amount = Column(Numeric(15, 2), nullable=False)
    description = Column(String(255), nullable=True)
    note = Column(String(255), nullable=True)
    meta = Column(JSON, nullable=True)
    idempotency_key = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    from_wallet = relationship(Wallet, foreign_keys=[from_wallet_id], lazy="joined")
    to_wallet = relationship(Wallet, foreign_keys=[to_wallet_id], lazy="joined")

    __table_args__ = (
        UniqueConstraint("from_wallet_id", "idempotency_key", name="uq_sender_idempotency_key"),
    )
