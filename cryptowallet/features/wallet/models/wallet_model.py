import enum
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Enum, func
from sqlalchemy.orm import relationship
from cryptowallet.database.db import Base
from cryptowallet.features.auth.models.user_model import User


class AccountStatus(str, enum.Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    PENDING = "pending"


class Wallet(Base):
    __tablename__ = "wallets"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(50), ForeignKey("users.user_id"), unique=True, nullable=False)
    wallet_number = Column(String(20), unique=True, index=True, nullable=False)
    # Numeric, never float, for money
    balance = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    status = Column(Enum(AccountStatus), nullable=False, default=AccountStatus.PENDING)
    pin_hash = Column(String(255), nullable=True)
    failed_pin_attempts = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship(User, lazy="joined")
