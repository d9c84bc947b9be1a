import enum
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Enum, func
from cryptowallet.database.db import Base


class OtpPurpose(str, enum.Enum):
    REGISTRATION = "registration"
    LOGIN = "login"


class Otp(Base):
    __tablename__ = "otps"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(50), ForeignKey("users.user_id"), index=True, nullable=False)
    purpose = Column(Enum(OtpPurpose), nullable=False)
    otp_hash = Column(String(255), nullable=False)
    used = Column(Boolean, nullable=False, default=False)
    attempts = Column(Integer, nullable=False, default=0)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
