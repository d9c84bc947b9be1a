# models.py
from sqlalchemy import Column, String, Boolean, DateTime, func
from cryptowallet.database.db import Base
from uuid import uuid4

class User(Base):
    __tablename__ = "users"

    user_id = Column(String(50), primary_key=True, index=True, default=lambda:str(uuid4()))
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(70), nullable=False)
    phone = Column(String(20), nullable=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="user")
    email_verified = Column(Boolean, nullable=False, default=False)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
