from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, field_serializer
import re

PIN_PATTERN = re.compile(r"^[0-9]{4}$")


class BalanceResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    wallet_id: str = Field(serialization_alias="walletId")
    balance: Decimal

    @field_serializer("balance")
    def serialize_balance(self, value: Decimal):
        return float(value)


class WalletOwner(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    email: str
    wallet_id: str = Field(serialization_alias="walletId")
    balance: Decimal
    status: str
    pin_set: bool = Field(serialization_alias="pinSet")
    created_at: Optional[datetime] = Field(default=None, serialization_alias="createdAt")

    @field_serializer("balance")
    def serialize_balance(self, value: Decimal):
        return float(value)


class WalletStatistics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_sent: Decimal = Field(serialization_alias="totalSent")
    total_received: Decimal = Field(serialization_alias="totalReceived")
    total_transactions: int = Field(serialization_alias="totalTransactions")

    @field_serializer("total_sent", "total_received")
    def serialize_totals(self, value: Decimal):
        return float(value)


class WalletDetailsResponse(BaseModel):
    user: WalletOwner
    statistics: WalletStatistics


class SetPinRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    pin: str
    current_pin: Optional[str] = Field(default=None, alias="currentPin")
    password: Optional[str] = None
