from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Union
from pydantic import BaseModel, Field, ConfigDict, field_serializer

# Amounts stay loosely typed here; the services parse and reject them.
RawAmount = Union[int, float, str]


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class TransferRequest(CamelModel):
    recipient_wallet_id: str = Field(alias="recipientWalletId", min_length=1)
    amount: Optional[RawAmount] = None
    note: Optional[str] = Field(default=None, max_length=255)
    pin: Optional[str] = None
    idempotency_key: Optional[str] = Field(default=None, alias="idempotencyKey", max_length=100)


class RecipientOut(CamelModel):
    name: str
    wallet_id: str = Field(serialization_alias="walletId")


class TransferResponse(CamelModel):
    transaction_id: str = Field(serialization_alias="transactionId")
    new_balance: Decimal = Field(serialization_alias="newBalance")
    recipient: RecipientOut

    @field_serializer("new_balance")
    def serialize_balance(self, value: Decimal):
        return float(value)


class DepositRequest(CamelModel):
    amount: Optional[RawAmount] = None
    payment_method: str = Field(alias="paymentMethod", min_length=1)
    transaction_reference: Optional[str] = Field(default=None, alias="transactionReference")


class WithdrawalRequest(CamelModel):
    amount: Optional[RawAmount] = None
    bank_account: str = Field(alias="bankAccount", min_length=1)
    ifsc_code: str = Field(alias="ifscCode", min_length=1)
    account_holder_name: str = Field(alias="accountHolderName", min_length=1)


class PendingRequestResponse(CamelModel):
    transaction_id: str = Field(serialization_alias="transactionId")
    status: str


class PartyOut(CamelModel):
    name: str
    wallet_id: str = Field(serialization_alias="walletId")


class TransactionOut(CamelModel):
    id: int
    transaction_id: str = Field(serialization_alias="transactionId")
    amount: Decimal
    type: str
    direction: str
    status: str
    sender: PartyOut
    receiver: PartyOut
    description: str
    note: str
    created_at: datetime = Field(serialization_alias="createdAt")

    @field_serializer("amount")
    def serialize_amount(self, value: Decimal):
        return float(value)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class TransactionHistory(BaseModel):
    transactions: List[TransactionOut]
    pagination: Pagination
