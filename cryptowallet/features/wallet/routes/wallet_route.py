from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from cryptowallet.core.logging_config import get_logger
from cryptowallet.core.settings import PIN_MAX_ATTEMPTS
from cryptowallet.database.db import get_db
from cryptowallet.features.auth.dependencies import get_current_active_user
from cryptowallet.features.auth.models.user_model import User
from cryptowallet.features.auth.utils.security import hash_secret, verify_secret
from cryptowallet.features.transaction.models.transaction_model import Transaction, TransactionStatus
from cryptowallet.features.wallet.models.wallet_model import Wallet
from cryptowallet.features.wallet.schemas.wallet_schema import (
    PIN_PATTERN,
    BalanceResponse,
    SetPinRequest,
    WalletDetailsResponse,
    WalletOwner,
    WalletStatistics,
)
from cryptowallet.features.wallet.utils.wallet_util import get_wallet_for_user

logger = get_logger("wallet")

router = APIRouter(prefix="/wallet", tags=["wallet"])


def _wallet_or_404(db: Session, user: User) -> Wallet:
    wallet = get_wallet_for_user(db, user.user_id)
    if not wallet:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Wallet not found")
    return wallet


def _completed_total(db: Session, column, wallet_id: int) -> Decimal:
    total = (
        db.query(func.coalesce(func.sum(Transaction.amount), 0))
        .filter(column == wallet_id, Transaction.status == TransactionStatus.COMPLETED)
        .scalar()
    )
    return Decimal(str(total)).quantize(Decimal("0.01"))


@router.get("/balance")
def get_wallet_balance(
    user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    wallet = _wallet_or_404(db, user)
    data = BalanceResponse(wallet_id=wallet.wallet_number, balance=wallet.balance)
    return {"data": data.model_dump(by_alias=True)}


@router.get("/details")
def get_wallet_details(
    user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    wallet = _wallet_or_404(db, user)

    total_transactions = (
        db.query(Transaction)
        .filter(
            (Transaction.from_wallet_id == wallet.id) | (Transaction.to_wallet_id == wallet.id),
            Transaction.status == TransactionStatus.COMPLETED,
        )
        .count()
    )

    details = WalletDetailsResponse(
        user=WalletOwner(
            id=user.user_id,
            name=user.name,
            email=user.email,
            wallet_id=wallet.wallet_number,
            balance=wallet.balance,
            status=wallet.status.value,
            pin_set=bool(wallet.pin_hash),
            created_at=wallet.created_at,
        ),
        statistics=WalletStatistics(
            total_sent=_completed_total(db, Transaction.from_wallet_id, wallet.id),
            total_received=_completed_total(db, Transaction.to_wallet_id, wallet.id),
            total_transactions=total_transactions,
        ),
    )
    return {"data": details.model_dump(by_alias=True)}


@router.post("/pin")
def set_transaction_pin(
    body: SetPinRequest,
    user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    if not PIN_PATTERN.fullmatch(body.pin):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="PIN must be a 4-digit string")

    wallet = _wallet_or_404(db, user)

    failed_attempts = wallet.failed_pin_attempts or 0
    locked = failed_attempts >= PIN_MAX_ATTEMPTS

    # a locked PIN can only be reset with the account password
    if wallet.pin_hash and not locked:
        if not body.current_pin:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current PIN is required to change PIN")
        if not verify_secret(body.current_pin, wallet.pin_hash):
            wallet.failed_pin_attempts = failed_attempts + 1
            db.commit()
            logger.warning("Wrong current PIN for wallet %s (%d/%d)", wallet.wallet_number,
                           failed_attempts + 1, PIN_MAX_ATTEMPTS)
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Current PIN is incorrect")
    else:
        if not body.password:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Password is required to reset a locked PIN" if locked
                else "Password is required to set PIN for the first time",
            )
        if not verify_secret(body.password, user.password_hash):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid password")

    wallet.pin_hash = hash_secret(body.pin)
    wallet.failed_pin_attempts = 0
    db.commit()
    logger.info("Transaction PIN set for wallet %s", wallet.wallet_number)

    return {"message": "Transaction PIN set successfully"}
