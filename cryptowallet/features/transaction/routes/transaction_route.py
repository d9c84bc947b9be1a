import csv
import io
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Response, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from cryptowallet.database.db import get_db
from cryptowallet.features.auth.dependencies import get_current_active_user
from cryptowallet.features.auth.models.user_model import User
from cryptowallet.features.notifications.utils.email_service import EmailService
from cryptowallet.features.notifications.utils.notifier import EmailNotifier, get_email_service
from cryptowallet.features.transaction.models.transaction_model import (
    Transaction,
    TransactionStatus,
    TransactionType,
)
from cryptowallet.features.transaction.schemas.transaction_schema import (
    DepositRequest,
    Pagination,
    PartyOut,
    PendingRequestResponse,
    RecipientOut,
    TransactionHistory,
    TransactionOut,
    TransferRequest,
    TransferResponse,
    WithdrawalRequest,
)
from cryptowallet.features.transaction.services.request_service import RequestService
from cryptowallet.features.transaction.services.stores import AccountStore, LedgerStore
from cryptowallet.features.transaction.services.transfer_service import TransferService
from cryptowallet.features.wallet.models.wallet_model import Wallet
from cryptowallet.features.wallet.utils.wallet_util import get_wallet_for_user

router = APIRouter(prefix="/transactions", tags=["transactions"])


def get_transfer_service(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
) -> TransferService:
    return TransferService(AccountStore(db), LedgerStore(db), EmailNotifier(email_service, background_tasks))


def get_request_service(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
) -> RequestService:
    return RequestService(AccountStore(db), LedgerStore(db), EmailNotifier(email_service, background_tasks))


def _party(wallet: Optional[Wallet]) -> PartyOut:
    if wallet is None:
        return PartyOut(name="Unknown", wallet_id="N/A")
    return PartyOut(name=wallet.owner.name if wallet.owner else "Unknown", wallet_id=wallet.wallet_number)


def serialize_transaction(tx: Transaction, wallet_id: int) -> TransactionOut:
    return TransactionOut(
        id=tx.id,
        transaction_id=tx.transaction_id,
        amount=tx.amount,
        type=tx.type.value,
        direction="sent" if tx.from_wallet_id == wallet_id else "received",
        status=tx.status.value,
        sender=_party(tx.from_wallet),
        receiver=_party(tx.to_wallet),
        description=tx.description or tx.note or "",
        note=tx.note or "",
        created_at=tx.created_at,
    )


def _my_wallet(db: Session, user: User) -> Wallet:
    wallet = get_wallet_for_user(db, user.user_id)
    if not wallet:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Wallet not found")
    return wallet


def _party_filter(wallet_id: int):
    return or_(Transaction.from_wallet_id == wallet_id, Transaction.to_wallet_id == wallet_id)


@router.post("/transfer")
def transfer(
    body: TransferRequest,
    user: User = Depends(get_current_active_user),
    service: TransferService = Depends(get_transfer_service),
):
    result = service.transfer(
        sender_id=user.user_id,
        recipient_wallet_id=body.recipient_wallet_id,
        amount=body.amount,
        pin=body.pin,
        note=body.note,
        idempotency_key=body.idempotency_key,
    )
    data = TransferResponse(
        transaction_id=result.transaction_id,
        new_balance=result.new_sender_balance,
        recipient=RecipientOut(name=result.recipient_name, wallet_id=result.recipient_wallet_id),
    )
    return {
        "message": "Transfer successful",
        "data": data.model_dump(by_alias=True),
    }


@router.post("/deposit")
def request_deposit(
    body: DepositRequest,
    user: User = Depends(get_current_active_user),
    service: RequestService = Depends(get_request_service),
):
    record = service.request_deposit(
        user_id=user.user_id,
        amount=body.amount,
        payment_method=body.payment_method,
        transaction_reference=body.transaction_reference,
    )
    data = PendingRequestResponse(transaction_id=record.transaction_id, status=record.status.value)
    return {
        "message": "Deposit request submitted successfully. Pending admin approval.",
        "data": data.model_dump(by_alias=True),
    }


@router.post("/withdraw")
def request_withdrawal(
    body: WithdrawalRequest,
    user: User = Depends(get_current_active_user),
    service: RequestService = Depends(get_request_service),
):
    record = service.request_withdrawal(
        user_id=user.user_id,
        amount=body.amount,
        bank_account=body.bank_account,
        ifsc_code=body.ifsc_code,
        account_holder_name=body.account_holder_name,
    )
    data = PendingRequestResponse(transaction_id=record.transaction_id, status=record.status.value)
    return {
        "message": "Withdrawal request submitted successfully. Pending admin approval.",
        "data": data.model_dump(by_alias=True),
    }


@router.get("/history")
def transaction_history(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    type: Optional[TransactionType] = None,
    status_filter: Optional[TransactionStatus] = Query(None, alias="status"),
    user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    wallet = _my_wallet(db, user)

    query = db.query(Transaction).filter(_party_filter(wallet.id))
    if type is not None:
        query = query.filter(Transaction.type == type)
    if status_filter is not None:
        query = query.filter(Transaction.status == status_filter)

    total = query.count()
    txs = (
        query.order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    history = TransactionHistory(
        transactions=[serialize_transaction(tx, wallet.id) for tx in txs],
        pagination=Pagination(page=page, limit=limit, total=total, pages=-(-total // limit)),
    )
    return {"data": history.model_dump(by_alias=True)}


@router.get("/export")
def export_transactions(
    user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    wallet = _my_wallet(db, user)
    txs = (
        db.query(Transaction)
        .filter(_party_filter(wallet.id))
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .all()
    )

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(["transactionId", "createdAt", "type", "direction", "status", "amount",
                     "senderWalletId", "receiverWalletId", "description"])
    for tx in txs:
        item = serialize_transaction(tx, wallet.id)
        writer.writerow([
            item.transaction_id,
            item.created_at.isoformat(),
            item.type,
            item.direction,
            item.status,
            f"{item.amount:.2f}",
            item.sender.wallet_id,
            item.receiver.wallet_id,
            item.description,
        ])

    return Response(
        content=buffer.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="transactions-{wallet.wallet_number}.csv"'},
    )


@router.get("/{transaction_id}")
def get_transaction(
    transaction_id: str,
    user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    wallet = _my_wallet(db, user)
    tx = db.query(Transaction).filter(Transaction.transaction_id == transaction_id).first()
    if not tx:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")
    if wallet.id not in (tx.from_wallet_id, tx.to_wallet_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized to view this transaction")

    return {"data": serialize_transaction(tx, wallet.id).model_dump(by_alias=True)}
