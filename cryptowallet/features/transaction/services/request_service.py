"""
Deposit and withdrawal requests. Both only record a pending transaction;
balances move later through an admin decision that is not part of this API.
"""

from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError

from cryptowallet.core.logging_config import get_logger
from cryptowallet.features.notifications.utils.email_service import TransactionNotice
from cryptowallet.features.transaction.errors import (
    AccountInactive,
    AccountNotFound,
    InsufficientBalance,
    RequestFailed,
)
from cryptowallet.features.transaction.models.transaction_model import (
    Transaction,
    TransactionStatus,
    TransactionType,
)
from cryptowallet.features.transaction.services.stores import AccountSnapshot, AccountStore, LedgerStore, atomic
from cryptowallet.features.transaction.utils.amounts import parse_amount
from cryptowallet.features.transaction.utils.reference import generate_transaction_id

logger = get_logger("requests")


class RequestService:
    def __init__(self, accounts: AccountStore, ledger: LedgerStore, notifier=None):
        self.accounts = accounts
        self.ledger = ledger
        self.notifier = notifier

    def _owner_account(self, user_id: str) -> AccountSnapshot:
        account = self.accounts.get_by_owner(user_id)
        if account is None:
            raise AccountNotFound()
        if not account.is_active:
            raise AccountInactive()
        return account

    def request_deposit(self, user_id: str, amount, payment_method: str,
                        transaction_reference: str | None = None) -> Transaction:
        value = parse_amount(amount)
        account = self._owner_account(user_id)

        record = self._append(
            kind="deposit",
            account=account,
            amount=value,
            to_wallet_id=account.id,
            type=TransactionType.DEPOSIT,
            description=f"Deposit request via {payment_method}",
            meta={"paymentMethod": payment_method, "transactionReference": transaction_reference or ""},
        )
        logger.info("Deposit request created: %s, amount=%s, txn=%s", account.wallet_number, value, record.transaction_id)
        return record

    def request_withdrawal(self, user_id: str, amount, bank_account: str, ifsc_code: str,
                           account_holder_name: str) -> Transaction:
        value = parse_amount(amount)
        account = self._owner_account(user_id)

        if account.balance < value:
            raise InsufficientBalance(
                f"Insufficient balance. Available: {account.balance}, Required: {value}"
            )

        record = self._append(
            kind="withdrawal",
            account=account,
            amount=value,
            from_wallet_id=account.id,
            type=TransactionType.WITHDRAWAL,
            description=f"Withdrawal request to {bank_account}",
            meta={
                "bankAccount": bank_account,
                "ifscCode": ifsc_code,
                "accountHolderName": account_holder_name,
            },
        )
        logger.info("Withdrawal request created: %s, amount=%s, txn=%s", account.wallet_number, value, record.transaction_id)
        return record

    def _append(self, kind: str, account: AccountSnapshot, amount: Decimal, **fields) -> Transaction:
        transaction_id = generate_transaction_id()
        try:
            with atomic(self.ledger.db):
                record = self.ledger.append(
                    transaction_id=transaction_id,
                    amount=amount,
                    status=TransactionStatus.PENDING,
                    **fields,
                )
        except SQLAlchemyError as e:
            logger.error("Failed to create %s request for %s: %s", kind, account.wallet_number, e)
            raise RequestFailed(f"Failed to create {kind} request") from e

        if self.notifier is not None:
            notice = TransactionNotice(
                email=account.owner_email,
                name=account.owner_name,
                kind=kind,
                amount=amount,
                transaction_id=transaction_id,
                status=TransactionStatus.PENDING.value,
            )
            try:
                self.notifier.notify(notice)
            except Exception:
                logger.exception("Failed to dispatch %s notification for %s", kind, transaction_id)

        return record
