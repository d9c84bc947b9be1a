"""
Peer-to-peer balance transfer.

The debit, the credit and the ledger record are written in one database
transaction: either all three land or none do. Each balance write is also a
compare-and-set against the balance last read, so a concurrent writer that
got in first forces a re-read instead of being overwritten. The two rows are
written in wallet id order so opposing transfers take row locks in the same
order. Notifications are handed off only after the commit.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from cryptowallet.core.logging_config import get_logger
from cryptowallet.core.settings import PIN_MAX_ATTEMPTS, TRANSFER_MAX_CAS_ATTEMPTS
from cryptowallet.features.auth.utils.security import verify_secret
from cryptowallet.features.notifications.utils.email_service import TransactionNotice
from cryptowallet.features.transaction.errors import (
    IdempotencyKeyConflict,
    InsufficientBalance,
    InvalidPin,
    PinLocked,
    PinNotConfigured,
    PinRequired,
    RecipientInactive,
    RecipientNotFound,
    SelfTransferNotAllowed,
    SenderInactive,
    SenderNotFound,
    TransferFailed,
)
from cryptowallet.features.transaction.models.transaction_model import (
    Transaction,
    TransactionStatus,
    TransactionType,
)
from cryptowallet.features.transaction.services.stores import (
    AccountSnapshot,
    AccountStore,
    LedgerStore,
    atomic,
)
from cryptowallet.features.transaction.utils.amounts import parse_amount
from cryptowallet.features.transaction.utils.reference import generate_transaction_id

logger = get_logger("transfer")

WRITE_FAILURES = {
    "sender": "Failed to deduct amount from sender",
    "recipient": "Failed to add amount to recipient",
}


class BalanceWriteError(Exception):
    """A balance write could not be applied."""


@dataclass
class TransferResult:
    transaction_id: str
    new_sender_balance: Decimal
    recipient_name: str
    recipient_wallet_id: str
    record: Transaction | None = None
    replayed: bool = False


class TransferService:
    def __init__(
        self,
        accounts: AccountStore,
        ledger: LedgerStore,
        notifier=None,
        max_attempts: int = TRANSFER_MAX_CAS_ATTEMPTS,
        max_pin_attempts: int = PIN_MAX_ATTEMPTS,
    ):
        self.accounts = accounts
        self.ledger = ledger
        self.notifier = notifier
        self.max_attempts = max(1, max_attempts)
        self.max_pin_attempts = max(1, max_pin_attempts)

    def validate(self, sender_id: str, recipient_wallet_id: str, amount, pin: str | None):
        """
        Run every pre-mutation check. Returns (amount, sender, recipient)
        snapshots; raises a WalletError subclass on the first failure.
        """
        value = parse_amount(amount)

        sender = self.accounts.get_by_owner(sender_id)
        if sender is None:
            raise SenderNotFound()
        if not sender.is_active:
            raise SenderInactive()

        recipient = self.accounts.get_by_wallet_number((recipient_wallet_id or "").strip())
        if recipient is None:
            raise RecipientNotFound()

        if sender.id == recipient.id:
            raise SelfTransferNotAllowed()

        if not recipient.is_active:
            raise RecipientInactive()

        if not pin:
            raise PinRequired()
        if not sender.pin_hash:
            raise PinNotConfigured()
        if sender.failed_pin_attempts >= self.max_pin_attempts:
            raise PinLocked()
        if not verify_secret(pin, sender.pin_hash):
            with atomic(self.accounts.db):
                self.accounts.record_pin_failure(sender.id)
            logger.warning(
                "Wrong PIN for %s (%d/%d)",
                sender.wallet_number,
                sender.failed_pin_attempts + 1,
                self.max_pin_attempts,
            )
            raise InvalidPin()
        if sender.failed_pin_attempts:
            with atomic(self.accounts.db):
                self.accounts.reset_pin_failures(sender.id)

        return value, sender, recipient

    def transfer(
        self,
        sender_id: str,
        recipient_wallet_id: str,
        amount,
        pin: str | None,
        note: str | None = None,
        idempotency_key: str | None = None,
    ) -> TransferResult:
        value, sender, recipient = self.validate(sender_id, recipient_wallet_id, amount, pin)

        if idempotency_key:
            existing = self.ledger.find_by_idempotency_key(sender.id, idempotency_key)
            if existing is not None:
                return self._replay(existing, sender, recipient, value)

        if sender.balance < value:
            raise InsufficientBalance(
                f"Insufficient balance. Available: {sender.balance}, Required: {value}"
            )

        logger.info(
            "Starting transfer: %s -> %s, amount=%s (sender balance=%s, recipient balance=%s)",
            sender.wallet_number,
            recipient.wallet_number,
            value,
            sender.balance,
            recipient.balance,
        )

        transaction_id = generate_transaction_id()
        try:
            with atomic(self.accounts.db):
                balances = self._move_funds(sender, recipient, value)
                record = self.ledger.append(
                    transaction_id=transaction_id,
                    from_wallet_id=sender.id,
                    to_wallet_id=recipient.id,
                    type=TransactionType.TRANSFER,
                    status=TransactionStatus.COMPLETED,
                    amount=value,
                    description=note or f"Transfer to {recipient.owner_name}",
                    note=note or "",
                    idempotency_key=idempotency_key,
                )
        except IntegrityError as e:
            # a concurrent request with the same key committed first
            if idempotency_key:
                existing = self.ledger.find_by_idempotency_key(sender.id, idempotency_key)
                if existing is not None:
                    current = self.accounts.get(sender.id) or sender
                    return self._replay(existing, current, recipient, value)
            logger.error("Transaction record %s rejected, transfer rolled back: %s", transaction_id, e)
            raise TransferFailed("Failed to record transaction") from e
        except SQLAlchemyError as e:
            logger.error(
                "Transfer %s rolled back (from=%s to=%s amount=%s): %s",
                transaction_id,
                sender.wallet_number,
                recipient.wallet_number,
                value,
                e,
            )
            raise TransferFailed("Failed to record transaction") from e

        logger.info(
            "Transfer completed: %s -> %s, amount=%s, txn=%s, sender balance=%s, recipient balance=%s",
            sender.wallet_number,
            recipient.wallet_number,
            value,
            transaction_id,
            balances[sender.id],
            balances[recipient.id],
        )

        self._notify(sender, "sent", value, transaction_id, recipient)
        self._notify(recipient, "received", value, transaction_id, sender)

        return TransferResult(
            transaction_id=transaction_id,
            new_sender_balance=balances[sender.id],
            recipient_name=recipient.owner_name,
            recipient_wallet_id=recipient.wallet_number,
            record=record,
        )

    def _move_funds(self, sender: AccountSnapshot, recipient: AccountSnapshot, amount: Decimal) -> dict:
        """
        Debit the sender and credit the recipient inside the caller's
        transaction. Returns the new balances keyed by wallet id.
        """
        moves = [(sender, -amount, "sender"), (recipient, amount, "recipient")]
        balances = {}
        for account, delta, role in sorted(moves, key=lambda move: move[0].id):
            try:
                _, balances[account.id] = self._apply_delta(account, delta, role)
            except (SQLAlchemyError, BalanceWriteError) as e:
                logger.error("%s balance update failed for %s: %s", role.capitalize(), account.wallet_number, e)
                raise TransferFailed(WRITE_FAILURES[role]) from e
            logger.info("%s %s balance set to %s (uncommitted)", role.capitalize(), account.wallet_number, balances[account.id])
        return balances

    def _apply_delta(self, account: AccountSnapshot, delta: Decimal, role: str) -> tuple[Decimal, Decimal]:
        """
        Compare-and-set `balance + delta` onto the account, re-reading and
        retrying when another writer got there first. Returns (old, new).
        """
        snapshot = account
        for attempt in range(1, self.max_attempts + 1):
            new_balance = snapshot.balance + delta
            if new_balance < 0:
                raise InsufficientBalance(
                    f"Insufficient balance. Available: {snapshot.balance}, Required: {-delta}"
                )
            if self.accounts.compare_and_set_balance(snapshot.id, snapshot.balance, new_balance):
                return snapshot.balance, new_balance

            logger.warning(
                "%s %s balance changed concurrently (expected %s), attempt %d/%d",
                role,
                snapshot.wallet_number,
                snapshot.balance,
                attempt,
                self.max_attempts,
            )
            snapshot = self.accounts.get(snapshot.id)
            if snapshot is None:
                raise BalanceWriteError(f"{role} wallet {account.wallet_number} disappeared")

        raise BalanceWriteError(
            f"{role} wallet {account.wallet_number} kept changing after {self.max_attempts} attempts"
        )

    def _notify(self, account: AccountSnapshot, kind: str, amount: Decimal, transaction_id: str,
                counterparty: AccountSnapshot) -> None:
        if self.notifier is None:
            return
        notice = TransactionNotice(
            email=account.owner_email,
            name=account.owner_name,
            kind=kind,
            amount=amount,
            transaction_id=transaction_id,
            counterparty_name=counterparty.owner_name,
            counterparty_wallet_id=counterparty.wallet_number,
        )
        try:
            self.notifier.notify(notice)
        except Exception:
            logger.exception("Failed to dispatch %s notification for %s", kind, transaction_id)

    def _replay(self, existing: Transaction, sender: AccountSnapshot, recipient: AccountSnapshot,
                amount: Decimal) -> TransferResult:
        if existing.to_wallet_id != recipient.id or existing.amount != amount:
            logger.warning(
                "Idempotency key on %s reused for a different transfer (was %s to wallet %s, now %s to %s)",
                existing.transaction_id,
                existing.amount,
                existing.to_wallet_id,
                amount,
                recipient.id,
            )
            raise IdempotencyKeyConflict()
        logger.info("Idempotent replay of %s for sender %s", existing.transaction_id, sender.wallet_number)
        original = existing.to_wallet
        return TransferResult(
            transaction_id=existing.transaction_id,
            new_sender_balance=sender.balance,
            recipient_name=original.owner.name if original is not None else recipient.owner_name,
            recipient_wallet_id=original.wallet_number if original is not None else recipient.wallet_number,
            record=existing,
            replayed=True,
        )
