"""
Persistence seams used by the transfer protocol.

AccountStore hands out immutable snapshots and applies single-row
compare-and-set balance writes; LedgerStore appends transaction records.
Neither commits: callers group their writes with `atomic()`.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from cryptowallet.features.wallet.models.wallet_model import Wallet, AccountStatus
from cryptowallet.features.transaction.models.transaction_model import Transaction


@contextmanager
def atomic(db: Session):
    """Commit everything written inside the block, or none of it."""
    try:
        yield
        db.commit()
    except Exception:
        db.rollback()
        raise


@dataclass(frozen=True)
class AccountSnapshot:
    id: int
    wallet_number: str
    user_id: str
    balance: Decimal
    status: AccountStatus
    pin_hash: str | None
    owner_name: str
    owner_email: str
    failed_pin_attempts: int = 0

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE


def snapshot_of(wallet: Wallet) -> AccountSnapshot:
    return AccountSnapshot(
        id=wallet.id,
        wallet_number=wallet.wallet_number,
        user_id=wallet.user_id,
        balance=Decimal(wallet.balance if wallet.balance is not None else 0),
        status=AccountStatus(wallet.status),
        pin_hash=wallet.pin_hash,
        owner_name=wallet.owner.name if wallet.owner else "Unknown",
        owner_email=wallet.owner.email if wallet.owner else "",
        failed_pin_attempts=wallet.failed_pin_attempts or 0,
    )


class AccountStore:
    def __init__(self, db: Session):
        self.db = db

    def _fetch(self, *criteria) -> AccountSnapshot | None:
        stmt = select(Wallet).where(*criteria).execution_options(populate_existing=True)
        wallet = self.db.execute(stmt).scalars().first()
        return snapshot_of(wallet) if wallet else None

    def get(self, wallet_id: int) -> AccountSnapshot | None:
        return self._fetch(Wallet.id == wallet_id)

    def get_by_owner(self, user_id: str) -> AccountSnapshot | None:
        return self._fetch(Wallet.user_id == user_id)

    def get_by_wallet_number(self, wallet_number: str) -> AccountSnapshot | None:
        return self._fetch(Wallet.wallet_number == wallet_number)

    def compare_and_set_balance(self, wallet_id: int, expected: Decimal, new_balance: Decimal) -> bool:
        """
        UPDATE wallets SET balance = :new WHERE id = :id AND balance = :expected.
        Returns False when the row no longer holds `expected`.
        """
        stmt = (
            update(Wallet)
            .where(Wallet.id == wallet_id, Wallet.balance == expected)
            .values(balance=new_balance)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.rowcount == 1

    def record_pin_failure(self, wallet_id: int) -> None:
        stmt = (
            update(Wallet)
            .where(Wallet.id == wallet_id)
            .values(failed_pin_attempts=Wallet.failed_pin_attempts + 1)
            .execution_options(synchronize_session=False)
        )
        self.db.execute(stmt)

    def reset_pin_failures(self, wallet_id: int) -> None:
        stmt = (
            update(Wallet)
            .where(Wallet.id == wallet_id)
            .values(failed_pin_attempts=0)
            .execution_options(synchronize_session=False)
        )
        self.db.execute(stmt)


class LedgerStore:
    def __init__(self, db: Session):
        self.db = db

    def append(self, **fields) -> Transaction:
        record = Transaction(**fields)
        self.db.add(record)
        # flush so constraint violations surface here, not at commit
        self.db.flush()
        return record

    def find_by_idempotency_key(self, from_wallet_id: int, key: str) -> Transaction | None:
        stmt = select(Transaction).where(
            Transaction.from_wallet_id == from_wallet_id,
            Transaction.idempotency_key == key,
        )
        return self.db.execute(stmt).scalars().first()
