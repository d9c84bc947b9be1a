import secrets
from decimal import Decimal
from sqlalchemy.orm import Session

from cryptowallet.features.wallet.models.wallet_model import Wallet, AccountStatus


def generate_wallet_number() -> str:
    return f"CW{secrets.token_hex(6).upper()}"


def get_wallet_for_user(db: Session, user_id: str) -> Wallet | None:
    return db.query(Wallet).filter(Wallet.user_id == user_id).first()


def get_or_create_wallet(db: Session, user_id: str, status: AccountStatus = AccountStatus.PENDING) -> Wallet:
    wallet = get_wallet_for_user(db, user_id)
    if wallet:
        return wallet

    wallet_number = generate_wallet_number()
    while db.query(Wallet.id).filter(Wallet.wallet_number == wallet_number).first():
        wallet_number = generate_wallet_number()

    wallet = Wallet(user_id=user_id, wallet_number=wallet_number, balance=Decimal("0.00"), status=status)
    db.add(wallet)
    db.commit()
    db.refresh(wallet)
    return wallet
