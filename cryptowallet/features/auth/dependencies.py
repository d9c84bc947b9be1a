from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from cryptowallet.database.db import get_db
from cryptowallet.features.auth.models.user_model import User
from cryptowallet.features.auth.schemas.auth_schema import CurrentUser
from cryptowallet.features.auth.utils.jwt_token import get_current_user
from cryptowallet.features.wallet.models.wallet_model import AccountStatus
from cryptowallet.features.wallet.utils.wallet_util import get_wallet_for_user


def get_current_active_user(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> User:
    user = db.query(User).filter(User.user_id == current_user.user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    wallet = get_wallet_for_user(db, user.user_id)
    if not wallet or wallet.status != AccountStatus.ACTIVE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is not active")
    return user
