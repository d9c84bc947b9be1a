import secrets
from datetime import datetime, timedelta, timezone
from sqlalchemy.orm import Session

from cryptowallet.core.settings import OTP_EXPIRES_MINUTES, OTP_MAX_ATTEMPTS
from cryptowallet.features.auth.models.otp_model import Otp, OtpPurpose
from cryptowallet.features.auth.utils.security import hash_secret, verify_secret


def generate_otp() -> str:
    return str(100000 + secrets.randbelow(900000))


def is_expired(expiry_dt: datetime) -> bool:
    """
    Returns True if expiry_dt is in the past (expired), False otherwise.
    Handles naive vs aware datetimes safely.
    """
    if expiry_dt is None:
        return True

    # Ensure UTC-aware datetime
    if expiry_dt.tzinfo is None:
        expiry_dt = expiry_dt.replace(tzinfo=timezone.utc)

    return datetime.now(timezone.utc) >= expiry_dt


def issue_otp(db: Session, user_id: str, purpose: OtpPurpose) -> str:
    """
    Store a hashed OTP for the user and return the plain code for delivery.
    Any earlier unused code for the same purpose stops working.
    """
    db.query(Otp).filter(
        Otp.user_id == user_id, Otp.purpose == purpose, Otp.used.is_(False)
    ).update({Otp.used: True}, synchronize_session=False)

    code = generate_otp()
    otp = Otp(
        user_id=user_id,
        purpose=purpose,
        otp_hash=hash_secret(code),
        expires_at=datetime.now(timezone.utc) + timedelta(minutes=OTP_EXPIRES_MINUTES),
    )
    db.add(otp)
    db.commit()
    return code


def consume_otp(db: Session, user_id: str, purpose: OtpPurpose, code: str) -> bool:
    """Check the newest unused OTP for this purpose and mark it used on a match."""
    otp = (
        db.query(Otp)
        .filter(Otp.user_id == user_id, Otp.purpose == purpose, Otp.used.is_(False))
        .order_by(Otp.id.desc())
        .first()
    )
    if not otp or is_expired(otp.expires_at):
        return False
    if not verify_secret(code, otp.otp_hash):
        otp.attempts = (otp.attempts or 0) + 1
        # burn the code once it has been guessed at too often
        if otp.attempts >= OTP_MAX_ATTEMPTS:
            otp.used = True
        db.commit()
        return False

    otp.used = True
    db.commit()
    return True
