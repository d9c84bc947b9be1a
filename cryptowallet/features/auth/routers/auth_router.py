from datetime import datetime, timezone

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.orm import Session

from cryptowallet.core.logging_config import get_logger
from cryptowallet.database.db import get_db
from cryptowallet.features.auth.models.otp_model import OtpPurpose
from cryptowallet.features.auth.models.user_model import User
from cryptowallet.features.auth.schemas.auth_schema import (
    LoginRequest,
    RegisterRequest,
    ResendOtpRequest,
    TokenResponse,
    VerifyOtpRequest,
)
from cryptowallet.features.auth.utils.jwt_token import create_access_token
from cryptowallet.features.auth.utils.otp_util import consume_otp, issue_otp
from cryptowallet.features.auth.utils.security import hash_secret, verify_secret
from cryptowallet.features.notifications.utils.email_service import EmailService
from cryptowallet.features.notifications.utils.notifier import get_email_service
from cryptowallet.features.wallet.models.wallet_model import AccountStatus
from cryptowallet.features.wallet.utils.wallet_util import get_or_create_wallet, get_wallet_for_user

logger = get_logger("auth")

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    if db.query(User).filter(User.email == body.email).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email is already registered")

    user = User(
        email=body.email,
        name=body.name,
        phone=body.phone,
        password_hash=hash_secret(body.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    wallet = get_or_create_wallet(db, user_id=user.user_id, status=AccountStatus.PENDING)
    logger.info("User created: %s, wallet=%s", user.user_id, wallet.wallet_number)

    code = issue_otp(db, user.user_id, OtpPurpose.REGISTRATION)
    background_tasks.add_task(email_service.send_otp_email, user.email, user.name, code, "registration")

    return {
        "message": "Registration successful. Please verify the OTP sent to your email.",
        "data": {
            "userId": user.user_id,
            "email": user.email,
            "walletId": wallet.wallet_number,
        },
    }


@router.post("/verify-otp")
def verify_otp(
    body: VerifyOtpRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    user = db.query(User).filter(User.user_id == body.user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if not consume_otp(db, user.user_id, body.purpose, body.otp):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired OTP")

    if body.purpose == OtpPurpose.REGISTRATION:
        wallet = get_or_create_wallet(db, user_id=user.user_id)
        wallet.status = AccountStatus.ACTIVE
        user.email_verified = True
        db.commit()
        background_tasks.add_task(email_service.send_welcome_email, user.email, user.name, wallet.wallet_number)
        logger.info("User %s verified and activated", user.email)
        message = "OTP verified successfully. Welcome!"
    else:
        user.last_login = datetime.now(timezone.utc)
        db.commit()
        logger.info("User %s logged in", user.email)
        message = "Login successful!"

    token_response = TokenResponse(
        access_token=create_access_token({"user_id": user.user_id}),
        token_type="bearer",
    )
    return {
        "message": message,
        "data": token_response.model_dump(),
    }


@router.post("/resend-otp")
def resend_otp(
    body: ResendOtpRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    user = db.query(User).filter(User.user_id == body.user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    code = issue_otp(db, user.user_id, body.purpose)
    background_tasks.add_task(email_service.send_otp_email, user.email, user.name, code, body.purpose.value)
    logger.info("Resent %s OTP to %s", body.purpose.value, user.email)

    return {"message": "OTP has been resent to your email"}


@router.post("/login")
def login(
    body: LoginRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    user = db.query(User).filter(User.email == body.email).first()
    if not user or not verify_secret(body.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    wallet = get_wallet_for_user(db, user.user_id)
    if not wallet or wallet.status != AccountStatus.ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is not active. Please verify your email.",
        )

    code = issue_otp(db, user.user_id, OtpPurpose.LOGIN)
    background_tasks.add_task(email_service.send_otp_email, user.email, user.name, code, "login")

    return {
        "message": "OTP sent to your email for verification",
        "data": {
            "userId": user.user_id,
            "email": user.email,
            "requires2FA": True,
        },
    }
