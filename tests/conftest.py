import os

# Configure before any cryptowallet import reads settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_FILE"] = ""
os.environ["BREVO_API_KEY"] = ""
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["ARGON2_ROUNDS"] = "1"
os.environ["ARGON2_MEMORY_COST"] = "8"
os.environ["ARGON2_PARALLELISM"] = "1"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from cryptowallet.database.db import Base, get_db
from cryptowallet.features.auth.models.user_model import User
from cryptowallet.features.auth.utils.jwt_token import create_access_token
from cryptowallet.features.auth.utils.security import hash_secret
from cryptowallet.features.notifications.utils.email_service import EmailService
from cryptowallet.features.notifications.utils.notifier import get_email_service
from cryptowallet.features.wallet.models.wallet_model import AccountStatus, Wallet

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

PASSWORD = "password123"
PIN = "1234"


class RecordingEmailService(EmailService):
    """Captures outgoing mail instead of calling the provider."""

    def __init__(self):
        super().__init__(api_key="test-key")
        self.sent = []
        self.otps = []

    def send_email(self, to_email, to_name, subject, html_content):
        self.sent.append({"to": to_email, "subject": subject, "html": html_content})
        return True

    def send_otp_email(self, email, name, otp, purpose):
        self.otps.append({"email": email, "otp": otp, "purpose": purpose})
        return super().send_otp_email(email, name, otp, purpose)


class RecordingNotifier:
    def __init__(self):
        self.notices = []

    def notify(self, notice):
        self.notices.append(notice)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def email_service():
    return RecordingEmailService()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(db_session, email_service):
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_service] = lambda: email_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_wallet(db_session):
    """Create a user with a wallet; returns the Wallet row."""
    counter = {"n": 0}

    def _make(name=None, balance="0.00", status=AccountStatus.ACTIVE, pin=PIN, password=PASSWORD):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            email=f"user{n}@example.com",
            name=name or f"User {n}",
            password_hash=hash_secret(password),
            email_verified=status == AccountStatus.ACTIVE,
        )
        db_session.add(user)
        db_session.commit()

        wallet = Wallet(
            user_id=user.user_id,
            wallet_number=f"CW{n:012d}",
            balance=Decimal(balance),
            status=status,
            pin_hash=hash_secret(pin) if pin else None,
        )
        db_session.add(wallet)
        db_session.commit()
        db_session.refresh(wallet)
        return wallet

    return _make


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'user_id': user_id})}"}


def balance_of(db_session, wallet: Wallet) -> Decimal:
    db_session.expire_all()
    return db_session.get(Wallet, wallet.id).balance
