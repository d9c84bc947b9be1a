import re
from datetime import datetime, timedelta, timezone

from cryptowallet.core.settings import OTP_MAX_ATTEMPTS
from cryptowallet.features.auth.models.otp_model import Otp
from cryptowallet.features.auth.models.user_model import User
from cryptowallet.features.wallet.models.wallet_model import AccountStatus, Wallet

REGISTRATION = {"name": "Jane Doe", "email": "Jane@Example.com", "password": "s3cret-pass"}


def _register(client, **overrides):
    return client.post("/auth/register", json={**REGISTRATION, **overrides})


def _verify(client, user_id, otp, purpose):
    return client.post("/auth/verify-otp", json={"userId": user_id, "otp": otp, "purpose": purpose})


def _resend(client, user_id, purpose):
    return client.post("/auth/resend-otp", json={"userId": user_id, "purpose": purpose})


def _wrong_code(code):
    return "000000" if code != "000000" else "111111"


class TestRegister:
    def test_creates_pending_wallet_and_sends_otp(self, client, db_session, email_service):
        resp = _register(client)

        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["email"] == "jane@example.com"
        assert re.fullmatch(r"CW[0-9A-F]{12}", data["walletId"])

        db_session.expire_all()
        wallet = db_session.query(Wallet).filter(Wallet.user_id == data["userId"]).one()
        assert wallet.status == AccountStatus.PENDING
        assert wallet.balance == 0

        (otp,) = email_service.otps
        assert otp["email"] == "jane@example.com"
        assert otp["purpose"] == "registration"
        assert re.fullmatch(r"\d{6}", otp["otp"])
        # only the hash is stored
        assert db_session.query(Otp).one().otp_hash != otp["otp"]

    def test_duplicate_email(self, client):
        assert _register(client).status_code == 201
        resp = _register(client, email="jane@example.com")
        assert resp.status_code == 409

    def test_short_password(self, client):
        assert _register(client, password="short").status_code == 422

    def test_invalid_email(self, client):
        assert _register(client, email="not-an-email").status_code == 422


class TestVerifyRegistration:
    def test_activates_wallet_and_returns_token(self, client, db_session, email_service):
        user_id = _register(client).json()["data"]["userId"]
        code = email_service.otps[0]["otp"]

        resp = _verify(client, user_id, code, "registration")

        assert resp.status_code == 200
        token = resp.json()["data"]
        assert token["token_type"] == "bearer"
        assert token["access_token"]

        db_session.expire_all()
        assert db_session.query(Wallet).filter(Wallet.user_id == user_id).one().status == AccountStatus.ACTIVE
        assert db_session.get(User, user_id).email_verified is True
        assert any(mail["subject"].startswith("Welcome") for mail in email_service.sent)

        balance = client.get("/wallet/balance", headers={"Authorization": f"Bearer {token['access_token']}"})
        assert balance.status_code == 200

    def test_wrong_code(self, client, email_service):
        user_id = _register(client).json()["data"]["userId"]
        wrong = _wrong_code(email_service.otps[0]["otp"])

        resp = _verify(client, user_id, wrong, "registration")

        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invalid or expired OTP"

    def test_code_is_single_use(self, client, email_service):
        user_id = _register(client).json()["data"]["userId"]
        code = email_service.otps[0]["otp"]

        assert _verify(client, user_id, code, "registration").status_code == 200
        assert _verify(client, user_id, code, "registration").status_code == 400

    def test_expired_code(self, client, db_session, email_service):
        user_id = _register(client).json()["data"]["userId"]
        db_session.expire_all()
        otp = db_session.query(Otp).one()
        otp.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        db_session.commit()

        resp = _verify(client, user_id, email_service.otps[0]["otp"], "registration")

        assert resp.status_code == 400

    def test_unknown_user(self, client):
        assert _verify(client, "no-such-user", "123456", "registration").status_code == 404

    def test_code_burned_after_too_many_wrong_guesses(self, client, db_session, email_service):
        user_id = _register(client).json()["data"]["userId"]
        code = email_service.otps[0]["otp"]

        for _ in range(OTP_MAX_ATTEMPTS):
            assert _verify(client, user_id, _wrong_code(code), "registration").status_code == 400

        assert _verify(client, user_id, code, "registration").status_code == 400
        db_session.expire_all()
        otp = db_session.query(Otp).one()
        assert otp.used is True
        assert otp.attempts == OTP_MAX_ATTEMPTS

    def test_wrong_guess_below_limit_keeps_code_usable(self, client, email_service):
        user_id = _register(client).json()["data"]["userId"]
        code = email_service.otps[0]["otp"]

        assert _verify(client, user_id, _wrong_code(code), "registration").status_code == 400
        assert _verify(client, user_id, code, "registration").status_code == 200


class TestResendOtp:
    def test_expired_code_replaced(self, client, db_session, email_service):
        user_id = _register(client).json()["data"]["userId"]
        db_session.expire_all()
        otp = db_session.query(Otp).one()
        otp.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        db_session.commit()
        assert _verify(client, user_id, email_service.otps[0]["otp"], "registration").status_code == 400

        resp = _resend(client, user_id, "registration")

        assert resp.status_code == 200
        assert resp.json()["message"] == "OTP has been resent to your email"
        fresh = email_service.otps[-1]
        assert len(email_service.otps) == 2
        assert fresh["purpose"] == "registration"
        assert _verify(client, user_id, fresh["otp"], "registration").status_code == 200

    def test_previous_code_stops_working(self, client, db_session, email_service):
        user_id = _register(client).json()["data"]["userId"]

        _resend(client, user_id, "registration")

        db_session.expire_all()
        old, new = db_session.query(Otp).order_by(Otp.id).all()
        assert old.used is True
        assert new.used is False
        assert _verify(client, user_id, email_service.otps[-1]["otp"], "registration").status_code == 200

    def test_unknown_user(self, client):
        assert _resend(client, "no-such-user", "registration").status_code == 404

    def test_requires_user_and_purpose(self, client):
        assert client.post("/auth/resend-otp", json={"purpose": "login"}).status_code == 422
        assert client.post("/auth/resend-otp", json={"userId": "u1"}).status_code == 422


class TestLogin:
    def _registered_and_verified(self, client, email_service):
        user_id = _register(client).json()["data"]["userId"]
        _verify(client, user_id, email_service.otps[0]["otp"], "registration")
        return user_id

    def test_pending_account_cannot_log_in(self, client):
        _register(client)

        resp = client.post("/auth/login", json={"email": REGISTRATION["email"], "password": REGISTRATION["password"]})

        assert resp.status_code == 403

    def test_wrong_password(self, client, email_service):
        self._registered_and_verified(client, email_service)

        resp = client.post("/auth/login", json={"email": "jane@example.com", "password": "wrong-pass"})

        assert resp.status_code == 401

    def test_unknown_email(self, client):
        resp = client.post("/auth/login", json={"email": "ghost@example.com", "password": "whatever1"})
        assert resp.status_code == 401

    def test_two_step_login(self, client, db_session, email_service):
        user_id = self._registered_and_verified(client, email_service)

        resp = client.post("/auth/login", json={"email": "JANE@example.com", "password": REGISTRATION["password"]})

        assert resp.status_code == 200
        assert resp.json()["data"] == {"userId": user_id, "email": "jane@example.com", "requires2FA": True}
        login_otp = email_service.otps[-1]
        assert login_otp["purpose"] == "login"

        # a registration code cannot complete a login
        assert _verify(client, user_id, email_service.otps[0]["otp"], "login").status_code == 400

        verified = _verify(client, user_id, login_otp["otp"], "login")
        assert verified.status_code == 200
        assert verified.json()["data"]["access_token"]

        db_session.expire_all()
        assert db_session.get(User, user_id).last_login is not None
