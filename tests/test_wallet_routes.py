from conftest import PASSWORD, PIN, auth_headers
from cryptowallet.core.settings import PIN_MAX_ATTEMPTS
from cryptowallet.features.wallet.models.wallet_model import AccountStatus


class TestBalance:
    def test_returns_wallet_balance(self, client, make_wallet):
        wallet = make_wallet(balance="12.50")

        resp = client.get("/wallet/balance", headers=auth_headers(wallet.user_id))

        assert resp.status_code == 200
        assert resp.json()["data"] == {"walletId": wallet.wallet_number, "balance": 12.5}

    def test_requires_token(self, client):
        resp = client.get("/wallet/balance")
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Authentication required"

    def test_rejects_bad_token(self, client):
        resp = client.get("/wallet/balance", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    def test_rejects_inactive_account(self, client, make_wallet):
        wallet = make_wallet(status=AccountStatus.SUSPENDED)

        resp = client.get("/wallet/balance", headers=auth_headers(wallet.user_id))

        assert resp.status_code == 403


class TestDetails:
    def test_includes_statistics(self, client, make_wallet):
        alice = make_wallet(name="Alice", balance="100.00")
        bob = make_wallet(name="Bob", balance="100.00")
        client.post(
            "/transactions/transfer",
            json={"recipientWalletId": bob.wallet_number, "amount": "30", "pin": PIN},
            headers=auth_headers(alice.user_id),
        )
        client.post(
            "/transactions/transfer",
            json={"recipientWalletId": alice.wallet_number, "amount": "5.25", "pin": PIN},
            headers=auth_headers(bob.user_id),
        )
        # pending requests are not counted
        client.post(
            "/transactions/deposit",
            json={"amount": "999", "paymentMethod": "card"},
            headers=auth_headers(alice.user_id),
        )

        resp = client.get("/wallet/details", headers=auth_headers(alice.user_id))

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["user"]["name"] == "Alice"
        assert data["user"]["walletId"] == alice.wallet_number
        assert data["user"]["balance"] == 75.25
        assert data["user"]["status"] == "active"
        assert data["user"]["pinSet"] is True
        assert data["statistics"] == {"totalSent": 30.0, "totalReceived": 5.25, "totalTransactions": 2}


class TestSetPin:
    def _set_pin(self, client, wallet, **body):
        return client.post("/wallet/pin", json=body, headers=auth_headers(wallet.user_id))

    def test_first_pin_requires_password(self, client, make_wallet):
        wallet = make_wallet(pin=None)

        assert self._set_pin(client, wallet, pin="4321").status_code == 400
        assert self._set_pin(client, wallet, pin="4321", password="wrong-password").status_code == 401

        resp = self._set_pin(client, wallet, pin="4321", password=PASSWORD)
        assert resp.status_code == 200
        assert resp.json()["message"] == "Transaction PIN set successfully"

    def test_pin_must_be_four_digits(self, client, make_wallet):
        wallet = make_wallet(pin=None)

        for pin in ["123", "12345", "12a4", "1234\n"]:
            assert self._set_pin(client, wallet, pin=pin, password=PASSWORD).status_code == 400

    def test_change_requires_current_pin(self, client, make_wallet):
        wallet = make_wallet()

        assert self._set_pin(client, wallet, pin="5678", password=PASSWORD).status_code == 400
        assert self._set_pin(client, wallet, pin="5678", currentPin="0000").status_code == 401
        assert self._set_pin(client, wallet, pin="5678", currentPin=PIN).status_code == 200

    def test_new_pin_authorizes_transfers(self, client, make_wallet):
        alice = make_wallet(balance="10.00", pin=None)
        bob = make_wallet()
        self._set_pin(client, alice, pin="2468", password=PASSWORD)

        resp = client.post(
            "/transactions/transfer",
            json={"recipientWalletId": bob.wallet_number, "amount": "1", "pin": "2468"},
            headers=auth_headers(alice.user_id),
        )

        assert resp.status_code == 200

    def test_wrong_current_pin_counts_toward_lock(self, client, make_wallet):
        wallet = make_wallet()

        for _ in range(PIN_MAX_ATTEMPTS):
            assert self._set_pin(client, wallet, pin="5678", currentPin="0000").status_code == 401

        resp = self._set_pin(client, wallet, pin="5678", currentPin=PIN)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Password is required to reset a locked PIN"

    def test_locked_pin_reset_with_password(self, client, make_wallet):
        alice = make_wallet(balance="10.00")
        bob = make_wallet()

        def transfer(pin):
            return client.post(
                "/transactions/transfer",
                json={"recipientWalletId": bob.wallet_number, "amount": "1", "pin": pin},
                headers=auth_headers(alice.user_id),
            )

        for _ in range(PIN_MAX_ATTEMPTS):
            transfer("9999")
        assert transfer(PIN).json()["error"] == "PinLocked"

        assert self._set_pin(client, alice, pin="2468", password="wrong-password").status_code == 401
        assert self._set_pin(client, alice, pin="2468", password=PASSWORD).status_code == 200

        assert transfer("2468").status_code == 200
