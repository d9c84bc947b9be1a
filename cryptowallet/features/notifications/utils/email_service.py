"""
Transactional email over the Brevo HTTP API.

Every send returns a bool and never raises for delivery problems; callers
treat email as best-effort. With no BREVO_API_KEY configured, sends are
skipped and logged.
"""

from dataclasses import dataclass
from html import escape
from decimal import Decimal

import httpx

from cryptowallet.core.logging_config import get_logger
from cryptowallet.core import settings

logger = get_logger("notifications.email")


@dataclass(frozen=True)
class TransactionNotice:
    email: str
    name: str
    kind: str  # sent | received | deposit | withdrawal
    amount: Decimal
    transaction_id: str
    counterparty_name: str | None = None
    counterparty_wallet_id: str | None = None
    status: str = "completed"


SUBJECTS = {
    "sent": "Coins Sent Successfully",
    "received": "Coins Received",
    "deposit": "Deposit Request Submitted",
    "withdrawal": "Withdrawal Request Submitted",
}


class EmailService:
    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        from_email: str | None = None,
        from_name: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.BREVO_API_KEY
        self.base_url = base_url or settings.BREVO_BASE_URL
        self.from_email = from_email or settings.MAIL_FROM_EMAIL
        self.from_name = from_name or settings.MAIL_FROM_NAME
        self.timeout = timeout or settings.EMAIL_TIMEOUT_SECONDS
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def send_email(self, to_email: str, to_name: str, subject: str, html_content: str) -> bool:
        if not self.enabled:
            logger.info("Email disabled (no BREVO_API_KEY); skipping '%s' to %s", subject, to_email)
            return False

        payload = {
            "sender": {"email": self.from_email, "name": self.from_name},
            "to": [{"email": to_email, "name": to_name}],
            "subject": subject,
            "htmlContent": html_content,
        }
        headers = {"api-key": self.api_key, "accept": "application/json"}

        try:
            with httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
                resp = client.post("/smtp/email", json=payload, headers=headers)
                resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("Email to %s rejected by provider: %s %s", to_email, e.response.status_code, e.response.text[:200])
            return False
        except httpx.HTTPError as e:
            logger.error("Email to %s failed: %s", to_email, e)
            return False

        logger.info("Email '%s' sent to %s", subject, to_email)
        return True

    def send_transaction_email(self, notice: TransactionNotice) -> bool:
        subject = f"{SUBJECTS.get(notice.kind, 'Transaction Update')} - {self.from_name}"
        return self.send_email(notice.email, notice.name, subject, render_transaction_html(notice))

    def send_otp_email(self, email: str, name: str, otp: str, purpose: str) -> bool:
        subject = f"Your {self.from_name} verification code"
        html = f"""
        <html>
        <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
            <h2>Hello {escape(name)}!</h2>
            <p>Your verification code for {escape(purpose)} is:</p>
            <div style="background: #f8f9fa; padding: 20px; text-align: center;">
                <h1 style="letter-spacing: 4px;">{otp}</h1>
            </div>
            <p>This code expires in {settings.OTP_EXPIRES_MINUTES} minutes.</p>
        </body>
        </html>
        """
        return self.send_email(email, name, subject, html)

    def send_welcome_email(self, email: str, name: str, wallet_number: str) -> bool:
        subject = f"Welcome to {self.from_name}"
        html = f"""
        <html>
        <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
            <h2>Welcome, {escape(name)}!</h2>
            <p>Your account is active. Your wallet ID is <strong>{escape(wallet_number)}</strong>.</p>
        </body>
        </html>
        """
        return self.send_email(email, name, subject, html)


def render_transaction_html(notice: TransactionNotice) -> str:
    counterparty = ""
    if notice.counterparty_name:
        label = "To" if notice.kind == "sent" else "From"
        counterparty_id = escape(notice.counterparty_wallet_id or "N/A")
        counterparty = f"<p><span>{label}:</span> {escape(notice.counterparty_name)} ({counterparty_id})</p>"

    return f"""
    <html>
    <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
        <h2>Hello {escape(notice.name)},</h2>
        <div style="font-size: 32px; font-weight: bold; text-align: center;">{notice.amount}</div>
        <div>
            <p><span>Transaction ID:</span> {escape(notice.transaction_id)}</p>
            {counterparty}
            <p><span>Status:</span> {escape(notice.status)}</p>
        </div>
    </body>
    </html>
    """
