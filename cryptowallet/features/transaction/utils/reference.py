import secrets
import time


def generate_transaction_id() -> str:
    # TXN-<last 8 digits of epoch millis>-<8 hex>
    timestamp = str(int(time.time() * 1000))[-8:]
    return f"TXN-{timestamp}-{secrets.token_hex(4).upper()}"
