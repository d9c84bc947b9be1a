from cryptowallet.core.errors import WalletError


class InvalidAmount(WalletError):
    status_code = 400
    default_message = "Amount must be greater than 0"


class SelfTransferNotAllowed(WalletError):
    status_code = 400
    default_message = "Cannot transfer to yourself"


class PinRequired(WalletError):
    status_code = 400
    default_message = "Transaction PIN is required"


class InvalidPin(WalletError):
    status_code = 401
    default_message = "Invalid transaction PIN"


class PinNotConfigured(WalletError):
    status_code = 403
    default_message = "Transaction PIN not set. Please set your PIN in profile."


class AccountNotFound(WalletError):
    status_code = 404
    default_message = "Wallet not found"


class AccountInactive(WalletError):
    status_code = 403
    default_message = "Account is not active"


class SenderNotFound(AccountNotFound):
    default_message = "Sender wallet not found"


class SenderInactive(AccountInactive):
    pass


class RecipientNotFound(WalletError):
    status_code = 404
    default_message = "Recipient wallet not found"


class RecipientInactive(WalletError):
    status_code = 400
    default_message = "Recipient account is not active"


class InsufficientBalance(WalletError):
    status_code = 400
    default_message = "Insufficient balance"


class TransferFailed(WalletError):
    status_code = 500
    default_message = "Transfer failed"


class RequestFailed(WalletError):
    status_code = 500
    default_message = "Failed to create request"


class PinLocked(WalletError):
    status_code = 403
    default_message = "Too many incorrect PIN attempts. Reset your PIN with your password."


class IdempotencyKeyConflict(WalletError):
    status_code = 409
    default_message = "Idempotency key was already used for a different transfer"
