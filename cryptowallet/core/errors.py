from fastapi import Request
from fastapi.responses import JSONResponse

from cryptowallet.core.logging_config import get_logger

logger = get_logger("errors")


class WalletError(Exception):
    """
    Base for domain failures that map onto an HTTP status.
    `kind` defaults to the class name and is sent back to the caller.
    """

    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        return type(self).__name__


async def wallet_error_handler(request: Request, exc: WalletError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.kind, exc.message)
    else:
        logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind},
    )
