from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from cryptowallet.core.errors import WalletError, wallet_error_handler
from cryptowallet.core.logging_config import get_logger, setup_logging
from cryptowallet.core.settings import CORS_ORIGINS
from cryptowallet.database.db import Base, engine
from cryptowallet.features.auth.models import otp_model, user_model  # noqa: F401
from cryptowallet.features.auth.routers import auth_router
from cryptowallet.features.transaction.models import transaction_model  # noqa: F401
from cryptowallet.features.transaction.routes import transaction_route
from cryptowallet.features.wallet.models import wallet_model  # noqa: F401
from cryptowallet.features.wallet.routes import wallet_route

setup_logging()
logger = get_logger("app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Crypto wallet API starting up")
    yield
    logger.info("Crypto wallet API shutting down")


app = FastAPI(title="Crypto Wallet API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)

app.add_exception_handler(WalletError, wallet_error_handler)

app.include_router(auth_router.router)
app.include_router(wallet_route.router)
app.include_router(transaction_route.router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    # bodies carry passwords and PINs, so only the request line is logged
    response = await call_next(request)
    logger.info(
        "HTTP %s %s from %s -> %s",
        request.method,
        request.url.path,
        request.client.host if request.client else "?",
        response.status_code,
    )
    return response


@app.get('/', tags=["default"])
def index():
    return {"data": "welcome"}


@app.get("/api/health", tags=["default"])
def health():
    return {"status": "healthy"}
