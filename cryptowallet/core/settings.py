import os
from dotenv import load_dotenv

load_dotenv()


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./cryptowallet.db")

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

# argon2 cost parameters, lowered in tests
ARGON2_ROUNDS = int(os.getenv("ARGON2_ROUNDS", "3"))
ARGON2_MEMORY_COST = int(os.getenv("ARGON2_MEMORY_COST", "102400"))
ARGON2_PARALLELISM = int(os.getenv("ARGON2_PARALLELISM", "8"))

OTP_EXPIRES_MINUTES = int(os.getenv("OTP_EXPIRES_MINUTES", "10"))
OTP_MAX_ATTEMPTS = int(os.getenv("OTP_MAX_ATTEMPTS", "5"))

PIN_MAX_ATTEMPTS = int(os.getenv("PIN_MAX_ATTEMPTS", "5"))

TRANSFER_MAX_CAS_ATTEMPTS = int(os.getenv("TRANSFER_MAX_CAS_ATTEMPTS", "3"))

BREVO_API_KEY = os.getenv("BREVO_API_KEY")
BREVO_BASE_URL = os.getenv("BREVO_BASE_URL", "https://api.brevo.com/v3")
MAIL_FROM_EMAIL = os.getenv("MAIL_FROM_EMAIL", "no-reply@cryptowallet.local")
MAIL_FROM_NAME = os.getenv("MAIL_FROM_NAME", "CryptoWallet")
EMAIL_TIMEOUT_SECONDS = float(os.getenv("EMAIL_TIMEOUT_SECONDS", "10"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE", "logs/cryptowallet.log")

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
