from datetime import datetime, timedelta, timezone
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from cryptowallet.features.auth.schemas.auth_schema import CurrentUser, TokenPayload
from cryptowallet.core.settings import JWT_SECRET_KEY, JWT_ALGORITHM, JWT_EXPIRES_MINUTES
from jose import jwt, JWTError


bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_minutes: int = JWT_EXPIRES_MINUTES):
    to_encode = data.copy()
    expiry_time = datetime.now(timezone.utc) + timedelta(minutes = expires_minutes)

    to_encode["exp"] =  int(expiry_time.timestamp())

    token_payload = TokenPayload(**to_encode)
    return jwt.encode(token_payload.model_dump(), JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> CurrentUser:
    try:
        payload = jwt.decode(token,
                             JWT_SECRET_KEY,
                             algorithms=[JWT_ALGORITHM]
                )

        user_id = payload.get("user_id")
        if not user_id:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
        return CurrentUser(**payload)
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

def get_current_user(creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)) -> CurrentUser:
    if creds is None or creds.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return decode_access_token(creds.credentials)
