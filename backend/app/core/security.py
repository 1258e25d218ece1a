"""Access-token issuance/verification (HS256) and password hashing."""

import time
import uuid

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings

ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def create_access_token(
    user_id: uuid.UUID,
    email: str,
    expires_in: int | None = None,
) -> str:
    """Create a signed access token whose ``sub`` is the user id."""
    if expires_in is None:
        expires_in = settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    now = int(time.time())
    payload = {
        "sub": str(user_id),
        "email": email,
        "token_use": "access",
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Decode and verify an access token. Raises ``JWTError`` when invalid."""
    claims = jwt.decode(
        token,
        settings.SECRET_KEY,
        algorithms=[ALGORITHM],
        options={"verify_aud": False, "verify_iss": False},
    )
    if claims.get("token_use") != "access":
        raise JWTError("Not an access token")
    return claims
