# backend/app/core/security.py
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
from passlib.context import CryptContext

from .config import settings

# Şifreleme (bcrypt)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    tenant_id: int


# JWT üretme/okuma
def create_access_token(
    subject: str,              # kullanıcı id (string)
    tenant_id: int,            # tenant kimliği; her sorgu bununla filtrelenir
    expires_minutes: Optional[int] = None,
) -> str:
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    payload = {"sub": subject, "tenant": tenant_id, "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> TokenClaims:
    """
    İmza/süre doğrulanır ve sub + tenant claim'leri int'e çevrilir.
    Herhangi bir adım başarısızsa ValueError.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        raise ValueError("Invalid token") from e

    user_id, tenant_id = payload.get("sub"), payload.get("tenant")
    if user_id is None or tenant_id is None:
        raise ValueError("Invalid token payload")
    try:
        return TokenClaims(user_id=int(user_id), tenant_id=int(tenant_id))
    except (TypeError, ValueError) as e:
        raise ValueError("Invalid token payload") from e
