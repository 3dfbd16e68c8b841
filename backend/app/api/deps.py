# backend/app/api/deps.py
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from ..core.config import SessionLocal
from ..core.errors import Unauthorized
from ..core.security import decode_token
from ..models import User

# Swagger'da "Authorize" için tek Bearer alanı; eksik header'ı 401'e biz çeviriyoruz
auth_scheme = HTTPBearer(auto_error=False)

# ---------------------------
# DB Session Dependency
# ---------------------------
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# ---------------------------
# Current User DTO
# ---------------------------
class CurrentUser:
    def __init__(self, id: int, tenant_id: int, email: str, name: str = ""):
        self.id = id
        self.tenant_id = tenant_id
        self.email = email
        self.name = name

# ---------------------------
# Tenant guard: Token → CurrentUser
# ---------------------------
def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(auth_scheme),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """
    Her tenant-scoped endpoint'in ilk adımı. Session yoksa, token çözülemiyorsa
    veya tenant kimliği yoksa storage'a dokunmadan 401 döner.
    """
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Unauthorized")

    try:
        claims = decode_token(credentials.credentials)
    except ValueError as e:
        raise Unauthorized(str(e))

    # token'daki tenant kullanıcının gerçek tenant'ı değilse kullanıcı bulunmaz
    user = (
        db.query(User)
        .filter(User.id == claims.user_id, User.tenant_id == claims.tenant_id)
        .first()
    )
    if not user:
        raise Unauthorized("User not found")

    return CurrentUser(id=user.id, tenant_id=user.tenant_id, email=user.email, name=user.name or "")
