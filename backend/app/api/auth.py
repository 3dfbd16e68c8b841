# backend/app/api/auth.py

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from ..models import Tenant, User
from .deps import get_db, get_current_user, CurrentUser
from ..core.errors import Unauthorized, ValidationFailed
from ..core.security import hash_password, verify_password, create_access_token

router = APIRouter(prefix="/auth", tags=["auth"])


# ---------- Schemas ----------

class SignupIn(BaseModel):
    tenant_name: str = Field(..., min_length=1)
    tenant_slug: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginIn(BaseModel):
    tenant_slug: str
    email: EmailStr
    password: str


class MeOut(BaseModel):
    id: int
    email: str
    name: str
    tenant_id: int


# ---------- Endpoints ----------

@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(body: SignupIn, db: Session = Depends(get_db)):
    """
    Yeni bir tenant + sahibi olan kullanıcıyı oluşturur ve erişim token'ı döner.
    BusinessProfile boş başlar; /business-settings ile doldurulur.
    """
    if db.query(Tenant).filter(Tenant.slug == body.tenant_slug).first():
        raise ValidationFailed("Tenant slug already exists")

    try:
        tenant = Tenant(name=body.tenant_name, slug=body.tenant_slug)
        db.add(tenant)
        db.flush()  # tenant.id artık hazır

        user = User(
            tenant_id=tenant.id,
            email=body.email.lower(),
            name=body.name,
            password_hash=hash_password(body.password),
            business_details={"business_name": body.tenant_name},
        )
        db.add(user)
        db.flush()

        token = create_access_token(subject=str(user.id), tenant_id=tenant.id)

        db.commit()
        return {"access_token": token, "token_type": "bearer"}

    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Signup violates a DB constraint",
        )


@router.post("/login")
def login(body: LoginIn, db: Session = Depends(get_db)):
    """
    Tenant slug + email + password ile giriş yapar ve erişim token'ı döner.
    """
    tenant = db.query(Tenant).filter(Tenant.slug == body.tenant_slug).first()
    if not tenant:
        raise Unauthorized("Invalid credentials")

    user = (
        db.query(User)
        .filter(User.tenant_id == tenant.id, User.email == body.email.lower())
        .first()
    )
    if not user or not verify_password(body.password, user.password_hash):
        raise Unauthorized("Invalid credentials")

    token = create_access_token(subject=str(user.id), tenant_id=tenant.id)
    return {"access_token": token, "token_type": "bearer"}


@router.get("/me", response_model=MeOut)
def me(current: CurrentUser = Depends(get_current_user)):
    return MeOut(
        id=current.id,
        email=current.email,
        name=current.name,
        tenant_id=current.tenant_id,
    )
