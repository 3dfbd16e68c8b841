# backend/app/core/config.py
from pydantic_settings import BaseSettings
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
import secrets
from typing import List


class Settings(BaseSettings):
    # --- Security / JWT ---
    SECRET_KEY: str = secrets.token_urlsafe(32)  # prod'da ENV ile ver
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 saat

    # --- Database ---
    DATABASE_URL: str = "sqlite:///./app.db"
    AUTO_CREATE_TABLES: bool = True

    # --- HTTP ---
    CORS_ALLOW_ORIGINS: List[str] = ["*"]
    REQUEST_TIMEOUT_SECONDS: float = 30.0

    # --- Logging ---
    LOG_LEVEL: str = "INFO"

    # --- Documents ---
    QUOTATION_VALIDITY_DAYS: int = 30
    PROPOSAL_VALIDITY_DAYS: int = 7

    # --- Images ---
    BRAND_IMAGE_MAX_PX: int = 500
    PROFILE_IMAGE_SIZE_PX: int = 300

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()

# SQLite için özel connect args
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

# SQLAlchemy Engine & Session
engine = create_engine(settings.DATABASE_URL, connect_args=connect_args, pool_pre_ping=True, future=True)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)
