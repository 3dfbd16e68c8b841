# backend/app/main.py
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import settings, engine
from .core.errors import error_body, install_error_handlers
from .core.logging_config import configure_logging
from .models import Base

# ---- Routers ----
from .api import (
    auth,
    customers,
    quotations,
    invoices,
    proposals,
    presets,
    brand_images,
    uploads,
    business_settings,
    dashboard,
)
from .api.products_api import router as products_router

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.AUTO_CREATE_TABLES:
        # geliştirme kolaylığı; prod'da alembic upgrade head
        Base.metadata.create_all(bind=engine)
    logger.info("API started (db=%s)", engine.url.render_as_string(hide_password=True))
    yield


app = FastAPI(title="Quotation & Invoice API", lifespan=lifespan)
install_error_handlers(app)

# ---------------------------
# CORS
# ---------------------------
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]


def _resolve_allowed_origins() -> list[str]:
    # settings.CORS_ALLOW_ORIGINS virgüllü string (veya liste) olabilir
    raw = getattr(settings, "CORS_ALLOW_ORIGINS", None)
    if not raw:
        return DEFAULT_CORS_ORIGINS
    if isinstance(raw, (list, tuple)):
        vals = [str(x).strip().rstrip("/") for x in raw if str(x).strip()]
    else:
        vals = [s.strip().rstrip("/") for s in str(raw).split(",") if s.strip()]
    return vals or DEFAULT_CORS_ORIGINS


ALLOW_ORIGINS = _resolve_allowed_origins()
# "*" ile allow_credentials birlikte çalışmaz
ALLOW_CREDENTIALS = ALLOW_ORIGINS != ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOW_ORIGINS,
    allow_credentials=ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------
# Request timeout
# ---------------------------
@app.middleware("http")
async def request_timeout(request: Request, call_next):
    try:
        return await asyncio.wait_for(call_next(request), timeout=settings.REQUEST_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        logger.warning(
            "Request timed out after %ss: %s %s",
            settings.REQUEST_TIMEOUT_SECONDS, request.method, request.url.path,
        )
        return JSONResponse(status_code=status.HTTP_504_GATEWAY_TIMEOUT, content=error_body("Request timed out"))


# ---------------------------
# Health
# ---------------------------
@app.get("/health", tags=["system"])
def health():
    return {"status": "ok"}


# ---------------------------
# Routers
# ---------------------------
app.include_router(auth.router)
app.include_router(business_settings.router)

# Master data
app.include_router(customers.router)
app.include_router(products_router)

# Documents
app.include_router(quotations.router)
app.include_router(invoices.router)
app.include_router(proposals.router)
app.include_router(presets.router)

# Images
app.include_router(brand_images.router)
app.include_router(uploads.router)

app.include_router(dashboard.router)
