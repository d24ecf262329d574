from contextlib import asynccontextmanager
import logging

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from greengrocer.api.v1.router import api_router
from greengrocer.core.config import settings
from greengrocer.core.limiter import limiter
from greengrocer.core.logging import setup_logging
from greengrocer.db.session import engine
from greengrocer.middleware.request_id import REQUEST_ID_HEADER, RequestIdMiddleware

setup_logging()

logger = logging.getLogger(__name__)


def _init_sentry() -> None:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        environment=settings.APP_ENV,
        send_default_pii=False,  # imported rows carry customer addresses
    )
    logger.info("Sentry initialized for %s", settings.APP_ENV)


if settings.SENTRY_DSN:
    _init_sentry()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Product images need the bucket; users, imports and the catalogue do not
    try:
        from greengrocer.services.storage import ensure_bucket
        ensure_bucket()
    except Exception as exc:
        logger.warning("Image bucket %s unavailable (continuing): %s", settings.MINIO_BUCKET_NAME, exc)
    logger.info(
        "Greengrocer admin API up: import limit %d rows, %d concurrent creates",
        settings.IMPORT_MAX_ROWS,
        settings.IMPORT_MAX_IN_FLIGHT_CREATES,
    )
    yield
    await engine.dispose()


app = FastAPI(
    title="Greengrocer Admin",
    description="Back office for customers, drivers and the product catalogue, including CSV bulk import.",
    version="0.1.0",
    docs_url="/api/docs" if settings.APP_ENV != "production" else None,
    redoc_url="/api/redoc" if settings.APP_ENV != "production" else None,
    lifespan=lifespan,
)

# ─── Middleware ───
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER, "Content-Disposition"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = getattr(request.state, "request_id", None)
    logger.error("Unhandled exception: %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error.", "request_id": request_id},
    )


# ─── Routers ───
app.include_router(api_router, prefix="/api/v1")


@app.get("/health", tags=["health"])
async def health():
    return {"status": "ok", "env": settings.APP_ENV}
