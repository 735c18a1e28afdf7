"""StayHub: FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from stayhub.api.v1.bookings import router as bookings_router
from stayhub.api.v1.properties import router as properties_router
from stayhub.api.v1.webhooks import router as webhooks_router
from stayhub.booking.errors import BookingError, ErrorKind
from stayhub.config import settings
from stayhub.database import sessionmanager
from stayhub.schemas.common import ErrorResponse

# Configure root logger so all stayhub.* loggers output to stderr (captured by Docker).
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = "5"

ERROR_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.INVALID_RANGE: 422,
    ErrorKind.INSUFFICIENT_NOTICE: 422,
    ErrorKind.BELOW_MIN_STAY: 422,
    ErrorKind.ABOVE_MAX_STAY: 422,
    ErrorKind.DATE_CONFLICT: 409,
    ErrorKind.DATE_BLOCKED: 409,
    ErrorKind.MISSING_PRICE_RULES: 422,
    ErrorKind.LOST_AVAILABILITY_RACE: 409,
    ErrorKind.STALE_STATE: 409,
    ErrorKind.BOOKING_NOT_FOUND: 404,
    ErrorKind.PROPERTY_NOT_FOUND: 404,
    ErrorKind.SERIALIZED_BREAKDOWN_TOO_LARGE: 500,
    ErrorKind.MALFORMED_PAYLOAD: 400,
    ErrorKind.UPSTREAM_TIMEOUT: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup and shutdown events."""
    # Startup: open the connection pool
    if not sessionmanager.is_initialized:
        sessionmanager.init(settings.async_database_url)
    if settings.database_create_all:
        await sessionmanager.create_all()
    yield
    # Shutdown: dispose engine connections
    await sessionmanager.close()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Holiday-rental pricing, availability, and booking core.",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Render every booking failure as a typed ``ErrorResponse``."""
    status_code = ERROR_STATUS_CODES.get(exc.kind, 500)
    if status_code >= 500:
        logger.error("%s on %s %s: %s", exc.kind.value, request.method, request.url.path, exc.message)
    headers = {"Retry-After": RETRY_AFTER_SECONDS} if exc.retryable else None
    body = ErrorResponse(error=exc.kind.value, detail=exc.message, retryable=exc.retryable)
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


@app.exception_handler(TimeoutError)
@app.exception_handler(PoolTimeoutError)
@app.exception_handler(OperationalError)
async def database_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    """Database timeouts and outages surface as a retryable 503."""
    logger.error("Database unavailable on %s %s: %s", request.method, request.url.path, exc)
    body = ErrorResponse(
        error="ServiceUnavailable",
        detail="The booking service is temporarily unavailable. Please retry.",
        retryable=True,
    )
    return JSONResponse(
        status_code=503,
        content=body.model_dump(),
        headers={"Retry-After": RETRY_AFTER_SECONDS},
    )


# Routers
app.include_router(properties_router)
app.include_router(bookings_router)
app.include_router(webhooks_router)


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/", tags=["root"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
