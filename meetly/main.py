import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from meetly.api.routes import availability, events, meetings, public
from meetly.core.config import settings, _ENV_FILE
from meetly.core.exceptions import SchedulingError

if os.getenv("ENV") != "production":
    logging.basicConfig(level=logging.DEBUG)
else:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}',
    )
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Loading .env from: %s (exists: %s)", _ENV_FILE, _ENV_FILE.exists())
    logger.info(
        "Slot queries capped at %d days, minimum booking notice %d min",
        settings.max_slot_range_days,
        settings.min_booking_notice_minutes,
    )
    if settings.google_calendar_enabled:
        logger.info("Google Calendar mirroring: configured")
    else:
        logger.warning("Google Calendar mirroring: token refresh disabled (GOOGLE_CLIENT_ID/SECRET not set)")
    yield


app = FastAPI(
    title="Meetly API",
    description="Scheduling backend: availability, event types, public booking",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

app.include_router(public.router, prefix="/api/v1")
app.include_router(availability.router, prefix="/api/v1")
app.include_router(events.router, prefix="/api/v1")
app.include_router(meetings.router, prefix="/api/v1")


def _cors_headers(origin: str | None) -> dict[str, str]:
    """Add CORS headers to error responses so the browser doesn't block them."""
    headers = {
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": "GET, POST, PUT, PATCH, DELETE, OPTIONS",
        "Access-Control-Allow-Headers": "Authorization, Content-Type",
    }
    if origin and origin in settings.cors_origins_list:
        headers["Access-Control-Allow-Origin"] = origin
    elif settings.cors_origins_list:
        headers["Access-Control-Allow-Origin"] = settings.cors_origins_list[0]
    return headers


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    """Expected conditions carry a machine-readable code; clients re-fetch slots on SLOT_UNAVAILABLE."""
    if exc.status_code >= 500:
        logger.error("%s: %s", exc.code, exc.detail)
    else:
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
        headers=_cors_headers(request.headers.get("origin")),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return actual error in JSON; include CORS so 500 responses are not blocked by browser."""
    origin = request.headers.get("origin")
    headers = _cors_headers(origin)
    if isinstance(exc, HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=headers,
        )
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
        headers=headers,
    )


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}
