"""Racers Leaderboard API - Main FastAPI Application."""

import logging
import time
import uuid
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from racers_api.api.routes import leaderboard, records, users
from racers_api.config import get_settings
from racers_api.core.errors import LeaderboardError
from racers_api.services.document_store import create_document_store
from racers_api.services.steam import SteamClient
from racers_api.services.user_mappings import UserMappingCache

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("racers_api")

settings = get_settings()

# Rate limiter setup
limiter = Limiter(key_func=get_remote_address)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded errors."""
    logger.warning(
        f"Rate limit exceeded for {request.client.host if request.client else 'unknown'} "
        f"on {request.url.path}"
    )
    return JSONResponse(
        status_code=429,
        content={
            "error": "Rate limit exceeded. Please slow down.",
            "retry_after": str(exc.detail),
        },
    )


def _error_body(message: str, details) -> dict:
    body = {"error": message}
    if settings.debug and details is not None:
        body["details"] = details
    return body


async def leaderboard_error_handler(request: Request, exc: LeaderboardError):
    """Translate domain errors into JSON error responses."""
    if exc.status_code >= 500:
        logger.error(f"API Error on {request.url.path}: {exc.message} ({exc.details})")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.details),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed JSON or parameters are a 400, not a 422."""
    return JSONResponse(
        status_code=400,
        content=_error_body("Invalid request", jsonable_errors(exc)),
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=_error_body("Internal server error", str(exc)),
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging requests with correlation IDs."""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        start_time = time.time()

        # Add request ID to request state for use in handlers
        request.state.request_id = request_id

        logger.info(
            f"[{request_id}] --> {request.method} {request.url.path} "
            f"from {request.client.host if request.client else 'unknown'}"
        )

        try:
            response = await call_next(request)
            process_time = (time.time() - start_time) * 1000

            logger.info(
                f"[{request_id}] <-- {response.status_code} "
                f"({process_time:.2f}ms)"
            )

            response.headers["X-Request-ID"] = request_id
            return response

        except Exception as e:
            process_time = (time.time() - start_time) * 1000
            logger.error(
                f"[{request_id}] <-- ERROR: {type(e).__name__}: {str(e)} "
                f"({process_time:.2f}ms)"
            )
            raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Racers Leaderboard API...")

    app.state.document_store = create_document_store(settings)
    app.state.steam_client = SteamClient.from_settings(settings)
    app.state.user_mappings = UserMappingCache(
        settings.user_mappings_url,
        httpx.AsyncClient(timeout=settings.http_timeout_seconds),
    )
    logger.info(f"Document store: {settings.store_backend}")

    yield

    logger.info("Shutting down Racers Leaderboard API...")
    await app.state.user_mappings.aclose()
    await app.state.steam_client.aclose()
    await app.state.document_store.aclose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Personal bests and leaderboards for racing maps",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(LeaderboardError, leaderboard_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)

# CORS middleware - configured based on environment
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok", "version": settings.app_version}


@app.get("/")
async def root() -> dict:
    """Root endpoint with API info."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }


# Include routers
app.include_router(leaderboard.router, prefix="/v1")
app.include_router(records.router, prefix="/v1")
app.include_router(users.router, prefix="/v1")
