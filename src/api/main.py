"""FastAPI application entry point."""

import os
import sys
import logging
import tomllib
from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv

# Load environment variables from .env file
# Must be called before importing modules that read env vars at import time
load_dotenv()

# main.py is at <root>/src/api/main.py
_src_path = Path(__file__).parent.parent
sys.path.insert(0, str(_src_path))

from api import response
from api.middleware.rate_limit import RateLimiter, RateLimitMiddleware
from api.middleware.request_logging import RequestLoggingMiddleware
from api.routes import health, users
from utils.env import env_number
from utils.logging import setup_structured_logging
from adapter.mongodb.connection import get_mongodb_client, reset_client, DATABASE_NAME
from adapter.mongodb.indexes import ensure_all_indexes

setup_structured_logging()

logger = logging.getLogger(__name__)

# Read version from pyproject.toml (single source of truth)
_project_root = _src_path.parent
with open(_project_root / "pyproject.toml", "rb") as f:
    VERSION = tomllib.load(f)["project"]["version"]

SERVICE_NAME = "User Management API"
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
RATE_LIMIT_RPS = env_number("RATE_LIMIT_RPS", 100.0, cast=float, minimum=0.001)
RATE_LIMIT_BURST = env_number("RATE_LIMIT_BURST", max(1, int(RATE_LIMIT_RPS)), minimum=1)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown logic."""
    client = get_mongodb_client()
    if client:
        db = client[DATABASE_NAME]
        if ensure_all_indexes(db):
            logger.info("MongoDB indexes verified/created successfully")
        else:
            logger.warning("Failed to create some MongoDB indexes")
    else:
        logger.warning("MongoDB unavailable, skipping index creation")

    yield

    logger.info("Shutting down, closing MongoDB client")
    reset_client()


def _cors_settings() -> tuple[list[str], bool]:
    """Parse CORS_ORIGINS. Credentials are only allowed with an explicit origin list."""
    cors_origins_env = os.getenv("CORS_ORIGINS", "*")
    if cors_origins_env == "*":
        return ["*"], False
    return [origin.strip() for origin in cors_origins_env.split(",")], True


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    in_body = any(err.get("loc", ("",))[0] == "body" for err in errors)
    detail = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ())[1:])}: {err.get('msg')}"
        for err in errors
    )
    logger.warning("Invalid request", extra={"path": request.url.path, "error": detail})
    message = "Invalid request body" if in_body else "Invalid request parameters"
    return response.error(status.HTTP_400_BAD_REQUEST, message, detail)


async def _http_error_handler(request: Request, exc: StarletteHTTPException):
    result = response.error(exc.status_code, str(exc.detail), str(exc.detail))
    if exc.headers:
        result.headers.update(exc.headers)
    return result


async def _unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Panic recovered", exc_info=exc, extra={"path": request.url.path})
    return response.error(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "Something went wrong", "Internal server error"
    )


def create_app(rate_limiter: RateLimiter | None = None) -> FastAPI:
    """Build the application with its middleware stack and routes.

    Args:
        rate_limiter: shared token bucket; one is built from RATE_LIMIT_RPS
            and RATE_LIMIT_BURST when omitted
    """
    if rate_limiter is None:
        rate_limiter = RateLimiter(rate=RATE_LIMIT_RPS, burst=RATE_LIMIT_BURST)

    app = FastAPI(
        title=SERVICE_NAME,
        description="CRUD and pagination API for user records",
        version=VERSION,
        lifespan=lifespan,
    )

    # Last added runs first: logging -> CORS -> rate limit -> routes
    app.add_middleware(RateLimitMiddleware, limiter=rate_limiter)
    cors_origins, allow_credentials = _cors_settings()
    if cors_origins == ["*"]:
        logger.warning(
            "CORS configured with wildcard origin ('*'). "
            "For production, set CORS_ORIGINS to specific domains"
        )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=allow_credentials,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    app.include_router(health.router)
    app.include_router(users.router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": SERVICE_NAME,
            "version": VERSION,
            "environment": ENVIRONMENT,
            "status": "running"
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    port = env_number("PORT", 8080, minimum=1)
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=port,
        access_log=False  # RequestLoggingMiddleware already logs each request
    )
