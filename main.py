# Essential imports
import time
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler as default_http_exception_handler
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException
from routers import auth, users
from contextlib import asynccontextmanager

# Import all models for SQLAlchemy relationship resolution
import models  # This triggers the imports in models/__init__.py

# Rate limiter imports
from slowapi.errors import RateLimitExceeded
from middleware.rate_limiter import limiter

# Logging imports
from core.logging_config import setup_logging
from utils.logger import get_logger, log_request
from middleware import RequestIDMiddleware, get_request_id
from core.config import settings
from core.container import build_container
from core.database import SessionLocal, init_db
from core.result import ErrorKind
from utils.responses import error_response

# CORS imports
from fastapi.middleware.cors import CORSMiddleware

# Initialize logging
setup_logging(
    log_level=settings.LOG_LEVEL,
    log_dir=settings.LOG_DIR
)

logger = get_logger(__name__)

NETWORK_ERROR = "Network error"


def purge_expired_tokens(container) -> None:
    db = SessionLocal()
    try:
        refresh_count = container.token_service.purge_expired(db)
        blacklist_count = container.blacklist_service.purge_expired(db)
    finally:
        db.close()
    logger.info(
        "Expired tokens purged",
        extra={"refresh_tokens": refresh_count, "blacklisted_tokens": blacklist_count}
    )


# Lifecycle events logging
@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    purge_expired_tokens(app.state.container)
    logger.info("Application startup complete", extra={"event": "startup"})
    yield
    logger.info("Application shutting down", extra={"event": "shutdown"})


app = FastAPI(
    title=settings.APP_NAME,
    description="CRUD backend with JWT authentication, refresh-token rotation and token blacklist",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Services are built once and shared by every request
app.state.container = build_container(settings)


# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# HTTP Request Logging Middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log all HTTP requests with method, path, status code, and duration.
    """
    start_time = time.time()
    response = await call_next(request)
    duration = (time.time() - start_time) * 1000

    client_ip = request.client.host if request.client else "unknown"
    query = dict(request.query_params)
    log_request(
        logger, request.method, request.url.path, response.status_code, duration, client_ip,
        extra={"query": query} if query else None
    )

    return response


# Add request ID middleware (outermost, so the request logs carry the id)
app.add_middleware(RequestIDMiddleware)


# Health check
@app.get("/health")
async def health_check():
    logger.debug("Health check requested")
    return {"status": "Healthy"}


def _validation_errors(exc: RequestValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        # drop the "body" / "query" prefix, keep the field path
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "header")]
        field = ".".join(location) or "request"
        errors.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return errors


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = _validation_errors(exc)
    logger.info(
        "Request validation failed",
        extra={"path": request.url.path, "fields": list(errors)}
    )
    return error_response(ErrorKind.VALIDATION, "Validation failed", errors)


_KIND_BY_STATUS = {
    401: ErrorKind.UNAUTHORIZED,
    404: ErrorKind.NOT_FOUND,
    405: ErrorKind.METHOD_NOT_ALLOWED,
    409: ErrorKind.CONFLICT,
    422: ErrorKind.VALIDATION,
    429: ErrorKind.RATE_LIMITED,
}


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    kind = _KIND_BY_STATUS.get(exc.status_code)
    if kind is None:
        # statuses without a result kind keep the default rendering
        return await default_http_exception_handler(request, exc)

    response = error_response(kind, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    if exc.status_code == 401:
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


def _log_unhandled(request: Request, exc: Exception):
    logger.error(
        f"Unhandled exception: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "request_id": get_request_id(request)
        },
        exc_info=exc
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """Infrastructure failures: logged with the cause, answered with a generic 500."""
    _log_unhandled(request, exc)
    return error_response(ErrorKind.INTERNAL, NETWORK_ERROR)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    _log_unhandled(request, exc)
    return error_response(ErrorKind.INTERNAL, NETWORK_ERROR)


# Including routers
app.include_router(auth.router)
app.include_router(users.router)


# Add rate limiter to the app
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(
        "Rate limit exceeded",
        extra={"path": request.url.path, "limit": str(exc.detail)}
    )
    response = error_response(ErrorKind.RATE_LIMITED, f"Rate limit exceeded: {exc.detail}")
    # Retry-After / X-RateLimit-* when header injection is enabled
    return request.app.state.limiter._inject_headers(response, getattr(request.state, "view_rate_limit", None))
