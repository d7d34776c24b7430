"""Main FastAPI application"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import text
from datetime import datetime, timezone
from pathlib import Path
import logging
import time
import uuid

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

from storefront.config import settings
from storefront.core.database import init_db, SessionLocal
from storefront.core.exceptions import BaseAPIException
from storefront.api.v1 import auth, catalog, password, users, profile, orders, order_items, products
from storefront.schemas.response import ErrorResponse
from storefront.services.order_service import order_service
from storefront.services.user_service import user_service

# Configure logging - ensure log directory exists
_log_dir = Path(settings.get_log_file()).parent
_log_dir.mkdir(parents=True, exist_ok=True)
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(settings.get_log_file()),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger(__name__)

REQUEST_COUNT = Counter(
    "yummy_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "yummy_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)


def _route_label(request: Request) -> str:
    # Path templates keep label cardinality bounded
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


def _error_body(request: Request, message: str, details=None) -> dict:
    return ErrorResponse(
        error=message,
        details=details,
        path=request.url.path,
        timestamp=datetime.now(timezone.utc).isoformat(),
    ).model_dump()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    docs_url="/v1/docs" if settings.DEBUG else None,
    redoc_url="/v1/redoc" if settings.DEBUG else None
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Security headers + request timing middleware
@app.middleware("http")
async def add_headers_and_timing(request: Request, call_next):
    """Add security headers, record metrics and log slow requests"""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    start = time.time()
    response = await call_next(request)
    duration = time.time() - start

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["X-Request-ID"] = request_id

    path = _route_label(request)
    REQUEST_COUNT.labels(request.method, path, str(response.status_code)).inc()
    REQUEST_LATENCY.labels(request.method, path).observe(duration)

    if duration > 1.0:
        logger.warning(
            "Slow request: %s %s took %.2fs request_id=%s",
            request.method,
            request.url.path,
            duration,
            request_id,
        )

    return response


# Exception handlers
@app.exception_handler(BaseAPIException)
async def api_exception_handler(request: Request, exc: BaseAPIException):
    """Handle custom API exceptions"""
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        f"API Exception: {exc.message}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.message, exc.details or None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Render pydantic errors as {field: message}"""
    errors = {}
    for error in exc.errors():
        loc = [str(part) for part in error["loc"] if part not in ("body", "query", "path")]
        field = ".".join(loc) or "body"
        message = error["msg"]
        # "Value error, must be provided" -> "must be provided"
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.setdefault(field, message)

    logger.info(
        f"Validation error: {errors}",
        extra={"path": request.url.path, "method": request.method}
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(request, "Validation failed", errors),
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """Handle database errors; details stay in the log"""
    logger.error(
        f"Database error on {request.method} {request.url.path}",
        exc_info=exc,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(request, "the server encountered a problem and could not process your request"),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle all other exceptions"""
    logger.critical(
        f"Unhandled exception on {request.method} {request.url.path}",
        exc_info=exc,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(request, "the server encountered a problem and could not process your request"),
    )


def seed_reference_data() -> None:
    """Roles, order statuses and the optional bootstrap admin"""
    db = SessionLocal()
    try:
        user_service.ensure_roles(db)
        order_service.ensure_statuses(db)
        admin = user_service.seed_admin(db)
        if admin:
            logger.info(f"Admin account ready: {admin.email}")
    finally:
        db.close()


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize application on startup"""
    settings.validate_security_settings()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    seed_reference_data()


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Shutting down {settings.APP_NAME}")


# Health check endpoint
@app.get("/v1/healthcheck")
@app.get("/health")
def health_check():
    """Health check endpoint"""
    db_ok = True
    db_error = None
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        db_ok = False
        db_error = str(exc)
    finally:
        db.close()

    return {
        "status": "available" if db_ok else "degraded",
        "environment": settings.ENVIRONMENT,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": {"ok": db_ok, "error": db_error},
    }


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


# Include routers
app.include_router(auth.router, prefix="/v1/auth", tags=["Authentication"])
app.include_router(password.router, prefix="/v1", tags=["Password reset"])
app.include_router(users.router, prefix="/v1/users", tags=["Users"])
app.include_router(profile.router, prefix="/v1/profile", tags=["Profile"])
app.include_router(orders.router, prefix="/v1/orders", tags=["Orders"])
app.include_router(order_items.router, prefix="/v1/order-items", tags=["Order items"])
app.include_router(products.router, prefix="/v1/products", tags=["Products"])
app.include_router(products.upc_router, prefix="/v1/upc", tags=["Products"])
app.include_router(catalog.categories, prefix="/v1/categories", tags=["Categories"])
app.include_router(catalog.units, prefix="/v1/units", tags=["Units"])
app.include_router(catalog.brands, prefix="/v1/brands", tags=["Brands"])
app.include_router(catalog.countries, prefix="/v1/countries", tags=["Countries"])
app.include_router(catalog.discounts, prefix="/v1/discounts", tags=["Discounts"])
app.include_router(catalog.roles, prefix="/v1/roles", tags=["Roles"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "storefront.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=1 if settings.DEBUG else settings.WORKERS
    )
