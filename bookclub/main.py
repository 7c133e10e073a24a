"""FastAPI application entry point."""
import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from bookclub.core.config import settings
from bookclub.core.structured_logging import build_log_context, configure_logging
from bookclub.db.session import engine

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger("bookclub.request")

# ============================================================================
# Sentry Integration (optional, for production error tracking)
# ============================================================================

if settings.SENTRY_DSN and settings.ENV != "dev":
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,  # 10% of requests for performance monitoring
        send_default_pii=False,  # Don't send PII to Sentry
    )
    logging.info("Sentry initialized for error tracking")

# ============================================================================
# Rate Limiting
# ============================================================================

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from bookclub.core.rate_limit import limiter


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Book Club API",
    description="Meeting scheduling, book voting and club content",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# CORS middleware - must be added before routers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,  # Required for cookies
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)


@app.middleware("http")
async def request_logging(request: Request, call_next):
    """Assign or echo X-Request-ID and log one line per request."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    started = time.perf_counter()
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    route = request.scope.get("route")
    context = build_log_context(
        request_id=request_id,
        route=getattr(route, "path", None) or request.url.path,
        method=request.method,
        status_code=response.status_code,
        duration_ms=(time.perf_counter() - started) * 1000,
    )
    logger.info(
        "%s %s -> %d", request.method, context["route"], response.status_code, extra=context
    )
    return response


@app.exception_handler(OperationalError)
async def database_unavailable(request: Request, exc: OperationalError):
    """Transient database failures that survived the retry policy."""
    logging.getLogger(__name__).error("Database unavailable", exc_info=exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Database temporarily unavailable, please retry"},
    )


# ============================================================================
# Routers
# ============================================================================

from bookclub.routers import (
    admin,
    attendance,
    auth,
    board,
    books,
    candidates,
    comments,
    dashboard,
    discussions,
    gallery,
    meetings,
    reviews,
    schedules,
    upload,
)

app.include_router(auth.router)
app.include_router(admin.router)
app.include_router(books.router)
app.include_router(dashboard.router)

# Scheduling workflow: calendar, candidates, RSVPs, submissions
app.include_router(schedules.router)
app.include_router(candidates.router)
app.include_router(attendance.router)
app.include_router(meetings.router)

# Club content
app.include_router(board.router)
app.include_router(discussions.router)
app.include_router(reviews.router)
app.include_router(gallery.router)
app.include_router(comments.router)
app.include_router(upload.router)

# Locally stored uploads are served by the API in development
if settings.STORAGE_BACKEND == "local":
    app.mount(
        "/uploads",
        StaticFiles(directory=settings.LOCAL_STORAGE_PATH, check_dir=False),
        name="uploads",
    )


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health():
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
