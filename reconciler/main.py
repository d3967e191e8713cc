"""
Main FastAPI application
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import time
import uuid
from prometheus_client import make_asgi_app

from reconciler.config import settings
from reconciler.core.database import init_db, close_db
from reconciler.core.redis import init_redis, close_redis
from reconciler.core.exceptions import ReconcilerException
from reconciler.core.logging import setup_logging
from reconciler.core.metrics import REQUEST_COUNT, REQUEST_DURATION
from reconciler.schemas.response import ErrorDetail, ErrorResponse
from reconciler.api.v1.api import api_router

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    await init_db()
    logger.info("Database connection established")

    if settings.WEBHOOK_LOCK_ENABLED:
        await init_redis()
        logger.info("Redis connection established")

    yield

    logger.info("Shutting down application")

    await close_db()
    if settings.WEBHOOK_LOCK_ENABLED:
        await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    description="Payment gateway reconciliation for cabin and hostel bookings",
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request tracking middleware
@app.middleware("http")
async def track_requests(request: Request, call_next):
    """
    Track request metrics and add request ID
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    REQUEST_COUNT.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code
    ).inc()

    REQUEST_DURATION.labels(
        method=request.method,
        endpoint=request.url.path
    ).observe(duration)

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = str(duration)

    return response


@app.exception_handler(ReconcilerException)
async def reconciler_exception_handler(request: Request, exc: ReconcilerException):
    logger.info(f"{exc.code} on {request.url.path}: {exc.message}")
    body = ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message, details=exc.details))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.get("/health/live")
async def liveness():
    """Kubernetes liveness probe"""
    return {"status": "alive"}


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.APP_ENV,
        "api_docs": "/docs" if settings.DEBUG else None
    }


app.include_router(api_router, prefix=settings.API_PREFIX)

# Mount Prometheus metrics endpoint
if settings.PROMETHEUS_ENABLED:
    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "reconciler.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
