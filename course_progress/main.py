import time
import logging
import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from .infrastructure.db import engine
from .infrastructure.models import Base
from .infrastructure.metrics import (
    metrics_endpoint,
    http_requests_total,
    http_request_duration_seconds
)
from .interfaces.http.routers import admin as admin_router
from .interfaces.http.routers import courses as courses_router
from .interfaces.http.routers import progress as progress_router
from .domain.errors import (
    AlreadyEnrolled, ContentInvalid, Forbidden, MalformedSubmission, NotEnrolled, NotFound,
    ProgressError, Unauthenticated,
)
from .config import settings

# Настройка структурированного логирования
log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.JSONRenderer(ensure_ascii=False)
    ],
    wrapper_class=structlog.make_filtering_bound_logger(log_level),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

ERROR_STATUS = {
    NotFound: status.HTTP_404_NOT_FOUND,
    Unauthenticated: status.HTTP_401_UNAUTHORIZED,
    NotEnrolled: status.HTTP_403_FORBIDDEN,
    Forbidden: status.HTTP_403_FORBIDDEN,
    AlreadyEnrolled: status.HTTP_409_CONFLICT,
    MalformedSubmission: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ContentInvalid: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

app = FastAPI(title="Course Progress Service", version="0.1.0")

# Middleware для кодировки, метрик и логирования запросов
@app.middleware("http")
async def add_charset_header(request: Request, call_next):
    start_time = time.time()
    method = request.method
    path = request.url.path

    response = await call_next(request)

    if response.headers.get("content-type", "").startswith("application/json"):
        response.headers["content-type"] = "application/json; charset=utf-8"

    # Метрики
    duration = time.time() - start_time
    status_code = response.status_code
    http_requests_total.labels(method=method, endpoint=path, status=status_code).inc()
    http_request_duration_seconds.labels(method=method, endpoint=path).observe(duration)

    # Логирование
    logger.info(
        "http_request",
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=round(duration * 1000, 2)
    )

    return response


@app.exception_handler(ProgressError)
async def progress_error_handler(request: Request, exc: ProgressError):
    status_code = next(
        (code for kind, code in ERROR_STATUS.items() if isinstance(exc, kind)),
        status.HTTP_400_BAD_REQUEST,
    )
    # 5xx - неисправность данных сервиса, а не ошибка клиента
    log = logger.error if status_code >= 500 else logger.info
    log("request_failed", path=request.url.path, error=exc.code, detail=exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": exc.code, "detail": exc.message},
    )


@app.on_event("startup")
def on_startup():
    logger.info("Starting course progress service", version="0.1.0")
    Base.metadata.create_all(bind=engine)

    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    logger.info("Database connection established")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/metrics")
def metrics():
    """Prometheus metrics endpoint"""
    return metrics_endpoint()


app.include_router(progress_router.router)
app.include_router(courses_router.router)
app.include_router(admin_router.router)
