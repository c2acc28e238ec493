"""
Main FastAPI application for the Cosmetics Commerce API.
Serves chat, payments, KOL videos, health and metrics.
"""
import logging
import time
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.logging import configure_logging
from app.api.routes import chat, health, kol_videos, payments
from app.utils.metrics import (
    http_request_duration_seconds,
    http_requests_total,
    router as metrics_router,
)


configure_logging()
logger = logging.getLogger("app")

app = FastAPI(
    title="Cosmetics Commerce API",
    description="Chat assistant, KOL videos and PayOS payments for the cosmetics storefront",
    version="1.0.0",
)

# CORS
origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
if not origins:
    origins = ["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:5173"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = request.headers.get(settings.request_id_header) or str(uuid4())
    start = time.time()
    response = await call_next(request)
    elapsed = time.time() - start
    response.headers[settings.request_id_header] = request_id
    http_requests_total.labels(method=request.method, status_code=str(response.status_code)).inc()
    http_request_duration_seconds.labels(method=request.method).observe(elapsed)
    logger.info(
        "http_request",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "latency_ms": int(elapsed * 1000),
        },
    )
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed requests are 400 for storefront compatibility (not FastAPI's 422)."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", extra={"path": request.url.path, "method": request.method})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# Routers
app.include_router(health.router, tags=["health"])
app.include_router(chat.router)
app.include_router(payments.router)
app.include_router(kol_videos.router)
app.include_router(metrics_router)
