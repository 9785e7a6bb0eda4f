"""
studytime API Server - REST API for free-time ledgers and reminder scheduling.
"""
# ruff: noqa: S104
# S104: Development server binding (guarded by __name__ check)

import logging
import os
from datetime import UTC, datetime

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from api.free_time_router import free_time_router
from api.response_models import HealthResponse
from studytime import config
from studytime.observability import REGISTRY, CorrelationIdMiddleware, configure_logging

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

app = FastAPI(
    title="studytime API",
    description="Free-time extraction and study reminder scheduling",
    version=API_VERSION,
)

# CORS middleware - configurable via CORS_ORIGINS env var
cors_origins_env = os.getenv("CORS_ORIGINS", "*")
cors_origins = (
    ["*"] if cors_origins_env == "*" else [o.strip() for o in cors_origins_env.split(",")]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(free_time_router, prefix="/api")


@app.get("/api/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy", version=API_VERSION, timestamp=datetime.now(UTC).isoformat()
    )


@app.get("/api/metrics", response_class=PlainTextResponse)
def metrics() -> str:
    """Prometheus text exposition of in-process metrics."""
    return REGISTRY.to_prometheus()


if __name__ == "__main__":
    configure_logging(config.LOG_LEVEL)
    port = int(os.getenv("PORT", "8420"))
    logger.info(f"Starting studytime API on port {port}")
    uvicorn.run(app, host="0.0.0.0", port=port)
