"""FastAPI application, service wiring and startup/shutdown."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from alarmhook.adapters.web.alarm_routes import alarm_router
from alarmhook.config import SERVICE_NAME, AppConfig, __version__
from alarmhook.domain.schedule import isoformat_z
from alarmhook.service import AlarmService

logger = logging.getLogger(__name__)

ENDPOINTS = {
    "POST /api/alarms": "Create new alarm",
    "GET /api/alarms": "List all alarms",
    "GET /api/alarms/:id": "Get specific alarm",
    "PATCH /api/alarms/:id": "Enable or disable alarm",
    "DELETE /api/alarms/:id": "Delete alarm",
    "POST /api/test-webhook": "Test webhook",
    "GET /api/health": "Health check",
}


def format_uptime(seconds: float) -> str:
    seconds = max(int(seconds), 0)
    return f"{seconds // 3600}h {(seconds % 3600) // 60}m {seconds % 60}s"


def create_app(service: Optional[AlarmService] = None, config: Optional[AppConfig] = None) -> FastAPI:
    """Build the app. Without a service one is built from ``config`` (or env)."""
    if service is None:
        service = AlarmService.from_config(config or AppConfig.from_env())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        restored = await service.start()
        logger.info("%s running, %d timer(s) armed", SERVICE_NAME, restored)
        try:
            yield
        finally:
            await service.shutdown()
            logger.info("%s stopped", SERVICE_NAME)

    app = FastAPI(title=SERVICE_NAME, version=__version__, lifespan=lifespan)
    app.state.service = service
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept"],
    )
    app.include_router(alarm_router)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        return await call_next(request)

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(Exception)
    async def internal_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"},
        )

    @app.get("/")
    async def root():
        """Service info"""
        return {
            "service": SERVICE_NAME,
            "status": "running",
            "timestamp": isoformat_z(datetime.now(timezone.utc)),
            "activeAlarms": service.stats()["alarms"],
            "endpoints": ENDPOINTS,
        }

    @app.get("/api/health")
    async def health():
        stats = service.stats()
        now = datetime.now(timezone.utc)
        return {
            "success": True,
            "status": "healthy",
            "timestamp": isoformat_z(now),
            "uptime": format_uptime((now - service.started_at).total_seconds()),
            "activeAlarms": stats["alarms"],
            "enabledAlarms": stats["enabledAlarms"],
            "activeTimers": stats["armedTimers"],
        }

    return app
