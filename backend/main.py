#!/usr/bin/env python3
"""
Docker Update Checker Backend
Reports, per running container, whether a newer image is available in its registry

The UI polls /api/containers every CHECK_INTERVAL seconds. Nothing is kept
between polls: every request re-reads the inventory and re-queries registries.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.settings import AppConfig, setup_logging, HealthCheckFilter
from docker_monitor.container_discovery import (
    ContainerDiscovery,
    InventoryUnavailable,
    get_container_discovery,
)
from models.response_models import (
    ApiInfoResponse,
    ConfigResponse,
    ContainersResponse,
    ContainerStatusModel,
    ErrorResponse,
    HealthResponse,
)
from updates.update_checker import UpdateChecker

APP_NAME = "Docker Update Checker API"
APP_VERSION = "1.0.0"

# Configure logging
setup_logging(AppConfig.LOG_LEVEL)
logger = logging.getLogger(__name__)


# Global instance (created on first request)
_update_checker: Optional[UpdateChecker] = None


def get_update_checker() -> UpdateChecker:
    """Get or create global UpdateChecker instance"""
    global _update_checker
    if _update_checker is None:
        _update_checker = UpdateChecker(
            timeout=AppConfig.REGISTRY_TIMEOUT,
            max_concurrency=AppConfig.MAX_CONCURRENT_CHECKS,
        )
    return _update_checker


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle"""
    # Validate configuration early to fail fast on misconfiguration
    AppConfig.validate()

    # Reapply health check filter to uvicorn access logger (must be done after uvicorn starts)
    uvicorn_access = logging.getLogger("uvicorn.access")
    uvicorn_access.addFilter(HealthCheckFilter())

    logger.info(f"Docker Update Checker running on port {AppConfig.PORT}")
    logger.info(f"API endpoint: http://localhost:{AppConfig.PORT}/api/containers")
    logger.info(f"Health check: http://localhost:{AppConfig.PORT}/api/health")
    if AppConfig.CHECK_INTERVAL == 0:
        logger.info("Auto-refresh: DISABLED (manual refresh only)")
    else:
        logger.info(f"Check interval: {AppConfig.CHECK_INTERVAL} seconds ({AppConfig.CHECK_INTERVAL / 60:g} minutes)")

    yield

    logger.info("Docker Update Checker shutting down")


app = FastAPI(
    title=APP_NAME,
    version=APP_VERSION,
    lifespan=lifespan
)

# Configure CORS - environment-based, allow all when unset
cors_config = AppConfig.CORS_ORIGINS
if cors_config:
    origins_list = [origin.strip() for origin in cors_config.split(',')]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins_list,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    logger.info(f"CORS configured for specific origins: {origins_list}")
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type"],
    )


# ==================== API Routes ====================

@app.get("/api", response_model=ApiInfoResponse)
async def api_info():
    """API info"""
    return ApiInfoResponse(
        name=APP_NAME,
        version=APP_VERSION,
        endpoints={
            "containers": "/api/containers",
            "config": "/api/config",
            "health": "/api/health",
        },
    )


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint for Docker health checks"""
    return HealthResponse()


@app.get("/api/config", response_model=ConfigResponse)
async def get_config():
    """Application configuration needed by the UI"""
    return ConfigResponse.from_interval(AppConfig.CHECK_INTERVAL)


@app.get(
    "/api/containers",
    response_model=ContainersResponse,
    responses={500: {"model": ErrorResponse}},
)
async def get_containers(
    discovery: ContainerDiscovery = Depends(get_container_discovery),
    checker: UpdateChecker = Depends(get_update_checker),
):
    """List running containers and whether their images have updates"""
    try:
        inventory = await discovery.list_containers()
    except InventoryUnavailable as e:
        logger.error(f"Container inventory unavailable: {e}")
        error = ErrorResponse(error=str(e), details=e.details)
        return JSONResponse(status_code=500, content=error.model_dump(by_alias=True))

    statuses = await checker.check_all_containers(inventory)
    return ContainersResponse(
        success=True,
        containers=[ContainerStatusModel.from_status(s) for s in statuses],
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=AppConfig.HOST, port=AppConfig.PORT, log_level=AppConfig.LOG_LEVEL.lower())
