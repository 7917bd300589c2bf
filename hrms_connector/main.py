"""
HRMS Odoo Connector - Main Application Entry Point

FastAPI application exposing Odoo HR data (employees, attendance, time off,
payroll, expenses, invoices, recruitment) as a REST API over a shared pool of
authenticated Odoo sessions.
"""

from contextlib import asynccontextmanager
from typing import Any, cast

import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from hrms_connector.api.error_handling import register_exception_handlers
from hrms_connector.api.routes.resources import build_routers
from hrms_connector.config import settings
from hrms_connector.connectors import odoo_pool
from hrms_connector.core.model_registry import RESOURCES, ModelRegistry
from hrms_connector.core.record_cache import RecordCache

# Configure logging
# Use uvicorn's colored "LEVEL:" format for ALL loggers.
from uvicorn.logging import DefaultFormatter

console_handler = logging.StreamHandler()
console_handler.setFormatter(DefaultFormatter(fmt="%(levelprefix)s %(asctime)s - %(message)s", use_colors=True))

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    handlers=[console_handler],
)


class EndpointFilter(logging.Filter):
    """Filter out health probes from access logs."""

    def filter(self, record: logging.LogRecord) -> bool:
        return "/health" not in record.getMessage()


logging.getLogger("uvicorn.access").addFilter(EndpointFilter())

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager - handles startup and shutdown events.
    """
    # Startup
    logger.info("🚀 %s starting up...", settings.APP_NAME)
    logger.info(f"🔧 Environment: {'Development' if settings.APP_DEBUG else 'Production'}")

    config = settings.odoo_config()
    logger.info("🔌 Odoo profile '%s' at %s", config.profile, config.connection_string)

    pool = odoo_pool.get_default_pool(config)
    cache = RecordCache(ttl_seconds=settings.CACHE_TTL_SECONDS) if settings.CACHE_ENABLED else None
    registry = ModelRegistry(
        config, pool, cache=cache, max_limit=settings.PAGINATION_MAX_LIMIT
    )

    app.state.pool = pool
    app.state.services = registry.build_services(RESOURCES)

    if settings.ODOO_CONNECT_ON_STARTUP:
        try:
            logger.info("📊 Initializing Odoo connection pool...")
            await pool.initialize()
            logger.info("✅ Odoo pool initialized")
        except Exception as e:
            logger.error(f"❌ Failed to initialize Odoo connection pool: {e}")
            logger.warning("⚠️  Application starting without warm Odoo connections")
    else:
        logger.info(
            "Odoo sessions open on first request "
            "(set ODOO_CONNECT_ON_STARTUP=true to initialize at boot)"
        )

    yield

    # Shutdown
    logger.info("🛑 %s shutting down...", settings.APP_NAME)
    try:
        await odoo_pool.reset_default_pool()
        logger.info("✅ Odoo connection pool closed")
    except Exception as e:
        logger.error(f"Error closing Odoo connection pool: {e}")


# Initialize FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="REST API for Odoo HR data backed by a pooled XML-RPC connector",
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

# Configure CORS for local development
if settings.APP_DEBUG:
    app.add_middleware(
        cast(Any, CORSMiddleware),
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info(f"🔓 CORS enabled for origins: {settings.CORS_ORIGINS}")

register_exception_handlers(app)


# ============================================================================
# Health Check & Info Endpoints
# ============================================================================


@app.get("/")
async def root():
    """Welcome message with links to the API."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/api/docs",
        "health": "/health",
        "api": settings.API_PREFIX,
        "resources": [f"{settings.API_PREFIX}/{d.path}" for d in RESOURCES],
    }


@app.get("/health")
async def health_check(request: Request):
    """
    Health check endpoint for monitoring and load balancers.

    Returns:
        dict: Service health status and Odoo pool statistics
    """
    health_status: dict[str, Any] = {
        "status": "healthy",
        "service": "hrms-odoo-connector",
        "version": settings.APP_VERSION,
        "environment": "development" if settings.APP_DEBUG else "production",
        "checks": {},
    }

    try:
        pool = getattr(request.app.state, "pool", None)
        if pool is None:
            raise RuntimeError("Odoo connection pool is not configured")
        stats = pool.get_stats()
        if stats["closed"]:
            pool_status = "closed"
            health_status["status"] = "degraded"
        elif stats["total"] > 0:
            pool_status = "healthy"
        else:
            pool_status = "not_initialized"
        health_status["checks"]["odoo"] = {"status": pool_status, "pool": stats}
    except Exception as e:
        health_status["checks"]["odoo"] = {"status": "unhealthy", "error": str(e)}
        health_status["status"] = "degraded"

    return health_status


# ============================================================================
# API Routes
# ============================================================================

_routers = build_routers(RESOURCES)
for _definition in RESOURCES:
    app.include_router(
        _routers[_definition.path],
        prefix=f"{settings.API_PREFIX}/{_definition.path}",
        tags=[_definition.tag],
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "hrms_connector.main:app",
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        reload=settings.APP_DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
