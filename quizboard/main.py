"""
Quizboard - quiz leaderboard service
FastAPI application
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import sentry_sdk
from fastapi import FastAPI
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from quizboard.api.v1.api import api_router
from quizboard.api.v1.endpoints import health
from quizboard.core.config import settings
from quizboard.core.exceptions import register_exception_handlers
from quizboard.core.logging import setup_logging
from quizboard.middleware import (
    LoggingMiddleware,
    RequestIDMiddleware,
    add_rate_limiting,
    setup_cors,
)
from quizboard.services.leaderboard import LeaderboardService, build_leaderboard_service

setup_logging()
logger = logging.getLogger(__name__)

# Initialize Sentry if DSN is provided
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=1.0 if settings.DEBUG else 0.1,
        environment=settings.ENVIRONMENT,
    )
    logger.info("Sentry initialized")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    if app.state.leaderboard_service is None:
        app.state.leaderboard_service = build_leaderboard_service(settings)
        logger.info(f"Score storage ready ({settings.STORAGE_BACKEND})")

    yield

    logger.info("Shutting down application")


def create_app(service: Optional[LeaderboardService] = None) -> FastAPI:
    """
    Build the application

    Args:
        service: Leaderboard service to serve; built from settings at
            startup when omitted
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.leaderboard_service = service

    register_exception_handlers(app)

    # Middleware added last runs first
    if settings.RATE_LIMIT_ENABLED:
        add_rate_limiting(app)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    setup_cors(app)

    @app.get("/")
    def root():
        """Root endpoint"""
        return {
            "message": f"Welcome to {settings.APP_NAME}",
            "version": settings.APP_VERSION,
            "docs": "/docs",
            "health": f"{settings.API_V1_STR}/health",
        }

    app.include_router(health.router, tags=["Health"])
    app.include_router(api_router, prefix=settings.API_V1_STR)

    # Prometheus metrics endpoint (optional)
    if settings.DEBUG:
        from prometheus_client import make_asgi_app

        app.mount("/metrics", make_asgi_app())

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "quizboard.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
    )
