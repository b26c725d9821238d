"""
Health check endpoints
"""

from datetime import datetime, timezone

import psutil
from fastapi import APIRouter, Depends

from quizboard.api.deps import get_leaderboard_service
from quizboard.core.config import settings
from quizboard.services.leaderboard import LeaderboardService

router = APIRouter()


@router.get("/health")
def health_check():
    """Basic health check"""
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/health/detailed")
def detailed_health_check(service: LeaderboardService = Depends(get_leaderboard_service)):
    """Detailed health check"""
    health_status = health_check()
    health_status["checks"] = {}

    # Check storage
    if service.is_healthy():
        health_status["checks"]["storage"] = "healthy"
    else:
        health_status["checks"]["storage"] = "unhealthy"
        health_status["status"] = "degraded"

    # Check system resources
    memory = psutil.virtual_memory()
    health_status["checks"]["resources"] = {
        "cpu_percent": psutil.cpu_percent(interval=None),
        "memory_percent": memory.percent,
        "memory_available_mb": memory.available / (1024 * 1024),
    }

    return health_status
