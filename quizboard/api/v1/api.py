"""
API v1 main router
Combines all v1 endpoint routers
"""

from fastapi import APIRouter

from quizboard.api.v1.endpoints import health, leaderboard

api_router = APIRouter()

api_router.include_router(health.router, tags=["Health"])
api_router.include_router(leaderboard.router, prefix="/leaderboard", tags=["Leaderboard"])
