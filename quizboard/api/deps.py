"""
Shared API dependencies
"""

from fastapi import Request

from quizboard.services.leaderboard import LeaderboardService


def get_leaderboard_service(request: Request) -> LeaderboardService:
    """Service instance created at application startup"""
    return request.app.state.leaderboard_service
