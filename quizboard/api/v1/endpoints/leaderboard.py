"""
Leaderboard endpoints
Score submission and topic leaderboards
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from quizboard.api.deps import get_leaderboard_service
from quizboard.schemas.leaderboard import ScoreSubmissionInput, Standing
from quizboard.services.leaderboard import LeaderboardService

router = APIRouter()


def standing_payload(standing: Standing) -> dict:
    return {
        "entry": standing.entry.model_dump(by_alias=True, mode="json"),
        "position": standing.entry.rank,
        "totalEntries": standing.total_entries,
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def submit_score(
    submission: ScoreSubmissionInput,
    service: LeaderboardService = Depends(get_leaderboard_service),
):
    """Submit a user's score for a topic"""
    result = service.submit(submission)
    return {
        "success": True,
        "message": "Score submitted successfully",
        "data": standing_payload(result),
    }


@router.get("")
def get_leaderboard(
    topic_id: Optional[str] = Query(None, alias="topicId"),
    limit: Optional[int] = Query(None),
    service: LeaderboardService = Depends(get_leaderboard_service),
):
    """Get ranked entries for a topic, or each topic's ranking when no topic is given"""
    result = service.query(topic_id=topic_id, limit=limit)
    entries = [entry.model_dump(by_alias=True, mode="json") for entry in result.entries]
    return {
        "success": True,
        "data": entries,
        "count": len(entries),
        "totalEntries": result.total_entries,
        "filters": {
            "topicId": result.topic_id or "all",
            "limit": result.limit,
        },
    }


@router.get("/{topic_id}/users/{user_id}")
def get_user_rank(
    topic_id: str,
    user_id: str,
    service: LeaderboardService = Depends(get_leaderboard_service),
):
    """Get one user's rank in a topic"""
    return {"success": True, "data": standing_payload(service.rank(topic_id, user_id))}
