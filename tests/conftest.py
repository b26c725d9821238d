"""
Pytest configuration and shared fixtures for the Quizboard tests.

Provides submission factories, a controllable clock, in-memory and SQLite
stores, a wired LeaderboardService and an HTTP test client.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from quizboard.core.database import create_db_engine, create_session_factory, init_db
from quizboard.main import create_app
from quizboard.schemas.leaderboard import ScoreEntry, ScoreSubmissionInput
from quizboard.services.leaderboard import LeaderboardService
from quizboard.services.ranking import RankingEngine
from quizboard.services.sql_store import SqlScoreStore
from quizboard.services.store import InMemoryScoreStore

BASE_TIME = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


# ============================================================================
# CLOCK
# ============================================================================


class StepClock:
    """Clock that advances one second on every read"""

    def __init__(self, start: datetime = BASE_TIME):
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture
def clock() -> StepClock:
    return StepClock(BASE_TIME + timedelta(days=1))


# ============================================================================
# FACTORIES
# ============================================================================


def at(hour: int, minute: int = 0) -> datetime:
    """Completion time on the fixed test day"""
    return BASE_TIME.replace(hour=hour, minute=minute)


def make_entry(
    user_id: str,
    score: int,
    total_questions: int = 10,
    completed_at: datetime = None,
    topic_id: str = "T",
) -> ScoreEntry:
    return ScoreEntry(
        user_id=user_id,
        username=user_id,
        topic_id=topic_id,
        score=score,
        total_questions=total_questions,
        completed_at=completed_at or BASE_TIME,
    )


def make_submission(**overrides) -> ScoreSubmissionInput:
    payload = {
        "userId": "user1",
        "username": "johndoe",
        "topicId": "T",
        "score": 8,
        "totalQuestions": 10,
        "completedAt": "2024-01-01T10:00:00Z",
    }
    payload.update(overrides)
    return ScoreSubmissionInput.model_validate(payload)


# ============================================================================
# STORES AND SERVICES
# ============================================================================


@pytest.fixture
def memory_store(clock) -> InMemoryScoreStore:
    return InMemoryScoreStore(clock=clock)


@pytest.fixture
def session_factory(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'quizboard.db'}")
    init_db(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def sql_store(session_factory, clock) -> SqlScoreStore:
    return SqlScoreStore(session_factory, clock=clock)


@pytest.fixture
def service(memory_store, clock) -> LeaderboardService:
    engine = RankingEngine(memory_store, max_limit=100)
    return LeaderboardService(memory_store, engine, clock=clock, default_limit=10)


@pytest.fixture
def client(service) -> TestClient:
    with TestClient(create_app(service)) as test_client:
        yield test_client
