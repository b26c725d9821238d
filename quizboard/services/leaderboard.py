"""
Leaderboard service
Entry point for score submissions and leaderboard queries
"""

from typing import Any, Optional

from quizboard.core.config import Settings, settings
from quizboard.core.database import create_db_engine, create_session_factory, init_db
from quizboard.core.exceptions import NotFoundException, StorageUnavailableException
from quizboard.schemas.leaderboard import (
    QueryResult,
    ScoreSubmissionInput,
    Standing,
    SubmissionResult,
)
from quizboard.services.ranking import RankingEngine, RankTies
from quizboard.services.sql_store import SqlScoreStore
from quizboard.services.store import (
    Clock,
    InMemoryScoreStore,
    ScoreEntryStore,
    ScorePolicy,
    utcnow,
)
from quizboard.utils.deadline import Deadline
from quizboard.utils.validators import validate_limit, validate_submission, validate_text


class LeaderboardService:
    """Validates submissions, stores them and shapes ranked results"""

    def __init__(
        self,
        store: ScoreEntryStore,
        engine: Optional[RankingEngine] = None,
        clock: Clock = utcnow,
        default_limit: int = 10,
        submission_timeout: Optional[float] = None,
    ):
        self.store = store
        self.engine = engine or RankingEngine(store)
        self._clock = clock
        self.default_limit = default_limit
        self.submission_timeout = submission_timeout

    def submit(
        self, submission: ScoreSubmissionInput, timeout: Optional[float] = None
    ) -> SubmissionResult:
        """
        Record a score and report where it lands.

        Args:
            submission: Raw submission from the caller
            timeout: Seconds before the write is abandoned; defaults to the
                service's submission timeout

        Returns:
            The stored entry with its rank and the topic's entry count

        Raises:
            ValidationException: submission rejected, nothing stored
            StorageUnavailableException: store unreachable or deadline hit,
                nothing stored
        """
        entry = validate_submission(submission, received_at=self._clock())
        deadline = Deadline.after(timeout if timeout is not None else self.submission_timeout)

        stored = self.store.upsert(entry, deadline=deadline)

        standing = self.engine.standing(stored.topic_id, stored.user_id)
        if standing is None:
            raise StorageUnavailableException(
                message="Stored entry missing from topic snapshot",
                details={"userId": stored.user_id, "topicId": stored.topic_id},
            )
        return SubmissionResult(entry=standing.entry, total_entries=standing.total_entries)

    def query(
        self,
        topic_id: Optional[str] = None,
        limit: Any = None,
        timeout: Optional[float] = None,
    ) -> QueryResult:
        """
        Ranked entries for one topic, or every topic when ``topic_id`` is None.

        Without a topic the result is each topic's own ranked page, in topic
        id order. Ranks are never compared across topics.
        """
        limit = self.engine.clamp_limit(self.default_limit if limit is None else limit)
        deadline = Deadline.after(timeout)

        if topic_id is not None:
            topic_id = validate_text("topicId", topic_id)
            page = self.engine.page(topic_id, limit)
            entries, total = page.entries, page.total_entries
        else:
            entries, total = [], 0
            for topic in self.store.topics():
                if deadline is not None:
                    deadline.check()
                page = self.engine.page(topic, limit)
                entries.extend(page.entries)
                total += page.total_entries

        if deadline is not None:
            deadline.check()

        return QueryResult(entries=entries, total_entries=total, topic_id=topic_id, limit=limit)

    def rank(self, topic_id: str, user_id: str) -> Standing:
        """Standing of one user in one topic"""
        topic_id = validate_text("topicId", topic_id)
        user_id = validate_text("userId", user_id)

        standing = self.engine.standing(topic_id, user_id)
        if standing is None:
            raise NotFoundException(
                "Leaderboard entry", details={"userId": user_id, "topicId": topic_id}
            )
        return standing

    def is_healthy(self) -> bool:
        return self.store.ping()


def build_store(config: Settings = settings) -> ScoreEntryStore:
    """Store for the configured backend, creating tables when SQL-backed"""
    policy = ScorePolicy(config.LEADERBOARD_SCORE_POLICY)
    if config.STORAGE_BACKEND == "memory":
        return InMemoryScoreStore(policy=policy)

    engine = create_db_engine(config.get_database_url())
    init_db(engine)
    return SqlScoreStore(create_session_factory(engine), policy=policy)


def build_leaderboard_service(config: Settings = settings) -> LeaderboardService:
    store = build_store(config)
    engine = RankingEngine(
        store,
        rank_ties=RankTies(config.LEADERBOARD_RANK_TIES),
        max_limit=config.LEADERBOARD_MAX_LIMIT,
    )
    return LeaderboardService(
        store,
        engine,
        default_limit=config.LEADERBOARD_DEFAULT_LIMIT,
        submission_timeout=config.SUBMISSION_TIMEOUT_SECONDS,
    )
