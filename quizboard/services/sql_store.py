"""
SQL-backed score store
One row per (user_id, topic_id); upserts run in a single transaction
"""

import time
from typing import List, Optional, Tuple

from sqlalchemy import select, text
from sqlalchemy.exc import DisconnectionError, IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from quizboard.core.exceptions import StorageUnavailableException
from quizboard.models.score_entry import ScoreEntryRecord
from quizboard.schemas.leaderboard import ScoreEntry
from quizboard.services.store import Clock, ScoreEntryStore, ScorePolicy, should_replace, utcnow
from quizboard.utils.deadline import Deadline
from quizboard.utils.validators import as_utc

# Lost insert races and transient connection problems are worth another attempt
RETRYABLE_ERRORS = (IntegrityError, OperationalError, DisconnectionError)


class SqlScoreStore(ScoreEntryStore):
    """Score store on any SQLAlchemy-supported database"""

    def __init__(
        self,
        session_factory: sessionmaker,
        policy: ScorePolicy = ScorePolicy.LATEST,
        clock: Clock = utcnow,
        max_attempts: int = 3,
        retry_delay: float = 0.05,
    ):
        super().__init__(policy, clock)
        self._session_factory = session_factory
        self._max_attempts = max_attempts
        self._retry_delay = retry_delay

    @staticmethod
    def _to_entry(record: ScoreEntryRecord) -> ScoreEntry:
        return ScoreEntry(
            user_id=record.user_id,
            username=record.username,
            topic_id=record.topic_id,
            score=record.score,
            total_questions=record.total_questions,
            completed_at=as_utc(record.completed_at),
            submitted_at=as_utc(record.submitted_at),
        )

    def upsert(self, entry: ScoreEntry, deadline: Optional[Deadline] = None) -> ScoreEntry:
        last_error = None
        for attempt in range(self._max_attempts):
            if deadline is not None:
                deadline.check()
            try:
                return self._upsert_once(entry, deadline)
            except RETRYABLE_ERRORS as e:
                last_error = e
                if attempt < self._max_attempts - 1:
                    time.sleep(self._retry_delay * (attempt + 1))
            except SQLAlchemyError as e:
                raise StorageUnavailableException(details={"error": str(e)}) from e

        raise StorageUnavailableException(
            message=f"Score storage unavailable after {self._max_attempts} attempts",
            details={"error": str(last_error)},
        ) from last_error

    def _upsert_once(self, entry: ScoreEntry, deadline: Optional[Deadline]) -> ScoreEntry:
        with self._session_factory() as session, session.begin():
            record = session.execute(
                select(ScoreEntryRecord)
                .where(
                    ScoreEntryRecord.user_id == entry.user_id,
                    ScoreEntryRecord.topic_id == entry.topic_id,
                )
                .with_for_update()
            ).scalar_one_or_none()

            if record is not None and not should_replace(self.policy, self._to_entry(record), entry):
                return self._to_entry(record)

            if record is None:
                record = ScoreEntryRecord(user_id=entry.user_id, topic_id=entry.topic_id)
                session.add(record)

            record.username = entry.username
            record.score = entry.score
            record.total_questions = entry.total_questions
            record.completed_at = as_utc(entry.completed_at)
            record.submitted_at = self._clock()
            session.flush()

            # Raising here rolls the whole transaction back
            if deadline is not None:
                deadline.check()

            return self._to_entry(record)

    def entries_for_topic(self, topic_id: str) -> Tuple[ScoreEntry, ...]:
        try:
            with self._session_factory() as session:
                records = session.execute(
                    select(ScoreEntryRecord).where(ScoreEntryRecord.topic_id == topic_id)
                ).scalars().all()
                return tuple(self._to_entry(record) for record in records)
        except SQLAlchemyError as e:
            raise StorageUnavailableException(details={"error": str(e)}) from e

    def get(self, user_id: str, topic_id: str) -> Optional[ScoreEntry]:
        try:
            with self._session_factory() as session:
                record = session.get(ScoreEntryRecord, (user_id, topic_id))
                return self._to_entry(record) if record is not None else None
        except SQLAlchemyError as e:
            raise StorageUnavailableException(details={"error": str(e)}) from e

    def topics(self) -> List[str]:
        try:
            with self._session_factory() as session:
                return list(
                    session.execute(
                        select(ScoreEntryRecord.topic_id)
                        .distinct()
                        .order_by(ScoreEntryRecord.topic_id)
                    ).scalars()
                )
        except SQLAlchemyError as e:
            raise StorageUnavailableException(details={"error": str(e)}) from e

    def ping(self) -> bool:
        try:
            with self._session_factory() as session:
                session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False
