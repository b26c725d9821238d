"""
Integration tests for SqlScoreStore on a temporary SQLite database.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from quizboard.core.exceptions import DeadlineExceededException, StorageUnavailableException
from quizboard.models import ScoreEntryRecord
from quizboard.services.ranking import RankingEngine
from quizboard.services.sql_store import SqlScoreStore
from quizboard.services.store import ScorePolicy
from quizboard.utils.deadline import Deadline
from tests.conftest import at, make_entry

WRITERS = 8


def run_together(store, entries):
    """Upsert every entry from its own thread, all released at once"""
    barrier = threading.Barrier(len(entries))

    def write(entry):
        barrier.wait()
        return store.upsert(entry)

    with ThreadPoolExecutor(max_workers=len(entries)) as pool:
        return list(pool.map(write, entries))


@pytest.mark.integration
class TestSqlUpsert:
    """Upserts keep one row per (user, topic)."""

    def test_round_trip(self, sql_store, clock):
        entry = make_entry("alice", 7, completed_at=at(10))
        stored = sql_store.upsert(entry)

        assert stored.submitted_at == clock.current
        assert sql_store.get("alice", "T") == stored
        assert stored.completed_at == at(10)
        assert stored.completed_at.tzinfo is not None

    def test_replacement_keeps_single_row(self, sql_store, session_factory):
        sql_store.upsert(make_entry("alice", 9))
        sql_store.upsert(make_entry("alice", 2))

        with session_factory() as session:
            rows = session.execute(select(ScoreEntryRecord)).scalars().all()
        assert len(rows) == 1
        assert rows[0].score == 2

    def test_non_utc_completion_is_normalised(self, sql_store):
        plus_two = timezone(timedelta(hours=2))
        entry = make_entry("alice", 7, completed_at=datetime(2024, 1, 1, 12, 0, tzinfo=plus_two))
        sql_store.upsert(entry)
        assert sql_store.get("alice", "T").completed_at == at(10)

    def test_best_policy(self, session_factory, clock):
        store = SqlScoreStore(session_factory, policy=ScorePolicy.BEST, clock=clock)
        store.upsert(make_entry("alice", 9))
        store.upsert(make_entry("alice", 3))
        assert store.get("alice", "T").score == 9

    def test_topic_snapshot_and_listing(self, sql_store):
        sql_store.upsert(make_entry("alice", 9, topic_id="math"))
        sql_store.upsert(make_entry("bob", 4, topic_id="math"))
        sql_store.upsert(make_entry("alice", 4, topic_id="art"))

        assert sql_store.topics() == ["art", "math"]
        assert {entry.user_id for entry in sql_store.entries_for_topic("math")} == {"alice", "bob"}
        assert sql_store.entries_for_topic("history") == ()

    def test_get_missing_entry(self, sql_store):
        assert sql_store.get("nobody", "T") is None

    def test_ping(self, sql_store):
        assert sql_store.ping() is True

    def test_concurrent_writers_on_one_key(self, sql_store, session_factory):
        entries = [make_entry("alice", score) for score in range(WRITERS)]
        stored = run_together(sql_store, entries)

        with session_factory() as session:
            rows = session.execute(select(ScoreEntryRecord)).scalars().all()
        assert len(stored) == WRITERS
        assert len(rows) == 1
        assert (rows[0].username, rows[0].score) in {("alice", score) for score in range(WRITERS)}
        assert rows[0].total_questions == 10

    def test_concurrent_writers_on_distinct_keys(self, sql_store):
        entries = [make_entry(f"user-{n}", n) for n in range(WRITERS)]
        run_together(sql_store, entries)

        landed = {(entry.user_id, entry.score) for entry in sql_store.entries_for_topic("T")}
        assert landed == {(f"user-{n}", n) for n in range(WRITERS)}


@pytest.mark.integration
class TestSqlFailures:
    """Failed writes leave the table untouched."""

    def test_expired_deadline_rolls_back(self, sql_store):
        with pytest.raises(DeadlineExceededException):
            sql_store.upsert(make_entry("alice", 5), deadline=Deadline(0))
        assert sql_store.get("alice", "T") is None

    def test_deadline_after_flush_rolls_back(self, sql_store):
        sql_store.upsert(make_entry("alice", 5))

        class ExpiresOnSecondCheck(Deadline):
            def __init__(self):
                super().__init__(60)
                self.checks = 0

            def check(self):
                self.checks += 1
                if self.checks > 1:
                    raise DeadlineExceededException()

        with pytest.raises(DeadlineExceededException):
            sql_store.upsert(make_entry("alice", 9), deadline=ExpiresOnSecondCheck())
        assert sql_store.get("alice", "T").score == 5

    def test_persistent_operational_error_becomes_storage_unavailable(
        self, session_factory, monkeypatch
    ):
        store = SqlScoreStore(session_factory, retry_delay=0)
        attempts = []

        def locked(entry, deadline):
            attempts.append(entry)
            raise OperationalError("UPDATE score_entries", {}, Exception("database is locked"))

        monkeypatch.setattr(store, "_upsert_once", locked)

        with pytest.raises(StorageUnavailableException):
            store.upsert(make_entry("alice", 5))
        assert len(attempts) == 3

    def test_transient_error_is_retried(self, session_factory, monkeypatch):
        store = SqlScoreStore(session_factory, retry_delay=0)
        real_upsert = store._upsert_once
        failures = [OperationalError("UPDATE score_entries", {}, Exception("database is locked"))]

        def flaky(entry, deadline):
            if failures:
                raise failures.pop()
            return real_upsert(entry, deadline)

        monkeypatch.setattr(store, "_upsert_once", flaky)

        assert store.upsert(make_entry("alice", 5)).score == 5

    def test_unreachable_database(self, tmp_path):
        from quizboard.core.database import create_db_engine, create_session_factory

        engine = create_db_engine(f"sqlite:///{tmp_path / 'missing' / 'nowhere.db'}")
        store = SqlScoreStore(create_session_factory(engine), retry_delay=0)

        assert store.ping() is False
        with pytest.raises(StorageUnavailableException):
            store.entries_for_topic("T")
        with pytest.raises(StorageUnavailableException):
            store.upsert(make_entry("alice", 5))


@pytest.mark.integration
def test_engine_over_sql_store(sql_store):
    for entry in [
        make_entry("alice", 9, completed_at=at(10)),
        make_entry("bob", 9, completed_at=at(9)),
        make_entry("carol", 8, completed_at=at(11)),
    ]:
        sql_store.upsert(entry)

    ranked = RankingEngine(sql_store).top_range("T", 10)
    assert [(entry.user_id, entry.rank) for entry in ranked] == [
        ("bob", 1),
        ("alice", 1),
        ("carol", 3),
    ]
