"""
Score entry storage
Holds the one current entry per (user, topic) and serves topic snapshots
"""

import enum
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from quizboard.core.exceptions import DeadlineExceededException
from quizboard.schemas.leaderboard import ScoreEntry
from quizboard.utils.deadline import Deadline

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScorePolicy(str, enum.Enum):
    """What a new submission does to an existing entry for the same key"""
    LATEST = "latest"
    BEST = "best"


def should_replace(policy: ScorePolicy, current: ScoreEntry, candidate: ScoreEntry) -> bool:
    """
    Whether ``candidate`` takes the place of ``current``.

    Under BEST the candidate must rank strictly better: a higher percentage,
    or the same percentage completed earlier.
    """
    if policy is ScorePolicy.LATEST:
        return True
    if candidate.percentage != current.percentage:
        return candidate.percentage > current.percentage
    return candidate.completed_at < current.completed_at


class ScoreEntryStore(ABC):
    """
    Storage contract for leaderboard entries.

    ``upsert`` is atomic per (user_id, topic_id) and stamps ``submitted_at``
    from the store's own clock. Reads return snapshots taken from a single
    consistent read. Backend failures surface as
    ``StorageUnavailableException``; nothing else about locking or retries
    is visible to callers.
    """

    def __init__(self, policy: ScorePolicy = ScorePolicy.LATEST, clock: Clock = utcnow):
        self.policy = ScorePolicy(policy)
        self._clock = clock

    @abstractmethod
    def upsert(self, entry: ScoreEntry, deadline: Optional[Deadline] = None) -> ScoreEntry:
        """Store ``entry`` under the replacement policy and return what is now stored"""

    @abstractmethod
    def entries_for_topic(self, topic_id: str) -> Tuple[ScoreEntry, ...]:
        """Snapshot of every entry in one topic partition"""

    @abstractmethod
    def get(self, user_id: str, topic_id: str) -> Optional[ScoreEntry]:
        """Entry for one key, or None"""

    @abstractmethod
    def topics(self) -> List[str]:
        """Sorted ids of topics holding at least one entry"""

    @abstractmethod
    def ping(self) -> bool:
        """Whether the backend is reachable"""


class InMemoryScoreStore(ScoreEntryStore):
    """Process-local store guarded by a single lock"""

    def __init__(self, policy: ScorePolicy = ScorePolicy.LATEST, clock: Clock = utcnow):
        super().__init__(policy, clock)
        self._lock = threading.Lock()
        self._partitions: Dict[str, Dict[str, ScoreEntry]] = {}

    def upsert(self, entry: ScoreEntry, deadline: Optional[Deadline] = None) -> ScoreEntry:
        timeout = -1 if deadline is None else deadline.remaining()
        if not self._lock.acquire(timeout=timeout):
            raise DeadlineExceededException()
        try:
            if deadline is not None:
                deadline.check()

            current = self._partitions.get(entry.topic_id, {}).get(entry.user_id)
            if current is not None and not should_replace(self.policy, current, entry):
                return current

            stored = entry.model_copy(update={"submitted_at": self._clock()})
            self._partitions.setdefault(entry.topic_id, {})[entry.user_id] = stored
            return stored
        finally:
            self._lock.release()

    def entries_for_topic(self, topic_id: str) -> Tuple[ScoreEntry, ...]:
        with self._lock:
            return tuple(self._partitions.get(topic_id, {}).values())

    def get(self, user_id: str, topic_id: str) -> Optional[ScoreEntry]:
        with self._lock:
            return self._partitions.get(topic_id, {}).get(user_id)

    def topics(self) -> List[str]:
        with self._lock:
            return sorted(topic for topic, entries in self._partitions.items() if entries)

    def ping(self) -> bool:
        return True
