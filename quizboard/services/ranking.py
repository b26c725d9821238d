"""
Ranking engine
Orders a topic partition and assigns competition ranks
"""

import enum
import heapq
from typing import Iterable, List, Optional, Tuple

from quizboard.schemas.leaderboard import LeaderboardPage, RankedEntry, ScoreEntry, Standing
from quizboard.services.store import ScoreEntryStore
from quizboard.utils.validators import validate_limit


class RankTies(str, enum.Enum):
    """Which entries share a rank number"""
    PERCENTAGE = "percentage"  # equal percentage
    COMPLETION = "completion"  # equal percentage and completion time


def ordering_key(entry: ScoreEntry) -> Tuple:
    """Total order of a partition: best percentage, then earliest completion"""
    return (-entry.percentage, entry.completed_at, entry.user_id)


def tie_key(entry: ScoreEntry, ties: RankTies) -> Tuple:
    # Always a prefix of ordering_key, so anything strictly ahead by tie_key
    # is also ahead in the ordering
    if ties is RankTies.PERCENTAGE:
        return (-entry.percentage,)
    return (-entry.percentage, entry.completed_at)


def with_rank(entry: ScoreEntry, rank: int) -> RankedEntry:
    return RankedEntry(**entry.model_dump(exclude={"percentage"}), rank=rank)


def rank_entries(
    entries: Iterable[ScoreEntry], ties: RankTies = RankTies.PERCENTAGE, limit: Optional[int] = None
) -> List[RankedEntry]:
    """
    Rank entries of one topic in leaderboard order.

    Tied entries share a rank and the next entry's rank is its position
    (1, 1, 3). With ``limit`` only the leading entries are ordered; their
    ranks are unaffected because everything ahead of them is in the prefix.
    """
    if limit is None:
        ordered = sorted(entries, key=ordering_key)
    else:
        ordered = heapq.nsmallest(limit, entries, key=ordering_key)

    ranked = []
    rank = 0
    previous = None
    for position, entry in enumerate(ordered, start=1):
        key = tie_key(entry, ties)
        if key != previous:
            rank = position
            previous = key
        ranked.append(with_rank(entry, rank))
    return ranked


class RankingEngine:
    """
    Answers rank and range queries over the current store contents.

    Holds no state of its own: every call works on a fresh snapshot of one
    topic partition, so results depend only on the stored entries.
    """

    def __init__(
        self,
        store: ScoreEntryStore,
        rank_ties: RankTies = RankTies.PERCENTAGE,
        max_limit: int = 100,
    ):
        self._store = store
        self.rank_ties = RankTies(rank_ties)
        self.max_limit = max_limit

    def clamp_limit(self, limit: int) -> int:
        """Validate ``limit`` and cap it at ``max_limit``"""
        return min(validate_limit(limit), self.max_limit)

    def standing(self, topic_id: str, user_id: str) -> Optional[Standing]:
        entries = self._store.entries_for_topic(topic_id)
        target = next((entry for entry in entries if entry.user_id == user_id), None)
        if target is None:
            return None

        key = tie_key(target, self.rank_ties)
        ahead = sum(1 for entry in entries if tie_key(entry, self.rank_ties) < key)
        return Standing(entry=with_rank(target, ahead + 1), total_entries=len(entries))

    def rank_of(self, topic_id: str, user_id: str) -> Optional[RankedEntry]:
        standing = self.standing(topic_id, user_id)
        return standing.entry if standing is not None else None

    def page(self, topic_id: str, limit: int) -> LeaderboardPage:
        limit = self.clamp_limit(limit)
        entries = self._store.entries_for_topic(topic_id)
        return LeaderboardPage(
            entries=rank_entries(entries, self.rank_ties, limit),
            total_entries=len(entries),
        )

    def top_range(self, topic_id: str, limit: int) -> List[RankedEntry]:
        return self.page(topic_id, limit).entries

    def total_entries(self, topic_id: str) -> int:
        return len(self._store.entries_for_topic(topic_id))
