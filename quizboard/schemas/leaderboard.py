"""Leaderboard schemas"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, computed_field
from pydantic.alias_generators import to_camel


def percentage_of(score: int, total_questions: int) -> int:
    """Whole percentage, rounding halves up"""
    return (200 * score + total_questions) // (2 * total_questions)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ScoreSubmissionInput(_CamelModel):
    """
    Raw score submission as received from a client.

    Every field is optional and untyped here; ``validate_submission`` decides
    what is acceptable.
    """

    user_id: Any = None
    username: Any = None
    topic_id: Any = None
    score: Any = None
    total_questions: Any = None
    completed_at: Any = None


class ScoreEntry(_CamelModel):
    """One user's current entry for one topic"""

    model_config = ConfigDict(frozen=True)

    user_id: str
    username: str
    topic_id: str
    score: int
    total_questions: int
    completed_at: datetime
    submitted_at: Optional[datetime] = None

    @computed_field
    @property
    def percentage(self) -> int:
        return percentage_of(self.score, self.total_questions)


class RankedEntry(ScoreEntry):
    rank: int


class Standing(_CamelModel):
    """A ranked entry together with the size of its topic"""

    entry: RankedEntry
    total_entries: int


class LeaderboardPage(_CamelModel):
    entries: List[RankedEntry]
    total_entries: int


class SubmissionResult(Standing):
    pass


class QueryResult(_CamelModel):
    entries: List[RankedEntry]
    total_entries: int
    topic_id: Optional[str] = None
    limit: int
