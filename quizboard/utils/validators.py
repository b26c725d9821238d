"""Validation utilities"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from quizboard.core.exceptions import ValidationException
from quizboard.schemas.leaderboard import ScoreEntry, ScoreSubmissionInput

_timestamp = TypeAdapter(datetime)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps and convert aware ones to UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def as_integer(value: Any) -> Optional[int]:
    """Integer value of ``value``, or None if it is not a whole number"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse ISO-8601 strings, datetimes and epoch seconds; None if unparseable"""
    if isinstance(value, bool):
        return None
    try:
        return as_utc(_timestamp.validate_python(value))
    except (ValidationError, OverflowError):
        return None


def validate_text(field: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationException(field, ValidationException.MISSING_FIELD, f"{field} is required")
    return value


def validate_limit(limit: Any) -> int:
    """Result-count limit must be a positive integer"""
    value = as_integer(limit)
    if value is None or value <= 0:
        raise ValidationException(
            "limit", ValidationException.INVALID_RANGE, "limit must be a positive integer"
        )
    return value


def validate_submission(submission: ScoreSubmissionInput, received_at: datetime) -> ScoreEntry:
    """
    Turn a raw submission into a ScoreEntry.

    Checks run in a fixed order and stop at the first failure:
    identity fields, totalQuestions, score, completedAt. A missing
    completedAt defaults to ``received_at``.

    Raises:
        ValidationException: with the offending field and reason
    """
    user_id = validate_text("userId", submission.user_id)
    username = validate_text("username", submission.username)
    topic_id = validate_text("topicId", submission.topic_id)

    if submission.total_questions is None:
        raise ValidationException(
            "totalQuestions", ValidationException.MISSING_FIELD, "totalQuestions is required"
        )
    total_questions = as_integer(submission.total_questions)
    if total_questions is None or total_questions <= 0:
        raise ValidationException(
            "totalQuestions",
            ValidationException.INVALID_RANGE,
            "totalQuestions must be a positive integer",
        )

    if submission.score is None:
        raise ValidationException("score", ValidationException.MISSING_FIELD, "score is required")
    score = as_integer(submission.score)
    if score is None or not 0 <= score <= total_questions:
        raise ValidationException(
            "score",
            ValidationException.INVALID_RANGE,
            "Invalid score: must be between 0 and total questions",
        )

    if submission.completed_at is None:
        completed_at = as_utc(received_at)
    else:
        completed_at = parse_timestamp(submission.completed_at)
        if completed_at is None:
            raise ValidationException(
                "completedAt",
                ValidationException.INVALID_FORMAT,
                "completedAt must be a timestamp",
            )

    return ScoreEntry(
        user_id=user_id,
        username=username,
        topic_id=topic_id,
        score=score,
        total_questions=total_questions,
        completed_at=completed_at,
    )
