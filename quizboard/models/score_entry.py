"""
Score entry model for Quizboard
"""

from sqlalchemy import Column, DateTime, Index, Integer, String

from quizboard.core.database import Base


class ScoreEntryRecord(Base):
    """Current leaderboard entry of one user for one topic"""
    __tablename__ = "score_entries"

    user_id = Column(String, primary_key=True)
    topic_id = Column(String, primary_key=True)
    username = Column(String, nullable=False)

    score = Column(Integer, nullable=False)
    total_questions = Column(Integer, nullable=False)

    completed_at = Column(DateTime(timezone=True), nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_score_entries_topic", "topic_id"),
    )
