"""
Quizboard Models Package
"""

from quizboard.models.score_entry import ScoreEntryRecord

__all__ = ["ScoreEntryRecord"]
