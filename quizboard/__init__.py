"""Quizboard - quiz leaderboard service"""

__version__ = "1.0.0"
