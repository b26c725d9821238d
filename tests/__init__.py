"""
Quizboard Test Suite

- tests/unit/         : validator, ranking, in-memory store and service logic
- tests/integration/  : SQL store on a real SQLite database and the HTTP API
"""
