#!/usr/bin/env python3
"""
Development server runner for the Quizboard API
"""

import os

import uvicorn

from quizboard.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "quizboard.main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", 8000)),
        reload=settings.DEBUG and not settings.is_production(),
        log_level=settings.LOG_LEVEL.lower(),
    )
