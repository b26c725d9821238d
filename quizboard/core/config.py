"""
Core configuration for Quizboard
Quiz leaderboard service settings
"""

from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    # Application Settings
    APP_NAME: str = "Quizboard"
    APP_VERSION: str = "1.0.0"
    APP_DESCRIPTION: str = "Quiz leaderboard service"
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    # API Settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Quizboard"

    # Leaderboard
    LEADERBOARD_DEFAULT_LIMIT: int = Field(default=10, ge=1)
    LEADERBOARD_MAX_LIMIT: int = Field(default=100, ge=1)
    LEADERBOARD_SCORE_POLICY: Literal["latest", "best"] = Field(default="latest")
    LEADERBOARD_RANK_TIES: Literal["percentage", "completion"] = Field(default="percentage")
    SUBMISSION_TIMEOUT_SECONDS: Optional[float] = Field(default=5.0)

    # Storage
    STORAGE_BACKEND: Literal["sql", "memory"] = Field(default="sql")
    DATABASE_URL: Optional[str] = Field(default=None)
    DB_POOL_SIZE: int = Field(default=5)
    DB_MAX_OVERFLOW: int = Field(default=10)
    DB_POOL_TIMEOUT: int = Field(default=30)
    DB_POOL_RECYCLE: int = Field(default=1800)
    DB_POOL_PRE_PING: bool = Field(default=True)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    LOG_FILE: Optional[str] = Field(default=None)
    LOG_MAX_BYTES: int = Field(default=10 * 1024 * 1024)
    LOG_BACKUP_COUNT: int = Field(default=5)

    # Sentry
    SENTRY_DSN: Optional[str] = Field(default=None)

    # CORS
    BACKEND_CORS_ORIGINS: str = Field(default="*")

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = Field(default=True)
    RATE_LIMIT_REQUESTS: int = Field(default=100)
    RATE_LIMIT_PERIOD: int = Field(default=60)  # seconds

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("SUBMISSION_TIMEOUT_SECONDS")
    @classmethod
    def non_positive_timeout_disables(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            return None
        return value

    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    def get_database_url(self) -> str:
        """Get database URL with proper formatting"""
        if self.DATABASE_URL:
            # Handle Render's postgres:// URLs
            db_url = self.DATABASE_URL
            if db_url.startswith("postgres://"):
                db_url = db_url.replace("postgres://", "postgresql://", 1)
            return db_url

        # Default for development
        return "sqlite:///./quizboard.db"

    def get_cors_origins(self) -> list[str]:
        """Get CORS origins as list"""
        origins = [origin.strip() for origin in self.BACKEND_CORS_ORIGINS.split(",")]
        return [origin for origin in origins if origin] or ["*"]


settings = Settings()
