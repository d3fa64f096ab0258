from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings - only define what needs validation."""

    # Critical configs that need validation/type conversion
    DATABASE_URL: str = "sqlite+aiosqlite:///./memory.db"
    DEBUG: bool = False
    API_HOST: str = "127.0.0.1"
    API_PORT: int = 8080
    ENVIRONMENT: str = "development"  # "development", "production", "test"
    LOG_LEVEL: str = "INFO"

    # Origins of the web client allowed to call the API with credentials
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # SQLite busy timeout in seconds (writers serialize on the database file)
    DB_BUSY_TIMEOUT: float = 30.0

    # Quiz scoring
    DEFAULT_QUIZ_POINTS: int = 1  # Points for a question that does not declare any

    # Learning statistics
    TOPIC_RANKING_SIZE: int = 3  # Number of strong/weak topics reported
    RECENT_QUIZ_RESULTS_LIMIT: int = 5

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="allow",
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()
    if not settings.DATABASE_URL:
        msg = "DATABASE_URL environment variable is not set"
        raise ValueError(msg)
    return settings
