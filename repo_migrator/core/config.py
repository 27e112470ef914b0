"""Application configuration."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Environment
    env: str = os.getenv("APP_ENV", "development")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Database
    # Default uses local socket connection with trust auth
    database_url: str = os.getenv(
        "DATABASE_URL", "postgresql:///repomigrator?user=postgres"
    )

    # Celery
    celery_broker_url: str = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379")

    # Repositories
    # Global default for users without their own limit, -1 means unlimited
    max_creation_limit: int = int(os.getenv("MAX_CREATION_LIMIT", "-1"))
    repository_root: str = os.getenv("REPOSITORY_ROOT", "data/repositories")

    # Timeouts (in seconds)
    git_timeout: int = int(os.getenv("GIT_TIMEOUT", "3600"))  # 1 hour


settings = Settings()
