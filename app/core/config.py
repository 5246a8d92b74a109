"""Core application configuration and settings.

Handles environment variables, server options, item storage and the
defaults used when initializing git-flow in a repository.
"""
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings


# Load environment variables
ROOT = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=ROOT / ".env")
load_dotenv()

ENVIRONMENTS = ("development", "test", "staging", "production")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application Settings
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Server Settings
    host: str = Field(default="127.0.0.1", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    cors_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:8000",
            "http://127.0.0.1:8000"
        ],
        alias="CORS_ORIGINS"
    )

    # Redis Configuration (items are kept in memory unless enabled)
    use_redis: bool = Field(default=False, alias="USE_REDIS")
    redis_host: str = Field(default="localhost", alias="REDIS_HOST")
    redis_port: int = Field(default=6379, alias="REDIS_PORT")
    redis_password: Optional[str] = Field(default=None, alias="REDIS_PASSWORD")
    redis_db: int = Field(default=0, alias="REDIS_DB")
    items_key: str = Field(default="items", alias="ITEMS_KEY")

    # git-flow
    git_executable: str = Field(default="git", alias="GIT_EXECUTABLE")
    gitflow_master: str = Field(default="master", alias="GITFLOW_MASTER")
    gitflow_develop: str = Field(default="develop", alias="GITFLOW_DEVELOP")
    gitflow_feature_prefix: str = Field(default="feature/", alias="GITFLOW_FEATURE_PREFIX")
    gitflow_release_prefix: str = Field(default="release/", alias="GITFLOW_RELEASE_PREFIX")
    gitflow_hotfix_prefix: str = Field(default="hotfix/", alias="GITFLOW_HOTFIX_PREFIX")
    gitflow_support_prefix: str = Field(default="support/", alias="GITFLOW_SUPPORT_PREFIX")
    gitflow_versiontag_prefix: str = Field(default="", alias="GITFLOW_VERSIONTAG_PREFIX")

    class Config:
        case_sensitive = False
        env_file = ".env"
        populate_by_name = True
        extra = "ignore"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def validate_required_settings(self):
        """Validate that settings hold usable values."""
        if self.environment not in ENVIRONMENTS:
            raise ValueError(
                f"ENVIRONMENT must be one of {', '.join(ENVIRONMENTS)} "
                f"(got '{self.environment}')."
            )
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(
                f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)} "
                f"(got '{self.log_level}')."
            )
        if not 1 <= self.port <= 65535:
            raise ValueError(f"PORT must be between 1 and 65535 (got {self.port}).")


# Global settings instance
settings = Settings()


# Validate settings on module import (only in non-test environments)
if settings.environment != "test":
    try:
        settings.validate_required_settings()
    except ValueError as e:
        print(f"Configuration Error: {e}")
        # Don't raise in development to allow partial setup
        if settings.is_production:
            raise
