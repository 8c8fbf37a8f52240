"""Application configuration using Pydantic settings."""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root directory
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=os.path.join(BASE_DIR, ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Racers Leaderboard"
    app_version: str = "1.0.0"
    debug: bool = False

    # CORS - comma-separated list of allowed origins
    cors_origins: str = "http://localhost:3000,http://localhost:8080"

    # Rate limiting
    rate_limit_submissions: int = 30  # submissions per minute

    # Document store
    store_backend: Literal["github", "local"] = "local"
    data_dir: Path = BASE_DIR / "data"
    pbs_dir: str = "pbs"
    leaderboards_dir: str = "leaderboards"
    write_retry_attempts: int = 3

    # GitHub
    github_token: Optional[str] = None
    github_repo_owner: Optional[str] = None
    github_repo_name: Optional[str] = None
    github_branch: str = "main"
    github_api_url: str = "https://api.github.com"

    # Steam
    steam_api_key: Optional[str] = None
    steam_app_id: int = 677620
    steam_api_url: str = "https://api.steampowered.com"

    # Platform user id -> user id mapping document
    user_mappings_url: str = "https://sgracers.vercel.app/pbs/platformUserIdKey.json"

    # Leaderboards
    default_leaderboard_length: int = 10
    snapshot_length: int = 10
    friend_id: str = "6f8a00c365494faab7893d0610a4f7c7"

    # Outbound HTTP
    http_timeout_seconds: float = 20.0

    @model_validator(mode="after")
    def validate_github_backend(self) -> "Settings":
        """Require repository coordinates when GitHub is the store."""
        if self.store_backend == "github":
            if not self.github_repo_owner or not self.github_repo_name:
                raise ValueError(
                    "GITHUB_REPO_OWNER and GITHUB_REPO_NAME are required for the github store"
                )
        if self.write_retry_attempts < 1:
            raise ValueError("WRITE_RETRY_ATTEMPTS must be at least 1")
        return self

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        if self.debug:
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def github_repo_url(self) -> str:
        return f"https://github.com/{self.github_repo_owner}/{self.github_repo_name}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
