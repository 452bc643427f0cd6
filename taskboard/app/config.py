from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore", populate_by_name=True
    )

    # Persistence
    database_url: str = Field("sqlite:///./taskboard.db", alias="DATABASE_URL")
    # "sql" (default) or "memory" (demo / fixture mode, tasks vanish on restart)
    task_repo_backend: str = Field("sql", alias="TASK_REPO_BACKEND")

    # Signed session cookie
    session_secret: str = Field("", alias="SESSION_SECRET")
    session_ttl_seconds: int = Field(43200, alias="SESSION_TTL_SECONDS")
    session_cookie_secure: bool = Field(True, alias="SESSION_COOKIE_SECURE")

    # Google OAuth – leave empty to hide "Sign in with Google"
    google_client_id: str = Field("", alias="GOOGLE_CLIENT_ID")
    google_client_secret: str = Field("", alias="GOOGLE_CLIENT_SECRET")
    google_redirect_uri: str = Field(
        "http://localhost:8000/api/auth/google/callback",
        alias="GOOGLE_REDIRECT_URI",
    )

    cors_allow_origins: List[str] = Field(default_factory=list, alias="CORS_ALLOW_ORIGINS")

    # Labels and empty-state messages in the projection payload
    ui_lang: str = Field("en", alias="UI_LANG")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    @property
    def google_enabled(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
