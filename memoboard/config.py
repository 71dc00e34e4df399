"""Configuration settings for memoboard."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Supabase
    supabase_url: str
    supabase_publishable_key: str | None = None  # Client/public access
    supabase_anon_key: str | None = None  # Legacy key, used if no publishable key
    postgrest_timeout: int = 10  # seconds

    # App
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Rate limiting (mutating routes only)
    rate_limit_enabled: bool = True
    mutation_rate_limit: str = "60/minute"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra env vars not in model

    @property
    def api_key(self) -> str | None:
        """Publishable key, falling back to the legacy anon key."""
        return self.supabase_publishable_key or self.supabase_anon_key


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
