from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database - can use either DATABASE_URL or separate params
    database_url: str | None = None

    # Separate DB params (for passwords with special characters)
    db_host: str | None = None
    db_port: int = 5432
    db_user: str = "postgres"
    db_password: str | None = None
    db_name: str = "postgres"

    # Auth - dev mode bypass
    dev_user_id: str | None = None  # Set this to bypass JWT auth in local dev

    # Supabase Auth (production)
    supabase_url: str | None = None
    supabase_jwt_secret: str | None = None

    # Daily AI quota
    free_daily_ai_limit: int = 10
    premium_daily_ai_limit: int = 100

    # 200 for every outcome when False; 401/404/429/503 when True
    distinct_status_codes: bool = False

    # CORS - headers the mobile client sends
    cors_allow_headers: str = "authorization, x-client-info, apikey, content-type"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
