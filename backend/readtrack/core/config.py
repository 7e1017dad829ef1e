from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
import json
from pathlib import Path


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./readtrack.db"

    # CORS - can be JSON string or comma-separated string
    CORS_ORIGINS: str = '["http://localhost:3000"]'

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Supabase JWT verification (local)
    SUPABASE_URL: str = ""
    SUPABASE_JWT_SECRET: str = ""
    SUPABASE_JWT_AUD: str = "authenticated"
    SUPABASE_JWT_ISS: str = ""

    # Google Books metadata lookups
    GOOGLE_BOOKS_API_KEY: Optional[str] = None
    GOOGLE_BOOKS_BASE_URL: str = "https://www.googleapis.com/books/v1"
    GOOGLE_BOOKS_TIMEOUT_SECONDS: float = 10.0

    # Fallback daily page goal when the user has not picked one
    DEFAULT_DAILY_GOAL: int = 40

    model_config = SettingsConfigDict(
        # Load from backend/.env (relative to this file's parent's parent)
        env_file=str(Path(__file__).resolve().parents[2] / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Default issuer if not explicitly set
        if self.SUPABASE_URL and not self.SUPABASE_JWT_ISS.strip():
            self.SUPABASE_JWT_ISS = f"{self.SUPABASE_URL.rstrip('/')}/auth/v1"

    def require_supabase(self) -> None:
        """Raise if JWT verification cannot work with the current environment."""
        if not self.SUPABASE_URL or self.SUPABASE_URL.strip() == "":
            raise RuntimeError(
                "SUPABASE_URL is not set. Add SUPABASE_URL=https://YOUR_PROJECT_REF.supabase.co to backend/.env"
            )
        if not self.SUPABASE_JWT_SECRET or self.SUPABASE_JWT_SECRET.strip() == "":
            raise RuntimeError(
                "SUPABASE_JWT_SECRET is not set. Add it from your Supabase Project Settings -> API -> JWT Secret."
            )

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    def get_masked_database_url(self) -> str:
        """Return DATABASE_URL with password masked for logging."""
        if self.is_sqlite:
            return self.DATABASE_URL
        try:
            from urllib.parse import urlparse, urlunparse
            parsed = urlparse(self.DATABASE_URL)
            masked_netloc = f"{parsed.username}:***@{parsed.hostname}"
            if parsed.port:
                masked_netloc += f":{parsed.port}"
            return urlunparse((
                parsed.scheme,
                masked_netloc,
                parsed.path,
                parsed.params,
                parsed.query,
                parsed.fragment,
            ))
        except ValueError:
            return f"{self.DATABASE_URL.split('://')[0]}://<user>:***@<host>"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS from JSON string or comma-separated string."""
        if not self.CORS_ORIGINS:
            return ["http://localhost:3000"]

        try:
            parsed = json.loads(self.CORS_ORIGINS)
            if isinstance(parsed, list):
                return [str(origin) for origin in parsed]
            return [str(parsed)]
        except (json.JSONDecodeError, TypeError):
            origins = [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]
            return origins if origins else ["http://localhost:3000"]


settings = Settings()
