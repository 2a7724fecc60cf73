"""Workboard configuration — database, session, rate limits."""

from pydantic_settings import BaseSettings

INSECURE_SESSION_SECRET = "change-me"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite:///data/workboard.db"

    # Session cookie (HMAC-signed, see workboard.security.session_token)
    session_secret: str = INSECURE_SESSION_SECRET
    session_cookie_name: str = "workboard_session"
    session_ttl_days: int = 7

    # CORS (comma-separated origins)
    cors_origins: str = "http://localhost:3000"

    # Rate limits (requests per minute per client IP)
    rate_limit_rpm: int = 120
    rate_limit_bulk_rpm: int = 30

    # Logging
    log_level: str = "INFO"

    # Server-Sent Events
    events_heartbeat_seconds: float = 30.0
    events_max_subscribers: int = 50

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
