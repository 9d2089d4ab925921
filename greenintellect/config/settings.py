from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "localhost"
    db_port: int = 5432
    db_database: str = "greenintellect"
    db_username: str = "greenintellect"
    db_password: str = "secret"

    analysis_provider: str = "groq"
    analysis_api_key: str = ""
    analysis_base_url: str | None = None
    analysis_model_name: str = "llama-3.1-8b-instant"
    analysis_temperature: float = 0.3
    analysis_max_tokens: int = 4000
    analysis_timeout_seconds: int = 60
    analysis_max_retries: int = 3
    analysis_min_interval_seconds: float = 0.0

    review_refresh_delay_seconds: float = 1.0

    worker_poll_interval_seconds: int = 5

    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_allow_origins: list[str] = ["*"]
