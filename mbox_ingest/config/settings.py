from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    upload_temp_dir: str = "temp_uploads"
    mailbox_extension: str = ".mbox"

    decoder_engine: str = "email"

    parse_lookback_bytes: int = 64 * 1024
    parse_progress_every: int = 50
    parse_max_workers: int = 4
    body_excerpt_max_chars: int = 500

    session_max_age_seconds: int = 24 * 60 * 60
    sweep_interval_seconds: int = 300
