"""Client configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Gemina client settings loaded from environment variables / .env file."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Credentials ---
    api_key: str = ""
    client_id: str = ""

    # --- API ---
    api_base: str = "https://api.gemina.co.il/v1"
    timeout: float = 30.0
    use_llm: bool = True

    # --- Polling ---
    poll_interval: float = 1.0
    max_poll_attempts: int | None = None  # None = poll until a terminal status
    poll_timeout: float | None = None

    # --- Logging ---
    debug: bool = False
    log_dir: str | None = "logs"  # None disables the file sink

    @property
    def upload_url(self) -> str:
        return f"{self.api_base.rstrip('/')}/uploads"

    @property
    def upload_web_url(self) -> str:
        return f"{self.api_base.rstrip('/')}/uploads/web"

    def prediction_url(self, external_id: str) -> str:
        return f"{self.api_base.rstrip('/')}/business_documents/{external_id}"


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
