"""Configuration loaded from environment (.env) and defaults."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Locate the project root .env file regardless of CWD
_THIS_DIR = Path(__file__).resolve().parent          # seogen/
_PROJECT_ROOT = _THIS_DIR.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # LLM provider: openai | anthropic
    seogen_llm_provider: str = "openai"

    # OpenAI
    openai_api_key: str | None = None
    seogen_openai_model: str = "gpt-4o-mini"

    # Anthropic
    anthropic_api_key: str | None = None
    seogen_anthropic_model: str = "claude-3-5-sonnet-20241022"

    # Data directory for the file-based entity store
    seogen_data_dir: str = "./data"

    # Postgres URL; when set the entity store lives in Postgres
    seogen_database_url: str | None = None

    # Worker pool size for background pipeline runs
    seogen_worker_count: int = Field(default=2, ge=1)

    # Hard limit per stage call in seconds; unset means no limit
    seogen_stage_timeout_seconds: float | None = None

    # Keyword research: how many ranked keywords are persisted per run
    seogen_max_saved_keywords: int = Field(default=100, ge=1)

    # Google Ads keyword metrics. The developer token switches the metrics source.
    google_ads_developer_token: str | None = None
    google_ads_customer_id: str | None = None
    google_ads_access_token: str | None = None
    google_ads_api_version: str = "v17"

    # CORS origins (comma-separated). Defaults to localhost dev.
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Server port
    port: int = 8000

    @property
    def data_dir(self) -> Path:
        """Data directory as Path; relative paths resolve against the project root."""
        p = Path(self.seogen_data_dir)
        if not p.is_absolute():
            return (_PROJECT_ROOT / p).resolve()
        return p.resolve()

    @property
    def use_google_ads(self) -> bool:
        return bool(self.google_ads_developer_token and self.google_ads_developer_token.strip())

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def ensure_dirs(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)


def get_settings() -> Settings:
    settings = Settings()
    settings.ensure_dirs()
    return settings
