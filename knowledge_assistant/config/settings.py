"""Configuration management for the Knowledge Assistant."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.domain import RagConfig

SHEETS_CSV_EXPORT_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv"


def _sanitize_secret(value: str) -> str:
    """Remove BOM characters and whitespace from secrets.

    Secrets copied from spreadsheets or hosting dashboards may carry a BOM
    that breaks HTTP headers.
    """
    if not value:
        return value
    return value.lstrip("\ufeff").strip()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Google AI API
    google_api_key: str = ""

    @field_validator("google_api_key", "knowledge_sheet_id", mode="after")
    @classmethod
    def sanitize_secrets(cls, value: str) -> str:
        """Remove BOM and whitespace from secret values."""
        return _sanitize_secret(value)

    # Model settings
    llm_model: str = "gemini-2.0-flash"
    llm_requests_per_minute: int | None = 15
    llm_max_retries: int = 3
    llm_timeout_seconds: float | None = 90.0

    # Knowledge sources
    knowledge_sources: str = ""
    knowledge_sheet_id: str = ""
    fetch_delay_seconds: float = 0.2
    http_timeout_seconds: float = 15.0

    # RAG settings
    lenient_max_results: int = 5
    lenient_min_score: float = 0.05
    strict_max_results: int = 5
    strict_min_score: float = 0.1
    top_k: int = 0
    answer_threshold: float = 0.3
    answer_min_results: int = 1
    max_context_length: int = 40000
    max_images: int = 5
    excerpt_length: int = 2000
    excerpt_lead: int = 100
    rag_temperature: float = 0.5
    rag_max_tokens: int = 3000

    # Scheduled rebuilds
    scheduler_enabled: bool = False
    scheduler_weekday: int = 0  # Monday
    scheduler_hour: int = 3
    scheduler_timezone: str = "Asia/Tokyo"
    rebuild_on_startup: bool = True

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    @property
    def knowledge_sources_location(self) -> str:
        """CSV location of the content-source list (path or URL)."""
        if self.knowledge_sources:
            return self.knowledge_sources
        if self.knowledge_sheet_id:
            return SHEETS_CSV_EXPORT_URL.format(sheet_id=self.knowledge_sheet_id)
        return ""

    def rag_config(self) -> RagConfig:
        """Build the core RAG configuration from these settings."""
        return RagConfig(
            lenient_max_results=self.lenient_max_results,
            lenient_min_score=self.lenient_min_score,
            strict_max_results=self.strict_max_results,
            strict_min_score=self.strict_min_score,
            top_k=self.top_k,
            answer_threshold=self.answer_threshold,
            answer_min_results=self.answer_min_results,
            max_context_length=self.max_context_length,
            max_images=self.max_images,
            excerpt_length=self.excerpt_length,
            excerpt_lead=self.excerpt_lead,
            temperature=self.rag_temperature,
            max_tokens=self.rag_max_tokens,
            timeout_seconds=self.llm_timeout_seconds,
        )


# Global settings instance
settings = Settings()
