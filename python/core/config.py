"""
Application configuration via Pydantic Settings.
Loads from environment variables with validation and defaults.
"""

from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache


VERSION = "1.0.0"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # === Server ===
    server_host: str = Field(default="0.0.0.0", alias="SERVER_HOST")
    server_port: int = Field(default=8002, alias="SERVER_PORT")
    debug: bool = Field(default=False, alias="DEBUG")

    # === Supabase ===
    supabase_url: str = Field(..., alias="SUPABASE_URL")
    supabase_service_role_key: str = Field(..., alias="SUPABASE_SERVICE_ROLE_KEY")

    # === CORS ===
    allowed_origins: str = Field(default="*", alias="ALLOWED_ORIGINS")

    # === Model service ===
    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    vision_model: str = Field(default="gpt-4o-mini", alias="OPENAI_VISION_MODEL")
    text_model: str = Field(default="gpt-4o", alias="OPENAI_TEXT_MODEL")
    image_detail: str = Field(default="low", alias="IMAGE_DETAIL")  # low | high | auto
    vision_temperature: float = Field(default=0.3, alias="VISION_TEMPERATURE")

    # === Timeouts (seconds) ===
    detection_timeout_seconds: float = Field(default=30.0, alias="DETECTION_TIMEOUT_SECONDS")
    selection_timeout_seconds: float = Field(default=60.0, alias="SELECTION_TIMEOUT_SECONDS")
    generation_timeout_seconds: float = Field(default=90.0, alias="GENERATION_TIMEOUT_SECONDS")
    image_fetch_timeout_seconds: float = Field(default=15.0, alias="IMAGE_FETCH_TIMEOUT_SECONDS")

    # === Sampling ===
    full_coverage_limit: int = Field(default=15, alias="FULL_COVERAGE_LIMIT")
    sample_size: int = Field(default=10, alias="SAMPLE_SIZE")

    # === Review policy ===
    review_min_aggregate_confidence: float = Field(default=0.7, alias="REVIEW_MIN_AGGREGATE_CONFIDENCE")
    review_min_detection_confidence: float = Field(default=0.6, alias="REVIEW_MIN_DETECTION_CONFIDENCE")
    review_max_duration_ms: int = Field(default=30000, alias="REVIEW_MAX_DURATION_MS")
    review_min_highlights: int = Field(default=3, alias="REVIEW_MIN_HIGHLIGHTS")
    single_image_score: float = Field(default=0.8, alias="SINGLE_IMAGE_SCORE")
    tool_score_cap: float = Field(default=0.4, alias="TOOL_SCORE_CAP")

    # === Batch ===
    batch_concurrency: int = Field(default=3, alias="BATCH_CONCURRENCY")
    persistence_retries: int = Field(default=2, alias="PERSISTENCE_RETRIES")
    generate_content: bool = Field(default=False, alias="GENERATE_CONTENT")
    inline_images: bool = Field(default=True, alias="INLINE_IMAGES")

    @property
    def cors_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS into list."""
        return [origin.strip() for origin in self.allowed_origins.split(",")]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # Ignore extra env vars


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
