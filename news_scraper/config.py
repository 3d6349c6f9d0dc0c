"""Configuration management."""

from typing import Optional, List

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings


DEFAULT_CONSENT_INDICATORS = [
    "before you continue",
    "accept cookies",
    "accept all cookies",
    "cookie consent",
    "we value your privacy",
    "manage your privacy choices",
]

DEFAULT_RENDERING_INDICATORS = [
    "javascript is required",
    "enable javascript",
    "please enable javascript",
    "js is disabled",
    "checking your browser",
    "please wait while we verify",
]

DEFAULT_USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
]


class Settings(BaseSettings):
    """Application settings."""

    # Application
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")

    # Aggregator links
    aggregator_host: str = Field(default="news.google.com", alias="AGGREGATOR_HOST")

    # Crawl
    max_concurrency: int = Field(default=3, alias="MAX_CONCURRENCY")
    url_timeout_seconds: float = Field(default=90.0, alias="URL_TIMEOUT_SECONDS")
    request_timeout_seconds: float = Field(default=30.0, alias="REQUEST_TIMEOUT_SECONDS")
    browser_timeout_ms: int = Field(default=30_000, alias="BROWSER_TIMEOUT_MS")
    failure_log_path: Optional[str] = Field(default=None, alias="FAILURE_LOG_PATH")

    # Extraction
    min_content_length: int = Field(default=300, alias="MIN_CONTENT_LENGTH")

    # Image validation
    skip_image_validation: bool = Field(default=False, alias="SKIP_IMAGE_VALIDATION")
    image_validation_batch_size: int = Field(default=2, alias="IMAGE_VALIDATION_BATCH_SIZE")
    image_validation_pause_seconds: float = Field(default=0.1, alias="IMAGE_VALIDATION_PAUSE_SECONDS")
    image_validation_timeout_seconds: float = Field(default=5.0, alias="IMAGE_VALIDATION_TIMEOUT_SECONDS")
    image_validation_deadline_seconds: float = Field(default=30.0, alias="IMAGE_VALIDATION_DEADLINE_SECONDS")

    # Detection phrases (JSON lists when set through the environment)
    consent_indicators: List[str] = Field(
        default_factory=lambda: list(DEFAULT_CONSENT_INDICATORS),
        alias="CONSENT_INDICATORS"
    )
    rendering_indicators: List[str] = Field(
        default_factory=lambda: list(DEFAULT_RENDERING_INDICATORS),
        alias="RENDERING_INDICATORS"
    )
    user_agents: List[str] = Field(
        default_factory=lambda: list(DEFAULT_USER_AGENTS),
        alias="USER_AGENTS"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False
        populate_by_name = True
        extra = "ignore"

    @field_validator('log_file', 'failure_log_path', mode='before')
    @classmethod
    def empty_str_to_none(cls, v):
        """Convert empty strings to None for optional path fields."""
        if v == '' or v is None:
            return None
        return v

    @field_validator('image_validation_batch_size', 'max_concurrency')
    @classmethod
    def at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @model_validator(mode='after')
    def image_deadline_within_url_timeout(self) -> 'Settings':
        if self.image_validation_deadline_seconds >= self.url_timeout_seconds:
            raise ValueError(
                "IMAGE_VALIDATION_DEADLINE_SECONDS must be shorter than URL_TIMEOUT_SECONDS"
            )
        return self


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings."""
    return settings
