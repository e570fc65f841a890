"""
Configuration settings for Stream Retry.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "Stream Retry"
    APP_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === Retry & Backoff ===
    RETRY_MAX_ATTEMPTS: int = 3  # Total attempts, including the first
    RETRY_BASE_DELAY_MS: float = 1000.0  # Backoff unit for the first retry
    RETRY_MAX_DELAY_MS: float = 10000.0  # Clamp on exponential backoff (not on server hints)
    RETRY_ALL_ERRORS: bool = False  # False: only rate-limit errors are retried

    # === Ollama Configuration ===
    OLLAMA_BASE_URL: str = "http://ollama:11434"
    OLLAMA_MODEL: str = "qwen2.5:7b"
    OLLAMA_TIMEOUT: int = 60  # seconds

    # === LLM Generation Parameters ===
    LLM_TEMPERATURE: float = 0.0
    LLM_MAX_TOKENS: int = 2048

    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True  # CLI only: serve /metrics while streaming
    METRICS_PORT: int = 9100


# Global settings instance
settings = Settings()
