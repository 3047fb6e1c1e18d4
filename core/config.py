"""
Configuration management with environment variable support and validation.

Design principles:
- Environment-specific configs (dev, staging, prod)
- Validation at startup (fail fast)
- Type safety with Pydantic
- Secure defaults (no API keys in code)
"""

import os
from functools import lru_cache
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

# Load environment variables from .env file
load_dotenv()

DEFAULT_BASE_URL = "https://assessment.ksensetech.com/api"


class DemoMedAPIConfig(BaseModel):
    """Connection settings for the patient records API."""

    base_url: str = Field(default=DEFAULT_BASE_URL, description="API root, without trailing slash")
    api_key: str = Field(..., description="Static credential sent as x-api-key")
    page_limit: int = Field(default=20, ge=1, le=20, description="Patients requested per page")
    page_delay_seconds: float = Field(
        default=0.12, ge=0.0, description="Pause between page requests to stay under rate limit"
    )
    request_timeout_seconds: float = Field(
        default=30.0, gt=0.0, description="Per-request transport timeout"
    )

    @field_validator("base_url")
    def strip_trailing_slash(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        return v

    @field_validator("api_key")
    def validate_api_key(cls, v: str) -> str:
        if not v or v == "your-api-key-here":
            raise ValueError("DEMOMED_API_KEY must be set in environment or .env file")
        if not v.startswith("ak_"):
            raise ValueError("DEMOMED_API_KEY must start with 'ak_'")
        return v


class RetryPolicy(BaseModel):
    """Backoff policy for transient HTTP failures."""

    max_retries: int = Field(
        default=6, ge=0, description="Retries allowed after the initial request"
    )
    base_delay_ms: float = Field(default=300.0, ge=0.0, description="Backoff base delay")
    max_jitter_ms: float = Field(default=200.0, ge=0.0, description="Upper bound of random jitter")
    retryable_statuses: frozenset[int] = Field(default=frozenset({429, 500, 503}))

    def backoff_seconds(self, attempt: int, jitter_ms: float) -> float:
        """Exponential delay for a zero-based attempt number."""
        return (self.base_delay_ms * (2**attempt) + jitter_ms) / 1000.0


class ScoringConfig(BaseModel):
    """Classification thresholds."""

    high_risk_threshold: int = Field(
        default=4, gt=0, description="Total risk at or above which a patient is high risk"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    # Component configs
    api: DemoMedAPIConfig
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    def _format_to_literal(val: str | None, debug: bool) -> Literal["json", "console"]:
        if val is None:
            return "console" if debug else "json"
        return "console" if val.strip().lower() == "console" else "json"

    # Detect environment
    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    api_config = DemoMedAPIConfig(
        base_url=os.getenv("DEMOMED_BASE_URL", DEFAULT_BASE_URL),
        api_key=os.getenv("DEMOMED_API_KEY", ""),
        page_limit=int(os.getenv("DEMOMED_PAGE_LIMIT", "20")),
        page_delay_seconds=float(os.getenv("DEMOMED_PAGE_DELAY_SECONDS", "0.12")),
        request_timeout_seconds=float(os.getenv("DEMOMED_REQUEST_TIMEOUT_SECONDS", "30.0")),
    )

    retry_policy = RetryPolicy(
        max_retries=int(os.getenv("RETRY_MAX_RETRIES", "6")),
        base_delay_ms=float(os.getenv("RETRY_BASE_DELAY_MS", "300")),
        max_jitter_ms=float(os.getenv("RETRY_MAX_JITTER_MS", "200")),
    )

    scoring_config = ScoringConfig(
        high_risk_threshold=int(os.getenv("HIGH_RISK_THRESHOLD", "4")),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format=_format_to_literal(os.getenv("LOG_FORMAT"), debug),
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        api=api_config,
        retry=retry_policy,
        scoring=scoring_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


def validate_config() -> AppConfig:
    """Validate configuration at startup."""
    try:
        config = get_config()
    except ValueError as e:
        print(f"Configuration validation failed: {e}")
        raise

    print(f"Configuration loaded for {config.environment} environment")
    return config


def mask_secret(value: str, visible: int = 4) -> str:
    """Hide all but the last few characters of a credential."""
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]


def print_config_summary() -> None:
    """Print configuration summary for debugging."""
    config = get_config()

    print("\nCONFIGURATION SUMMARY")
    print(f"Environment: {config.environment}")
    print(f"Debug Mode: {config.debug}")
    print(f"Log Level: {config.logging.level} ({config.logging.format})")

    print("\nAPI CONFIGURATION")
    print(f"Base URL: {config.api.base_url}")
    print(f"API Key: {mask_secret(config.api.api_key)}")
    print(f"Page Limit: {config.api.page_limit}")
    print(f"Page Delay: {config.api.page_delay_seconds}s")

    print("\nRETRY POLICY")
    print(f"Max Retries: {config.retry.max_retries}")
    print(f"Base Delay: {config.retry.base_delay_ms}ms (+ up to {config.retry.max_jitter_ms}ms)")
    print(f"Retryable Statuses: {sorted(config.retry.retryable_statuses)}")

    print("\nSCORING")
    print(f"High Risk Threshold: {config.scoring.high_risk_threshold}")


if __name__ == "__main__":
    # Test configuration loading
    validate_config()
    print_config_summary()
