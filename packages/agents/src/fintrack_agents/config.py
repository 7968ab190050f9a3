"""Configuration system for FinTrack Agents.

This module provides Pydantic Settings-based configuration with environment
variable support and sensible defaults for the insight engine.

Usage:
    from fintrack_agents.config import FintrackConfig

    # Load from environment variables and .env file
    config = FintrackConfig()

    # Access LLM settings
    print(config.llm.model)
    print(config.llm.timeout)

    # Access analytics settings
    print(config.analytics.cache_ttl_minutes)
"""

from datetime import timedelta
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fintrack_core.models import Sensitivity, Timeframe


class LLMConfig(BaseSettings):
    """Settings for the external reasoning service.

    Environment Variables:
        FINTRACK_LLM_ENABLED: Set to false to always use local insights
        FINTRACK_LLM_MODEL: Model name
        FINTRACK_LLM_TEMPERATURE: Sampling temperature (0.0-2.0)
        FINTRACK_LLM_MAX_TOKENS: Maximum output tokens
        FINTRACK_LLM_API_KEY: API key (ANTHROPIC_API_KEY is used when unset)
        FINTRACK_LLM_TIMEOUT: Request timeout in seconds
    """

    model_config = SettingsConfigDict(
        env_prefix="FINTRACK_LLM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    enabled: bool = Field(
        default=True,
        description="Attempt the external reasoning call when credentials exist",
    )
    model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Model identifier for the LLM",
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for generation",
    )
    max_tokens: int = Field(
        default=800,
        gt=0,
        le=200000,
        description="Maximum tokens in response",
    )
    api_key: Optional[str] = Field(
        default=None,
        description="API key for the LLM provider",
    )
    timeout: float = Field(
        default=10.0,
        gt=0,
        description="Request timeout in seconds",
    )

    @field_validator("model")
    @classmethod
    def validate_model(cls, v: str) -> str:
        """Ensure model name is not empty."""
        if not v or not v.strip():
            raise ValueError("Model name cannot be empty")
        return v.strip()


class AnalyticsConfig(BaseSettings):
    """Tuning for the analytics engine and the insight cache.

    Environment Variables:
        FINTRACK_ANALYTICS_CACHE_TTL_MINUTES: Insight cache lifetime
        FINTRACK_ANALYTICS_CACHE_MAX_ENTRIES: Insight cache size cap
        FINTRACK_ANALYTICS_RECURRENCE_GRANULARITY: Amount rounding unit for recurrence grouping
        FINTRACK_ANALYTICS_CONCENTRATION_THRESHOLD: Category share (%) that triggers a warning
        FINTRACK_ANALYTICS_CASH_USAGE_THRESHOLD: Cash share (%) that triggers a warning
        FINTRACK_ANALYTICS_DEFAULT_TIMEFRAME: Timeframe used when none is given
        FINTRACK_ANALYTICS_DEFAULT_SENSITIVITY: Anomaly sensitivity used when none is given
        FINTRACK_ANALYTICS_DEFAULT_MONTHS_AHEAD: Prediction horizon used when none is given
        FINTRACK_ANALYTICS_HISTORY_MONTHS: History window for predictions and baselines
        FINTRACK_ANALYTICS_CURRENCY: Currency label used in suggestions
    """

    model_config = SettingsConfigDict(
        env_prefix="FINTRACK_ANALYTICS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    cache_ttl_minutes: int = Field(default=30, gt=0, le=24 * 60)
    cache_max_entries: int = Field(default=1024, ge=1)
    recurrence_granularity: int = Field(default=1000, gt=0)
    concentration_threshold: float = Field(default=40.0, gt=0, le=100)
    cash_usage_threshold: float = Field(default=70.0, gt=0, le=100)
    default_timeframe: Timeframe = Field(default=Timeframe.MONTH)
    default_sensitivity: Sensitivity = Field(default=Sensitivity.MEDIUM)
    default_months_ahead: int = Field(default=3, ge=1, le=12)
    history_months: int = Field(default=12, ge=1, le=60)
    currency: str = Field(default="Tsh")

    @property
    def cache_ttl(self) -> timedelta:
        return timedelta(minutes=self.cache_ttl_minutes)


class FintrackConfig(BaseSettings):
    """Root configuration for FinTrack Agents.

    Environment Variables:
        FINTRACK_ENV: Environment name (development, staging, production, test)
        FINTRACK_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        FINTRACK_JSON_LOGS: Render logs as JSON lines

    Example:
        config = FintrackConfig(
            llm=LLMConfig(enabled=False),
            analytics=AnalyticsConfig(cache_ttl_minutes=5),
        )
    """

    model_config = SettingsConfigDict(
        env_prefix="FINTRACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    env: str = Field(
        default="development",
        description="Environment name (development, staging, production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    json_logs: bool = Field(
        default=False,
        description="Render log events as JSON",
    )

    llm: LLMConfig = Field(default_factory=LLMConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment name."""
        valid_envs = {"development", "staging", "production", "test"}
        v_lower = v.lower().strip()
        if v_lower not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of: {valid_envs}")
        return v_lower

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper().strip()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of: {valid_levels}")
        return v_upper

    @property
    def is_production(self) -> bool:
        return self.env == "production"
