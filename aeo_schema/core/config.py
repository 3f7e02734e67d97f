"""Pipeline configuration resolved from environment variables.

All retry and provider parameters can be changed without code changes:

    AEO_LLM_PROVIDER            anthropic | openai | mock (default: anthropic)
    ANTHROPIC_API_KEY / ANTHROPIC_MODEL
    OPENAI_API_KEY / OPENAI_MODEL
    AEO_USE_MOCK_LLM            true to fall back to the offline provider
                                when the configured provider has no key
    AEO_CONTENT_CHAR_LIMIT      content budget ceiling (characters)
    AEO_RETRY_MAX_ATTEMPTS      standard policy attempts
    AEO_RETRY_BASE_DELAY        standard policy first delay (seconds)
    AEO_RETRY_MAX_DELAY         standard policy delay cap (seconds)
    AEO_OVERLOAD_MAX_ATTEMPTS   overload policy attempts
    AEO_OVERLOAD_DELAYS         overload ladder, comma separated seconds
    LOG_LEVEL
"""

import logging
import os

from pydantic import BaseModel, ConfigDict, Field, field_validator

from aeo_schema.helpers.truncation_limits import PROMPT_CONTENT_CHAR_LIMIT
from aeo_schema.llm.retry import (
    DEFAULT_OVERLOAD_DELAYS,
    RetryPolicies,
    RetryPolicy,
)

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("anthropic", "openai", "mock")
DEFAULT_LLM_PROVIDER = "anthropic"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _parse_delays(value: str | None) -> tuple[float, ...]:
    if not value:
        return DEFAULT_OVERLOAD_DELAYS
    return tuple(float(part) for part in value.split(",") if part.strip())


class PipelineSettings(BaseModel):
    """Resolved settings for one process."""

    model_config = ConfigDict(frozen=True)

    provider: str = Field(default=DEFAULT_LLM_PROVIDER, description="LLMプロバイダー名")
    anthropic_api_key: str | None = Field(default=None, repr=False)
    anthropic_model: str | None = None
    openai_api_key: str | None = Field(default=None, repr=False)
    openai_model: str | None = None
    use_mock_llm: bool = Field(
        default=False,
        description="認証情報が無い場合にオフラインプロバイダーを使う",
    )
    content_char_limit: int = Field(default=PROMPT_CONTENT_CHAR_LIMIT, ge=1)
    retry_policies: RetryPolicies = Field(default_factory=RetryPolicies)
    log_level: str = "INFO"

    @field_validator("provider")
    @classmethod
    def _validate_provider(cls, value: str) -> str:
        value = value.lower()
        if value not in SUPPORTED_PROVIDERS:
            raise ValueError(f"Unknown LLM provider: {value}")
        return value

    @classmethod
    def from_env(cls) -> "PipelineSettings":
        """Build settings from the process environment."""
        provider = os.getenv("AEO_LLM_PROVIDER")
        if not provider:
            provider = DEFAULT_LLM_PROVIDER
            logger.info("AEO_LLM_PROVIDER not set, defaulting to '%s'", DEFAULT_LLM_PROVIDER)

        overload_delays = _parse_delays(os.getenv("AEO_OVERLOAD_DELAYS"))
        policies = RetryPolicies(
            standard=RetryPolicy(
                name="standard",
                max_attempts=_env_int("AEO_RETRY_MAX_ATTEMPTS", 3),
                base_delay=_env_float("AEO_RETRY_BASE_DELAY", 1.0),
                max_delay=_env_float("AEO_RETRY_MAX_DELAY", 30.0),
            ),
            overload=RetryPolicy(
                name="overload",
                max_attempts=_env_int("AEO_OVERLOAD_MAX_ATTEMPTS", len(overload_delays) + 1),
                delays=overload_delays,
            ),
        )

        return cls(
            provider=provider,
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY") or None,
            anthropic_model=os.getenv("ANTHROPIC_MODEL") or None,
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_model=os.getenv("OPENAI_MODEL") or None,
            use_mock_llm=_env_bool("AEO_USE_MOCK_LLM"),
            content_char_limit=_env_int("AEO_CONTENT_CHAR_LIMIT", PROMPT_CONTENT_CHAR_LIMIT),
            retry_policies=policies,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
