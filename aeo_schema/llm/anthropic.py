"""Anthropic Claude API client implementation."""

from typing import TYPE_CHECKING

from anthropic import APIConnectionError, APIStatusError, AsyncAnthropic

from aeo_schema.core.errors import GenerationError, GenerationErrorKind
from aeo_schema.observability.logger import get_logger

from .base import ProviderClient, classify_status, provider_error_type
from .retry import RetryPolicies
from .schemas import LLMRequestConfig, LLMResponse, TokenUsage

if TYPE_CHECKING:
    from aeo_schema.core.models import ContentAnalysis

logger = get_logger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"


class AnthropicClient(ProviderClient):
    """Anthropic Claude API client.

    Important:
        - No fallback to other models is allowed
        - A missing API key makes the client unavailable; nothing is sent
        - The SDK's own retries are disabled so the shared policy is the only one
    """

    PROVIDER = "anthropic"
    DEFAULT_MODEL = DEFAULT_MODEL

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        retry_policies: RetryPolicies | None = None,
        request_config: LLMRequestConfig | None = None,
    ) -> None:
        """Initialize Anthropic client.

        Args:
            api_key: Anthropic API key. Without one the client reports unavailable.
            model: Model identifier to use.
            retry_policies: Standard/overload retry policies.
            request_config: temperature / max_tokens.
        """
        super().__init__(api_key, model, retry_policies, request_config)
        self.client: AsyncAnthropic | None = None
        if self._api_key:
            self.client = AsyncAnthropic(api_key=self._api_key, max_retries=0)
        logger.info(
            f"AnthropicClient initialized with model={self.model}, available={self.is_available}"
        )

    async def _call(
        self,
        system_prompt: str,
        user_prompt: str,
        analysis: "ContentAnalysis | None" = None,
    ) -> LLMResponse:
        if self.client is None:
            raise self._error(GenerationErrorKind.AUTH)

        response = await self.client.messages.create(
            model=self.model,
            max_tokens=self.request_config.max_tokens,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
            temperature=self.request_config.temperature,
        )

        content = ""
        for block in response.content:
            if block.type == "text":
                content += block.text

        return LLMResponse(
            content=content,
            token_usage=TokenUsage(
                input=response.usage.input_tokens,
                output=response.usage.output_tokens,
            ),
            model=response.model,
            provider=self.PROVIDER,
            finish_reason=response.stop_reason,
        )

    def _classify(self, error: Exception) -> GenerationError:
        """Map an SDK exception onto the generation error taxonomy.

        Connection errors and timeouts count as provider-internal (retryable).
        A 529 or an ``overloaded_error`` body is an overload, not a rate limit.
        """
        if isinstance(error, APIConnectionError):
            kind = GenerationErrorKind.PROVIDER_INTERNAL
        elif isinstance(error, APIStatusError):
            kind = classify_status(error.status_code, provider_error_type(error.body))
        else:
            kind = GenerationErrorKind.UNKNOWN

        logger.warning(
            f"Anthropic API error classified as {kind.value}: {type(error).__name__}",
            extra_data={"kind": kind.value, "error_type": type(error).__name__},
        )
        return self._error(kind, original_error=error)
