"""OpenAI API クライアント実装.

フォールバック禁止: 別モデル/別プロバイダへの自動切替は行わない。
リトライは基底クラスの共通ループで行う（SDK側のリトライは無効化）。
"""

from typing import TYPE_CHECKING

from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from aeo_schema.core.errors import GenerationError, GenerationErrorKind
from aeo_schema.observability.logger import get_logger

from .base import ProviderClient, classify_status, provider_error_type
from .retry import RetryPolicies
from .schemas import LLMRequestConfig, LLMResponse, TokenUsage

if TYPE_CHECKING:
    from aeo_schema.core.models import ContentAnalysis

logger = get_logger(__name__)


class OpenAIClient(ProviderClient):
    """OpenAI API クライアント.

    JSONモード (response_format=json_object) で呼び出す。
    """

    PROVIDER = "openai"
    DEFAULT_MODEL = "gpt-4o"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        retry_policies: RetryPolicies | None = None,
        request_config: LLMRequestConfig | None = None,
    ) -> None:
        """初期化.

        Args:
            api_key: OpenAI APIキー（無い場合は利用不可）
            model: 使用するモデル名
            retry_policies: リトライポリシー
            request_config: temperature / max_tokens
        """
        super().__init__(api_key, model, retry_policies, request_config)
        self.client: AsyncOpenAI | None = None
        if self._api_key:
            self.client = AsyncOpenAI(api_key=self._api_key, max_retries=0)

    async def _call(
        self,
        system_prompt: str,
        user_prompt: str,
        analysis: "ContentAnalysis | None" = None,
    ) -> LLMResponse:
        if self.client is None:
            raise self._error(GenerationErrorKind.AUTH)

        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self.request_config.temperature,
            max_tokens=self.request_config.max_tokens,
            response_format={"type": "json_object"},
        )

        choice = response.choices[0]
        usage = response.usage

        return LLMResponse(
            content=choice.message.content or "",
            token_usage=TokenUsage(
                input=usage.prompt_tokens if usage else 0,
                output=usage.completion_tokens if usage else 0,
            ),
            model=response.model,
            provider=self.PROVIDER,
            finish_reason=choice.finish_reason,
        )

    def _classify(self, error: Exception) -> GenerationError:
        """SDK例外をエラー種別に変換.

        APITimeoutError は APIConnectionError のサブクラスのため内部エラー扱い。
        """
        if isinstance(error, APIConnectionError):
            kind = GenerationErrorKind.PROVIDER_INTERNAL
        elif isinstance(error, APIStatusError):
            kind = classify_status(error.status_code, provider_error_type(error.body))
        else:
            kind = GenerationErrorKind.UNKNOWN

        logger.warning(
            "OpenAI API error classified as %s: %s",
            kind.value,
            type(error).__name__,
        )
        return self._error(kind, original_error=error)
