"""LLM共通インターフェース

全プロバイダーが実装すべき抽象基底クラス。
試行ループ・ポリシー選択・待機・最終エラー変換はここに1回だけ書き、
各プロバイダーは1回分のAPI呼び出し (_call) とエラー分類 (_classify) のみ実装する。

フォールバック禁止：別モデル/別プロバイダへの自動切替は行わない。
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from aeo_schema.core.errors import GenerationError, GenerationErrorKind
from aeo_schema.helpers.output_parser import parse_refinement
from aeo_schema.helpers.prompt_builder import build_refinement_prompts
from aeo_schema.observability.events import EventEmitter, EventType
from aeo_schema.observability.logger import configure_logging, get_logger
from aeo_schema.validation.refinement import sanitize_refinement

from .retry import RetryPolicies, RetryPolicy
from .schemas import LLMRequestConfig, LLMResponse, SchemaRefinement

if TYPE_CHECKING:
    from aeo_schema.core.config import PipelineSettings
    from aeo_schema.core.models import ContentAnalysis

logger = get_logger(__name__)

# HTTPステータス -> エラー種別
STATUS_KINDS: dict[int, GenerationErrorKind] = {
    401: GenerationErrorKind.AUTH,
    403: GenerationErrorKind.PERMISSION,
    404: GenerationErrorKind.NOT_FOUND,
    413: GenerationErrorKind.PAYLOAD_TOO_LARGE,
    429: GenerationErrorKind.RATE_LIMITED,
    500: GenerationErrorKind.PROVIDER_INTERNAL,
    502: GenerationErrorKind.PROVIDER_INTERNAL,
    503: GenerationErrorKind.PROVIDER_OVERLOADED,
    529: GenerationErrorKind.PROVIDER_OVERLOADED,
}

# プロバイダーのエラー type -> エラー種別（ステータスより優先）
ERROR_TYPE_KINDS: dict[str, GenerationErrorKind] = {
    "overloaded_error": GenerationErrorKind.PROVIDER_OVERLOADED,
    "rate_limit_error": GenerationErrorKind.RATE_LIMITED,
    "api_error": GenerationErrorKind.PROVIDER_INTERNAL,
    "authentication_error": GenerationErrorKind.AUTH,
    "permission_error": GenerationErrorKind.PERMISSION,
    "not_found_error": GenerationErrorKind.NOT_FOUND,
    "request_too_large": GenerationErrorKind.PAYLOAD_TOO_LARGE,
}


def provider_error_type(body: Any) -> str | None:
    """SDK例外の body からエラー type を取り出す

    Anthropic: {"type": "error", "error": {"type": "overloaded_error", ...}}
    OpenAI:    {"message": ..., "type": ..., "code": ...}
    """
    if not isinstance(body, dict):
        return None
    inner = body.get("error", body)
    if not isinstance(inner, dict):
        return None
    error_type = inner.get("type")
    return error_type if isinstance(error_type, str) else None


def classify_status(status_code: int | None, error_type: str | None = None) -> GenerationErrorKind:
    """ステータスコードとエラー type から種別を決定"""
    if error_type and error_type in ERROR_TYPE_KINDS:
        return ERROR_TYPE_KINDS[error_type]
    if status_code is not None and status_code in STATUS_KINDS:
        return STATUS_KINDS[status_code]
    return GenerationErrorKind.UNKNOWN


class ProviderClient(ABC):
    """LLMプロバイダークライアントの基底クラス

    重要な設計原則:
    - フォールバック禁止: 別モデル/別プロバイダへの自動切替は行わない
    - リトライ可能な種別のみリトライ（レート制限・内部エラー・過負荷）
    - ポリシー選択はエラー分類ごとに1回、待機前に行う
    - 待機は asyncio.sleep のため、呼び出し側のタイムアウトで中断できる
    """

    PROVIDER: str = ""
    DEFAULT_MODEL: str = ""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        retry_policies: RetryPolicies | None = None,
        request_config: LLMRequestConfig | None = None,
    ) -> None:
        """初期化.

        Args:
            api_key: APIキー（無い場合は利用不可として扱う）
            model: 使用するモデル名（省略時は DEFAULT_MODEL）
            retry_policies: リトライポリシー（省略時はデフォルト）
            request_config: temperature / max_tokens
        """
        self._api_key = api_key or None
        self.model = model or self.DEFAULT_MODEL
        self.retry_policies = retry_policies or RetryPolicies()
        self.request_config = request_config or LLMRequestConfig()

    @property
    def provider_name(self) -> str:
        """プロバイダー名を返す"""
        return self.PROVIDER

    @property
    def is_available(self) -> bool:
        """認証情報があるかどうか"""
        return self._api_key is not None

    @abstractmethod
    async def _call(
        self,
        system_prompt: str,
        user_prompt: str,
        analysis: "ContentAnalysis | None" = None,
    ) -> LLMResponse:
        """1回分のAPI呼び出し（リトライしない）"""
        ...

    @abstractmethod
    def _classify(self, error: Exception) -> GenerationError:
        """SDK例外を GenerationError に分類"""
        ...

    def _error(self, kind: GenerationErrorKind, original_error: Exception | None = None) -> GenerationError:
        return GenerationError(
            kind,
            provider=self.provider_name,
            model=self.model,
            original_error=original_error,
        )

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        emitter: EventEmitter | None = None,
        analysis: "ContentAnalysis | None" = None,
    ) -> LLMResponse:
        """テキスト生成（リトライ付き）

        状態遷移: Idle -> Attempting -> {Success | Retrying -> Attempting | Failed}

        Args:
            system_prompt: システムプロンプト
            user_prompt: ユーザープロンプト
            emitter: イベント出力先（省略時はこの呼び出し専用のものを作る）
            analysis: 入力ページ（オフラインプロバイダーのみ使用）

        Returns:
            LLMResponse: 生成結果（未加工テキスト）

        Raises:
            GenerationError: 非リトライ種別、またはリトライ上限到達
        """
        emitter = emitter or EventEmitter()

        if not self.is_available:
            error = self._error(GenerationErrorKind.AUTH)
            error.attempts = 0
            emitter.emit(
                EventType.ATTEMPT_FAILED,
                provider=self.provider_name,
                model=self.model,
                attempt=0,
                kind=error.kind.value,
                retryable=False,
                reason="credential_missing",
            )
            raise error

        policy: RetryPolicy = self.retry_policies.standard
        attempt = 0
        started = time.monotonic()

        while True:
            attempt += 1
            emitter.emit(
                EventType.ATTEMPT_STARTED,
                provider=self.provider_name,
                model=self.model,
                attempt=attempt,
                policy=policy.name,
            )
            logger.llm_request(self.provider_name, self.model, attempt, policy.max_attempts)

            try:
                response = await self._call(system_prompt, user_prompt, analysis)
            except Exception as e:
                error = e if isinstance(e, GenerationError) else self._classify(e)
                cause = None if error is e else e
                error.attempts = attempt
                emitter.emit(
                    EventType.ATTEMPT_FAILED,
                    provider=self.provider_name,
                    model=self.model,
                    attempt=attempt,
                    kind=error.kind.value,
                    retryable=error.retryable,
                    detail=str(e),
                )

                if not error.retryable:
                    raise error from cause

                policy = self.retry_policies.select(error, policy)
                if attempt >= policy.max_attempts:
                    emitter.emit(
                        EventType.RETRY_EXHAUSTED,
                        provider=self.provider_name,
                        model=self.model,
                        attempts=attempt,
                        kind=error.kind.value,
                        policy=policy.name,
                    )
                    raise error from cause

                delay = policy.delay_for(attempt)
                emitter.emit(
                    EventType.RETRY_SCHEDULED,
                    provider=self.provider_name,
                    model=self.model,
                    attempt=attempt,
                    next_attempt=attempt + 1,
                    delay_seconds=delay,
                    policy=policy.name,
                    kind=error.kind.value,
                )
                await asyncio.sleep(delay)
                continue

            latency_ms = (time.monotonic() - started) * 1000
            emitter.emit(
                EventType.ATTEMPT_SUCCEEDED,
                provider=self.provider_name,
                model=response.model,
                attempt=attempt,
                latency_ms=round(latency_ms, 1),
                input_tokens=response.token_usage.input,
                output_tokens=response.token_usage.output,
            )
            logger.llm_response(
                self.provider_name,
                response.model,
                tokens_out=response.token_usage.output,
                latency_ms=latency_ms,
            )
            return response.model_copy(update={"attempts": attempt, "latency_ms": latency_ms})

    async def refine(
        self,
        schema: dict[str, Any],
        analysis: "ContentAnalysis",
        *,
        emitter: EventEmitter | None = None,
    ) -> SchemaRefinement:
        """生成済みスキーマのリファイン（リトライ付き）

        generate() と同じ試行ループでモデルを呼び、応答を解析した後、
        検証済みメタデータで裏付けのない変更を取り消す。

        Args:
            schema: パイプラインを通過済みのスキーマ
            analysis: スキーマの元になったページ
            emitter: イベント出力先

        Returns:
            SchemaRefinement: リファイン結果

        Raises:
            GenerationError: プロバイダー失敗、解析不能、または空のスキーマ
        """
        emitter = emitter or EventEmitter()
        bundle = build_refinement_prompts(schema, analysis)
        response = await self.generate(
            bundle.system_prompt,
            bundle.user_prompt,
            emitter=emitter,
            analysis=analysis,
        )

        try:
            refined, changes = parse_refinement(response.content)
        except GenerationError as e:
            e.provider = response.provider
            e.model = response.model
            e.attempts = response.attempts
            emitter.emit(
                EventType.PARSE_FAILED,
                stage="refinement",
                kind=e.kind.value,
                content_length=len(response.content or ""),
            )
            raise

        sanitized, rejected = sanitize_refinement(schema, refined, analysis)
        if rejected:
            emitter.emit(
                EventType.PROPERTY_REJECTED,
                schema_type=schema.get("@type"),
                properties=rejected,
            )

        return SchemaRefinement(
            refined=sanitized,
            changes=changes,
            rejected=rejected,
            provider=response.provider,
            model=response.model,
            attempts=response.attempts,
            latency_ms=response.latency_ms,
        )


def get_llm_client(provider: str | None = None, settings: "PipelineSettings | None" = None) -> ProviderClient:
    """プロバイダ名からLLMクライアントを取得

    プロセス起動時に1回だけ呼び出し、得られたクライアントを使い回す。
    ログレベルも設定値 (LOG_LEVEL) に合わせる。
    認証情報が無く AEO_USE_MOCK_LLM が有効な場合はオフラインプロバイダーを返す。

    Args:
        provider: プロバイダ名 ("anthropic", "openai", "mock")。省略時は設定値
        settings: 設定（省略時は環境変数から）

    Returns:
        ProviderClient: 対応するクライアントインスタンス

    Raises:
        ValueError: 不明なプロバイダ
    """
    from aeo_schema.core.config import PipelineSettings

    settings = settings or PipelineSettings.from_env()
    configure_logging(settings.log_level)
    provider = (provider or settings.provider).lower()

    client: ProviderClient
    if provider == "anthropic":
        from .anthropic import AnthropicClient

        client = AnthropicClient(
            api_key=settings.anthropic_api_key,
            model=settings.anthropic_model,
            retry_policies=settings.retry_policies,
        )
    elif provider == "openai":
        from .openai import OpenAIClient

        client = OpenAIClient(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            retry_policies=settings.retry_policies,
        )
    elif provider == "mock":
        from .mock import MockProviderClient

        return MockProviderClient()
    else:
        raise ValueError(f"Unknown LLM provider: {provider}")

    if not client.is_available and settings.use_mock_llm:
        from .mock import MockProviderClient

        logger.warning(
            f"{provider} credentials not configured, using offline provider",
            extra_data={"provider": provider},
        )
        return MockProviderClient()

    return client
