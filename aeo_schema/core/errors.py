"""Error classification for schema generation.

ErrorCategory determines retry behavior:
- RETRYABLE: Temporary failures, can retry with same parameters
- NON_RETRYABLE: Permanent failures, no retry will help
- VALIDATION_FAIL: Output validation failed, retrying the call will not fix it

GenerationError is the single typed error that leaves the pipeline. Its
message is always a pre-written, user-facing sentence; raw provider details
stay on ``original_error`` and in logs.
"""

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Classification of errors for retry decisions."""

    RETRYABLE = "retryable"
    NON_RETRYABLE = "non_retryable"
    VALIDATION_FAIL = "validation_fail"


class GenerationErrorKind(str, Enum):
    """Tagged kinds of generation failures."""

    AUTH = "auth"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    RATE_LIMITED = "rate_limited"
    PROVIDER_INTERNAL = "provider_internal"
    PROVIDER_OVERLOADED = "provider_overloaded"
    PARSE_FAILURE = "parse_failure"
    EMPTY_RESULT = "empty_result"
    UNKNOWN = "unknown"


RETRYABLE_KINDS: frozenset[GenerationErrorKind] = frozenset(
    {
        GenerationErrorKind.RATE_LIMITED,
        GenerationErrorKind.PROVIDER_INTERNAL,
        GenerationErrorKind.PROVIDER_OVERLOADED,
    }
)

# HTTP status the API layer should answer with
STATUS_HINTS: dict[GenerationErrorKind, int] = {
    GenerationErrorKind.AUTH: 502,
    GenerationErrorKind.PERMISSION: 502,
    GenerationErrorKind.NOT_FOUND: 502,
    GenerationErrorKind.PAYLOAD_TOO_LARGE: 413,
    GenerationErrorKind.RATE_LIMITED: 429,
    GenerationErrorKind.PROVIDER_INTERNAL: 502,
    GenerationErrorKind.PROVIDER_OVERLOADED: 503,
    GenerationErrorKind.PARSE_FAILURE: 502,
    GenerationErrorKind.EMPTY_RESULT: 422,
    GenerationErrorKind.UNKNOWN: 500,
}

USER_MESSAGES: dict[GenerationErrorKind, str] = {
    GenerationErrorKind.AUTH: (
        "Our AI assistant lost its credentials. Please contact support."
    ),
    GenerationErrorKind.PERMISSION: (
        "We don't have permission to access that resource. Please contact support."
    ),
    GenerationErrorKind.NOT_FOUND: (
        "We couldn't find what we were looking for. "
        "The AI model might be temporarily unavailable."
    ),
    GenerationErrorKind.PAYLOAD_TOO_LARGE: (
        "This page is too large for us to process. "
        "Try a simpler page or contact support for help."
    ),
    GenerationErrorKind.RATE_LIMITED: (
        "We're generating schemas faster than expected. "
        "Give us a moment and try again."
    ),
    GenerationErrorKind.PROVIDER_INTERNAL: (
        "Our AI hit a temporary problem. Please try again in a moment."
    ),
    GenerationErrorKind.PROVIDER_OVERLOADED: (
        "Our AI is experiencing high demand right now. "
        "Please try again in a few minutes."
    ),
    GenerationErrorKind.PARSE_FAILURE: (
        "The AI returned a response we couldn't read. Please try again."
    ),
    GenerationErrorKind.EMPTY_RESULT: (
        "No structured data could be generated for this page."
    ),
    GenerationErrorKind.UNKNOWN: (
        "Unable to generate your schemas right now. "
        "Please try again or contact support."
    ),
}


class GenerationError(Exception):
    """Typed failure of a schema generation request."""

    def __init__(
        self,
        kind: GenerationErrorKind,
        message: str | None = None,
        provider: str | None = None,
        model: str | None = None,
        original_error: Exception | None = None,
        attempts: int = 1,
    ) -> None:
        """初期化.

        Args:
            kind: エラー種別
            message: ユーザー向けメッセージ（省略時は種別ごとの定型文）
            provider: プロバイダー名（anthropic, openai, mock）
            model: 使用したモデル名
            original_error: 元の例外（ログ用、メッセージには含めない）
            attempts: 失敗までの試行回数
        """
        self.kind = kind
        self.message = message or USER_MESSAGES[kind]
        super().__init__(self.message)
        self.provider = provider
        self.model = model
        self.original_error = original_error
        self.attempts = attempts

    @property
    def retryable(self) -> bool:
        """リトライ可能かどうか."""
        return self.kind in RETRYABLE_KINDS

    @property
    def category(self) -> ErrorCategory:
        if self.retryable:
            return ErrorCategory.RETRYABLE
        if self.kind in (GenerationErrorKind.PARSE_FAILURE, GenerationErrorKind.EMPTY_RESULT):
            return ErrorCategory.VALIDATION_FAIL
        return ErrorCategory.NON_RETRYABLE

    @property
    def status_hint(self) -> int:
        return STATUS_HINTS[self.kind]

    def is_retryable(self) -> bool:
        """Check if this error allows retry."""
        return self.retryable

    def to_dict(self) -> dict[str, Any]:
        """Shape suitable for direct surfacing in an HTTP error response."""
        return {
            "message": self.message,
            "statusHint": self.status_hint,
            "retryable": self.retryable,
            "kind": self.kind.value,
        }

    def __repr__(self) -> str:
        return (
            f"GenerationError(kind={self.kind.value}, message={self.message!r}, "
            f"provider={self.provider!r}, model={self.model!r}, attempts={self.attempts})"
        )
