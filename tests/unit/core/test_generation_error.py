"""Tests for the generation error taxonomy."""

import pytest

from aeo_schema.core.errors import (
    ErrorCategory,
    GenerationError,
    GenerationErrorKind,
    USER_MESSAGES,
)


class TestErrorCategory:
    """Tests for ErrorCategory enum."""

    def test_values(self) -> None:
        assert ErrorCategory.RETRYABLE.value == "retryable"
        assert ErrorCategory.NON_RETRYABLE.value == "non_retryable"
        assert ErrorCategory.VALIDATION_FAIL.value == "validation_fail"


class TestGenerationError:
    """Tests for GenerationError."""

    @pytest.mark.parametrize(
        "kind",
        [
            GenerationErrorKind.RATE_LIMITED,
            GenerationErrorKind.PROVIDER_INTERNAL,
            GenerationErrorKind.PROVIDER_OVERLOADED,
        ],
    )
    def test_retryable_kinds(self, kind: GenerationErrorKind) -> None:
        error = GenerationError(kind)
        assert error.retryable is True
        assert error.is_retryable() is True
        assert error.category == ErrorCategory.RETRYABLE

    @pytest.mark.parametrize(
        "kind",
        [
            GenerationErrorKind.AUTH,
            GenerationErrorKind.PERMISSION,
            GenerationErrorKind.NOT_FOUND,
            GenerationErrorKind.PAYLOAD_TOO_LARGE,
            GenerationErrorKind.UNKNOWN,
        ],
    )
    def test_fatal_kinds(self, kind: GenerationErrorKind) -> None:
        error = GenerationError(kind)
        assert error.retryable is False
        assert error.category == ErrorCategory.NON_RETRYABLE

    def test_parse_failures_are_validation_failures(self) -> None:
        for kind in (GenerationErrorKind.PARSE_FAILURE, GenerationErrorKind.EMPTY_RESULT):
            error = GenerationError(kind)
            assert error.retryable is False
            assert error.category == ErrorCategory.VALIDATION_FAIL

    def test_every_kind_has_message(self) -> None:
        assert set(USER_MESSAGES) == set(GenerationErrorKind)

    def test_message_hides_provider_details(self) -> None:
        original = RuntimeError("upstream said: invalid x-api-key sk-123")
        error = GenerationError(GenerationErrorKind.AUTH, original_error=original)
        assert "sk-123" not in str(error)
        assert error.message == USER_MESSAGES[GenerationErrorKind.AUTH]
        assert error.original_error is original

    def test_to_dict_shape(self) -> None:
        error = GenerationError(GenerationErrorKind.PROVIDER_OVERLOADED, provider="anthropic")
        data = error.to_dict()
        assert data == {
            "message": USER_MESSAGES[GenerationErrorKind.PROVIDER_OVERLOADED],
            "statusHint": 503,
            "retryable": True,
            "kind": "provider_overloaded",
        }

    def test_status_hints(self) -> None:
        assert GenerationError(GenerationErrorKind.RATE_LIMITED).status_hint == 429
        assert GenerationError(GenerationErrorKind.PAYLOAD_TOO_LARGE).status_hint == 413
        assert GenerationError(GenerationErrorKind.EMPTY_RESULT).status_hint == 422

    def test_custom_message(self) -> None:
        error = GenerationError(GenerationErrorKind.UNKNOWN, message="Custom")
        assert str(error) == "Custom"
