"""Tests for the shared attempt loop in ProviderClient."""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import pytest

from aeo_schema.core.errors import GenerationError, GenerationErrorKind
from aeo_schema.llm.base import ProviderClient, classify_status, provider_error_type
from aeo_schema.llm.retry import RetryPolicies
from aeo_schema.llm.schemas import LLMResponse, TokenUsage
from aeo_schema.observability.events import EventEmitter, EventType


class ScriptedError(Exception):
    def __init__(self, kind: GenerationErrorKind) -> None:
        super().__init__(kind.value)
        self.kind = kind


class ScriptedClient(ProviderClient):
    """Provider whose calls fail with a scripted sequence of kinds."""

    PROVIDER = "scripted"
    DEFAULT_MODEL = "scripted-model"

    def __init__(self, failures: list[GenerationErrorKind], **kwargs) -> None:
        super().__init__(api_key="test-key", **kwargs)
        self.failures = list(failures)
        self.calls = 0
        self.content = '{"schemas": []}'

    async def _call(self, system_prompt, user_prompt, analysis=None) -> LLMResponse:
        self.calls += 1
        if self.failures:
            raise ScriptedError(self.failures.pop(0))
        return LLMResponse(
            content=self.content,
            token_usage=TokenUsage(input=10, output=5),
            model=self.model,
            provider=self.PROVIDER,
        )

    def _classify(self, error: Exception) -> GenerationError:
        kind = error.kind if isinstance(error, ScriptedError) else GenerationErrorKind.UNKNOWN
        return self._error(kind, original_error=error)


@pytest.fixture
def sleep_mock():
    with patch("aeo_schema.llm.base.asyncio.sleep", new_callable=AsyncMock) as mocked:
        yield mocked


def _slept(sleep_mock: AsyncMock) -> list[float]:
    return [call.args[0] for call in sleep_mock.await_args_list]


class TestClassification:
    def test_error_type_wins_over_status(self) -> None:
        assert classify_status(429, "overloaded_error") == GenerationErrorKind.PROVIDER_OVERLOADED

    @pytest.mark.parametrize(
        ("status", "kind"),
        [
            (401, GenerationErrorKind.AUTH),
            (403, GenerationErrorKind.PERMISSION),
            (404, GenerationErrorKind.NOT_FOUND),
            (413, GenerationErrorKind.PAYLOAD_TOO_LARGE),
            (429, GenerationErrorKind.RATE_LIMITED),
            (500, GenerationErrorKind.PROVIDER_INTERNAL),
            (502, GenerationErrorKind.PROVIDER_INTERNAL),
            (503, GenerationErrorKind.PROVIDER_OVERLOADED),
            (529, GenerationErrorKind.PROVIDER_OVERLOADED),
            (400, GenerationErrorKind.UNKNOWN),
            (None, GenerationErrorKind.UNKNOWN),
        ],
    )
    def test_status_mapping(self, status, kind) -> None:
        assert classify_status(status) == kind

    def test_provider_error_type_shapes(self) -> None:
        assert provider_error_type({"type": "error", "error": {"type": "overloaded_error"}}) == "overloaded_error"
        assert provider_error_type({"message": "slow down", "type": "rate_limit_error"}) == "rate_limit_error"
        assert provider_error_type(None) is None
        assert provider_error_type({"error": "text"}) is None


class TestAttemptLoop:
    @pytest.mark.asyncio
    async def test_success_first_attempt(self, sleep_mock: AsyncMock) -> None:
        client = ScriptedClient([])
        emitter = EventEmitter()

        response = await client.generate("system", "user", emitter=emitter)

        assert response.attempts == 1
        assert response.latency_ms is not None
        assert sleep_mock.await_count == 0
        assert len(emitter.of_type(EventType.ATTEMPT_STARTED)) == 1
        assert len(emitter.of_type(EventType.ATTEMPT_SUCCEEDED)) == 1

    @pytest.mark.asyncio
    async def test_overload_waits_full_ladder(self, sleep_mock: AsyncMock) -> None:
        client = ScriptedClient([GenerationErrorKind.PROVIDER_OVERLOADED] * 5)
        emitter = EventEmitter()

        with pytest.raises(GenerationError) as exc_info:
            await client.generate("system", "user", emitter=emitter)

        assert exc_info.value.kind == GenerationErrorKind.PROVIDER_OVERLOADED
        assert exc_info.value.attempts == 5
        assert client.calls == 5
        assert _slept(sleep_mock) == [7.0, 10.0, 20.0, 30.0]
        assert 60 <= sum(_slept(sleep_mock)) <= 70
        assert len(emitter.of_type(EventType.RETRY_EXHAUSTED)) == 1
        scheduled = emitter.of_type(EventType.RETRY_SCHEDULED)
        assert [event.payload["policy"] for event in scheduled] == ["overload"] * 4

    @pytest.mark.asyncio
    async def test_standard_policy_for_rate_limit(self, sleep_mock: AsyncMock) -> None:
        client = ScriptedClient([GenerationErrorKind.RATE_LIMITED] * 3)

        with pytest.raises(GenerationError) as exc_info:
            await client.generate("system", "user")

        assert exc_info.value.kind == GenerationErrorKind.RATE_LIMITED
        assert client.calls == 3
        assert _slept(sleep_mock) == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_escalation_keeps_overload_policy(self, sleep_mock: AsyncMock) -> None:
        client = ScriptedClient(
            [
                GenerationErrorKind.RATE_LIMITED,
                GenerationErrorKind.PROVIDER_OVERLOADED,
                GenerationErrorKind.PROVIDER_INTERNAL,
                GenerationErrorKind.PROVIDER_INTERNAL,
            ]
        )

        response = await client.generate("system", "user")

        # standard budget (3) would have been exhausted at the third failure
        assert response.attempts == 5
        assert _slept(sleep_mock) == [1.0, 10.0, 20.0, 30.0]

    @pytest.mark.asyncio
    async def test_recovers_after_retry(self, sleep_mock: AsyncMock) -> None:
        client = ScriptedClient([GenerationErrorKind.PROVIDER_INTERNAL])

        response = await client.generate("system", "user")

        assert response.attempts == 2
        assert _slept(sleep_mock) == [1.0]

    @pytest.mark.asyncio
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
    async def test_fatal_kinds_raise_immediately(self, sleep_mock: AsyncMock, kind) -> None:
        client = ScriptedClient([kind])

        with pytest.raises(GenerationError) as exc_info:
            await client.generate("system", "user")

        assert exc_info.value.kind == kind
        assert exc_info.value.attempts == 1
        assert isinstance(exc_info.value.__cause__, ScriptedError)
        assert client.calls == 1
        assert sleep_mock.await_count == 0

    @pytest.mark.asyncio
    async def test_custom_policies(self, sleep_mock: AsyncMock, fast_policies: RetryPolicies) -> None:
        client = ScriptedClient([GenerationErrorKind.PROVIDER_OVERLOADED] * 5, retry_policies=fast_policies)

        with pytest.raises(GenerationError):
            await client.generate("system", "user")

        assert client.calls == 5
        assert _slept(sleep_mock) == [0.0, 0.0, 0.0, 0.0]

    @pytest.mark.asyncio
    async def test_overload_wait_cancelled_by_caller_timeout(self) -> None:
        client = ScriptedClient([GenerationErrorKind.PROVIDER_OVERLOADED] * 10)

        with pytest.raises(TimeoutError):
            await asyncio.wait_for(client.generate("system", "user"), timeout=0.3)

        # the first overload delay is seconds long, so no second attempt starts
        assert client.calls == 1

    @pytest.mark.asyncio
    async def test_missing_credentials(self, sleep_mock: AsyncMock) -> None:
        client = ScriptedClient([])
        client._api_key = None
        emitter = EventEmitter()

        with pytest.raises(GenerationError) as exc_info:
            await client.generate("system", "user", emitter=emitter)

        assert exc_info.value.kind == GenerationErrorKind.AUTH
        assert exc_info.value.attempts == 0
        assert client.calls == 0
        assert sleep_mock.await_count == 0
        assert emitter.of_type(EventType.ATTEMPT_FAILED)[0].payload["reason"] == "credential_missing"


class TestRefine:
    SCHEMA = {
        "@context": "https://schema.org",
        "@type": "BlogPosting",
        "headline": "10 Tips",
        "publisher": {"@type": "Organization", "name": "Example Co"},
    }

    @pytest.mark.asyncio
    async def test_refinement_parsed_and_sanitized(self, sleep_mock: AsyncMock, blog_analysis) -> None:
        client = ScriptedClient([GenerationErrorKind.PROVIDER_INTERNAL])
        client.content = json.dumps(
            {
                "schema": {
                    **self.SCHEMA,
                    "author": {"@type": "Person", "name": "Jane Doe"},
                    "publisher": {**self.SCHEMA["publisher"], "telephone": "+1-555-0100"},
                },
                "changes": ["Added author", "Added publisher telephone"],
            }
        )
        emitter = EventEmitter()

        result = await client.refine(self.SCHEMA, blog_analysis, emitter=emitter)

        assert result.refined["author"] == {"@type": "Person", "name": "Jane Doe"}
        assert "telephone" not in result.refined["publisher"]
        assert result.rejected == ["publisher.telephone"]
        assert result.changes == ["Added author", "Added publisher telephone"]
        assert result.attempts == 2
        assert result.provider == "scripted"
        assert emitter.of_type(EventType.PROPERTY_REJECTED)[0].payload["properties"] == ["publisher.telephone"]

    @pytest.mark.asyncio
    async def test_prompt_carries_schema_and_verified_metadata(self, sleep_mock: AsyncMock, blog_analysis) -> None:
        client = ScriptedClient([])
        client.content = json.dumps({"schema": self.SCHEMA, "changes": []})
        client._call = AsyncMock(wraps=client._call)

        await client.refine(self.SCHEMA, blog_analysis)

        system_prompt, user_prompt = client._call.await_args.args[:2]
        assert '"schema": <refined schema object>' in system_prompt
        assert '"headline": "10 Tips"' in user_prompt
        assert '"author": "Jane Doe"' in user_prompt
        assert '"modifiedDate": "[NOT FOUND]"' in user_prompt

    @pytest.mark.asyncio
    async def test_generation_envelope_is_not_a_refinement(self, sleep_mock: AsyncMock, blog_analysis) -> None:
        client = ScriptedClient([])
        emitter = EventEmitter()

        with pytest.raises(GenerationError) as exc_info:
            await client.refine(self.SCHEMA, blog_analysis, emitter=emitter)

        # a generation envelope has neither "schema" nor "@type"
        assert exc_info.value.kind == GenerationErrorKind.PARSE_FAILURE
        assert exc_info.value.provider == "scripted"
        assert client.calls == 1
        assert emitter.of_type(EventType.PARSE_FAILED)[0].payload["stage"] == "refinement"
