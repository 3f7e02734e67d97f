"""Schema generation pipeline.

Budgeter -> Prompt Builder -> Provider Client -> Response Parser -> Cleaner
-> Completion Engine -> Compliance Validator -> Mode Enforcer

Stages run strictly in order on the caller's task. A request either returns
a GenerationResult with a non-empty schema list or raises GenerationError.
Parse failures and empty results are never retried.

refine() sends already generated schemas back to the provider for one more
pass; changes the verified metadata cannot support are reverted.
"""

import json
import time
import uuid
from typing import Any

from pydantic import BaseModel, Field

from aeo_schema.core.config import PipelineSettings
from aeo_schema.core.errors import GenerationError, GenerationErrorKind
from aeo_schema.core.models import ContentAnalysis, GenerationOptions
from aeo_schema.helpers.output_parser import OutputParser
from aeo_schema.helpers.prompt_builder import build_prompts
from aeo_schema.llm.base import ProviderClient
from aeo_schema.observability.events import EventEmitter, EventType
from aeo_schema.observability.logger import get_logger, request_context
from aeo_schema.validation.cleaner import SchemaCleaner
from aeo_schema.validation.completion import PropertyCompletionEngine
from aeo_schema.validation.compliance import ComplianceValidator
from aeo_schema.validation.mode_enforcer import ModeComplianceReport, ModeEnforcer
from aeo_schema.validation.schemas import (
    CompletenessReport,
    ValidationResult,
    ValidationSummary,
    is_empty_value,
)

logger = get_logger(__name__)


class GenerationResult(BaseModel):
    """Successful pipeline output."""

    request_id: str
    schemas: list[dict[str, Any]] = Field(..., min_length=1)
    validation: list[ValidationResult] = Field(default_factory=list)
    summary: ValidationSummary
    completeness: list[CompletenessReport] = Field(default_factory=list)
    mode_report: ModeComplianceReport
    provider: str
    model: str
    attempts: int = 1
    latency_ms: float = 0.0

    @property
    def is_compliant(self) -> bool:
        return all(result.is_compliant for result in self.validation)

    def html_script_tags(self) -> str:
        """Render each schema as a ``<script type="application/ld+json">`` block."""
        blocks = []
        for schema in self.schemas:
            body = json.dumps(schema, ensure_ascii=False, indent=2)
            # "</" inside a string would close the script element early
            body = body.replace("</", "<\\/")
            blocks.append(f'<script type="application/ld+json">\n{body}\n</script>')
        return "\n".join(blocks)


class RefinementResult(BaseModel):
    """Successful refinement output."""

    request_id: str
    schemas: list[dict[str, Any]] = Field(..., min_length=1)
    changes: list[str] = Field(default_factory=list)
    rejected: list[str] = Field(default_factory=list)
    validation: list[ValidationResult] = Field(default_factory=list)
    summary: ValidationSummary
    provider: str
    model: str
    attempts: int = 1
    latency_ms: float = 0.0


class SchemaGenerationPipeline:
    """Runs one generation request end to end.

    The pipeline holds no per-request state; a single instance can serve
    concurrent requests.
    """

    def __init__(
        self,
        client: ProviderClient,
        settings: PipelineSettings | None = None,
    ) -> None:
        """初期化.

        Args:
            client: プロバイダークライアント（プロセス起動時に1回だけ生成）
            settings: 設定（省略時はデフォルト値）
        """
        self.client = client
        self.settings = settings or PipelineSettings()
        self.parser = OutputParser()
        self.cleaner = SchemaCleaner()
        self.completion = PropertyCompletionEngine()
        self.validator = ComplianceValidator()
        self.mode_enforcer = ModeEnforcer()

    async def generate(
        self,
        analysis: ContentAnalysis,
        options: GenerationOptions | None = None,
        emitter: EventEmitter | None = None,
    ) -> GenerationResult:
        """
        Generate Schema.org JSON-LD for one analyzed page.

        Args:
            analysis: Page analysis from the content-extraction collaborator
            options: Generation options (defaults to auto detection)
            emitter: Event destination (a new one per request when omitted)

        Returns:
            GenerationResult: Non-empty, cleaned, completed and validated schemas

        Raises:
            GenerationError: Provider failure, unreadable output or empty result
        """
        options = options or GenerationOptions()
        emitter = emitter or EventEmitter()
        request_id = uuid.uuid4().hex
        with request_context(request_id=request_id, provider=self.client.provider_name):
            return await self._generate(analysis, options, emitter, request_id)

    async def _generate(
        self,
        analysis: ContentAnalysis,
        options: GenerationOptions,
        emitter: EventEmitter,
        request_id: str,
    ) -> GenerationResult:
        started = time.monotonic()
        emitter.emit(
            EventType.GENERATION_STARTED,
            url=analysis.url,
            mode=options.mode_name,
            requested_types=list(options.requested_schema_types or []),
        )

        try:
            result = await self._run(analysis, options, emitter, request_id, started)
        except GenerationError as e:
            if e.provider is None:
                e.provider = self.client.provider_name
                e.model = self.client.model
            emitter.emit(
                EventType.GENERATION_FAILED,
                kind=e.kind.value,
                status_hint=e.status_hint,
                retryable=e.retryable,
                attempts=e.attempts,
                latency_ms=round((time.monotonic() - started) * 1000, 1),
            )
            raise

        emitter.emit(
            EventType.GENERATION_COMPLETED,
            schema_count=len(result.schemas),
            types=result.summary.types,
            compliant=result.is_compliant,
            attempts=result.attempts,
            latency_ms=round(result.latency_ms, 1),
        )
        return result

    async def _run(
        self,
        analysis: ContentAnalysis,
        options: GenerationOptions,
        emitter: EventEmitter,
        request_id: str,
        started: float,
    ) -> GenerationResult:
        # 1-2. budget content / build prompts
        bundle = build_prompts(analysis, options, content_limit=self.settings.content_char_limit)
        self._stage(emitter, "prompt_built", prompt_chars=len(bundle.user_prompt))

        # 3. provider call (retries live in the client)
        response = await self.client.generate(
            bundle.system_prompt,
            bundle.user_prompt,
            emitter=emitter,
            analysis=analysis,
        )
        self._stage(emitter, "provider_responded", attempts=response.attempts)

        # 4. parse
        try:
            candidates = self.parser.parse_schemas(response.content)
        except GenerationError as e:
            e.provider = response.provider
            e.model = response.model
            e.attempts = response.attempts
            emitter.emit(
                EventType.PARSE_FAILED,
                kind=e.kind.value,
                content_length=len(response.content or ""),
            )
            raise
        self._stage(emitter, "parsed", candidate_count=len(candidates))

        # 5. clean
        cleaned = [schema for schema in self.cleaner.clean_many(candidates) if not is_empty_value(schema)]
        if not cleaned:
            raise GenerationError(
                GenerationErrorKind.EMPTY_RESULT,
                provider=response.provider,
                model=response.model,
                attempts=response.attempts,
            )
        self._stage(emitter, "cleaned", schema_count=len(cleaned))

        # 6. complete
        enhanced, completeness = self.completion.complete_many(cleaned, analysis)
        for report in completeness:
            if report.filled:
                emitter.emit(EventType.PROPERTY_FILLED, schema_type=report.schema_type, properties=report.filled)
            if report.omitted:
                emitter.emit(EventType.PROPERTY_OMITTED, schema_type=report.schema_type, properties=report.omitted)
        self._stage(emitter, "completed", schema_count=len(enhanced))

        # 7. validate
        validation = self.validator.validate_many(enhanced)
        summary = self.validator.summarize(validation)
        self._emit_validation(emitter, validation)
        self._stage(emitter, "validated", compliant=summary.compliant_schemas, total=summary.total_schemas)

        # 8. mode enforcement (never drops schemas)
        mode_report = self.mode_enforcer.enforce(enhanced, options, emitter)
        self._stage(emitter, "mode_enforced", mode=mode_report.mode, compliant=mode_report.is_compliant)

        return GenerationResult(
            request_id=request_id,
            schemas=enhanced,
            validation=validation,
            summary=summary,
            completeness=completeness,
            mode_report=mode_report,
            provider=response.provider,
            model=response.model,
            attempts=response.attempts,
            latency_ms=(time.monotonic() - started) * 1000,
        )

    async def refine(
        self,
        schemas: list[dict[str, Any]],
        analysis: ContentAnalysis,
        emitter: EventEmitter | None = None,
    ) -> RefinementResult:
        """
        Ask the provider to improve schemas produced by ``generate``.

        Each schema is refined separately, then cleaned and validated again.
        Additions the page metadata cannot verify are reverted and reported
        in ``rejected``.

        Args:
            schemas: Schemas from an earlier GenerationResult
            analysis: The page analysis they were generated from
            emitter: Event destination (a new one per request when omitted)

        Returns:
            RefinementResult: Refined schemas, one per input, in input order

        Raises:
            GenerationError: Provider failure, unreadable output or empty result
        """
        emitter = emitter or EventEmitter()
        request_id = uuid.uuid4().hex
        with request_context(request_id=request_id, provider=self.client.provider_name):
            started = time.monotonic()
            emitter.emit(EventType.REFINEMENT_STARTED, url=analysis.url, schema_count=len(schemas))
            try:
                result = await self._run_refinement(schemas, analysis, emitter, request_id, started)
            except GenerationError as e:
                if e.provider is None:
                    e.provider = self.client.provider_name
                    e.model = self.client.model
                emitter.emit(
                    EventType.REFINEMENT_FAILED,
                    kind=e.kind.value,
                    status_hint=e.status_hint,
                    retryable=e.retryable,
                    attempts=e.attempts,
                    latency_ms=round((time.monotonic() - started) * 1000, 1),
                )
                raise

            emitter.emit(
                EventType.REFINEMENT_COMPLETED,
                schema_count=len(result.schemas),
                changes=len(result.changes),
                rejected=result.rejected,
                attempts=result.attempts,
                latency_ms=round(result.latency_ms, 1),
            )
            return result

    async def _run_refinement(
        self,
        schemas: list[dict[str, Any]],
        analysis: ContentAnalysis,
        emitter: EventEmitter,
        request_id: str,
        started: float,
    ) -> RefinementResult:
        if not schemas:
            raise GenerationError(GenerationErrorKind.EMPTY_RESULT)

        refined: list[dict[str, Any]] = []
        changes: list[str] = []
        rejected: list[str] = []
        attempts = 0
        provider, model = self.client.provider_name, self.client.model
        for schema in schemas:
            refinement = await self.client.refine(schema, analysis, emitter=emitter)
            provider, model = refinement.provider, refinement.model
            attempts += refinement.attempts

            cleaned = self.cleaner.clean(refinement.refined)
            if is_empty_value(cleaned):
                raise GenerationError(
                    GenerationErrorKind.EMPTY_RESULT,
                    provider=provider,
                    model=model,
                    attempts=attempts,
                )
            refined.append(cleaned)
            changes.extend(refinement.changes)
            rejected.extend(refinement.rejected)
        self._stage(emitter, "refined", schema_count=len(refined), rejected=len(rejected))

        validation = self.validator.validate_many(refined)
        summary = self.validator.summarize(validation)
        self._emit_validation(emitter, validation)
        self._stage(emitter, "validated", compliant=summary.compliant_schemas, total=summary.total_schemas)

        return RefinementResult(
            request_id=request_id,
            schemas=refined,
            changes=changes,
            rejected=rejected,
            validation=validation,
            summary=summary,
            provider=provider,
            model=model,
            attempts=attempts,
            latency_ms=(time.monotonic() - started) * 1000,
        )

    @staticmethod
    def _emit_validation(emitter: EventEmitter, validation: list[ValidationResult]) -> None:
        for result in validation:
            emitter.emit(
                EventType.VALIDATION_PASSED if result.is_compliant else EventType.VALIDATION_FAILED,
                schema_type=result.schema_type,
                errors=[issue.property for issue in result.errors],
                warning_count=len(result.warnings),
            )

    @staticmethod
    def _stage(emitter: EventEmitter, stage: str, **payload: Any) -> None:
        emitter.emit(EventType.STAGE_COMPLETED, stage=stage, **payload)
