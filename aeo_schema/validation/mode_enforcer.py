"""Mode enforcer.

In user-specific mode, compares emitted @types with the requested list.
Unrequested types are logged as a compliance violation and kept in the
output; nothing is dropped.
"""

from typing import Any

from pydantic import BaseModel, Field, computed_field

from aeo_schema.core.models import GenerationOptions
from aeo_schema.observability.events import EventEmitter, EventType

from .schemas import type_name


class ModeComplianceReport(BaseModel):
    """Requested vs. emitted @types for one generation."""

    mode: str = Field(..., description="auto_detection | user_specific")
    requested_types: list[str] = Field(default_factory=list)
    generated_types: list[str] = Field(default_factory=list)
    unrequested_types: list[str] = Field(default_factory=list)
    missing_types: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_compliant(self) -> bool:
        return not self.unrequested_types


class ModeEnforcer:
    """Observability-only check of prompt adherence."""

    def enforce(
        self,
        schemas: list[dict[str, Any]],
        options: GenerationOptions,
        emitter: EventEmitter | None = None,
    ) -> ModeComplianceReport:
        """Compare generated types with the requested list.

        Args:
            schemas: Final schema list (not modified)
            options: Generation options
            emitter: Event destination for the violation event

        Returns:
            ModeComplianceReport: Never raises for a violation
        """
        generated = [type_name(schema) or "unknown" for schema in schemas]

        if not options.is_user_specific_mode:
            return ModeComplianceReport(mode=options.mode_name, generated_types=generated)

        requested = list(options.requested_schema_types or [])
        allowed = set(requested)
        unrequested = [t for t in generated if t not in allowed]
        missing = [t for t in requested if t not in set(generated)]

        report = ModeComplianceReport(
            mode=options.mode_name,
            requested_types=requested,
            generated_types=generated,
            unrequested_types=unrequested,
            missing_types=missing,
        )

        if unrequested:
            (emitter or EventEmitter()).emit(
                EventType.MODE_VIOLATION,
                requested_types=requested,
                generated_types=generated,
                unrequested_types=unrequested,
            )
        return report
