"""Compliance validator.

Checks a cleaned, completed schema against Schema.org structural rules.

Rule categories:
- missing required property          -> ERROR
- missing recommended property       -> WARNING
- @type without a template           -> WARNING
- object-valued property as a scalar -> ERROR
- @context not a schema.org URL      -> WARNING
- malformed url / date / email       -> WARNING
- nested object without @type        -> WARNING
"""

import re
from datetime import date, datetime
from typing import Any

from aeo_schema.observability.logger import get_logger

from .schemas import (
    SchemaType,
    ValidationIssue,
    ValidationResult,
    ValidationSeverity,
    ValidationSummary,
    is_empty_value,
    type_name,
)
from .templates import get_template

logger = get_logger(__name__)

VALID_CONTEXTS: frozenset[str] = frozenset(
    {
        "https://schema.org",
        "http://schema.org",
        "https://schema.org/",
        "http://schema.org/",
    }
)

# Properties whose value must be an object (or a list of objects)
OBJECT_PROPERTIES: frozenset[str] = frozenset(
    {
        "author",
        "publisher",
        "mainEntityOfPage",
        "address",
        "contactPoint",
        "breadcrumb",
        "isPartOf",
        "logo",
        "geo",
        "aggregateRating",
    }
)

# Properties whose value must be an object or an array
COLLECTION_PROPERTIES: frozenset[str] = frozenset({"mainEntity", "itemListElement"})

URL_PROPERTIES: frozenset[str] = frozenset({"url", "contentUrl", "thumbnailUrl"})
DATE_PROPERTIES: frozenset[str] = frozenset(
    {"datePublished", "dateModified", "uploadDate", "startDate", "endDate"}
)

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_date(value: Any) -> bool:
    """ISO 8601 date or datetime."""
    if not isinstance(value, str) or not value.strip():
        return False
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        datetime.fromisoformat(text)
        return True
    except ValueError:
        pass
    try:
        date.fromisoformat(text)
        return True
    except ValueError:
        return False


def is_valid_url(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(("http://", "https://"))


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool))


class ComplianceValidator:
    """Schema.org structural validator."""

    def validate(self, schema: dict[str, Any]) -> ValidationResult:
        """Validate one schema.

        Args:
            schema: Enhanced schema

        Returns:
            ValidationResult: Issues in rule order; compliant iff no ERROR
        """
        issues: list[ValidationIssue] = []

        self._validate_context(schema, issues)
        self._validate_type(schema, issues)
        self._validate_template(schema, issues)
        self._validate_nesting(schema, issues)
        self._validate_formats(schema, issues)
        self._validate_nested_types(schema, issues, path="")

        result = ValidationResult(schema_type=type_name(schema), issues=issues)
        logger.debug(
            f"Validated {result.schema_type}: compliant={result.is_compliant}",
            extra_data={
                "schema_type": result.schema_type,
                "errors": len(result.errors),
                "warnings": len(result.warnings),
            },
        )
        return result

    def validate_many(self, schemas: list[dict[str, Any]]) -> list[ValidationResult]:
        return [self.validate(schema) for schema in schemas]

    @staticmethod
    def summarize(results: list[ValidationResult]) -> ValidationSummary:
        """Batch summary over validation results."""
        return ValidationSummary(
            total_schemas=len(results),
            compliant_schemas=sum(1 for r in results if r.is_compliant),
            error_count=sum(len(r.errors) for r in results),
            warning_count=sum(len(r.warnings) for r in results),
            types=[r.schema_type or "unknown" for r in results],
        )

    # ------------------------------------------------------------------

    @staticmethod
    def _issue(
        issues: list[ValidationIssue],
        prop: str,
        message: str,
        severity: ValidationSeverity,
        code: str,
    ) -> None:
        issues.append(ValidationIssue(property=prop, message=message, severity=severity, code=code))

    def _validate_context(self, schema: dict[str, Any], issues: list[ValidationIssue]) -> None:
        context = schema.get("@context")
        if is_empty_value(context):
            self._issue(issues, "@context", "@context is required for JSON-LD",
                        ValidationSeverity.ERROR, "MISSING_REQUIRED")
            return
        contexts = context if isinstance(context, list) else [context]
        if not any(isinstance(c, str) and c in VALID_CONTEXTS for c in contexts):
            self._issue(issues, "@context", "Context should be a valid Schema.org URL",
                        ValidationSeverity.WARNING, "INVALID_CONTEXT")

    def _validate_type(self, schema: dict[str, Any], issues: list[ValidationIssue]) -> None:
        name = type_name(schema)
        if name is None:
            self._issue(issues, "@type", "@type is required for JSON-LD",
                        ValidationSeverity.ERROR, "MISSING_REQUIRED")
            return
        if SchemaType.from_value(schema.get("@type")) is None:
            self._issue(
                issues,
                "@type",
                f'"{name}" is an unrecognized type, may not validate externally',
                ValidationSeverity.WARNING,
                "UNRECOGNIZED_TYPE",
            )

    def _validate_template(self, schema: dict[str, Any], issues: list[ValidationIssue]) -> None:
        schema_type = SchemaType.from_value(schema.get("@type"))
        template = get_template(schema_type)
        if schema_type is None or template is None:
            return

        for prop in template.required:
            if prop in ("@context", "@type"):
                continue
            if is_empty_value(schema.get(prop)):
                self._issue(issues, prop, f'"{prop}" is required for {schema_type.value}',
                            ValidationSeverity.ERROR, "MISSING_REQUIRED")

        for prop in template.recommended:
            if is_empty_value(schema.get(prop)):
                self._issue(issues, prop, f'"{prop}" is recommended for {schema_type.value}',
                            ValidationSeverity.WARNING, "MISSING_RECOMMENDED")

    def _validate_nesting(self, schema: dict[str, Any], issues: list[ValidationIssue]) -> None:
        for prop in OBJECT_PROPERTIES:
            value = schema.get(prop)
            if value is None:
                continue
            items = value if isinstance(value, list) else [value]
            if any(_is_scalar(item) for item in items):
                self._issue(issues, prop, f'"{prop}" must be an object, not a bare value',
                            ValidationSeverity.ERROR, "INVALID_NESTING")

        for prop in COLLECTION_PROPERTIES:
            value = schema.get(prop)
            if value is not None and not isinstance(value, (dict, list)):
                self._issue(issues, prop, f'"{prop}" must be an object or an array',
                            ValidationSeverity.ERROR, "INVALID_NESTING")

    def _validate_formats(self, schema: dict[str, Any], issues: list[ValidationIssue]) -> None:
        for prop in URL_PROPERTIES:
            value = schema.get(prop)
            if value is not None and not is_valid_url(value):
                self._issue(issues, prop, f'"{prop}" should be an absolute http(s) URL',
                            ValidationSeverity.WARNING, "INVALID_FORMAT")

        for prop in DATE_PROPERTIES:
            value = schema.get(prop)
            if value is not None and not is_valid_date(value):
                self._issue(issues, prop, f'"{prop}" should be an ISO 8601 date',
                            ValidationSeverity.WARNING, "INVALID_FORMAT")

        email = schema.get("email")
        if email is not None and not (isinstance(email, str) and _EMAIL_PATTERN.match(email)):
            self._issue(issues, "email", '"email" has invalid format',
                        ValidationSeverity.WARNING, "INVALID_FORMAT")

    def _validate_nested_types(
        self,
        value: Any,
        issues: list[ValidationIssue],
        path: str,
    ) -> None:
        if isinstance(value, list):
            for item in value:
                self._validate_nested_types(item, issues, path)
            return
        if not isinstance(value, dict):
            return

        if path and "@type" not in value and "@id" not in value:
            self._issue(issues, path, f'Nested object "{path}" should declare @type',
                        ValidationSeverity.WARNING, "NESTED_MISSING_TYPE")

        for key, item in value.items():
            if key.startswith("@"):
                continue
            self._validate_nested_types(item, issues, f"{path}.{key}" if path else key)
