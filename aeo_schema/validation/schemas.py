"""Validation schemas for generated JSON-LD."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field


class SchemaType(str, Enum):
    """Schema.org @type values with a property requirement template.

    Anything else is handled as a generic bag of properties.
    """

    BLOG_POSTING = "BlogPosting"
    ARTICLE = "Article"
    WEB_PAGE = "WebPage"
    ORGANIZATION = "Organization"
    LOCAL_BUSINESS = "LocalBusiness"
    FAQ_PAGE = "FAQPage"
    BREADCRUMB_LIST = "BreadcrumbList"
    IMAGE_OBJECT = "ImageObject"
    PERSON = "Person"
    VIDEO_OBJECT = "VideoObject"

    @classmethod
    def from_value(cls, value: Any) -> "SchemaType | None":
        """Resolve an ``@type`` value (string or list of strings).

        Returns:
            SchemaType | None: None for unknown or missing types
        """
        candidates = value if isinstance(value, list) else [value]
        for candidate in candidates:
            if isinstance(candidate, str):
                try:
                    return cls(candidate.strip())
                except ValueError:
                    continue
        return None


def type_name(schema: dict[str, Any]) -> str | None:
    """First string ``@type`` of a schema, known or not."""
    value = schema.get("@type")
    candidates = value if isinstance(value, list) else [value]
    for candidate in candidates:
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return None


def is_empty_value(value: Any) -> bool:
    """None, empty containers and objects holding nothing but @type/@context."""
    if value is None:
        return True
    if isinstance(value, (str, list, dict)) and not value:
        return True
    if isinstance(value, dict) and set(value) <= {"@type", "@context"}:
        return True
    return False


class ValidationSeverity(str, Enum):
    """Severity level of validation issues."""

    ERROR = "error"
    WARNING = "warning"


class ValidationIssue(BaseModel):
    """A single validation issue found in a schema."""

    model_config = ConfigDict(frozen=True)

    property: str = Field(..., description="Property the issue refers to, e.g. 'author'")
    message: str = Field(..., description="Human-readable message")
    severity: ValidationSeverity
    code: str = Field(
        ...,
        description="Issue code, e.g. 'MISSING_REQUIRED', 'INVALID_NESTING'",
    )


class ValidationResult(BaseModel):
    """Compliance result for one schema."""

    schema_type: str | None = Field(default=None, description="@type of the schema")
    issues: list[ValidationIssue] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_compliant(self) -> bool:
        """True iff no ERROR severity issues exist."""
        return not self.has_errors()

    def has_errors(self) -> bool:
        """Check if there are any ERROR severity issues."""
        return any(issue.severity == ValidationSeverity.ERROR for issue in self.issues)

    def has_warnings(self) -> bool:
        """Check if there are any WARNING severity issues."""
        return any(issue.severity == ValidationSeverity.WARNING for issue in self.issues)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.WARNING]

    def issues_for(self, property_name: str) -> list[ValidationIssue]:
        return [i for i in self.issues if i.property == property_name]


class ValidationSummary(BaseModel):
    """Batch summary over several schemas."""

    total_schemas: int = 0
    compliant_schemas: int = 0
    error_count: int = 0
    warning_count: int = 0
    types: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_compliant(self) -> bool:
        return self.total_schemas > 0 and self.compliant_schemas == self.total_schemas


class CompletenessReport(BaseModel):
    """Per-schema record of present/missing properties.

    ``filled`` lists what the completion engine added from verified data;
    ``omitted`` lists required/recommended properties still absent, which
    were left out rather than invented.
    """

    schema_type: str | None = None
    template_found: bool = False
    required_present: list[str] = Field(default_factory=list)
    required_missing: list[str] = Field(default_factory=list)
    recommended_present: list[str] = Field(default_factory=list)
    recommended_missing: list[str] = Field(default_factory=list)
    advanced_present: list[str] = Field(default_factory=list)
    advanced_missing: list[str] = Field(default_factory=list)
    filled: list[str] = Field(default_factory=list)
    omitted: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def completeness_score(self) -> float:
        """0-100, weighted 60/30/10 over required/recommended/advanced."""
        if not self.template_found:
            return 0.0
        score = 0.0
        for present, missing, weight in (
            (self.required_present, self.required_missing, 60.0),
            (self.recommended_present, self.recommended_missing, 30.0),
            (self.advanced_present, self.advanced_missing, 10.0),
        ):
            total = len(present) + len(missing)
            score += weight * (len(present) / total) if total else weight
        return round(score, 1)
