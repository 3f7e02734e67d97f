# Validation Module
# Cleaning, property completion and Schema.org compliance for generated JSON-LD

from .cleaner import SchemaCleaner, clean_schema, clean_text
from .completion import PropertyCompletionEngine
from .compliance import ComplianceValidator
from .mode_enforcer import ModeComplianceReport, ModeEnforcer
from .refinement import RefinementSanitizer, sanitize_refinement
from .schemas import (
    CompletenessReport,
    SchemaType,
    ValidationIssue,
    ValidationResult,
    ValidationSeverity,
    ValidationSummary,
)
from .templates import PROPERTY_TEMPLATES, PropertyRequirementTemplate, get_template

__all__ = [
    # Schemas
    "SchemaType",
    "ValidationSeverity",
    "ValidationIssue",
    "ValidationResult",
    "ValidationSummary",
    "CompletenessReport",
    "ModeComplianceReport",
    # Templates
    "PROPERTY_TEMPLATES",
    "PropertyRequirementTemplate",
    "get_template",
    # Stages
    "SchemaCleaner",
    "PropertyCompletionEngine",
    "ComplianceValidator",
    "ModeEnforcer",
    "RefinementSanitizer",
    "clean_schema",
    "clean_text",
    "sanitize_refinement",
]
