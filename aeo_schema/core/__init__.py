"""Core types: input models and the generation error taxonomy."""

from .errors import (
    ErrorCategory,
    GenerationError,
    GenerationErrorKind,
)
from .models import (
    AuthorInfo,
    BusinessInfo,
    ContentAnalysis,
    GenerationOptions,
    PageMetadata,
)

__all__ = [
    "AuthorInfo",
    "BusinessInfo",
    "ContentAnalysis",
    "ErrorCategory",
    "GenerationError",
    "GenerationErrorKind",
    "GenerationOptions",
    "PageMetadata",
]
