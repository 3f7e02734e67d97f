"""AEO schema generator.

Turns analyzed page content into validated Schema.org JSON-LD with an LLM
provider, deterministic cleaning and verified-data property completion.
"""

from aeo_schema.core.errors import GenerationError, GenerationErrorKind
from aeo_schema.core.models import ContentAnalysis, GenerationOptions
from aeo_schema.pipeline import GenerationResult, RefinementResult, SchemaGenerationPipeline

__version__ = "0.1.0"

__all__ = [
    "ContentAnalysis",
    "GenerationError",
    "GenerationErrorKind",
    "GenerationOptions",
    "GenerationResult",
    "RefinementResult",
    "SchemaGenerationPipeline",
]
