"""Helper utilities for the generation pipeline."""

from aeo_schema.helpers.content_budget import ContentBudgeter, budget_content
from aeo_schema.helpers.content_metrics import reading_time
from aeo_schema.helpers.output_parser import OutputParser, parse_json, parse_refinement, parse_schemas
from aeo_schema.helpers.prompt_builder import build_prompts, build_refinement_prompts
from aeo_schema.helpers.schemas import ParseResult, PromptBundle

__all__ = [
    # Content
    "ContentBudgeter",
    "budget_content",
    "reading_time",
    # Prompts
    "build_prompts",
    "build_refinement_prompts",
    "PromptBundle",
    # Parsing
    "OutputParser",
    "ParseResult",
    "parse_json",
    "parse_refinement",
    "parse_schemas",
]
