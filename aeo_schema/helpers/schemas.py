"""Shared Pydantic schemas for pipeline helpers.

- Parse results for LLM output
- Prompt bundles handed to provider clients
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Parse-related schemas
# =============================================================================


class ParseResult(BaseModel):
    """JSON parse result."""

    success: bool
    data: dict[str, Any] | list[Any] | None = None
    raw: str = ""
    format_detected: str = ""  # "json", "markdown", "unknown"
    fixes_applied: list[str] = Field(default_factory=list)


# =============================================================================
# Prompt-related schemas
# =============================================================================


class PromptBundle(BaseModel):
    """System and user prompt for one generation request."""

    model_config = ConfigDict(frozen=True)

    system_prompt: str
    user_prompt: str
