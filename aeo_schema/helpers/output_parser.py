"""LLM output parser for schema generation responses.

This module provides robust parsing of LLM outputs:
- JSON extraction from code blocks
- JSON extraction from surrounding prose (first balanced {...} span)
- Deterministic fixes for common JSON issues
- Envelope check: {"schemas": [<object>, ...]}
- Refinement envelope: {"schema": <object>, "changes": [<string>, ...]}

A response that cannot be recovered raises GenerationError; a partially
parsed structure is never returned.
"""

import json
import logging
import re
from typing import Any

from jsonschema import Draft7Validator

from aeo_schema.core.errors import GenerationError, GenerationErrorKind
from aeo_schema.helpers.schemas import ParseResult

logger = logging.getLogger(__name__)

# "schemas" may be absent (treated as empty), but when present it must be an
# array of objects
SCHEMA_ENVELOPE: dict[str, Any] = {
    "type": "object",
    "properties": {
        "schemas": {
            "type": "array",
            "items": {"type": "object"},
        },
    },
}

_envelope_validator = Draft7Validator(SCHEMA_ENVELOPE)

# refinement answers: {"schema": {...}, "changes": ["..."]}, or a bare schema
REFINEMENT_ENVELOPE: dict[str, Any] = {
    "type": "object",
    "properties": {
        "schema": {"type": "object"},
        "changes": {
            "type": "array",
            "items": {"type": "string"},
        },
    },
}

_refinement_validator = Draft7Validator(REFINEMENT_ENVELOPE)


def find_balanced_object(content: str) -> str | None:
    """
    Locate the first balanced ``{...}`` span.

    Braces inside JSON string literals are ignored.

    Args:
        content: Text possibly containing a JSON object

    Returns:
        str | None: The span, or None if no balanced object starts in the text
    """
    start = content.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(content)):
        char = content[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return content[start : index + 1]
    return None


class OutputParser:
    """LLM output parser."""

    # Regex patterns for code block extraction
    _JSON_BLOCK_PATTERN = re.compile(
        r"```json\s*(.*?)\s*```",
        re.DOTALL | re.IGNORECASE,
    )
    _GENERIC_BLOCK_PATTERN = re.compile(
        r"```\s*\n(.*?)\n\s*```",
        re.DOTALL,
    )

    # Regex patterns for Markdown detection
    _MARKDOWN_PATTERNS = [
        re.compile(r"^#{1,3}\s", re.MULTILINE),  # Headings
        re.compile(r"^[*-]\s", re.MULTILINE),  # Unordered list
        re.compile(r"^\d+\.\s", re.MULTILINE),  # Ordered list
    ]

    # Regex for trailing comma fix
    _TRAILING_COMMA_OBJ = re.compile(r",\s*}")
    _TRAILING_COMMA_ARR = re.compile(r",\s*]")

    def parse_json(self, content: str) -> ParseResult:
        """
        Parse JSON (with code block and prose support).

        Processing flow:
        1. Remove code block markers (```json ... ``` or ``` ... ```)
        2. Attempt JSON parse, then with deterministic fixes
        3. On failure, locate the first balanced {...} span and retry
        4. Return ParseResult

        Args:
            content: Raw LLM output content

        Returns:
            ParseResult: Parse result (success/failure, data, applied fixes)
        """
        fixes_applied: list[str] = []

        # Step 1: Extract JSON from code block if present
        extracted, was_extracted = self._extract_from_code_block(content)
        if was_extracted:
            fixes_applied.append("code_block_removed")

        # Step 2: Parse directly, then with fixes
        data, fix_names = self._loads_with_fixes(extracted)
        if data is not None:
            return ParseResult(
                success=True,
                data=data,
                raw=content,
                format_detected="json",
                fixes_applied=fixes_applied + fix_names,
            )

        # Step 3: JSON embedded in prose
        span = find_balanced_object(extracted)
        if span is not None and span != extracted:
            data, fix_names = self._loads_with_fixes(span)
            if data is not None:
                return ParseResult(
                    success=True,
                    data=data,
                    raw=content,
                    format_detected="json",
                    fixes_applied=fixes_applied + ["balanced_span_extracted"] + fix_names,
                )

        # Step 4: Failed to parse
        format_detected = "unknown"
        if self.looks_like_markdown(content):
            format_detected = "markdown"

        return ParseResult(
            success=False,
            data=None,
            raw=content,
            format_detected=format_detected,
            fixes_applied=fixes_applied,
        )

    def parse_schemas(self, content: str | None) -> list[dict[str, Any]]:
        """
        Parse a provider response into candidate schema objects.

        Args:
            content: Raw LLM output content

        Returns:
            list[dict]: Non-empty list of candidate schemas

        Raises:
            GenerationError: PARSE_FAILURE if no valid envelope is recoverable,
                EMPTY_RESULT if the ``schemas`` array is empty
        """
        if not content or not content.strip():
            raise GenerationError(GenerationErrorKind.PARSE_FAILURE)

        result = self.parse_json(content)
        if not result.success:
            logger.warning(
                "Failed to parse LLM output (format=%s, length=%d)",
                result.format_detected,
                len(content),
            )
            raise GenerationError(GenerationErrorKind.PARSE_FAILURE)

        if result.fixes_applied:
            logger.info("Applied output fixes: %s", ", ".join(result.fixes_applied))

        violations = sorted(
            _envelope_validator.iter_errors(result.data),
            key=lambda e: str(e.path),
        )
        if violations:
            logger.warning("Schema envelope invalid: %s", violations[0].message)
            raise GenerationError(GenerationErrorKind.PARSE_FAILURE)

        schemas = result.data.get("schemas") or []  # type: ignore[union-attr]
        if not schemas:
            raise GenerationError(GenerationErrorKind.EMPTY_RESULT)
        return schemas

    def parse_refinement(self, content: str | None) -> tuple[dict[str, Any], list[str]]:
        """
        Parse a refinement response into the refined schema and change notes.

        Args:
            content: Raw LLM output content

        Returns:
            tuple[dict, list[str]]: (refined schema, changes reported by the model)

        Raises:
            GenerationError: PARSE_FAILURE if no valid envelope is recoverable,
                EMPTY_RESULT if the refined schema carries no properties
        """
        if not content or not content.strip():
            raise GenerationError(GenerationErrorKind.PARSE_FAILURE)

        result = self.parse_json(content)
        if not result.success:
            logger.warning(
                "Failed to parse refinement output (format=%s, length=%d)",
                result.format_detected,
                len(content),
            )
            raise GenerationError(GenerationErrorKind.PARSE_FAILURE)

        violations = list(_refinement_validator.iter_errors(result.data))
        if violations:
            logger.warning("Refinement envelope invalid: %s", violations[0].message)
            raise GenerationError(GenerationErrorKind.PARSE_FAILURE)

        data: dict[str, Any] = result.data  # type: ignore[assignment]
        if "schema" in data:
            schema = data["schema"]
            changes = list(data.get("changes") or [])
        elif "@type" in data:
            schema, changes = data, []
        else:
            logger.warning("Refinement output has neither a schema nor an @type")
            raise GenerationError(GenerationErrorKind.PARSE_FAILURE)

        if set(schema) <= {"@type", "@context"}:
            raise GenerationError(GenerationErrorKind.EMPTY_RESULT)
        return schema, changes

    def _loads_with_fixes(self, content: str) -> tuple[Any | None, list[str]]:
        try:
            return json.loads(content), []
        except json.JSONDecodeError:
            pass

        fixed, fix_names = self.apply_deterministic_fixes(content)
        if fixed is not None:
            try:
                return json.loads(fixed), fix_names
            except json.JSONDecodeError:
                pass
        return None, []

    def _extract_from_code_block(self, content: str) -> tuple[str, bool]:
        """
        Extract content from code block.

        Returns:
            tuple[str, bool]: (extracted content, whether extraction occurred)
        """
        # Try ```json block first
        match = self._JSON_BLOCK_PATTERN.search(content)
        if match:
            return match.group(1).strip(), True

        # Try generic ``` block
        match = self._GENERIC_BLOCK_PATTERN.search(content)
        if match:
            return match.group(1).strip(), True

        # Return as-is
        return content.strip(), False

    def apply_deterministic_fixes(self, content: str) -> tuple[str | None, list[str]]:
        """
        Apply deterministic fixes (logging required).

        Allowed fixes:
        - Trailing comma removal: ,} -> }, ,] -> ]

        Prohibited fixes:
        - Value guessing/completion
        - Structure changes
        - Fallback value insertion

        Args:
            content: JSON string to fix

        Returns:
            tuple[str | None, list[str]]: (fixed string or None, list of applied fix names)
        """
        fixed = content
        changed = False

        if self._TRAILING_COMMA_OBJ.search(fixed):
            fixed = self._TRAILING_COMMA_OBJ.sub("}", fixed)
            changed = True

        if self._TRAILING_COMMA_ARR.search(fixed):
            fixed = self._TRAILING_COMMA_ARR.sub("]", fixed)
            changed = True

        if changed:
            return fixed, ["trailing_comma_removed"]
        return None, []

    def looks_like_markdown(self, content: str) -> bool:
        """Determine if content is Markdown format (headings or lists)."""
        return any(pattern.search(content) for pattern in self._MARKDOWN_PATTERNS)


_default_parser = OutputParser()


def parse_json(content: str) -> ParseResult:
    return _default_parser.parse_json(content)


def parse_schemas(content: str | None) -> list[dict[str, Any]]:
    """Module-level shortcut for ``OutputParser().parse_schemas``."""
    return _default_parser.parse_schemas(content)


def parse_refinement(content: str | None) -> tuple[dict[str, Any], list[str]]:
    return _default_parser.parse_refinement(content)
