"""Schema cleaner.

Normalizes candidate schemas parsed from LLM output:

- Strips HTML tags and decodes entities (to a fixed point)
- Collapses whitespace (including NBSP and literal "\\n" sequences)
- Drops empty properties and unusable array strings
- Repairs known malformed shapes (author/publisher strings, image objects,
  mainEntityOfPage strings, comma-separated keywords, headline on non-articles)
- Removes properties that are invalid for the schema's @type

Cleaning is idempotent: ``clean(clean(x)) == clean(x)``.
"""

import copy
import html
import logging
import re
from typing import Any

from aeo_schema.helpers.truncation_limits import SCHEMA_ARRAY_STRING_MAX

from .schemas import is_empty_value
from .templates import ARTICLE_TYPES, PROPERTY_TYPE_RESTRICTIONS

logger = logging.getLogger(__name__)

_TAG_PATTERN = re.compile(r"<[^>]*>")
_ANGLE_PATTERN = re.compile(r"[<>]")
_LITERAL_NEWLINE_PATTERN = re.compile(r"\\[nrt]")
_WHITESPACE_PATTERN = re.compile(r"\s+")
# only terminated entities; "&lt=5" in a query string is left alone
_ENTITY_PATTERN = re.compile(r"&(?:#[0-9]+|#[xX][0-9a-fA-F]+|[A-Za-z][A-Za-z0-9]*);")

_MAX_PASSES = 8

# Types for which "headline" is not a valid property ("name" is used instead)
HEADLINE_INVALID_TYPES: frozenset[str] = frozenset(
    {
        "WebPage",
        "Organization",
        "LocalBusiness",
        "Product",
        "Service",
        "Event",
        "Person",
        "Place",
    }
)


def _unescape_fully(text: str) -> str:
    for _ in range(_MAX_PASSES):
        unescaped = _ENTITY_PATTERN.sub(lambda match: html.unescape(match.group(0)), text)
        if unescaped == text:
            break
        text = unescaped
    return text


def _clean_once(text: str) -> str:
    text = _unescape_fully(text)
    text = _TAG_PATTERN.sub(" ", text)
    text = _ANGLE_PATTERN.sub(" ", text)
    text = _LITERAL_NEWLINE_PATTERN.sub(" ", text)
    text = text.replace("\u00a0", " ")
    return _WHITESPACE_PATTERN.sub(" ", text).strip()


def clean_text(text: str) -> str:
    """Markup-free, whitespace-collapsed version of a string value."""
    previous = None
    for _ in range(_MAX_PASSES):
        if text == previous:
            break
        previous = text
        text = _clean_once(text)
    return text


def _types_of(schema: dict[str, Any]) -> list[str]:
    value = schema.get("@type")
    values = value if isinstance(value, list) else [value]
    return [v for v in values if isinstance(v, str)]


class SchemaCleaner:
    """Recursive cleaner for candidate schemas."""

    def clean(self, schema: dict[str, Any]) -> dict[str, Any]:
        """Clean a single candidate schema.

        The input is not modified.

        Args:
            schema: Candidate schema parsed from LLM output

        Returns:
            dict: Cleaned schema
        """
        current = copy.deepcopy(schema)
        for _ in range(_MAX_PASSES):
            cleaned = self._clean_pass(current)
            if cleaned == current:
                break
            current = cleaned
        return current

    def _clean_pass(self, schema: dict[str, Any]) -> dict[str, Any]:
        # a repair or removal can expose more work, so passes repeat until stable
        repaired = self._repair_shapes(schema)
        cleaned = self._clean_value(repaired, in_array=False)
        if not isinstance(cleaned, dict):
            return {}
        return self._apply_type_restrictions(cleaned)

    def clean_many(self, schemas: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return [self.clean(schema) for schema in schemas]

    # ------------------------------------------------------------------
    # Shape repairs
    # ------------------------------------------------------------------

    def _repair_shapes(self, value: Any) -> Any:
        if isinstance(value, list):
            return [self._repair_shapes(item) for item in value]
        if not isinstance(value, dict):
            return value

        schema = {key: self._repair_shapes(item) for key, item in value.items()}
        types = set(_types_of(schema))

        if "author" in schema:
            schema["author"] = self._to_entity(schema["author"], "Person")
        if "publisher" in schema:
            schema["publisher"] = self._to_entity(schema["publisher"], "Organization")

        if "image" in schema:
            schema["image"] = self._repair_image(schema["image"])
        logo = schema.get("logo")
        if isinstance(logo, str) and logo.strip():
            schema["logo"] = {"@type": "ImageObject", "url": logo}
        elif isinstance(logo, dict) and "@type" not in logo:
            schema["logo"] = {"@type": "ImageObject", **logo}

        address = schema.get("address")
        if isinstance(address, str) and address.strip() and "PostalAddress" not in types:
            schema["address"] = {"@type": "PostalAddress", "streetAddress": address}

        page = schema.get("mainEntityOfPage")
        if types & ARTICLE_TYPES and isinstance(page, str) and page.strip():
            schema["mainEntityOfPage"] = {"@type": "WebPage", "@id": page.strip()}

        keywords = schema.get("keywords")
        if isinstance(keywords, str) and "," in keywords:
            schema["keywords"] = [part.strip() for part in keywords.split(",") if part.strip()]

        if types & HEADLINE_INVALID_TYPES and "headline" in schema:
            headline = schema.pop("headline")
            if is_empty_value(schema.get("name")):
                schema["name"] = headline
            logger.debug("Moved headline to name for %s", sorted(types))

        return schema

    @staticmethod
    def _to_entity(value: Any, entity_type: str) -> Any:
        if isinstance(value, str):
            return {"@type": entity_type, "name": value}
        if isinstance(value, list):
            return [
                {"@type": entity_type, "name": item} if isinstance(item, str) else item
                for item in value
            ]
        if isinstance(value, dict) and "@type" not in value:
            return {"@type": entity_type, **value}
        return value

    @staticmethod
    def _repair_image(value: Any) -> Any:
        if isinstance(value, dict) and "@type" not in value:
            return {"@type": "ImageObject", **value}
        if isinstance(value, list):
            return [
                {"@type": "ImageObject", **item}
                if isinstance(item, dict) and "@type" not in item
                else item
                for item in value
            ]
        return value

    # ------------------------------------------------------------------
    # Value cleaning
    # ------------------------------------------------------------------

    def _clean_value(self, value: Any, in_array: bool) -> Any:
        if isinstance(value, str):
            cleaned = clean_text(value)
            if in_array and len(cleaned) >= SCHEMA_ARRAY_STRING_MAX:
                return None
            return cleaned

        if isinstance(value, list):
            items = [self._clean_value(item, in_array=True) for item in value]
            return [item for item in items if not is_empty_value(item)]

        if isinstance(value, dict):
            result: dict[str, Any] = {}
            for key, item in value.items():
                cleaned_item = self._clean_value(item, in_array=False)
                if is_empty_value(cleaned_item) and key not in ("@type", "@context"):
                    continue
                result[key] = cleaned_item
            return result

        return value

    # ------------------------------------------------------------------
    # Property/type compatibility
    # ------------------------------------------------------------------

    def _apply_type_restrictions(self, schema: dict[str, Any]) -> dict[str, Any]:
        types = set(_types_of(schema))
        result: dict[str, Any] = {}
        for key, value in schema.items():
            allowed = PROPERTY_TYPE_RESTRICTIONS.get(key)
            if allowed is not None and types and not types & allowed:
                logger.debug("Removed %s from %s", key, sorted(types))
                continue
            result[key] = self._restrict_nested(value)
        return result

    def _restrict_nested(self, value: Any) -> Any:
        if isinstance(value, dict):
            return self._apply_type_restrictions(value)
        if isinstance(value, list):
            return [self._restrict_nested(item) for item in value]
        return value


_default_cleaner = SchemaCleaner()


def clean_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """Module-level shortcut for ``SchemaCleaner().clean``."""
    return _default_cleaner.clean(schema)
