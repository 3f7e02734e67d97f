"""Post-refinement sanitizer.

A refinement call asks the model to improve a schema that already passed
the pipeline. The model may only add facts present in the verified page
metadata; this module compares the refined schema with the original and
reverts every added or changed value it cannot trace back to that metadata:

- @context / @type are restored from the original
- author is accepted only when it names the scraped author; editor,
  contributor and creator are never accepted
- datePublished / dateModified must match the scraped dates
- organization facts (address, contact details, founders, employees,
  memberships) under ``publisher`` and ``mainEntity.provider`` must come
  from the scraped business info
- placeholder names (John Doe, example.com, "[Your Company]") are rejected

Properties the model removed are not restored here; the refined schema is
cleaned and validated again by the pipeline.
"""

import copy
from collections.abc import Callable
from typing import Any

from aeo_schema.core.models import ContactPoint, ContentAnalysis
from aeo_schema.observability.logger import get_logger

logger = get_logger(__name__)

PROTECTED_PERSON_PROPERTIES: tuple[str, ...] = ("author", "editor", "contributor", "creator")

# only the author can be verified from page metadata
VERIFIABLE_PERSON_PROPERTIES: frozenset[str] = frozenset({"author"})

PROTECTED_DATE_PROPERTIES: tuple[str, ...] = ("datePublished", "dateModified")

PROTECTED_ORG_PROPERTIES: tuple[str, ...] = (
    "address",
    "founder",
    "founders",
    "employee",
    "employees",
    "memberOf",
    "member",
    "contactPoint",
    "telephone",
    "email",
    "faxNumber",
)

# paths (from the schema root) of nested organizations whose facts are guarded
ORGANIZATION_PATHS: tuple[tuple[str, ...], ...] = (
    ("publisher",),
    ("mainEntity", "provider"),
)

PLACEHOLDER_PATTERNS: tuple[str, ...] = (
    "john doe",
    "jane doe",
    "example.com",
    "placeholder",
    "[your ",
    "{your ",
    "[company ",
    "{company ",
    "lorem ipsum",
)


def is_placeholder(text: Any) -> bool:
    """True when a string looks like template filler rather than a real value."""
    if not isinstance(text, str):
        return False
    lowered = text.lower()
    return any(pattern in lowered for pattern in PLACEHOLDER_PATTERNS)


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _date_matches(value: Any, verified: str | None) -> bool:
    if not isinstance(value, str) or not verified:
        return False
    if value == verified:
        return True
    # same calendar day rendered with a time part
    return len(verified) >= 10 and value[:10] == verified[:10]


def _nested(schema: dict[str, Any], path: tuple[str, ...]) -> Any:
    value: Any = schema
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


class RefinementSanitizer:
    """Reverts unverifiable changes made by a refinement call."""

    def sanitize(
        self,
        original: dict[str, Any],
        refined: dict[str, Any],
        analysis: ContentAnalysis,
    ) -> tuple[dict[str, Any], list[str]]:
        """
        Compare a refined schema with its original and drop unverified changes.

        Args:
            original: Schema sent to the refinement call
            refined: Schema returned by the refinement call
            analysis: Page analysis holding the verified metadata

        Returns:
            tuple[dict, list[str]]: (sanitized copy, dotted paths of rejected changes)
        """
        result = copy.deepcopy(refined)
        rejected: list[str] = []

        for key in ("@context", "@type"):
            if key in original and result.get(key) != original[key]:
                result[key] = copy.deepcopy(original[key])
                rejected.append(key)

        for key in PROTECTED_PERSON_PROPERTIES:
            self._guard(
                original,
                result,
                key,
                key,
                lambda value, key=key: self._person_verified(key, value, analysis),
                rejected,
            )

        metadata = analysis.metadata
        self._guard(
            original,
            result,
            "datePublished",
            "datePublished",
            lambda value: _date_matches(value, metadata.publish_date),
            rejected,
        )
        self._guard(
            original,
            result,
            "dateModified",
            "dateModified",
            lambda value: _date_matches(value, metadata.modified_date) or _date_matches(value, metadata.publish_date),
            rejected,
        )

        for path in ORGANIZATION_PATHS:
            organization = _nested(result, path)
            if not isinstance(organization, dict):
                continue
            before = _nested(original, path)
            self._sanitize_organization(
                before if isinstance(before, dict) else {},
                organization,
                ".".join(path),
                analysis,
                rejected,
            )

        if rejected:
            logger.warning(
                "Rejected unverified refinement changes",
                extra_data={"schema_type": original.get("@type"), "rejected": rejected},
            )
        return result, rejected

    def _sanitize_organization(
        self,
        before: dict[str, Any],
        organization: dict[str, Any],
        prefix: str,
        analysis: ContentAnalysis,
        rejected: list[str],
    ) -> None:
        for key in PROTECTED_ORG_PROPERTIES:
            self._guard(
                before,
                organization,
                key,
                f"{prefix}.{key}",
                lambda value, key=key: self._organization_value_verified(key, value, analysis),
                rejected,
            )

        site_name = analysis.metadata.site_name
        self._guard(
            before,
            organization,
            "name",
            f"{prefix}.name",
            lambda value: value == site_name or not is_placeholder(value),
            rejected,
        )

    @staticmethod
    def _guard(
        before: dict[str, Any],
        after: dict[str, Any],
        key: str,
        label: str,
        verified: Callable[[Any], bool],
        rejected: list[str],
    ) -> None:
        if key not in after:
            return
        value = after[key]
        if key in before and before[key] == value:
            return
        if verified(value):
            return

        if key in before:
            after[key] = copy.deepcopy(before[key])
        else:
            del after[key]
        rejected.append(label)

    @staticmethod
    def _person_verified(key: str, value: Any, analysis: ContentAnalysis) -> bool:
        if key not in VERIFIABLE_PERSON_PROPERTIES:
            return False
        info = analysis.metadata.author_info
        if info is None:
            return False

        allowed_urls = {url for url in (info.url, *info.social_profiles) if url}
        people = _as_list(value)
        for person in people:
            if isinstance(person, str):
                name, urls = person, []
            elif isinstance(person, dict):
                name = person.get("name")
                urls = _as_list(person.get("url")) + _as_list(person.get("sameAs"))
            else:
                return False
            if not isinstance(name, str) or name.strip() != info.name:
                return False
            if any(url not in allowed_urls for url in urls):
                return False
        return bool(people)

    @staticmethod
    def _organization_value_verified(key: str, value: Any, analysis: ContentAnalysis) -> bool:
        metadata = analysis.metadata
        business = metadata.business_info
        contacts: list[ContactPoint] = [
            contact
            for contact in (business.contact_point if business else None, metadata.contact_info)
            if contact is not None
        ]

        if key == "address":
            return business is not None and business.address is not None
        if key == "contactPoint":
            return any(contact.telephone or contact.email for contact in contacts)
        if key == "telephone":
            return any(value == contact.telephone for contact in contacts if contact.telephone)
        if key == "email":
            return any(value == contact.email for contact in contacts if contact.email)
        return False


_default_sanitizer = RefinementSanitizer()


def sanitize_refinement(
    original: dict[str, Any],
    refined: dict[str, Any],
    analysis: ContentAnalysis,
) -> tuple[dict[str, Any], list[str]]:
    return _default_sanitizer.sanitize(original, refined, analysis)
