"""Tests for RefinementSanitizer."""

import copy

import pytest

from aeo_schema.core.models import ContentAnalysis
from aeo_schema.validation.refinement import RefinementSanitizer, is_placeholder, sanitize_refinement

ORIGINAL = {
    "@context": "https://schema.org",
    "@type": "BlogPosting",
    "headline": "10 Tips",
    "datePublished": "2025-03-01",
    "publisher": {"@type": "Organization", "name": "Example Co", "url": "https://example.com"},
}


@pytest.fixture
def sanitizer() -> RefinementSanitizer:
    return RefinementSanitizer()


@pytest.fixture
def business_analysis() -> ContentAnalysis:
    return ContentAnalysis.model_validate(
        {
            "url": "https://example.com/services/repair",
            "title": "Repair Service",
            "metadata": {
                "publishDate": "2025-02-01",
                "modifiedDate": "2025-02-10",
                "businessInfo": {
                    "name": "Example Co",
                    "address": {"streetAddress": "1 Main St", "addressLocality": "Springfield"},
                    "contactPoint": {"telephone": "+1-555-0100", "email": "hello@example.com"},
                },
            },
        }
    )


class TestPeople:
    def test_verified_author_added(self, sanitizer, blog_analysis) -> None:
        refined = {**ORIGINAL, "author": {"@type": "Person", "name": "Jane Doe"}}

        sanitized, rejected = sanitizer.sanitize(ORIGINAL, refined, blog_analysis)

        assert sanitized["author"]["name"] == "Jane Doe"
        assert rejected == []

    def test_other_author_rejected(self, sanitizer, blog_analysis) -> None:
        refined = {
            **ORIGINAL,
            "author": [{"@type": "Person", "name": "Jane Doe"}, {"@type": "Person", "name": "Ann Lee"}],
        }

        sanitized, rejected = sanitizer.sanitize(ORIGINAL, refined, blog_analysis)

        assert "author" not in sanitized
        assert rejected == ["author"]

    def test_author_profile_urls_must_be_known(self, sanitizer, blog_analysis) -> None:
        refined = {
            **ORIGINAL,
            "author": {"@type": "Person", "name": "Jane Doe", "sameAs": ["https://twitter.com/janedoe"]},
        }

        sanitized, rejected = sanitizer.sanitize(ORIGINAL, refined, blog_analysis)

        assert "author" not in sanitized
        assert rejected == ["author"]

    def test_no_author_without_metadata(self, sanitizer, bare_analysis) -> None:
        refined = {**ORIGINAL, "author": {"@type": "Person", "name": "John Doe"}}

        _, rejected = sanitizer.sanitize(ORIGINAL, refined, bare_analysis)

        assert rejected == ["author"]

    @pytest.mark.parametrize("key", ["editor", "contributor", "creator"])
    def test_other_people_never_added(self, sanitizer, blog_analysis, key: str) -> None:
        refined = {**ORIGINAL, key: {"@type": "Person", "name": "Jane Doe"}}

        sanitized, rejected = sanitizer.sanitize(ORIGINAL, refined, blog_analysis)

        assert key not in sanitized
        assert rejected == [key]

    def test_changed_author_restored(self, sanitizer, blog_analysis) -> None:
        original = {**ORIGINAL, "author": {"@type": "Person", "name": "Jane Doe"}}
        refined = {**ORIGINAL, "author": {"@type": "Person", "name": "Jane Smith"}}

        sanitized, rejected = sanitizer.sanitize(original, refined, blog_analysis)

        assert sanitized["author"] == {"@type": "Person", "name": "Jane Doe"}
        assert rejected == ["author"]


class TestDates:
    def test_iso_datetime_of_same_day_kept(self, sanitizer, blog_analysis) -> None:
        refined = {**ORIGINAL, "datePublished": "2025-03-01T00:00:00Z"}

        sanitized, rejected = sanitizer.sanitize(ORIGINAL, refined, blog_analysis)

        assert sanitized["datePublished"] == "2025-03-01T00:00:00Z"
        assert rejected == []

    def test_changed_date_restored(self, sanitizer, blog_analysis) -> None:
        refined = {**ORIGINAL, "datePublished": "2024-12-31"}

        sanitized, rejected = sanitizer.sanitize(ORIGINAL, refined, blog_analysis)

        assert sanitized["datePublished"] == "2025-03-01"
        assert rejected == ["datePublished"]

    def test_date_modified_from_publish_date(self, sanitizer, blog_analysis) -> None:
        refined = {**ORIGINAL, "dateModified": "2025-03-01"}

        sanitized, rejected = sanitizer.sanitize(ORIGINAL, refined, blog_analysis)

        assert sanitized["dateModified"] == "2025-03-01"
        assert rejected == []


class TestOrganizations:
    def test_unverified_facts_removed(self, sanitizer, blog_analysis) -> None:
        refined = copy.deepcopy(ORIGINAL)
        refined["publisher"].update(
            {
                "address": {"@type": "PostalAddress", "streetAddress": "123 Main Street"},
                "telephone": "+1-555-0199",
                "founder": {"@type": "Person", "name": "Pat Lee"},
                "logo": {"@type": "ImageObject", "url": "https://example.com/logo.png"},
            }
        )

        sanitized, rejected = sanitizer.sanitize(ORIGINAL, refined, blog_analysis)

        assert sanitized["publisher"] == {**ORIGINAL["publisher"], "logo": refined["publisher"]["logo"]}
        assert rejected == ["publisher.address", "publisher.founder", "publisher.telephone"]

    def test_verified_business_facts_kept(self, sanitizer, business_analysis) -> None:
        refined = copy.deepcopy(ORIGINAL)
        refined["publisher"].update(
            {
                "address": {"@type": "PostalAddress", "streetAddress": "1 Main St"},
                "telephone": "+1-555-0100",
                "email": "hello@example.com",
                "contactPoint": {"@type": "ContactPoint", "telephone": "+1-555-0100"},
            }
        )

        sanitized, rejected = sanitizer.sanitize(ORIGINAL, refined, business_analysis)

        assert sanitized["publisher"]["telephone"] == "+1-555-0100"
        assert sanitized["publisher"]["email"] == "hello@example.com"
        assert "address" in sanitized["publisher"]
        assert rejected == []

    def test_service_provider_guarded(self, sanitizer, business_analysis) -> None:
        original = {
            "@context": "https://schema.org",
            "@type": "WebPage",
            "name": "Repair Service",
            "mainEntity": {"@type": "Service", "provider": {"@type": "Organization", "name": "Example Co"}},
        }
        refined = copy.deepcopy(original)
        refined["mainEntity"]["provider"]["employee"] = [{"@type": "Person", "name": "Sam Roe"}]
        refined["mainEntity"]["provider"]["faxNumber"] = "+1-555-0101"

        sanitized, rejected = sanitizer.sanitize(original, refined, business_analysis)

        assert sanitized == original
        assert rejected == ["mainEntity.provider.employee", "mainEntity.provider.faxNumber"]

    def test_placeholder_publisher_name(self, sanitizer, bare_analysis) -> None:
        original = {"@context": "https://schema.org", "@type": "WebPage", "name": "Product Launch"}
        refined = {**original, "publisher": {"@type": "Organization", "name": "[Your Company Name]"}}

        sanitized, rejected = sanitizer.sanitize(original, refined, bare_analysis)

        assert sanitized["publisher"] == {"@type": "Organization"}
        assert rejected == ["publisher.name"]


class TestSanitize:
    def test_type_and_context_restored(self, sanitizer, blog_analysis) -> None:
        refined = {**ORIGINAL, "@context": "http://schema.org", "@type": "Article"}

        sanitized, rejected = sanitizer.sanitize(ORIGINAL, refined, blog_analysis)

        assert sanitized["@context"] == "https://schema.org"
        assert sanitized["@type"] == "BlogPosting"
        assert rejected == ["@context", "@type"]

    def test_inputs_not_mutated(self, blog_analysis) -> None:
        refined = {**ORIGINAL, "editor": {"@type": "Person", "name": "Ann Lee"}}
        snapshot = copy.deepcopy(refined)

        sanitize_refinement(ORIGINAL, refined, blog_analysis)

        assert refined == snapshot

    def test_unchanged_schema(self, blog_analysis) -> None:
        sanitized, rejected = sanitize_refinement(ORIGINAL, copy.deepcopy(ORIGINAL), blog_analysis)
        assert sanitized == ORIGINAL
        assert rejected == []

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("John Doe", True),
            ("Lorem ipsum dolor", True),
            ("{Your Business}", True),
            ("https://example.com/logo.png", True),
            ("Example Co", False),
            (42, False),
        ],
    )
    def test_is_placeholder(self, value, expected: bool) -> None:
        assert is_placeholder(value) is expected
