"""Tests for PropertyCompletionEngine."""

import copy

import pytest

from aeo_schema.core.models import ContentAnalysis
from aeo_schema.validation.completion import PropertyCompletionEngine, blog_url
from aeo_schema.validation.schemas import SchemaType


@pytest.fixture
def engine() -> PropertyCompletionEngine:
    return PropertyCompletionEngine()


@pytest.fixture
def org_only_analysis() -> ContentAnalysis:
    """Site name is verified, author is not."""
    return ContentAnalysis.model_validate(
        {
            "url": "https://example.com/news/release",
            "title": "Release Notes",
            "metadata": {
                "publishDate": "2025-01-10",
                "businessInfo": {"name": "Example Co"},
            },
        }
    )


class TestArticleCompletion:
    def test_blog_posting_filled_from_metadata(self, engine, blog_analysis) -> None:
        schema = {"@context": "https://schema.org", "@type": "BlogPosting", "headline": "10 Tips"}

        enhanced, report = engine.complete(schema, blog_analysis)

        assert enhanced["mainEntityOfPage"] == {"@type": "WebPage", "@id": "https://example.com/blog/10-tips"}
        assert enhanced["author"] == {"@type": "Person", "name": "Jane Doe"}
        assert enhanced["publisher"] == {
            "@type": "Organization",
            "name": "Example Co",
            "url": "https://example.com",
            "logo": {"@type": "ImageObject", "url": "https://example.com/logo.png"},
        }
        assert enhanced["datePublished"] == "2025-03-01"
        assert enhanced["dateModified"] == "2025-03-01"
        assert enhanced["image"] == "https://example.com/images/tips.jpg"
        assert enhanced["keywords"] == ["schema", "json-ld", "seo"]
        assert enhanced["articleSection"] == ["Start with the basics", "Keep it honest"]
        assert enhanced["wordCount"] == 1200
        assert enhanced["timeRequired"] == "PT6M"
        assert enhanced["isPartOf"] == {
            "@type": "WebSite",
            "name": "Example Co",
            "url": "https://example.com/blog/",
        }
        assert report.required_missing == []
        assert report.omitted == []

    def test_existing_values_are_kept(self, engine, blog_analysis) -> None:
        schema = {
            "@context": "https://schema.org",
            "@type": "BlogPosting",
            "headline": "A different headline",
            "datePublished": "2025-02-01",
        }

        enhanced, report = engine.complete(schema, blog_analysis)

        assert enhanced["headline"] == "A different headline"
        assert enhanced["datePublished"] == "2025-02-01"
        assert "headline" not in report.filled
        assert "datePublished" not in report.filled

    def test_publisher_filled_author_omitted(self, engine, org_only_analysis) -> None:
        schema = {"@context": "https://schema.org", "@type": "Article", "headline": "Release Notes"}

        enhanced, report = engine.complete(schema, org_only_analysis)

        assert enhanced["publisher"] == {
            "@type": "Organization",
            "name": "Example Co",
            "url": "https://example.com",
        }
        assert "author" not in enhanced
        assert "author" in report.omitted
        assert "publisher" in report.filled

    def test_nothing_synthesized_without_data(self, engine, bare_analysis) -> None:
        schema = {"@type": "BlogPosting", "headline": "Product Launch"}

        enhanced, report = engine.complete(schema, bare_analysis)

        for key in ("author", "publisher", "datePublished", "dateModified", "image", "timeRequired"):
            assert key not in enhanced
        assert {"author", "publisher", "datePublished", "dateModified"} <= set(report.required_missing)
        assert enhanced["@context"] == "https://schema.org"

    def test_blog_url(self) -> None:
        assert blog_url("https://example.com/blog/post", "https://example.com", "example.com") == "https://example.com/blog/"
        assert blog_url("https://blog.example.com/post", "https://blog.example.com", "blog.example.com") == "https://blog.example.com"
        assert blog_url("https://example.com/news/post", "https://example.com", "example.com") is None


class TestOtherTypes:
    def test_faq_page_from_faq_content(self, engine, faq_analysis) -> None:
        enhanced, report = engine.complete({"@type": "FAQPage"}, faq_analysis)

        assert enhanced["mainEntity"][0] == {
            "@type": "Question",
            "name": "What is JSON-LD?",
            "acceptedAnswer": {"@type": "Answer", "text": "A JSON serialization of linked data."},
        }
        assert len(enhanced["mainEntity"]) == 2
        assert report.required_missing == []

    def test_faq_page_without_entries(self, engine, bare_analysis) -> None:
        enhanced, report = engine.complete({"@type": "FAQPage"}, bare_analysis)
        assert "mainEntity" not in enhanced
        assert "mainEntity" in report.omitted

    def test_web_page(self, engine, blog_analysis) -> None:
        enhanced, _ = engine.complete({"@type": "WebPage"}, blog_analysis)
        assert enhanced["name"] == "10 Tips"
        assert enhanced["url"] == "https://example.com/blog/10-tips"
        assert enhanced["isPartOf"]["url"] == "https://example.com"

    def test_person_with_other_name_untouched(self, engine, blog_analysis) -> None:
        schema = {"@type": "Person", "name": "Someone Else"}
        enhanced, report = engine.complete(schema, blog_analysis)
        assert enhanced == {"@context": "https://schema.org", "@type": "Person", "name": "Someone Else"}
        assert report.filled == ["@context"]

    def test_image_object_urls_mirrored(self, engine, blog_analysis) -> None:
        schema = {"@type": "ImageObject", "url": "https://example.com/images/tips.jpg"}
        enhanced, _ = engine.complete(schema, blog_analysis)
        assert enhanced["contentUrl"] == "https://example.com/images/tips.jpg"
        assert enhanced["caption"] == "Tips cover"
        assert enhanced["representativeOfPage"] is True

    def test_video_object_upload_date_not_taken_from_page(self, engine, blog_analysis) -> None:
        enhanced, report = engine.complete({"@type": "VideoObject", "name": "Tips"}, blog_analysis)
        assert blog_analysis.metadata.publish_date
        assert "uploadDate" not in enhanced
        assert "uploadDate" not in report.filled
        assert enhanced["publisher"]["name"] == "Example Co"

    def test_unknown_type_passes_through(self, engine, blog_analysis) -> None:
        schema = {"@type": "Recipe", "name": "Soup"}
        enhanced, report = engine.complete(schema, blog_analysis)
        assert enhanced == schema
        assert report.schema_type == "Recipe"
        assert report.template_found is False
        assert report.completeness_score == 0.0

    @pytest.mark.parametrize("schema_type", list(SchemaType))
    def test_every_type_completes(self, engine, blog_analysis, schema_type: SchemaType) -> None:
        _, report = engine.complete({"@type": schema_type.value}, blog_analysis)
        assert report.template_found is True
        assert report.schema_type == schema_type.value


class TestReport:
    def test_input_not_mutated(self, engine, blog_analysis) -> None:
        schema = {"@type": "BlogPosting", "headline": "10 Tips"}
        snapshot = copy.deepcopy(schema)
        engine.complete(schema, blog_analysis)
        assert schema == snapshot

    def test_completeness_score(self, engine, blog_analysis) -> None:
        _, report = engine.complete({"@type": "BlogPosting"}, blog_analysis)
        # all required and recommended present, potentialAction only among advanced
        assert report.advanced_present == ["potentialAction"]
        assert report.completeness_score == 91.7

    def test_complete_many_keeps_order(self, engine, blog_analysis) -> None:
        schemas = [{"@type": "WebPage"}, {"@type": "BlogPosting"}]
        enhanced, reports = engine.complete_many(schemas, blog_analysis)
        assert [s["@type"] for s in enhanced] == ["WebPage", "BlogPosting"]
        assert [r.schema_type for r in reports] == ["WebPage", "BlogPosting"]
