"""Tests for SchemaCleaner."""

import pytest

from aeo_schema.validation.cleaner import SchemaCleaner, clean_schema, clean_text


def _strings(value):
    if isinstance(value, str):
        yield value
    elif isinstance(value, list):
        for item in value:
            yield from _strings(item)
    elif isinstance(value, dict):
        for item in value.values():
            yield from _strings(item)


MESSY_SCHEMAS = [
    {
        "@context": "https://schema.org",
        "@type": "BlogPosting",
        "headline": "<h1>10 &amp;amp; Tips</h1>",
        "description": "Line one\\nLine two   <br/>three",
        "author": "Jane Doe",
        "publisher": "Example Co",
        "mainEntityOfPage": "https://example.com/blog/10-tips",
        "keywords": "schema, json-ld, , seo",
        "image": {"url": "https://example.com/a.jpg"},
        "articleSection": ["", "Basics", "x" * 600],
        "about": {"@type": "Thing"},
    },
    {
        "@context": "https://schema.org",
        "@type": "WebPage",
        "headline": "About &amp; Contact",
        "articleSection": "Company",
        "wordCount": 300,
        "publisher": {"name": "Example Co", "logo": "https://example.com/logo.png"},
    },
    {
        "@type": "Organization",
        "name": "&amp;lt;b&amp;gt;Acme&amp;lt;/b&amp;gt;",
        "address": "1 Main St",
        "sameAs": ["", "   "],
        "department": [{"@type": "Organization", "wordCount": 3}],
    },
]


class TestCleanText:
    def test_strips_tags_and_entities(self) -> None:
        assert clean_text("<p>Hello&nbsp;<b>world</b></p>") == "Hello world"

    def test_double_encoded_entities(self) -> None:
        assert clean_text("&amp;lt;script&amp;gt;alert(1)&amp;lt;/script&amp;gt;") == "alert(1)"

    def test_literal_newlines_and_nbsp(self) -> None:
        assert clean_text("a\\nb  c\n\td") == "a b c d"

    def test_stray_brackets(self) -> None:
        assert clean_text("5 < 6") == "5 6"

    def test_unterminated_entity_names_left_alone(self) -> None:
        url = "https://example.com/?a=1&lt=5&copy=2"
        assert clean_text(url) == url

    def test_numeric_entities_decoded(self) -> None:
        assert clean_text("Caf&#233; &#x26; Bar") == "Café & Bar"


class TestSchemaCleaner:
    def test_blog_posting_repairs(self) -> None:
        cleaned = clean_schema(MESSY_SCHEMAS[0])

        assert cleaned["headline"] == "10 & Tips"
        assert cleaned["description"] == "Line one Line two three"
        assert cleaned["author"] == {"@type": "Person", "name": "Jane Doe"}
        assert cleaned["publisher"] == {"@type": "Organization", "name": "Example Co"}
        assert cleaned["mainEntityOfPage"] == {"@type": "WebPage", "@id": "https://example.com/blog/10-tips"}
        assert cleaned["keywords"] == ["schema", "json-ld", "seo"]
        assert cleaned["image"] == {"@type": "ImageObject", "url": "https://example.com/a.jpg"}
        assert cleaned["articleSection"] == ["Basics"]
        assert "about" not in cleaned

    def test_web_page_type_restrictions(self) -> None:
        cleaned = clean_schema(MESSY_SCHEMAS[1])

        assert "headline" not in cleaned
        assert cleaned["name"] == "About & Contact"
        assert "articleSection" not in cleaned
        assert "wordCount" not in cleaned
        assert cleaned["publisher"] == {
            "@type": "Organization",
            "name": "Example Co",
            "logo": {"@type": "ImageObject", "url": "https://example.com/logo.png"},
        }

    def test_nested_restrictions_and_empty_arrays(self) -> None:
        cleaned = clean_schema(MESSY_SCHEMAS[2])

        assert cleaned["name"] == "Acme"
        assert cleaned["address"] == {"@type": "PostalAddress", "streetAddress": "1 Main St"}
        assert "sameAs" not in cleaned
        assert "department" not in cleaned

    def test_headline_kept_when_name_present(self) -> None:
        cleaned = clean_schema({"@type": "Person", "name": "Jane", "headline": "CEO"})
        assert cleaned == {"@type": "Person", "name": "Jane"}

    def test_author_list(self) -> None:
        cleaned = clean_schema({"@type": "Article", "author": ["Jane", {"@type": "Person", "name": "Bob"}]})
        assert cleaned["author"] == [
            {"@type": "Person", "name": "Jane"},
            {"@type": "Person", "name": "Bob"},
        ]

    def test_input_not_mutated(self) -> None:
        original = {"@type": "Article", "author": "Jane", "headline": "<b>x</b>"}
        snapshot = {"@type": "Article", "author": "Jane", "headline": "<b>x</b>"}
        SchemaCleaner().clean(original)
        assert original == snapshot

    def test_non_string_scalars_kept(self) -> None:
        cleaned = clean_schema({"@type": "BlogPosting", "wordCount": 1200, "isAccessibleForFree": False})
        assert cleaned["wordCount"] == 1200
        assert cleaned["isAccessibleForFree"] is False

    @pytest.mark.parametrize("schema", MESSY_SCHEMAS)
    def test_idempotent(self, schema) -> None:
        once = clean_schema(schema)
        assert clean_schema(once) == once

    @pytest.mark.parametrize("schema", MESSY_SCHEMAS)
    def test_no_markup_left(self, schema) -> None:
        for text in _strings(clean_schema(schema)):
            assert "<" not in text
            assert ">" not in text
            assert "&lt;" not in text
            assert "&amp;" not in text

    def test_clean_many(self) -> None:
        assert len(SchemaCleaner().clean_many(MESSY_SCHEMAS)) == 3
