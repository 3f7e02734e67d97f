"""Pytest configuration and fixtures for tests."""

import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from aeo_schema.core.config import PipelineSettings  # noqa: E402
from aeo_schema.core.models import ContentAnalysis  # noqa: E402
from aeo_schema.llm.retry import RetryPolicies, RetryPolicy  # noqa: E402


@pytest.fixture
def blog_analysis() -> ContentAnalysis:
    """Blog post analysis as produced by the scraper (camelCase keys)."""
    return ContentAnalysis.model_validate(
        {
            "url": "https://example.com/blog/10-tips",
            "title": "10 Tips",
            "description": "Ten practical tips for structured data.",
            "content": "\n".join(
                [
                    "H1: 10 Tips",
                    "P: Structured data helps answer engines understand a page.",
                    "H2: Start with the basics",
                    "P: Use JSON-LD and keep values consistent with the page.",
                    "LIST: Validate every schema",
                    "H2: Keep it honest",
                    "P: Never describe content the page does not contain.",
                ]
            ),
            "metadata": {
                "author": "Jane Doe",
                "publishDate": "2025-03-01",
                "language": "en",
                "wordCount": 1200,
                "keywords": ["schema", "json-ld", "seo"],
                "articleSections": ["Start with the basics", "Keep it honest"],
                "businessInfo": {
                    "name": "Example Co",
                    "url": "https://example.com",
                    "logo": "https://example.com/logo.png",
                },
                "imageInfo": {
                    "featuredImage": "https://example.com/images/tips.jpg",
                    "featuredImageAlt": "Tips cover",
                },
            },
        }
    )


@pytest.fixture
def bare_analysis() -> ContentAnalysis:
    """Page with no verified author or organization data."""
    return ContentAnalysis(
        url="https://example.org/news/launch",
        title="Product Launch",
        content="H1: Product Launch\nP: We launched a product.",
    )


@pytest.fixture
def faq_analysis() -> ContentAnalysis:
    return ContentAnalysis.model_validate(
        {
            "url": "https://example.com/faq",
            "title": "Frequently Asked Questions",
            "content": "H1: FAQ\nP: Answers to common questions.",
            "metadata": {
                "faqContent": [
                    {"question": "What is JSON-LD?", "answer": "A JSON serialization of linked data."},
                    {"question": "Is it free?", "answer": "Yes."},
                ],
            },
        }
    )


@pytest.fixture
def fast_policies() -> RetryPolicies:
    """Default attempt counts with zero-length sleeps."""
    return RetryPolicies(
        standard=RetryPolicy(name="standard", max_attempts=3, base_delay=0.0),
        overload=RetryPolicy(name="overload", max_attempts=5, delays=(0.0,)),
    )


@pytest.fixture
def settings() -> PipelineSettings:
    return PipelineSettings(provider="mock")
