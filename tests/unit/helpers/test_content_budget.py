"""Tests for content budgeting."""

import pytest

from aeo_schema.core.models import ContentAnalysis
from aeo_schema.helpers.content_budget import ContentBudgeter, budget_content, render_faq_sections
from aeo_schema.helpers.content_metrics import reading_time
from aeo_schema.helpers.truncation_limits import PROMPT_FAQ_ANSWER_LIMIT

CONTENT = "\n".join(
    [
        "Home",
        "P: Intro paragraph.",
        "H2: Section one",
        "P: Body of section one.",
        "LIST: First item",
        "We use cookies. Accept our cookie policy.",
        "H2: Section two",
        "P: Body of section one.",
        "© 2025 Example Co. All rights reserved.",
    ]
)


class TestBudgetContent:
    def test_priority_order(self) -> None:
        result = budget_content(CONTENT, 10_000, title="Guide")
        lines = result.splitlines()

        assert lines[:3] == ["Guide", "H2: Section one", "H2: Section two"]
        assert lines[3] == "LIST: First item"
        assert lines[4:] == ["P: Intro paragraph.", "P: Body of section one."]

    def test_boilerplate_dropped(self) -> None:
        result = budget_content(CONTENT, 10_000)
        assert "Home" not in result.splitlines()
        assert "cookie" not in result
        assert "rights reserved" not in result

    def test_duplicates_emitted_once(self) -> None:
        result = budget_content(CONTENT, 10_000)
        assert result.count("P: Body of section one.") == 1

    def test_high_value_sections_before_body(self) -> None:
        result = budget_content(CONTENT, 10_000, high_value_sections=["Q: Why?\nA: Because."])
        lines = result.splitlines()
        assert lines.index("Q: Why?") < lines.index("P: Intro paragraph.")

    @pytest.mark.parametrize("ceiling", [1, 10, 25, 60, 500])
    def test_never_exceeds_ceiling(self, ceiling: int) -> None:
        assert len(budget_content(CONTENT, ceiling, title="Guide")) <= ceiling

    def test_keeps_headings_when_truncated(self) -> None:
        result = budget_content(CONTENT, 40, title="Guide")
        assert result.startswith("Guide\nH2: Section one")

    def test_deterministic(self) -> None:
        first = budget_content(CONTENT, 50, title="Guide")
        second = budget_content(CONTENT, 50, title="Guide")
        assert first == second

    @pytest.mark.parametrize("ceiling", [0, -5])
    def test_non_positive_ceiling(self, ceiling: int) -> None:
        assert budget_content(CONTENT, ceiling) == ""

    def test_empty_content(self) -> None:
        assert budget_content("", 100) == ""
        assert budget_content("", 100, title="Only title") == "Only title"

    def test_list_lines_capped_in_priority_pass(self) -> None:
        content = "\n".join(f"LIST: item {n}" for n in range(30)) + "\nH1: Heading"
        lines = budget_content(content, 10_000).splitlines()
        assert lines[0] == "H1: Heading"
        # items beyond the cap still appear in the body pass, in order
        assert lines[1:] == [f"LIST: item {n}" for n in range(30)]


class TestContentBudgeter:
    def test_for_analysis_includes_faq(self, faq_analysis: ContentAnalysis) -> None:
        result = ContentBudgeter(10_000).for_analysis(faq_analysis)
        lines = result.splitlines()

        assert lines[0] == "Frequently Asked Questions"
        assert "Q: What is JSON-LD?" in lines
        assert lines.index("Q: What is JSON-LD?") < lines.index("P: Answers to common questions.")

    def test_faq_answers_truncated(self) -> None:
        analysis = ContentAnalysis.model_validate(
            {
                "url": "https://example.com/faq",
                "metadata": {"faqContent": [{"question": "Long?", "answer": "x" * 2000}]},
            }
        )
        (section,) = render_faq_sections(analysis)
        assert section == "Q: Long?\nA: " + "x" * PROMPT_FAQ_ANSWER_LIMIT

    def test_ceiling_respected(self, blog_analysis: ContentAnalysis) -> None:
        assert len(ContentBudgeter(30).for_analysis(blog_analysis)) <= 30


@pytest.mark.parametrize(
    ("word_count", "expected"),
    [(1200, "PT6M"), (201, "PT2M"), (1, "PT1M"), (0, None), (None, None)],
)
def test_reading_time(word_count, expected) -> None:
    assert reading_time(word_count) == expected
