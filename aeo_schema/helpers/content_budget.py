"""Content budgeting for prompt construction.

Trims extracted page text to a character ceiling, keeping the highest value
lines first:

1. Title and heading lines ("H1:" / "H2:" / "H3:" from the scraper)
2. High-value sections: FAQ blocks, caller-supplied sections, "LIST:" lines
3. Remaining body lines in original order

Boilerplate lines (navigation labels, cookie banners, copyright notices) are
dropped from the body pass. Output is deterministic and never exceeds the
ceiling.
"""

import logging
import re
from collections.abc import Iterable

from aeo_schema.core.models import ContentAnalysis
from aeo_schema.helpers.truncation_limits import (
    MAX_LIST_LINES,
    PROMPT_CONTENT_CHAR_LIMIT,
    PROMPT_FAQ_ANSWER_LIMIT,
)

logger = logging.getLogger(__name__)

HEADING_PREFIXES = ("H1:", "H2:", "H3:")
LIST_PREFIX = "LIST:"

_BOILERPLATE_PATTERNS = [
    re.compile(r"^(home|about|contact|login|log in|register|sign up|cart|menu)$", re.IGNORECASE),
    re.compile(r"\b(cookie|cookies)\b.*\b(accept|consent|policy)\b", re.IGNORECASE),
    re.compile(r"(©|\(c\)).*\brights reserved\b", re.IGNORECASE),
    re.compile(r"^\d{4}.*\brights reserved\b", re.IGNORECASE),
]


def _is_boilerplate(line: str) -> bool:
    return any(pattern.search(line) for pattern in _BOILERPLATE_PATTERNS)


def _split_lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def budget_content(
    content: str,
    ceiling: int = PROMPT_CONTENT_CHAR_LIMIT,
    *,
    title: str | None = None,
    high_value_sections: Iterable[str] = (),
) -> str:
    """
    Prioritize and truncate page content.

    Args:
        content: Extracted page text
        ceiling: Maximum number of characters to return
        title: Page title (emitted first)
        high_value_sections: Sections flagged by the scraper (FAQ blocks, lists)

    Returns:
        str: Prioritized content, at most ``ceiling`` characters
    """
    if ceiling <= 0:
        return ""

    lines = _split_lines(content or "")
    ordered: list[str] = []
    seen: set[str] = set()

    def add(line: str) -> None:
        if line and line not in seen:
            seen.add(line)
            ordered.append(line)

    # 1. title / headings
    if title and title.strip():
        add(title.strip())
    for line in lines:
        if line.startswith(HEADING_PREFIXES):
            add(line)

    # 2. high-value sections
    for section in high_value_sections:
        for line in _split_lines(section):
            add(line)
    list_lines = [line for line in lines if line.startswith(LIST_PREFIX)]
    for line in list_lines[:MAX_LIST_LINES]:
        add(line)

    # 3. body in original order
    for line in lines:
        if not _is_boilerplate(line):
            add(line)

    budgeted = "\n".join(ordered)
    if len(budgeted) > ceiling:
        logger.debug("Content truncated from %d to %d characters", len(budgeted), ceiling)
        budgeted = budgeted[:ceiling].rstrip()
    return budgeted


def render_faq_sections(analysis: ContentAnalysis) -> list[str]:
    """FAQ blocks from metadata, one "Q:/A:" section per question."""
    sections = []
    for faq in analysis.metadata.faq_content:
        answer = faq.answer.strip()[:PROMPT_FAQ_ANSWER_LIMIT]
        sections.append(f"Q: {faq.question.strip()}\nA: {answer}")
    return sections


class ContentBudgeter:
    """Content budgeter bound to a ceiling."""

    def __init__(self, ceiling: int = PROMPT_CONTENT_CHAR_LIMIT) -> None:
        self.ceiling = ceiling

    def budget(
        self,
        content: str,
        *,
        title: str | None = None,
        high_value_sections: Iterable[str] = (),
    ) -> str:
        return budget_content(
            content,
            self.ceiling,
            title=title,
            high_value_sections=high_value_sections,
        )

    def for_analysis(self, analysis: ContentAnalysis) -> str:
        """Budget the content of a page analysis, FAQ blocks included.

        Args:
            analysis: Page analysis

        Returns:
            str: Budgeted content
        """
        return self.budget(
            analysis.content,
            title=analysis.title,
            high_value_sections=render_faq_sections(analysis),
        )
