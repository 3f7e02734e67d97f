"""Content metrics shared by prompt construction and property completion."""

import math

from aeo_schema.helpers.truncation_limits import READING_WORDS_PER_MINUTE


def reading_time(word_count: int | None) -> str | None:
    """ISO 8601 duration for the reading time, ``PT{ceil(words/200)}M``."""
    if not word_count or word_count <= 0:
        return None
    return f"PT{math.ceil(word_count / READING_WORDS_PER_MINUTE)}M"
