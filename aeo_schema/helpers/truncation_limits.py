"""Centralized truncation and limit constants for the generation pipeline.

Groups:
- PROMPT_*: Character limits for data sent to LLM prompts
- MAX_*: Item count limits for lists/arrays
- SCHEMA_*: Limits applied to generated schema values
"""

# --- Prompt construction limits (character counts) ---
PROMPT_CONTENT_CHAR_LIMIT = 100_000  # Budgeted page content (content budget)
PROMPT_FAQ_ANSWER_LIMIT = 500        # Single FAQ answer rendered into content

# --- List item count limits ---
MAX_KEYWORDS = 10                    # keywords (completion)
MAX_ARTICLE_SECTIONS = 6             # articleSection (completion)
MAX_ABOUT_ENTITIES = 5               # about (completion)
MAX_MENTIONS = 5                     # mentions (completion)
MAX_IMAGES_IN_PROMPT = 5             # image URLs listed in user prompt
MAX_LIST_LINES = 20                  # "LIST:" lines kept in the high-value pass

# --- Schema value constraints ---
SCHEMA_ARRAY_STRING_MAX = 500        # array string items at/over this are dropped
READING_WORDS_PER_MINUTE = 200       # timeRequired estimate
