"""Prompt construction for schema generation.

build_prompts() is pure: the same analysis and options always render the same
PromptBundle. Every value placed in the user prompt comes from the
ContentAnalysis; absent values are rendered as explicit ``[NOT FOUND]``
markers with an instruction to omit the property.

Templates use ``{{variable}}`` placeholders.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any

from aeo_schema.core.models import ContentAnalysis, GenerationOptions
from aeo_schema.helpers.content_budget import ContentBudgeter
from aeo_schema.helpers.content_metrics import reading_time
from aeo_schema.helpers.schemas import PromptBundle
from aeo_schema.helpers.truncation_limits import (
    MAX_IMAGES_IN_PROMPT,
    MAX_KEYWORDS,
    PROMPT_CONTENT_CHAR_LIMIT,
)

NOT_FOUND = "[NOT FOUND]"

_PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")

# description shorter than this is reported as insufficient
QUALITY_DESCRIPTION_MIN_CHARS = 50

# (minimum words, label), first match wins
CONTENT_DEPTH_LEVELS: tuple[tuple[int, str], ...] = (
    (1000, "Rich"),
    (500, "Moderate"),
    (200, "Basic"),
)

MAX_RECOMMENDED_TYPES = 4
RECOMMENDATIONS_NOT_APPLICABLE = "Not applicable: generate only the requested types"


class PromptRenderError(ValueError):
    """A required template variable was not supplied."""


@dataclass
class PromptTemplate:
    """A single prompt template with variables."""

    name: str
    content: str
    required: tuple[str, ...] = field(default_factory=tuple)

    def render(self, **kwargs: Any) -> str:
        """Render the prompt with provided variables.

        Raises:
            PromptRenderError: If required variable is missing
        """
        for var_name in self.required:
            if var_name not in kwargs:
                raise PromptRenderError(f"Missing required variable: {var_name}")

        # single pass: placeholders inside substituted values stay literal
        def substitute(match: re.Match[str]) -> str:
            key = match.group(1)
            return str(kwargs[key]) if key in kwargs else match.group(0)

        return _PLACEHOLDER_PATTERN.sub(substitute, self.content)


ANTI_HALLUCINATION_RULES = """ANTI-HALLUCINATION RULES (CRITICAL):
1. Use ONLY information explicitly present in the provided metadata or page content.
2. Never guess or assume details that are not directly stated.
3. If a property has no real data, OMIT it entirely rather than invent a value.
4. Values marked [NOT FOUND] do not exist: omit the corresponding property.
5. Never invent author names, dates, addresses, phone numbers, images, logos or social profiles.
6. Never use placeholder values (example.com, placeholder.png, "Sample Author").
7. Never include HTML fragments in text properties.
8. Never mix data types in arrays (all strings or all objects).
9. Use only well-established Schema.org types that validate in common tools."""

PROPERTY_FORMAT_RULES = """PROPERTY FORMATS:
- mainEntityOfPage: {"@type": "WebPage", "@id": "<page url>"}
- author: {"@type": "Person", "name": "<verified author>"}
- publisher: {"@type": "Organization", "name": "<verified name>"}; add logo only when a logo URL is provided
- keywords: array of strings
- articleSection: array of section headings
- dates: ISO 8601, exactly as provided
- timeRequired: ISO 8601 duration, use the value provided below"""

TYPE_SELECTION_GUIDE = """SCHEMA TYPE SELECTION:
- BlogPosting: pages on /blog/ URLs or blog content. Never use Article for blog URLs.
- Article / NewsArticle: news, press releases and general articles not on /blog/ URLs
- WebPage: static pages and landing pages without article characteristics
- FAQPage: only when the page contains question/answer content
- Organization: business or company information pages
- LocalBusiness: businesses with a verified physical address
- Person: author profiles and team member pages
- BreadcrumbList: only when breadcrumbs are provided
- ImageObject / VideoObject: only for verified media URLs"""

OUTPUT_CONTRACT = """OUTPUT FORMAT:
Return a single JSON object and nothing else:
{"schemas": [ <schema object>, ... ]}
Every schema object must include "@context": "https://schema.org" and "@type"."""

SYSTEM_TEMPLATE = PromptTemplate(
    name="system",
    content="""You are a Schema.org expert generating production-ready JSON-LD for answer engine optimization.
{{mode_instructions}}

{{anti_hallucination}}

{{property_formats}}

{{output_contract}}""",
    required=("mode_instructions", "anti_hallucination", "property_formats", "output_contract"),
)

AUTO_MODE_TEMPLATE = PromptTemplate(
    name="auto_mode",
    content="""Select the schema types that best describe the page (1-4 schemas).

{{type_guide}}""",
    required=("type_guide",),
)

USER_SPECIFIC_TEMPLATE = PromptTemplate(
    name="user_specific_mode",
    content="""The user has requested specific schema types.
Generate ONLY these types: {{requested_types}}
Do NOT generate any additional schema types.
If a requested type cannot be supported by the provided data, leave it out.""",
    required=("requested_types",),
)

USER_TEMPLATE = PromptTemplate(
    name="user",
    content="""Generate Schema.org JSON-LD for the page below.

VERIFIED PAGE METADATA:
- URL: {{url}}
- Title: {{title}}
- Description: {{description}}
- Canonical URL: {{canonical_url}}
- Language: {{language}}

AUTHOR: {{author}}

DATES:
- Published: {{publish_date}}
- Modified: {{modified_date}}

IMAGES:
{{images}}

PUBLISHER: {{publisher}}

KEYWORDS: {{keywords}}
TAGS: {{tags}}

ARTICLE STRUCTURE:
- Article section: {{article_section}}
- Section headings: {{article_sections}}

CONTENT METRICS:
- Word count: {{word_count}}
- timeRequired: {{reading_time}}
- FAQ entries: {{faq_count}}

URL ANALYSIS:
- Blog URL: {{is_blog_url}}

METADATA QUALITY:
{{metadata_quality}}

RECOMMENDED SCHEMA TYPES:
{{recommendations}}

REQUESTED FEATURES:
{{features}}

FULL PAGE CONTENT:
{{content}}

{{output_contract}}""",
    required=("url", "content", "output_contract"),
)


def _or_not_found(value: Any, omit_hint: str | None = None) -> str:
    if value is None or value == "" or value == []:
        if omit_hint:
            return f"{NOT_FOUND} - OMIT THE ENTIRE {omit_hint} PROPERTY"
        return NOT_FOUND
    if isinstance(value, list):
        return ", ".join(str(item) for item in value)
    return str(value)


def _render_images(analysis: ContentAnalysis) -> str:
    metadata = analysis.metadata
    lines = []
    featured = metadata.featured_image
    if featured:
        lines.append(f"- Featured: {featured}")
    for url in metadata.images[:MAX_IMAGES_IN_PROMPT]:
        if url != featured:
            lines.append(f"- {url}")
    return "\n".join(lines) if lines else f"{NOT_FOUND} - OMIT image PROPERTIES"


def _render_publisher(analysis: ContentAnalysis) -> str:
    metadata = analysis.metadata
    site_name = metadata.site_name
    if not site_name:
        return f"{NOT_FOUND} - OMIT THE ENTIRE publisher PROPERTY"
    parts = [f"name={site_name}"]
    business = metadata.business_info
    if business and business.logo:
        parts.append(f"logo={business.logo}")
    if business and business.url:
        parts.append(f"url={business.url}")
    return ", ".join(parts)


def _render_features(options: GenerationOptions) -> str:
    toggles = {
        "images": options.include_images,
        "videos": options.include_videos,
        "products": options.include_products,
        "events": options.include_events,
        "articles": options.include_articles,
        "organization": options.include_organization,
        "local business": options.include_local_business,
    }
    enabled = [name for name, value in toggles.items() if value]
    return "- " + (", ".join(enabled) if enabled else "none")


def _image_urls(analysis: ContentAnalysis) -> list[str]:
    metadata = analysis.metadata
    urls = list(metadata.images)
    featured = metadata.featured_image
    if featured and featured not in urls:
        urls.insert(0, featured)
    return urls


def _is_blog_url(url: str) -> bool:
    return any(segment in url for segment in ("/blog/", "/post/", "/article/"))


def analyze_metadata_quality(analysis: ContentAnalysis) -> str:
    """
    Summarize how much verified metadata the scraper found.

    The report tells the model which core elements exist, so it can decide
    which properties it is allowed to populate.

    Args:
        analysis: Page analysis

    Returns:
        str: Multi-line quality report
    """
    metadata = analysis.metadata
    author = metadata.author_info
    images = _image_urls(analysis)
    description = analysis.description or ""

    checks = [
        ("Title", bool(analysis.title), "present" if analysis.title else "missing"),
        (
            "Description",
            len(description) > QUALITY_DESCRIPTION_MIN_CHARS,
            f"{len(description)} chars" if description else "missing",
        ),
        ("Author", author is not None, author.name if author else "missing"),
        ("Publish date", bool(metadata.publish_date), metadata.publish_date or "missing"),
        ("Images", bool(images), f"{len(images)} found" if images else "missing"),
        (
            "Keywords",
            bool(metadata.keywords),
            f"{len(metadata.keywords)} found" if metadata.keywords else "missing",
        ),
    ]
    found = sum(1 for _, ok, _ in checks if ok)

    lines = [f"Metadata Completeness: {found}/{len(checks)} core elements detected"]
    for label, ok, detail in checks:
        lines.append(f"- {label}: {'OK' if ok else 'MISSING'} ({detail})")

    if metadata.business_info:
        lines.append(f"- Business info: {metadata.business_info.name}")
    if metadata.faq_content:
        lines.append(f"- FAQ content: {len(metadata.faq_content)} questions")
    if metadata.json_ld_data:
        lines.append(f"- Existing JSON-LD: {len(metadata.json_ld_data)} blocks")

    word_count = metadata.word_count or 0
    depth = next(
        (label for minimum, label in CONTENT_DEPTH_LEVELS if word_count > minimum),
        "Minimal",
    )
    lines.append(f"Content Depth: {depth} ({word_count} words)")
    return "\n".join(lines)


def recommend_schema_types(analysis: ContentAnalysis) -> list[str]:
    """
    Schema types the verified metadata can support, most important first.

    Only types backed by scraped data are recommended; an organization is
    recommended only when business info was extracted.
    """
    metadata = analysis.metadata
    author = metadata.author_info
    is_article = (metadata.word_count or 0) > 300 and author is not None
    is_blog = _is_blog_url(analysis.url)

    recommendations = []
    if is_article or is_blog:
        if is_blog:
            recommendations.append("BlogPosting (blog URL with article content)")
        else:
            recommendations.append("Article (long-form content with a verified author)")
    else:
        recommendations.append("WebPage (general page content)")

    business = metadata.business_info
    if business:
        if business.address:
            recommendations.append("LocalBusiness (verified physical address)")
        else:
            recommendations.append("Organization (verified business info)")

    if author:
        recommendations.append(f"Person (author: {author.name})")

    images = _image_urls(analysis)
    if images:
        recommendations.append(f"ImageObject ({len(images)} images)")

    if metadata.faq_content:
        recommendations.append(f"FAQPage ({len(metadata.faq_content)} questions)")

    if metadata.breadcrumbs:
        recommendations.append("BreadcrumbList (navigation breadcrumbs)")

    return recommendations


def render_recommendations(analysis: ContentAnalysis) -> str:
    recommendations = recommend_schema_types(analysis)
    lines = [f"{index}. {item}" for index, item in enumerate(recommendations, start=1)]
    if len(recommendations) > MAX_RECOMMENDED_TYPES:
        lines.append(
            f"Strategy: focus on the top {MAX_RECOMMENDED_TYPES} most relevant types"
        )
    return "\n".join(lines)


def build_system_prompt(options: GenerationOptions) -> str:
    """System prompt for the options' mode (auto detection or user specific)."""
    if options.is_user_specific_mode:
        mode_instructions = USER_SPECIFIC_TEMPLATE.render(
            requested_types=", ".join(options.requested_schema_types or []),
        )
    else:
        mode_instructions = AUTO_MODE_TEMPLATE.render(type_guide=TYPE_SELECTION_GUIDE)

    return SYSTEM_TEMPLATE.render(
        mode_instructions=mode_instructions,
        anti_hallucination=ANTI_HALLUCINATION_RULES,
        property_formats=PROPERTY_FORMAT_RULES,
        output_contract=OUTPUT_CONTRACT,
    )


def build_user_prompt(
    analysis: ContentAnalysis,
    options: GenerationOptions,
    *,
    content_limit: int = PROMPT_CONTENT_CHAR_LIMIT,
) -> str:
    """
    User prompt carrying the verified page data and budgeted content.

    Args:
        analysis: Page analysis
        options: Generation options (feature toggles)
        content_limit: Content budget ceiling in characters

    Returns:
        str: Rendered user prompt
    """
    metadata = analysis.metadata
    author = metadata.author_info
    content = ContentBudgeter(content_limit).for_analysis(analysis)

    return USER_TEMPLATE.render(
        url=analysis.url,
        title=_or_not_found(analysis.title),
        description=_or_not_found(analysis.description),
        canonical_url=_or_not_found(metadata.canonical_url),
        language=_or_not_found(metadata.language, "inLanguage"),
        author=author.name if author else f"{NOT_FOUND} - OMIT THE ENTIRE author PROPERTY",
        publish_date=_or_not_found(metadata.publish_date, "datePublished"),
        modified_date=_or_not_found(metadata.modified_date, "dateModified"),
        images=_render_images(analysis),
        publisher=_render_publisher(analysis),
        keywords=_or_not_found(metadata.keywords[:MAX_KEYWORDS]),
        tags=_or_not_found(metadata.tags),
        article_section=_or_not_found(metadata.article_section),
        article_sections=_or_not_found(metadata.article_sections),
        word_count=_or_not_found(metadata.word_count),
        reading_time=_or_not_found(reading_time(metadata.word_count), "timeRequired"),
        faq_count=len(metadata.faq_content),
        is_blog_url="yes" if "/blog/" in analysis.url else "no",
        metadata_quality=analyze_metadata_quality(analysis),
        recommendations=(
            RECOMMENDATIONS_NOT_APPLICABLE
            if options.is_user_specific_mode
            else render_recommendations(analysis)
        ),
        features=_render_features(options),
        output_contract=OUTPUT_CONTRACT,
        content=content or NOT_FOUND,
    )


def build_prompts(
    analysis: ContentAnalysis,
    options: GenerationOptions,
    *,
    content_limit: int = PROMPT_CONTENT_CHAR_LIMIT,
) -> PromptBundle:
    """Render the system/user prompt pair for one generation request."""
    return PromptBundle(
        system_prompt=build_system_prompt(options),
        user_prompt=build_user_prompt(analysis, options, content_limit=content_limit),
    )


REFINEMENT_RULES = """REFINEMENT RULES:
1. Keep "@context" and "@type" exactly as they are.
2. Do not remove existing properties; fix their format when it is invalid.
3. Add a property only when its value appears in the verified metadata below.
4. Never add author, editor, contributor or creator unless the author is listed below.
5. Never add address, telephone, email, founder, employee or contactPoint to an
   organization unless the value is listed below.
6. Convert dates to ISO 8601 without changing the date itself."""

REFINEMENT_CONTRACT = """OUTPUT FORMAT:
Return a single JSON object and nothing else:
{"schema": <refined schema object>, "changes": ["<short description of each change>", ...]}"""

REFINEMENT_SYSTEM_TEMPLATE = PromptTemplate(
    name="refinement_system",
    content="""You are a Schema.org expert improving an existing JSON-LD schema for rich results eligibility.

{{anti_hallucination}}

{{refinement_rules}}

{{output_contract}}""",
    required=("anti_hallucination", "refinement_rules", "output_contract"),
)

REFINEMENT_USER_TEMPLATE = PromptTemplate(
    name="refinement_user",
    content="""Refine the schema below for the page at {{url}}.

CURRENT SCHEMA:
```json
{{schema}}
```

VERIFIED METADATA (the only facts you may add):
```json
{{verified_metadata}}
```

{{output_contract}}""",
    required=("url", "schema", "verified_metadata", "output_contract"),
)


def _verified_metadata(analysis: ContentAnalysis) -> dict[str, Any]:
    metadata = analysis.metadata
    author = metadata.author_info
    business = metadata.business_info

    publisher: dict[str, Any] | str = NOT_FOUND
    if metadata.site_name:
        publisher = {"name": metadata.site_name}
        if business and business.url:
            publisher["url"] = business.url
        if business and business.logo:
            publisher["logo"] = business.logo
        if business and business.address:
            publisher["address"] = business.address.to_jsonld()
        contact = (business.contact_point if business else None) or metadata.contact_info
        if contact and contact.telephone:
            publisher["telephone"] = contact.telephone
        if contact and contact.email:
            publisher["email"] = contact.email

    return {
        "author": author.name if author else NOT_FOUND,
        "publishDate": metadata.publish_date or NOT_FOUND,
        "modifiedDate": metadata.modified_date or NOT_FOUND,
        "siteName": metadata.site_name or NOT_FOUND,
        "publisher": publisher,
    }


def build_refinement_prompts(schema: dict[str, Any], analysis: ContentAnalysis) -> PromptBundle:
    """
    Render the prompt pair asking the model to refine one generated schema.

    Args:
        schema: Schema produced by an earlier generation
        analysis: Page analysis the schema was generated from

    Returns:
        PromptBundle: System/user prompts for the refinement call
    """
    return PromptBundle(
        system_prompt=REFINEMENT_SYSTEM_TEMPLATE.render(
            anti_hallucination=ANTI_HALLUCINATION_RULES,
            refinement_rules=REFINEMENT_RULES,
            output_contract=REFINEMENT_CONTRACT,
        ),
        user_prompt=REFINEMENT_USER_TEMPLATE.render(
            url=analysis.url,
            schema=json.dumps(schema, indent=2, ensure_ascii=False),
            verified_metadata=json.dumps(
                _verified_metadata(analysis), indent=2, ensure_ascii=False
            ),
            output_contract=REFINEMENT_CONTRACT,
        ),
    )
