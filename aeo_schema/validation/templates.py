"""Property requirement templates.

Static table classifying each known @type's properties into required,
recommended and advanced tiers. Loaded once and read-only for the
process lifetime.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from .schemas import SchemaType


@dataclass(frozen=True)
class PropertyRequirementTemplate:
    """Required / recommended / advanced property tiers for one @type."""

    required: tuple[str, ...]
    recommended: tuple[str, ...]
    advanced: tuple[str, ...]
    description: str


PROPERTY_TEMPLATES: Mapping[SchemaType, PropertyRequirementTemplate] = MappingProxyType(
    {
        SchemaType.BLOG_POSTING: PropertyRequirementTemplate(
            required=("@context", "@type", "headline", "datePublished", "dateModified",
                      "author", "publisher", "mainEntityOfPage"),
            recommended=("description", "image", "keywords", "articleSection", "inLanguage",
                         "wordCount", "timeRequired", "isPartOf"),
            advanced=("potentialAction", "interactionStatistic", "speakable", "review",
                      "about", "mentions"),
            description="Blog post content optimized for AI search engines",
        ),
        SchemaType.ARTICLE: PropertyRequirementTemplate(
            required=("@context", "@type", "headline", "datePublished", "author", "publisher",
                      "mainEntityOfPage"),
            recommended=("description", "dateModified", "image", "keywords", "articleSection",
                         "inLanguage", "articleBody", "about", "mentions"),
            advanced=("potentialAction", "interactionStatistic", "speakable", "review",
                      "isPartOf", "wordCount"),
            description="General article content with comprehensive metadata",
        ),
        SchemaType.WEB_PAGE: PropertyRequirementTemplate(
            required=("@context", "@type", "name", "url"),
            recommended=("description", "inLanguage", "image", "keywords", "isPartOf",
                         "mainEntity", "breadcrumb", "publisher", "dateModified"),
            advanced=("potentialAction", "speakable", "significantLink", "relatedLink",
                      "about", "mentions"),
            description="Web page with rich metadata for better discovery",
        ),
        SchemaType.ORGANIZATION: PropertyRequirementTemplate(
            required=("@context", "@type", "name", "url"),
            recommended=("logo", "description", "contactPoint", "address", "sameAs", "founder"),
            advanced=("brand", "parentOrganization", "subOrganization", "award", "knowsAbout"),
            description="Business or organization information",
        ),
        SchemaType.LOCAL_BUSINESS: PropertyRequirementTemplate(
            required=("@context", "@type", "name", "address", "telephone"),
            recommended=("url", "description", "openingHours", "priceRange", "image", "geo"),
            advanced=("aggregateRating", "review", "paymentAccepted", "currenciesAccepted",
                      "areaServed"),
            description="Local business with location and contact information",
        ),
        SchemaType.FAQ_PAGE: PropertyRequirementTemplate(
            required=("@context", "@type", "mainEntity"),
            recommended=("name", "description"),
            advanced=("about", "audience", "keywords"),
            description="Frequently asked questions page",
        ),
        SchemaType.BREADCRUMB_LIST: PropertyRequirementTemplate(
            required=("@context", "@type", "itemListElement"),
            recommended=("name", "description"),
            advanced=("numberOfItems",),
            description="Navigation breadcrumb trail",
        ),
        SchemaType.IMAGE_OBJECT: PropertyRequirementTemplate(
            required=("@context", "@type", "url"),
            recommended=("description", "name", "contentUrl", "width", "height"),
            advanced=("caption", "exifData", "representativeOfPage"),
            description="Image with metadata",
        ),
        SchemaType.PERSON: PropertyRequirementTemplate(
            required=("@context", "@type", "name"),
            recommended=("url", "image", "jobTitle", "worksFor", "description"),
            advanced=("sameAs", "knowsAbout", "alumniOf", "award"),
            description="Person or author information",
        ),
        SchemaType.VIDEO_OBJECT: PropertyRequirementTemplate(
            required=("@context", "@type", "name", "description", "contentUrl"),
            recommended=("thumbnailUrl", "duration", "uploadDate", "publisher"),
            advanced=("transcript", "caption", "interactionStatistic"),
            description="Video content with metadata",
        ),
    }
)


def get_template(schema_type: SchemaType | str | None) -> PropertyRequirementTemplate | None:
    """Template for a type, or None when the type has none."""
    if schema_type is None:
        return None
    if not isinstance(schema_type, SchemaType):
        schema_type = SchemaType.from_value(schema_type)
        if schema_type is None:
            return None
    return PROPERTY_TEMPLATES.get(schema_type)


# Types on which articleSection / articleBody are valid
ARTICLE_TYPES: frozenset[str] = frozenset(
    {
        "Article",
        "BlogPosting",
        "NewsArticle",
        "ScholarlyArticle",
        "TechArticle",
        "SocialMediaPosting",
        "Report",
    }
)

# Types on which wordCount is valid
CREATIVE_WORK_TYPES: frozenset[str] = ARTICLE_TYPES | frozenset({"CreativeWork", "Book", "Review"})

# property -> types that accept it
PROPERTY_TYPE_RESTRICTIONS: Mapping[str, frozenset[str]] = MappingProxyType(
    {
        "articleSection": ARTICLE_TYPES,
        "articleBody": ARTICLE_TYPES,
        "wordCount": CREATIVE_WORK_TYPES,
    }
)
