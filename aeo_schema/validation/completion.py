"""Property completion engine.

For each schema's @type, looks up its PropertyRequirementTemplate and fills
absent properties from ContentAnalysis data the scraper has already verified.
A property with no verified source is left absent and reported as omitted;
no name, date, URL or description is ever synthesized.

One completer per SchemaType member. Types without a template pass through
unchanged with an empty report.
"""

import copy
from collections.abc import Callable
from typing import Any

from aeo_schema.core.models import ContentAnalysis
from aeo_schema.helpers.content_metrics import reading_time
from aeo_schema.helpers.truncation_limits import (
    MAX_ABOUT_ENTITIES,
    MAX_ARTICLE_SECTIONS,
    MAX_KEYWORDS,
    MAX_MENTIONS,
)
from aeo_schema.observability.logger import get_logger

from .schemas import CompletenessReport, SchemaType, is_empty_value, type_name
from .templates import PropertyRequirementTemplate, get_template

logger = get_logger(__name__)

SCHEMA_CONTEXT = "https://schema.org"


def blog_url(url: str, origin: str, hostname: str) -> str | None:
    """Base URL of the blog a post belongs to, or None for non-blog URLs."""
    marker = url.find("/blog/")
    if marker != -1:
        return url[: marker + len("/blog/")]
    if hostname.startswith("blog."):
        return origin
    return None


class _Completion:
    """Working state for one schema."""

    def __init__(self, schema: dict[str, Any], analysis: ContentAnalysis) -> None:
        self.schema = schema
        self.analysis = analysis
        self.metadata = analysis.metadata
        self.filled: list[str] = []

    def has(self, key: str) -> bool:
        return key in self.schema and not is_empty_value(self.schema[key])

    def fill(self, key: str, value: Any) -> bool:
        """Set ``key`` when absent and ``value`` is non-empty."""
        if self.has(key) or value is None or is_empty_value(value):
            return False
        self.schema[key] = value
        self.filled.append(key)
        return True


# ----------------------------------------------------------------------
# Builders: each returns None when no verified source exists
# ----------------------------------------------------------------------


def _publisher(analysis: ContentAnalysis) -> dict[str, Any] | None:
    metadata = analysis.metadata
    name = metadata.site_name
    if not name:
        return None
    business = metadata.business_info
    publisher: dict[str, Any] = {
        "@type": "Organization",
        "name": name,
        "url": (business.url if business and business.url else analysis.origin),
    }
    if business and business.logo:
        publisher["logo"] = {"@type": "ImageObject", "url": business.logo}
    return publisher


def _author(analysis: ContentAnalysis) -> dict[str, Any] | None:
    info = analysis.metadata.author_info
    if info is None:
        return None
    author: dict[str, Any] = {"@type": "Person", "name": info.name}
    if info.url:
        author["url"] = info.url
    if info.image:
        author["image"] = info.image
    if info.job_title:
        author["jobTitle"] = info.job_title
    return author


def _primary_image(analysis: ContentAnalysis) -> str | None:
    metadata = analysis.metadata
    if metadata.featured_image:
        return metadata.featured_image
    if metadata.images:
        return metadata.images[0]
    if metadata.image_info and metadata.image_info.all_images:
        return metadata.image_info.all_images[0].url
    return None


def _breadcrumb_items(analysis: ContentAnalysis) -> list[dict[str, Any]]:
    items = []
    for position, crumb in enumerate(analysis.metadata.breadcrumbs, start=1):
        item: dict[str, Any] = {"@type": "ListItem", "position": position, "name": crumb.name}
        if crumb.url:
            item["item"] = crumb.url
        items.append(item)
    return items


def _faq_entities(analysis: ContentAnalysis) -> list[dict[str, Any]]:
    return [
        {
            "@type": "Question",
            "name": faq.question,
            "acceptedAnswer": {"@type": "Answer", "text": faq.answer},
        }
        for faq in analysis.metadata.faq_content
    ]


def _contact_point(analysis: ContentAnalysis) -> dict[str, Any] | None:
    metadata = analysis.metadata
    contact = (metadata.business_info.contact_point if metadata.business_info else None) or metadata.contact_info
    if contact is None or not (contact.telephone or contact.email):
        return None
    point: dict[str, Any] = {"@type": "ContactPoint"}
    if contact.telephone:
        point["telephone"] = contact.telephone
    if contact.email:
        point["email"] = contact.email
    if contact.contact_type:
        point["contactType"] = contact.contact_type
    return point


def _address(analysis: ContentAnalysis) -> dict[str, Any] | None:
    business = analysis.metadata.business_info
    if business is None or business.address is None:
        return None
    address = business.address.to_jsonld()
    return address if len(address) > 1 else None


def _telephone(analysis: ContentAnalysis) -> str | None:
    point = _contact_point(analysis)
    return point.get("telephone") if point else None


def _same_as(analysis: ContentAnalysis) -> list[str]:
    metadata = analysis.metadata
    urls = list(metadata.business_info.same_as) if metadata.business_info else []
    for url in metadata.social_urls:
        if url not in urls:
            urls.append(url)
    return urls


def _article_sections(analysis: ContentAnalysis) -> list[str]:
    metadata = analysis.metadata
    if metadata.article_sections:
        return metadata.article_sections[:MAX_ARTICLE_SECTIONS]
    if metadata.article_section:
        return [metadata.article_section]
    return []


class PropertyCompletionEngine:
    """Fills absent properties from verified metadata only."""

    def __init__(self) -> None:
        self._completers: dict[SchemaType, Callable[[_Completion], None]] = {
            SchemaType.BLOG_POSTING: self._complete_article,
            SchemaType.ARTICLE: self._complete_article,
            SchemaType.WEB_PAGE: self._complete_web_page,
            SchemaType.ORGANIZATION: self._complete_organization,
            SchemaType.LOCAL_BUSINESS: self._complete_local_business,
            SchemaType.FAQ_PAGE: self._complete_faq_page,
            SchemaType.BREADCRUMB_LIST: self._complete_breadcrumb_list,
            SchemaType.IMAGE_OBJECT: self._complete_image_object,
            SchemaType.PERSON: self._complete_person,
            SchemaType.VIDEO_OBJECT: self._complete_video_object,
        }

    @property
    def supported_types(self) -> frozenset[SchemaType]:
        return frozenset(self._completers)

    def complete(
        self,
        schema: dict[str, Any],
        analysis: ContentAnalysis,
    ) -> tuple[dict[str, Any], CompletenessReport]:
        """Complete one cleaned schema.

        The input schema is not mutated.

        Args:
            schema: Cleaned schema
            analysis: Verified page data

        Returns:
            tuple[dict, CompletenessReport]: Enhanced schema and its report
        """
        enhanced = copy.deepcopy(schema)
        schema_type = SchemaType.from_value(enhanced.get("@type"))
        template = get_template(schema_type)

        if schema_type is None or template is None:
            logger.debug(
                f"No template for @type={type_name(enhanced)!r}, passing through",
                extra_data={"schema_type": type_name(enhanced)},
            )
            return enhanced, CompletenessReport(schema_type=type_name(enhanced))

        state = _Completion(enhanced, analysis)
        state.fill("@context", SCHEMA_CONTEXT)
        self._completers[schema_type](state)

        report = self._report(schema_type, template, state)
        logger.debug(
            f"Completed {schema_type.value}: filled={report.filled}, omitted={report.omitted}",
            extra_data={
                "schema_type": schema_type.value,
                "filled": report.filled,
                "omitted": report.omitted,
                "score": report.completeness_score,
            },
        )
        return enhanced, report

    def complete_many(
        self,
        schemas: list[dict[str, Any]],
        analysis: ContentAnalysis,
    ) -> tuple[list[dict[str, Any]], list[CompletenessReport]]:
        enhanced: list[dict[str, Any]] = []
        reports: list[CompletenessReport] = []
        for schema in schemas:
            result, report = self.complete(schema, analysis)
            enhanced.append(result)
            reports.append(report)
        return enhanced, reports

    @staticmethod
    def _report(
        schema_type: SchemaType,
        template: PropertyRequirementTemplate,
        state: _Completion,
    ) -> CompletenessReport:
        def split(properties: tuple[str, ...]) -> tuple[list[str], list[str]]:
            present = [p for p in properties if state.has(p)]
            missing = [p for p in properties if not state.has(p)]
            return present, missing

        required_present, required_missing = split(template.required)
        recommended_present, recommended_missing = split(template.recommended)
        advanced_present, advanced_missing = split(template.advanced)
        return CompletenessReport(
            schema_type=schema_type.value,
            template_found=True,
            required_present=required_present,
            required_missing=required_missing,
            recommended_present=recommended_present,
            recommended_missing=recommended_missing,
            advanced_present=advanced_present,
            advanced_missing=advanced_missing,
            filled=list(state.filled),
            omitted=required_missing + recommended_missing,
        )

    # ------------------------------------------------------------------
    # Shared fills
    # ------------------------------------------------------------------

    @staticmethod
    def _fill_publisher(state: _Completion) -> None:
        if state.fill("publisher", _publisher(state.analysis)):
            return
        publisher = state.schema.get("publisher")
        business = state.metadata.business_info
        if isinstance(publisher, dict) and business and business.logo and "logo" not in publisher:
            publisher["logo"] = {"@type": "ImageObject", "url": business.logo}

    @staticmethod
    def _fill_author(state: _Completion) -> None:
        if state.fill("author", _author(state.analysis)):
            return
        # enrich an existing author when it is the same person as the metadata author
        author = state.schema.get("author")
        info = state.metadata.author_info
        if isinstance(author, dict) and info and author.get("name") == info.name:
            if info.url and "url" not in author:
                author["url"] = info.url
            if info.image and "image" not in author:
                author["image"] = info.image

    @staticmethod
    def _fill_common_page(state: _Completion) -> None:
        analysis = state.analysis
        metadata = state.metadata
        state.fill("description", analysis.description)
        state.fill("inLanguage", metadata.language)
        state.fill("image", _primary_image(analysis))
        state.fill("keywords", metadata.keywords[:MAX_KEYWORDS])

    # ------------------------------------------------------------------
    # Completers
    # ------------------------------------------------------------------

    def _complete_article(self, state: _Completion) -> None:
        analysis = state.analysis
        metadata = state.metadata

        state.fill("headline", analysis.title)
        state.fill("mainEntityOfPage", {"@type": "WebPage", "@id": analysis.canonical_url})
        self._fill_publisher(state)
        self._fill_author(state)
        state.fill("datePublished", metadata.publish_date)
        state.fill("dateModified", metadata.modified_date or state.schema.get("datePublished"))

        self._fill_common_page(state)
        state.fill("articleSection", _article_sections(analysis))
        state.fill("wordCount", metadata.word_count)
        state.fill("timeRequired", reading_time(metadata.word_count))

        site_name = metadata.site_name
        blog = blog_url(analysis.url, analysis.origin, analysis.hostname)
        if blog and site_name:
            state.fill("isPartOf", {"@type": "WebSite", "name": site_name, "url": blog})

        state.fill("about", metadata.entities[:MAX_ABOUT_ENTITIES])
        state.fill("mentions", metadata.tags[:MAX_MENTIONS])
        state.fill("potentialAction", [{"@type": "ReadAction", "target": [analysis.canonical_url]}])

    def _complete_web_page(self, state: _Completion) -> None:
        analysis = state.analysis
        metadata = state.metadata

        state.fill("name", analysis.title)
        state.fill("url", analysis.canonical_url)
        self._fill_common_page(state)
        if metadata.site_name:
            state.fill("isPartOf", {"@type": "WebSite", "name": metadata.site_name, "url": analysis.origin})
        if metadata.breadcrumbs:
            state.fill("breadcrumb", {"@type": "BreadcrumbList", "itemListElement": _breadcrumb_items(analysis)})
        self._fill_publisher(state)
        state.fill("dateModified", metadata.modified_date)
        state.fill("about", metadata.entities[:MAX_ABOUT_ENTITIES])
        state.fill("mentions", metadata.tags[:MAX_MENTIONS])
        state.fill(
            "significantLink",
            [crumb.url for crumb in metadata.breadcrumbs if crumb.url and crumb.url.startswith("http")],
        )

    def _complete_organization(self, state: _Completion) -> None:
        analysis = state.analysis
        business = state.metadata.business_info

        state.fill("name", state.metadata.site_name)
        state.fill("url", business.url if business and business.url else None)
        if business and business.logo:
            state.fill("logo", {"@type": "ImageObject", "url": business.logo})
        state.fill("contactPoint", _contact_point(analysis))
        state.fill("address", _address(analysis))
        state.fill("sameAs", _same_as(analysis))

    def _complete_local_business(self, state: _Completion) -> None:
        analysis = state.analysis
        metadata = state.metadata
        business = metadata.business_info

        state.fill("name", business.name if business else None)
        state.fill("address", _address(analysis))
        state.fill("telephone", _telephone(analysis))
        state.fill("url", business.url if business and business.url else None)
        state.fill("openingHours", metadata.opening_hours)
        state.fill("priceRange", metadata.price_range)
        state.fill("image", _primary_image(analysis))
        if metadata.aggregate_rating:
            rating = metadata.aggregate_rating
            aggregate: dict[str, Any] = {
                "@type": "AggregateRating",
                "ratingValue": rating.rating_value,
                "reviewCount": rating.review_count,
            }
            if rating.best_rating is not None:
                aggregate["bestRating"] = rating.best_rating
            if rating.worst_rating is not None:
                aggregate["worstRating"] = rating.worst_rating
            state.fill("aggregateRating", aggregate)

    def _complete_faq_page(self, state: _Completion) -> None:
        state.fill("mainEntity", _faq_entities(state.analysis))
        state.fill("name", state.analysis.title)
        state.fill("description", state.analysis.description)

    def _complete_breadcrumb_list(self, state: _Completion) -> None:
        items = _breadcrumb_items(state.analysis)
        state.fill("itemListElement", items)
        elements = state.schema.get("itemListElement")
        if isinstance(elements, list):
            state.fill("numberOfItems", len(elements))

    def _complete_image_object(self, state: _Completion) -> None:
        schema = state.schema
        # url and contentUrl name the same file for a standalone image
        if isinstance(schema.get("contentUrl"), str):
            state.fill("url", schema["contentUrl"])
        if isinstance(schema.get("url"), str):
            state.fill("contentUrl", schema["url"])

        image_info = state.metadata.image_info
        url = schema.get("url")
        if image_info and url and url == image_info.featured_image:
            state.fill("caption", image_info.featured_image_alt)
            state.fill("representativeOfPage", True)
        elif image_info and url:
            for image in image_info.all_images:
                if image.url == url:
                    state.fill("caption", image.caption or image.alt)
                    break

    def _complete_person(self, state: _Completion) -> None:
        info = state.metadata.author_info
        if info is None:
            return
        name = state.schema.get("name")
        if name is not None and name != info.name:
            # a different person; metadata describes the page author only
            return
        state.fill("name", info.name)
        state.fill("url", info.url)
        state.fill("image", info.image)
        state.fill("jobTitle", info.job_title)
        if info.works_for:
            state.fill("worksFor", {"@type": "Organization", "name": info.works_for})
        state.fill("description", info.bio)
        state.fill("sameAs", list(info.social_profiles))

    def _complete_video_object(self, state: _Completion) -> None:
        metadata = state.metadata
        if len(metadata.videos) == 1:
            state.fill("contentUrl", metadata.videos[0])
        # uploadDate is never derived from the page's publishDate
        self._fill_publisher(state)
