"""入力データの型定義

スクレイパーが生成する ContentAnalysis と、生成オプションを定義する。
パイプライン内では読み取り専用として扱う。
"""

from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _InputModel(BaseModel):
    """スクレイパーのcamelCaseキーをそのまま受け付ける基底モデル"""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class AuthorInfo(_InputModel):
    """著者情報"""

    name: str = Field(..., description="著者名")
    url: str | None = Field(default=None, description="著者ページURL")
    email: str | None = None
    job_title: str | None = None
    works_for: str | None = None
    image: str | None = None
    bio: str | None = None
    social_profiles: list[str] = Field(default_factory=list)


class PostalAddress(_InputModel):
    """住所"""

    street_address: str | None = None
    address_locality: str | None = None
    address_region: str | None = None
    postal_code: str | None = None
    address_country: str | None = None

    def to_jsonld(self) -> dict[str, Any]:
        data: dict[str, Any] = {"@type": "PostalAddress"}
        for field_name, value in self.model_dump(by_alias=True).items():
            if value:
                data[field_name] = value
        return data


class ContactPoint(_InputModel):
    """連絡先"""

    telephone: str | None = None
    email: str | None = None
    contact_type: str | None = None


class BusinessInfo(_InputModel):
    """組織・事業者情報（スクレイパーで検証済み）"""

    name: str = Field(..., description="組織名")
    type: str | None = None
    address: PostalAddress | None = None
    contact_point: ContactPoint | None = None
    url: str | None = None
    logo: str | None = None
    same_as: list[str] = Field(default_factory=list)


class FAQ(_InputModel):
    """FAQの1問1答"""

    question: str
    answer: str


class Breadcrumb(_InputModel):
    """パンくずの1要素"""

    name: str
    url: str | None = None


class PageImage(_InputModel):
    url: str
    alt: str | None = None
    caption: str | None = None


class ImageInfo(_InputModel):
    """画像メタデータ"""

    featured_image: str | None = None
    featured_image_alt: str | None = None
    image_count: int | None = None
    all_images: list[PageImage] = Field(default_factory=list)


class AggregateRating(_InputModel):
    rating_value: float
    review_count: int
    best_rating: float | None = None
    worst_rating: float | None = None


class PageMetadata(_InputModel):
    """ページメタデータ

    スクレイパーが抽出した値のみを保持する。存在しない値はNone/空。
    """

    author: str | AuthorInfo | None = None
    publish_date: str | None = None
    modified_date: str | None = None
    images: list[str] = Field(default_factory=list)
    videos: list[str] = Field(default_factory=list)
    breadcrumbs: list[Breadcrumb] = Field(default_factory=list)
    contact_info: ContactPoint | None = None
    business_info: BusinessInfo | None = None

    language: str | None = None
    word_count: int | None = Field(default=None, ge=0)
    article_section: str | None = None
    article_sections: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    entities: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)

    faq_content: list[FAQ] = Field(default_factory=list)
    headings: list[str] = Field(default_factory=list)
    json_ld_data: list[dict[str, Any]] = Field(default_factory=list)

    image_info: ImageInfo | None = None
    content_type: str | None = None
    social_urls: list[str] = Field(default_factory=list)
    canonical_url: str | None = None
    open_graph: dict[str, Any] | None = None

    opening_hours: str | None = None
    price_range: str | None = None
    aggregate_rating: AggregateRating | None = None

    @property
    def author_info(self) -> AuthorInfo | None:
        """著者を常にAuthorInfoとして返す（空文字はNone）"""
        if isinstance(self.author, AuthorInfo):
            return self.author if self.author.name.strip() else None
        if isinstance(self.author, str) and self.author.strip():
            return AuthorInfo(name=self.author.strip())
        return None

    @property
    def featured_image(self) -> str | None:
        if self.image_info and self.image_info.featured_image:
            return self.image_info.featured_image
        return None

    @property
    def site_name(self) -> str | None:
        """検証済みのサイト名（businessInfo.name > og:site_name）"""
        if self.business_info and self.business_info.name.strip():
            return self.business_info.name.strip()
        if self.open_graph:
            site_name = self.open_graph.get("siteName") or self.open_graph.get("site_name")
            if isinstance(site_name, str) and site_name.strip():
                return site_name.strip()
        return None


class ContentAnalysis(_InputModel):
    """スクレイパーが生成したページ解析結果（読み取り専用）"""

    url: str = Field(..., description="ページURL")
    title: str | None = Field(default=None, description="ページタイトル")
    description: str | None = Field(default=None, description="メタディスクリプション")
    content: str = Field(default="", description="抽出済みテキスト本文")
    metadata: PageMetadata = Field(default_factory=PageMetadata)

    @property
    def origin(self) -> str:
        """scheme://host 形式のオリジン"""
        parsed = urlparse(self.url)
        return f"{parsed.scheme}://{parsed.netloc}"

    @property
    def hostname(self) -> str:
        return urlparse(self.url).hostname or ""

    @property
    def canonical_url(self) -> str:
        return self.metadata.canonical_url or self.url


class GenerationOptions(_InputModel):
    """生成オプション

    requested_schema_types が空でなければユーザー指定モード、
    それ以外は自動検出モード。
    """

    requested_schema_types: list[str] | None = Field(
        default=None,
        description="生成を許可する@typeのリスト",
    )
    include_images: bool = False
    include_videos: bool = False
    include_products: bool = False
    include_events: bool = False
    include_articles: bool = False
    include_organization: bool = False
    include_local_business: bool = False

    @property
    def is_user_specific_mode(self) -> bool:
        return bool(self.requested_schema_types)

    @property
    def mode_name(self) -> str:
        return "user_specific" if self.is_user_specific_mode else "auto_detection"
