"""オフラインプロバイダー

認証情報が無い環境（ローカル開発・テスト）でパイプライン全体を動かすためのクライアント。
ContentAnalysis の検証済みフィールドだけから応答JSONを組み立てる。
プレースホルダー値は一切入れない。
"""

import copy
import json
from typing import TYPE_CHECKING, Any

from aeo_schema.core.errors import GenerationError, GenerationErrorKind
from aeo_schema.observability.events import EventEmitter

from .base import ProviderClient
from .schemas import LLMResponse, SchemaRefinement, TokenUsage

if TYPE_CHECKING:
    from aeo_schema.core.models import ContentAnalysis

MOCK_MODEL = "offline-mock"


class MockProviderClient(ProviderClient):
    """ネットワークを使わないプロバイダー"""

    PROVIDER = "mock"
    DEFAULT_MODEL = MOCK_MODEL

    @property
    def is_available(self) -> bool:
        return True

    async def _call(
        self,
        system_prompt: str,
        user_prompt: str,
        analysis: "ContentAnalysis | None" = None,
    ) -> LLMResponse:
        schemas = build_offline_schemas(analysis) if analysis is not None else []
        content = json.dumps({"schemas": schemas}, ensure_ascii=False)
        return LLMResponse(
            content=content,
            token_usage=TokenUsage(
                input=len(system_prompt) + len(user_prompt),
                output=len(content),
            ),
            model=self.model,
            provider=self.PROVIDER,
            finish_reason="stop",
        )

    async def refine(
        self,
        schema: dict[str, Any],
        analysis: "ContentAnalysis",
        *,
        emitter: EventEmitter | None = None,
    ) -> SchemaRefinement:
        """オフラインではスキーマをそのまま返す（追加できる事実は生成時に全て入れている）"""
        return SchemaRefinement(
            refined=copy.deepcopy(schema),
            provider=self.PROVIDER,
            model=self.model,
            latency_ms=0.0,
        )

    def _classify(self, error: Exception) -> GenerationError:
        return self._error(GenerationErrorKind.UNKNOWN, original_error=error)


def _is_article(analysis: "ContentAnalysis") -> bool:
    metadata = analysis.metadata
    if metadata.content_type in ("blog", "article", "news"):
        return True
    return "/blog/" in analysis.url or bool(metadata.publish_date and metadata.author_info)


def build_offline_schemas(analysis: "ContentAnalysis") -> list[dict[str, Any]]:
    """検証済みデータのみからスキーマ候補を作る

    Args:
        analysis: 入力ページ

    Returns:
        list[dict]: スキーマ候補（空の場合あり）
    """
    metadata = analysis.metadata
    schemas: list[dict[str, Any]] = []

    if analysis.title and _is_article(analysis):
        article: dict[str, Any] = {
            "@context": "https://schema.org",
            "@type": "BlogPosting",
            "headline": analysis.title,
            "url": analysis.canonical_url,
        }
        if analysis.description:
            article["description"] = analysis.description
        author = metadata.author_info
        if author:
            article["author"] = {"@type": "Person", "name": author.name}
        if metadata.publish_date:
            article["datePublished"] = metadata.publish_date
        schemas.append(article)
    elif analysis.title:
        page: dict[str, Any] = {
            "@context": "https://schema.org",
            "@type": "WebPage",
            "name": analysis.title,
            "url": analysis.canonical_url,
        }
        if analysis.description:
            page["description"] = analysis.description
        schemas.append(page)

    if metadata.faq_content:
        schemas.append(
            {
                "@context": "https://schema.org",
                "@type": "FAQPage",
                "mainEntity": [
                    {
                        "@type": "Question",
                        "name": faq.question,
                        "acceptedAnswer": {"@type": "Answer", "text": faq.answer},
                    }
                    for faq in metadata.faq_content
                ],
            }
        )

    return schemas
