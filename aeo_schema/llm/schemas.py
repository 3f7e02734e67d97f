"""LLM関連の型定義

LLMレスポンス、トークン使用量などの共通スキーマを定義。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TokenUsage(BaseModel):
    """トークン使用量"""

    model_config = ConfigDict(frozen=True)

    input: int = Field(..., ge=0, description="入力トークン数")
    output: int = Field(..., ge=0, description="出力トークン数")

    @property
    def total(self) -> int:
        """合計トークン数"""
        return self.input + self.output


class LLMResponse(BaseModel):
    """LLMレスポンス

    全プロバイダーで共通のレスポンス形式。content は未加工のテキストで、
    JSONの抽出は OutputParser が行う。
    """

    model_config = ConfigDict(frozen=True)

    content: str = Field(..., description="生成されたテキスト")
    token_usage: TokenUsage = Field(..., description="トークン使用量")
    model: str = Field(..., description="使用したモデルID")
    provider: str = Field(..., description="プロバイダー名")
    finish_reason: str | None = Field(
        default=None,
        description="終了理由（end_turn, stop, length等）",
    )
    attempts: int = Field(default=1, ge=1, description="成功までの試行回数")
    latency_ms: float | None = Field(
        default=None,
        ge=0,
        description="レイテンシ（ミリ秒、リトライ待機を含む）",
    )
    created_at: datetime = Field(
        default_factory=datetime.now,
        description="レスポンス生成日時",
    )


class SchemaRefinement(BaseModel):
    """1スキーマ分のリファイン結果

    refined は検証済みメタデータで裏付けのない変更を取り消した後のスキーマ。
    rejected には取り消した変更のパス（例: "publisher.founder"）が入る。
    """

    refined: dict[str, Any] = Field(..., description="リファイン後のスキーマ")
    changes: list[str] = Field(default_factory=list, description="モデルが報告した変更内容")
    rejected: list[str] = Field(default_factory=list, description="取り消した変更のパス")
    provider: str = Field(..., description="プロバイダー名")
    model: str = Field(..., description="使用したモデルID")
    attempts: int = Field(default=1, ge=1, description="成功までの試行回数")
    latency_ms: float | None = Field(default=None, ge=0, description="レイテンシ（ミリ秒）")


class LLMRequestConfig(BaseModel):
    """LLMリクエスト設定

    決定性を優先するため temperature は 0.0 固定がデフォルト。
    """

    model_config = ConfigDict(frozen=True)

    temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=2.0,
        description="温度パラメータ",
    )
    max_tokens: int = Field(
        default=8000,
        ge=1,
        le=128000,
        description="最大出力トークン数",
    )
