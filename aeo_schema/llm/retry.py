"""リトライポリシー

プロバイダー共通のリトライ設定。2段階構成:

- standard: 指数バックオフ（レート制限・サーバー内部エラー）
- overload: 固定の長い待機ラダー（サービス過負荷）

過負荷は一般的なレート制限より回復に時間がかかるため、
standard ポリシーのままだと回復前にリトライを使い切ってしまう。

ポリシー選択はエラー分類ごとに1回、待機に入る前に行う。
一度 overload に昇格したシーケンスが standard に戻ることはない。
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from aeo_schema.core.errors import GenerationError, GenerationErrorKind

# 5 attempts, 4 waits, 67s total
DEFAULT_OVERLOAD_DELAYS: tuple[float, ...] = (7.0, 10.0, 20.0, 30.0)


class RetryPolicy(BaseModel):
    """リトライ設定"""

    model_config = ConfigDict(frozen=True)

    name: str = Field(default="standard", description="ポリシー名（ログ用）")
    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="最大試行回数（初回を含む）",
    )
    base_delay: float = Field(
        default=1.0,
        ge=0.0,
        le=60.0,
        description="基本待機時間（秒）",
    )
    max_delay: float = Field(
        default=30.0,
        ge=0.0,
        le=300.0,
        description="最大待機時間（秒）",
    )
    exponential_base: float = Field(
        default=2.0,
        ge=1.0,
        le=10.0,
        description="指数バックオフの底",
    )
    delays: tuple[float, ...] | None = Field(
        default=None,
        description="固定待機ラダー（指定時は指数バックオフより優先）",
    )

    @model_validator(mode="after")
    def _check_delays(self) -> "RetryPolicy":
        if self.delays is not None:
            if not self.delays:
                raise ValueError("delays must not be empty")
            if any(delay < 0 for delay in self.delays):
                raise ValueError("delays must be non-negative")
        return self

    def delay_for(self, attempt: int) -> float:
        """attempt 回目が失敗した後の待機秒数"""
        if self.delays is not None:
            index = min(max(attempt, 1), len(self.delays)) - 1
            return self.delays[index]
        delay = self.base_delay * (self.exponential_base ** (max(attempt, 1) - 1))
        return min(delay, self.max_delay)

    @property
    def total_delay(self) -> float:
        """全リトライを使い切った場合の合計待機秒数"""
        return sum(self.delay_for(attempt) for attempt in range(1, self.max_attempts))


def _standard_policy() -> RetryPolicy:
    return RetryPolicy(name="standard", max_attempts=3, base_delay=1.0, max_delay=30.0)


def _overload_policy() -> RetryPolicy:
    return RetryPolicy(
        name="overload",
        max_attempts=len(DEFAULT_OVERLOAD_DELAYS) + 1,
        delays=DEFAULT_OVERLOAD_DELAYS,
    )


class RetryPolicies(BaseModel):
    """standard / overload の2段階ポリシー"""

    model_config = ConfigDict(frozen=True)

    standard: RetryPolicy = Field(default_factory=_standard_policy)
    overload: RetryPolicy = Field(default_factory=_overload_policy)

    def select(self, error: GenerationError, current: RetryPolicy | None = None) -> RetryPolicy:
        """分類済みエラーに対するポリシーを選択

        Args:
            error: 分類済みのエラー（リトライ可能なもののみ渡される想定）
            current: 現在のシーケンスで使用中のポリシー

        Returns:
            RetryPolicy: 次の待機・試行上限に使うポリシー
        """
        if error.kind == GenerationErrorKind.PROVIDER_OVERLOADED:
            return self.overload
        if current is not None and current.name == self.overload.name:
            return current
        return self.standard
