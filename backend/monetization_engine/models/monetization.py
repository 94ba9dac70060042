"""
Monetization Domain Models
스코어링 엔진이 주고받는 값 객체 정의

모든 모델은 불변(frozen) 값 객체이며, 엔진은 입력을 변경하지 않고 새 객체를 반환한다.
"""
import copy
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator


# ===========================================
# Factor Names
# ===========================================

FACTOR_NAMES: Tuple[str, ...] = (
    "market_size",
    "payment_willingness",
    "competition_level",
    "revenue_models",
    "customer_acquisition_cost",
    "customer_lifetime_value",
)

# 값이 높을수록 점수가 낮아지는 요인 (100 - value 로 계산)
INVERTED_FACTORS = frozenset({"competition_level", "customer_acquisition_cost"})

FACTOR_DISPLAY_NAMES: Dict[str, str] = {
    "market_size": "시장 규모",
    "payment_willingness": "지불 의향",
    "competition_level": "경쟁 수준",
    "revenue_models": "수익화 모델 다양성",
    "customer_acquisition_cost": "고객 획득 비용",
    "customer_lifetime_value": "고객 생애 가치",
}

FACTOR_DESCRIPTIONS: Dict[str, str] = {
    "market_size": "테마의 전체 시장 규모(TAM)를 나타냅니다",
    "payment_willingness": "사용자가 유료 서비스에 비용을 지불할 의향을 나타냅니다",
    "competition_level": "시장 내 경쟁 강도를 나타냅니다 (낮을수록 좋음)",
    "revenue_models": "구독, 광고, 과금 등 적용 가능한 수익화 방식의 다양성을 나타냅니다",
    "customer_acquisition_cost": "신규 고객 획득에 필요한 비용을 나타냅니다 (낮을수록 좋음)",
    "customer_lifetime_value": "고객 1인당 생애 가치를 나타냅니다",
}


def to_naive_utc(value: datetime) -> datetime:
    """timezone-aware 시각을 naive UTC 로 맞춘다 (DB 저장 형식과 동일)"""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# ===========================================
# Enums
# ===========================================

class CompetitionLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TechnicalDifficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class Timeframe(str, Enum):
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class ImpactLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Scenario(str, Enum):
    CONSERVATIVE = "conservative"
    REALISTIC = "realistic"
    OPTIMISTIC = "optimistic"


# ===========================================
# Factors / Weights
# ===========================================

class MonetizationFactors(BaseModel):
    """6개 수익화 요인 (각 0-100)"""
    market_size: float = Field(..., ge=0, le=100)
    payment_willingness: float = Field(..., ge=0, le=100)
    competition_level: float = Field(..., ge=0, le=100)
    revenue_models: float = Field(..., ge=0, le=100)
    customer_acquisition_cost: float = Field(..., ge=0, le=100)
    customer_lifetime_value: float = Field(..., ge=0, le=100)

    class Config:
        frozen = True

    def items(self) -> Iterator[Tuple[str, float]]:
        for name in FACTOR_NAMES:
            yield name, getattr(self, name)


class MonetizationWeights(BaseModel):
    """요인별 가중치 (각 0-1, 합계 1.0)"""
    market_size: float = Field(..., ge=0, le=1)
    payment_willingness: float = Field(..., ge=0, le=1)
    competition_level: float = Field(..., ge=0, le=1)
    revenue_models: float = Field(..., ge=0, le=1)
    customer_acquisition_cost: float = Field(..., ge=0, le=1)
    customer_lifetime_value: float = Field(..., ge=0, le=1)

    class Config:
        frozen = True

    def items(self) -> Iterator[Tuple[str, float]]:
        for name in FACTOR_NAMES:
            yield name, getattr(self, name)

    def total(self) -> float:
        return sum(value for _, value in self.items())


# ===========================================
# Theme / Trend
# ===========================================

class EstimatedRevenue(BaseModel):
    min: float = Field(0, ge=0)
    max: float = Field(0, ge=0)


class DataSource(BaseModel):
    """테마에 연결된 데이터 소스 신호"""
    source: str
    search_volume: float = Field(0, ge=0)
    growth_rate: float = 0
    timestamp: Optional[datetime] = None
    metadata: Optional[Dict[str, Any]] = None


class Theme(BaseModel):
    """외부 저장소에서 읽어온 테마"""
    id: str
    title: str = ""
    description: str = ""
    category: Optional[str] = None
    monetization_score: Optional[float] = Field(None, ge=0, le=100)
    market_size: float = Field(0, ge=0)
    competition_level: CompetitionLevel
    technical_difficulty: TechnicalDifficulty
    estimated_revenue: EstimatedRevenue = Field(default_factory=EstimatedRevenue)
    data_sources: List[DataSource] = Field(default_factory=list)
    monetization_factors: Optional[MonetizationFactors] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TrendData(BaseModel):
    """테마별 시계열 트렌드 신호"""
    id: Optional[str] = None
    theme_id: str
    source: str = "unknown"
    search_volume: float = Field(0, ge=0)
    growth_rate: float = 0
    timestamp: datetime
    metadata: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True


class ThemeFilter(BaseModel):
    """테마 조회 조건 (저장소에 그대로 전달)"""
    category: Optional[str] = None
    competition_level: Optional[CompetitionLevel] = None
    technical_difficulty: Optional[TechnicalDifficulty] = None
    min_score: Optional[float] = None
    max_score: Optional[float] = None
    min_market_size: Optional[float] = None
    max_market_size: Optional[float] = None
    only_scored: bool = False
    limit: int = Field(50, ge=1, le=1000)
    offset: int = Field(0, ge=0)
    sort_by: str = "monetization_score"
    sort_order: str = "desc"


# ===========================================
# Score History / Analysis
# ===========================================

class ScoreHistoryEntry(BaseModel):
    """점수 스냅샷 (append-only)"""
    score: float = Field(..., ge=0, le=100)
    factors: MonetizationFactors
    timestamp: datetime
    metadata: Optional[Dict[str, Any]] = None

    class Config:
        frozen = True

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return to_naive_utc(v)

    @field_validator("metadata")
    @classmethod
    def copy_metadata(cls, v: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        # 호출자가 넘긴 dict 와 분리 (중첩 값 포함)
        return copy.deepcopy(v) if v is not None else None


class FactorAttribution(BaseModel):
    strongest: str
    weakest: str
    most_improved: Optional[str] = None
    most_declined: Optional[str] = None


class ScoreAnalysis(BaseModel):
    """현재 점수 vs 히스토리 비교 결과"""
    current_score: float
    previous_score: Optional[float] = None
    trend: TrendDirection
    change_percentage: float
    volatility: float = Field(..., ge=0, le=100)
    confidence: float = Field(..., ge=0, le=100)
    factors: FactorAttribution


class ScoreStatistics(BaseModel):
    current: Optional[float] = None
    average: float = 0
    min: float = 0
    max: float = 0
    total_entries: int = 0
    first_recorded: Optional[datetime] = None
    last_recorded: Optional[datetime] = None


class SignificantChange(BaseModel):
    theme_id: str
    current_score: float
    previous_score: float
    change_percentage: float
    trend: TrendDirection


class TopPerformer(BaseModel):
    theme_id: str
    average_score: float
    current_score: float
    trend: TrendDirection
    entry_count: int


# ===========================================
# Revenue
# ===========================================

class RevenueScenarios(BaseModel):
    conservative: float = Field(0, ge=0)
    realistic: float = Field(0, ge=0)
    optimistic: float = Field(0, ge=0)


class ScenarioMultipliers(BaseModel):
    """시나리오별 배수 (지정하지 않은 값은 기본값 사용)"""
    conservative: Optional[float] = Field(None, ge=0, le=2)
    realistic: Optional[float] = Field(None, ge=0, le=2)
    optimistic: Optional[float] = Field(None, ge=0, le=3)


class RevenueOptions(BaseModel):
    include_growth_projection: bool = False
    custom_multipliers: Optional[ScenarioMultipliers] = None
    time_horizon_months: int = Field(12, ge=1, le=60)


class RevenueAssumption(BaseModel):
    factor: str
    value: float
    confidence: float = Field(..., ge=0, le=100)
    source: str


class RevenueProjection(BaseModel):
    timeframe: Timeframe
    scenarios: RevenueScenarios
    assumptions: List[RevenueAssumption]


class RevenueMilestone(BaseModel):
    period: str
    min_months: int
    max_months: int
    description: str
    amount: float = Field(..., ge=0)
    confidence: float = Field(..., ge=0, le=100)


class RevenueTimeline(BaseModel):
    mvp_to_first_revenue: RevenueMilestone
    to_10k: RevenueMilestone
    to_100k: RevenueMilestone


class MonthlyRevenue(BaseModel):
    month: int = Field(..., ge=1)
    conservative: float = Field(..., ge=0)
    realistic: float = Field(..., ge=0)
    optimistic: float = Field(..., ge=0)


class RevenueGrowthProjection(BaseModel):
    monthly_projections: List[MonthlyRevenue]
    total_projection: RevenueScenarios
    peak_month: int = Field(..., ge=1)
    plateau_revenue: RevenueScenarios


class RiskFactor(BaseModel):
    factor: str
    impact: ImpactLevel
    probability: float = Field(..., ge=0, le=100)
    mitigation: str


class Opportunity(BaseModel):
    opportunity: str
    potential: ImpactLevel
    timeframe: str
    requirements: List[str]


class RevenueAnalysis(BaseModel):
    projection: RevenueProjection
    timeline: RevenueTimeline
    growth_projection: Optional[RevenueGrowthProjection] = None
    risk_factors: List[RiskFactor]
    opportunities: List[Opportunity]


# ===========================================
# Batch
# ===========================================

class BatchItemResult(BaseModel):
    theme_id: str
    score: Optional[float] = None
    factors: Optional[MonetizationFactors] = None
    success: bool
    error: Optional[str] = None


class BatchSummary(BaseModel):
    total: int
    successful: int
    failed: int
    average_score: float
    processing_time_ms: int


class BatchWriteResult(BaseModel):
    """항목별 저장 결과 (부분 실패 허용)"""
    successful: int = 0
    failed: int = 0
    errors: List[str] = Field(default_factory=list)
    failed_theme_ids: List[str] = Field(default_factory=list)


class BatchScoreResult(BaseModel):
    themes: List[Theme]
    results: List[BatchItemResult]
    summary: BatchSummary
    history: Optional[BatchWriteResult] = None
    database: Optional[BatchWriteResult] = None
