"""
Pydantic Schemas
API 요청/응답 스키마 정의
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from monetization_engine.core.config import settings
from monetization_engine.models.monetization import (
    BatchItemResult,
    BatchSummary,
    BatchWriteResult,
    MonetizationFactors,
    RevenueAnalysis,
    ScoreAnalysis,
    ScoreStatistics,
    SignificantChange,
    Timeframe,
    TopPerformer,
)


# ===========================================
# Request Schemas
# ===========================================

class WeightsInput(BaseModel):
    """가중치 입력 (지정하지 않은 요인은 기본 가중치)"""
    market_size: Optional[float] = Field(None, ge=0, le=1)
    payment_willingness: Optional[float] = Field(None, ge=0, le=1)
    competition_level: Optional[float] = Field(None, ge=0, le=1)
    revenue_models: Optional[float] = Field(None, ge=0, le=1)
    customer_acquisition_cost: Optional[float] = Field(None, ge=0, le=1)
    customer_lifetime_value: Optional[float] = Field(None, ge=0, le=1)


class RecalculateScoreRequest(BaseModel):
    """단일 테마 재계산 요청"""
    weights: Optional[WeightsInput] = None
    save_to_history: bool = Field(True, description="히스토리 저장 여부")
    include_analysis: bool = Field(False, description="추세 분석 포함 여부")


class ManualFactorsRequest(BaseModel):
    """수동 요인 입력 (6개 요인 모두 필수, 서비스에서 엄격 검증)"""
    factors: Dict[str, Any]
    weights: Optional[WeightsInput] = None


class BatchRecalculateRequest(BaseModel):
    """배치 재계산 요청"""
    theme_ids: List[str] = Field(..., min_length=1, max_length=settings.BATCH_MAX_THEMES, description="테마 ID 목록")
    weights: Optional[WeightsInput] = None
    save_to_history: bool = True
    update_database: bool = True

    @field_validator("theme_ids")
    @classmethod
    def validate_theme_ids(cls, v):
        cleaned = [theme_id.strip() for theme_id in v]
        if any(not theme_id for theme_id in cleaned):
            raise ValueError("빈 테마 ID 는 허용되지 않습니다.")
        return cleaned


class BatchReweightRequest(BaseModel):
    """저장된 요인에 새 가중치 적용 요청"""
    weights: WeightsInput
    limit: int = Field(100, ge=1, le=1000)
    save_to_history: bool = True


# ===========================================
# Response Schemas
# ===========================================

class FactorDetail(BaseModel):
    """요인 표시 정보"""
    name: str
    display_name: str
    description: str
    value: float
    contribution: float


class MonetizationScoreResponse(BaseModel):
    """테마 수익화 점수 응답"""
    theme_id: str
    score: float
    factors: MonetizationFactors
    breakdown: Dict[str, float]
    factor_details: List[FactorDetail]
    analysis: Optional[ScoreAnalysis] = None
    statistics: Optional[ScoreStatistics] = None
    message: Optional[str] = None


class BatchScoreResponse(BaseModel):
    """배치 점수 응답 (부분 성공 허용)"""
    results: List[BatchItemResult]
    summary: BatchSummary
    history: Optional[BatchWriteResult] = None
    database: Optional[BatchWriteResult] = None


class BatchAnalysisParameters(BaseModel):
    threshold_percentage: float
    days: int
    limit: int


class BatchAnalysisResponse(BaseModel):
    """배치 분석 응답"""
    operation: str
    parameters: BatchAnalysisParameters
    results: List[Union[SignificantChange, TopPerformer]]
    count: int


class HistoryCleanupResponse(BaseModel):
    """히스토리 정리 응답"""
    message: str
    deleted_count: int
    retention_days: int
    cutoff_date: datetime


class RevenueAnalysisResponse(BaseModel):
    """매출 분석 응답"""
    theme_id: str
    timeframe: Timeframe
    analysis: RevenueAnalysis
