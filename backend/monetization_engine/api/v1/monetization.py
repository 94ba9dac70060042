"""
Monetization Score API
테마별 수익화 점수 조회 / 재계산 / 수동 입력 / 초기화
"""
import logging
from typing import List, Optional, Tuple

from fastapi import APIRouter, Query

from monetization_engine.core.config import settings
from monetization_engine.core.exceptions import ThemeNotFoundError
from monetization_engine.models.monetization import (
    FACTOR_DESCRIPTIONS,
    FACTOR_DISPLAY_NAMES,
    MonetizationFactors,
    Theme,
    TrendData,
)
from monetization_engine.models.schemas import (
    FactorDetail,
    ManualFactorsRequest,
    MonetizationScoreResponse,
    RecalculateScoreRequest,
    WeightsInput,
)
from monetization_engine.services.factor_deriver import factor_deriver
from monetization_engine.services.factor_normalizer import validate_factors
from monetization_engine.services.score_calculator import score_calculator
from monetization_engine.services.score_history import score_history_tracker
from monetization_engine.services.theme_repository import theme_repository, trend_repository

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/themes")


# ===========================================
# Helpers
# ===========================================

async def load_theme(theme_id: str) -> Tuple[Theme, List[TrendData]]:
    """테마 + 최근 트렌드 데이터 조회 (없으면 404)"""
    theme = await theme_repository.get(theme_id)
    if theme is None:
        raise ThemeNotFoundError(theme_id)
    trend_data = await trend_repository.get_for_theme(theme_id, limit=settings.TREND_SAMPLE_LIMIT)
    return theme, trend_data


def build_score_response(
    theme_id: str,
    score: float,
    factors: MonetizationFactors,
    weights: Optional[WeightsInput] = None,
    message: Optional[str] = None
) -> MonetizationScoreResponse:
    breakdown = score_calculator.calculate_breakdown(factors, weights)
    details = [
        FactorDetail(
            name=name,
            display_name=FACTOR_DISPLAY_NAMES[name],
            description=FACTOR_DESCRIPTIONS[name],
            value=value,
            contribution=breakdown[name],
        )
        for name, value in factors.items()
    ]
    return MonetizationScoreResponse(
        theme_id=theme_id,
        score=score,
        factors=factors,
        breakdown=breakdown,
        factor_details=details,
        message=message,
    )


def _weights_metadata(weights: Optional[WeightsInput]):
    return weights.model_dump(exclude_none=True) if weights else None


# ===========================================
# API Endpoints
# ===========================================

@router.get("/{theme_id}/monetization-score", response_model=MonetizationScoreResponse)
async def get_monetization_score(
    theme_id: str,
    include_analysis: bool = Query(False, description="추세 분석 포함"),
    include_statistics: bool = Query(False, description="히스토리 통계 포함")
):
    """
    현재 수익화 점수 조회

    저장된 요인이 없으면 테마 속성 + 트렌드 데이터로 계산 후 저장합니다.
    """
    theme, trend_data = await load_theme(theme_id)

    factors = theme.monetization_factors
    score = theme.monetization_score
    if factors is None:
        updated = factor_deriver.update_theme_with_score(theme, trend_data)
        factors, score = updated.monetization_factors, updated.monetization_score
        await theme_repository.update_score(theme_id, score, factors)
        logger.info(f"Theme {theme_id} scored on first read: {score}")
    elif score is None:
        score = score_calculator.calculate_score(factors)

    response = build_score_response(theme_id, score, factors)
    if include_analysis:
        response.analysis = await score_history_tracker.analyze_theme_trend(theme_id, score, factors)
    if include_statistics:
        response.statistics = await score_history_tracker.statistics(theme_id)
    return response


@router.post("/{theme_id}/monetization-score", response_model=MonetizationScoreResponse)
async def recalculate_monetization_score(
    theme_id: str,
    request: Optional[RecalculateScoreRequest] = None
):
    """
    사용자 가중치로 수익화 점수 재계산

    - 요인은 테마 속성 + 최근 트렌드 데이터로 다시 도출
    - save_to_history=true 이면 히스토리에 스냅샷 저장
    """
    request = request or RecalculateScoreRequest()
    theme, trend_data = await load_theme(theme_id)

    updated = factor_deriver.update_theme_with_score(theme, trend_data, request.weights)
    score, factors = updated.monetization_score, updated.monetization_factors

    if request.save_to_history:
        await score_history_tracker.record_entry(theme_id, score, factors, {
            "custom_weights": _weights_metadata(request.weights),
            "recalculated": True,
        })
    await theme_repository.update_score(theme_id, score, factors)

    response = build_score_response(theme_id, score, factors, request.weights)
    if request.include_analysis:
        response.analysis = await score_history_tracker.analyze_theme_trend(theme_id, score, factors)
    return response


@router.put("/{theme_id}/monetization-score", response_model=MonetizationScoreResponse)
async def update_monetization_factors(theme_id: str, request: ManualFactorsRequest):
    """
    수동 요인 입력

    6개 요인이 모두 0-100 범위여야 하며 결과는 히스토리에 저장됩니다.
    """
    factors = validate_factors(request.factors)
    score = score_calculator.calculate_score(factors, request.weights)

    await theme_repository.update_score(theme_id, score, factors)
    await score_history_tracker.record_entry(theme_id, score, factors, {
        "manual_update": True,
        "custom_weights": _weights_metadata(request.weights),
    })

    return build_score_response(theme_id, score, factors, request.weights)


@router.delete("/{theme_id}/monetization-score", response_model=MonetizationScoreResponse)
async def reset_monetization_score(theme_id: str):
    """자동 계산 값으로 점수 초기화"""
    theme, trend_data = await load_theme(theme_id)

    updated = factor_deriver.update_theme_with_score(theme, trend_data)
    score, factors = updated.monetization_score, updated.monetization_factors

    await score_history_tracker.record_entry(theme_id, score, factors, {"reset": True})
    await theme_repository.update_score(theme_id, score, factors)

    return build_score_response(
        theme_id, score, factors,
        message="수익화 점수가 자동 계산 값으로 초기화되었습니다.",
    )
