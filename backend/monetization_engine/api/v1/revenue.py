"""
Revenue Analysis API
테마 매출 시나리오 / 마일스톤 / 성장 곡선 / 리스크 분석
"""
from fastapi import APIRouter, Query

from monetization_engine.api.v1.monetization import load_theme
from monetization_engine.models.monetization import RevenueOptions, Timeframe
from monetization_engine.models.schemas import RevenueAnalysisResponse
from monetization_engine.services.factor_deriver import factor_deriver
from monetization_engine.services.revenue_projector import revenue_projector

router = APIRouter(prefix="/themes")


@router.get("/{theme_id}/revenue-analysis", response_model=RevenueAnalysisResponse)
async def get_revenue_analysis(
    theme_id: str,
    timeframe: Timeframe = Query(Timeframe.MONTH, description="예측 기간 단위"),
    include_growth_projection: bool = Query(False, description="월별 성장 곡선 포함"),
    time_horizon_months: int = Query(12, ge=1, le=60, description="성장 곡선 개월 수")
):
    """
    매출 분석

    점수가 저장되지 않은 테마는 트렌드 데이터를 반영해 계산한 값으로 분석합니다. (저장하지 않음)
    """
    theme, trend_data = await load_theme(theme_id)
    if theme.monetization_score is None:
        theme = factor_deriver.update_theme_with_score(theme, trend_data)

    analysis = revenue_projector.perform_revenue_analysis(
        theme,
        RevenueOptions(
            include_growth_projection=include_growth_projection,
            time_horizon_months=time_horizon_months,
        ),
        timeframe,
    )
    return RevenueAnalysisResponse(theme_id=theme_id, timeframe=timeframe, analysis=analysis)
