"""
Batch Monetization API
여러 테마 일괄 재계산 / 가중치 재적용 / 분석 / 히스토리 정리
"""
import logging
from datetime import datetime, timedelta
from typing import Literal

from fastapi import APIRouter, Query

from monetization_engine.core.config import settings
from monetization_engine.core.exceptions import ValidationError
from monetization_engine.models.monetization import BatchScoreResult
from monetization_engine.models.schemas import (
    BatchAnalysisParameters,
    BatchAnalysisResponse,
    BatchRecalculateRequest,
    BatchReweightRequest,
    BatchScoreResponse,
    HistoryCleanupResponse,
)
from monetization_engine.services.batch_orchestrator import batch_orchestrator
from monetization_engine.services.score_history import score_history_tracker

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/themes/batch-monetization-score")


def to_response(outcome: BatchScoreResult) -> BatchScoreResponse:
    return BatchScoreResponse(
        results=outcome.results,
        summary=outcome.summary,
        history=outcome.history,
        database=outcome.database,
    )


@router.post("", response_model=BatchScoreResponse)
async def batch_recalculate(request: BatchRecalculateRequest):
    """
    테마 ID 목록 일괄 재계산

    항목별 실패는 results / history / database 에 기록되며 요청 전체를 실패시키지 않습니다.
    """
    outcome = await batch_orchestrator.recalculate_themes(
        request.theme_ids,
        weights=request.weights,
        save_to_history=request.save_to_history,
        update_database=request.update_database,
    )
    return to_response(outcome)


@router.put("", response_model=BatchScoreResponse)
async def batch_reweight(request: BatchReweightRequest):
    """저장된 요인에 새 가중치 적용 (요인 재도출 없음)"""
    outcome = await batch_orchestrator.reweight_stored_themes(
        request.weights,
        limit=request.limit,
        save_to_history=request.save_to_history,
    )
    return to_response(outcome)


@router.get("", response_model=BatchAnalysisResponse)
async def batch_analysis(
    operation: Literal["significant_changes", "top_performing"] = Query(..., description="분석 종류"),
    threshold_percentage: float = Query(10, ge=0, le=100, description="변화율 임계값 (%)"),
    days: int = Query(7, ge=1, le=365, description="분석 기간 (일)"),
    limit: int = Query(10, ge=1, le=100, description="최대 결과 수")
):
    """급변 테마 / 상위 테마 분석"""
    if operation == "significant_changes":
        results = await score_history_tracker.significant_changes(threshold_percentage, days)
    else:
        results = await score_history_tracker.top_performing(limit, days)

    return BatchAnalysisResponse(
        operation=operation,
        parameters=BatchAnalysisParameters(
            threshold_percentage=threshold_percentage,
            days=days,
            limit=limit,
        ),
        results=results,
        count=len(results),
    )


@router.delete("", response_model=HistoryCleanupResponse)
async def cleanup_history(retention_days: int = Query(365, description="보존 기간 (일)")):
    """보존 기간이 지난 점수 히스토리 삭제"""
    if retention_days < settings.MIN_RETENTION_DAYS:
        raise ValidationError(
            f"보존 기간은 최소 {settings.MIN_RETENTION_DAYS}일 이상이어야 합니다.",
            field="retention_days",
        )

    deleted = await score_history_tracker.cleanup(retention_days)
    return HistoryCleanupResponse(
        message="오래된 점수 히스토리를 정리했습니다.",
        deleted_count=deleted,
        retention_days=retention_days,
        cutoff_date=datetime.utcnow() - timedelta(days=retention_days),
    )
