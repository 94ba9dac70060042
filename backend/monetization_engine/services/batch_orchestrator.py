"""
Batch Orchestrator
여러 테마에 대한 점수 계산 / 가중치 재적용 / 히스토리 및 테마 저장 조율

- 계산은 테마별로 독립적이며 한 테마의 실패가 배치를 중단시키지 않는다.
- 저장은 테마별로 병렬 실행하고 항목별 성공/실패를 모은다.
"""
import asyncio
import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from monetization_engine.core.exceptions import StoreError, ThemeNotFoundError
from monetization_engine.models.monetization import (
    BatchItemResult,
    BatchScoreResult,
    BatchSummary,
    BatchWriteResult,
    Theme,
    TrendData,
)
from monetization_engine.services.factor_deriver import ThemeFactorDeriver, factor_deriver
from monetization_engine.services.factor_normalizer import PartialValues
from monetization_engine.services.score_calculator import ScoreCalculator, round_half_up, score_calculator
from monetization_engine.services.score_history import (
    HistoryWrite,
    ScoreHistoryTracker,
    score_history_tracker,
)
from monetization_engine.services.theme_repository import (
    ThemeRepository,
    TrendRepository,
    theme_repository,
    trend_repository,
)

logger = logging.getLogger(__name__)

MISSING_FACTORS_ERROR = "monetization factors missing, recalculation skipped"


def _weights_metadata(weights: PartialValues) -> Optional[Dict[str, Any]]:
    if weights is None:
        return None
    if hasattr(weights, "model_dump"):
        return weights.model_dump(exclude_none=True)
    return dict(weights)


def build_summary(results: Sequence[BatchItemResult], started_at: float) -> BatchSummary:
    """결과 목록 → 요약 (평균은 성공 항목 기준, 소수 2자리)"""
    scores = [r.score for r in results if r.success and r.score is not None]
    average = sum(scores) / len(scores) if scores else 0.0
    return BatchSummary(
        total=len(results),
        successful=len(scores),
        failed=len(results) - len(scores),
        average_score=round_half_up(average, 2),
        processing_time_ms=int((time.perf_counter() - started_at) * 1000),
    )


class BatchOrchestrator:
    """배치 점수 계산 조율"""

    def __init__(
        self,
        deriver: Optional[ThemeFactorDeriver] = None,
        calculator: Optional[ScoreCalculator] = None,
        tracker: Optional[ScoreHistoryTracker] = None,
        themes: Optional[ThemeRepository] = None,
        trends: Optional[TrendRepository] = None
    ):
        self.deriver = deriver or factor_deriver
        self.calculator = calculator or score_calculator
        self.tracker = tracker or score_history_tracker
        self.themes = themes or theme_repository
        self.trends = trends or trend_repository

    # ===========================================
    # Pure computation
    # ===========================================

    def score_themes(
        self,
        themes: Sequence[Theme],
        trend_data_by_theme: Optional[Mapping[str, Sequence[TrendData]]] = None,
        weights: PartialValues = None
    ) -> BatchScoreResult:
        """테마별 요인 도출 + 점수 계산, 항목별 결과와 요약 포함"""
        started_at = time.perf_counter()
        trend_data_by_theme = trend_data_by_theme or {}

        scored = []
        results = []
        for theme in themes:
            updated, item = self._score_one(theme, trend_data_by_theme.get(theme.id), weights)
            scored.append(updated)
            results.append(item)

        return BatchScoreResult(
            themes=scored,
            results=results,
            summary=build_summary(results, started_at),
        )

    def _score_one(
        self,
        theme: Theme,
        trend_data: Optional[Sequence[TrendData]],
        weights: PartialValues
    ) -> Tuple[Theme, BatchItemResult]:
        try:
            updated = self.deriver.update_theme_with_score(theme, trend_data, weights)
        except Exception as e:
            logger.error(f"Scoring failed for theme {theme.id}: {e}")
            return theme, BatchItemResult(theme_id=theme.id, success=False, error=str(e))

        return updated, BatchItemResult(
            theme_id=updated.id,
            score=updated.monetization_score,
            factors=updated.monetization_factors,
            success=True,
        )

    def calculate_batch(
        self,
        themes: Sequence[Theme],
        trend_data_by_theme: Optional[Mapping[str, Sequence[TrendData]]] = None,
        weights: PartialValues = None
    ) -> List[Theme]:
        """점수가 채워진 테마 사본 목록 (빈 입력 → 빈 목록)"""
        if not themes:
            return []
        return self.score_themes(themes, trend_data_by_theme, weights).themes

    def rescore_themes(self, themes: Sequence[Theme], weights: PartialValues) -> BatchScoreResult:
        """
        저장된 요인에 새 가중치만 적용 (요인 재도출 없음)

        요인이 없는 테마는 변경 없이 반환되고 실패 항목으로 표시된다.
        """
        started_at = time.perf_counter()

        rescored = []
        results = []
        for theme in themes:
            factors = theme.monetization_factors
            if factors is None:
                logger.warning(f"Theme {theme.id} missing monetization factors, skipping recalculation")
                rescored.append(theme)
                results.append(BatchItemResult(theme_id=theme.id, success=False, error=MISSING_FACTORS_ERROR))
                continue

            score = self.calculator.calculate_score(factors, weights)
            rescored.append(theme.model_copy(update={"monetization_score": score}))
            results.append(BatchItemResult(theme_id=theme.id, score=score, factors=factors, success=True))

        return BatchScoreResult(
            themes=rescored,
            results=results,
            summary=build_summary(results, started_at),
        )

    def recalculate_with_new_weights(self, themes: Sequence[Theme], weights: PartialValues) -> List[Theme]:
        return self.rescore_themes(themes, weights).themes

    # ===========================================
    # Persistence fan-out
    # ===========================================

    async def save_history(
        self,
        themes: Sequence[Theme],
        metadata: Optional[Dict[str, Any]] = None
    ) -> BatchWriteResult:
        """점수가 있는 테마만 히스토리 저장 (테마별 독립)"""
        items = [
            HistoryWrite(theme.id, theme.monetization_score, theme.monetization_factors, metadata)
            for theme in themes
            if theme.monetization_score is not None and theme.monetization_factors is not None
        ]
        return await self.tracker.record_batch(items)

    async def update_themes(self, themes: Sequence[Theme]) -> BatchWriteResult:
        """테마 점수 / 요인 갱신 (테마별 독립)"""
        targets = [
            theme for theme in themes
            if theme.monetization_score is not None and theme.monetization_factors is not None
        ]
        if not targets:
            return BatchWriteResult()

        outcomes = await asyncio.gather(
            *(self.themes.update_score(t.id, t.monetization_score, t.monetization_factors) for t in targets),
            return_exceptions=True,
        )

        result = BatchWriteResult()
        for theme, outcome in zip(targets, outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"Failed to update theme {theme.id}: {outcome}")
                result.failed += 1
                result.errors.append(f"Theme {theme.id}: {outcome}")
                result.failed_theme_ids.append(theme.id)
            else:
                result.successful += 1
        return result

    # ===========================================
    # Store-backed workflows
    # ===========================================

    async def recalculate_themes(
        self,
        theme_ids: Sequence[str],
        weights: PartialValues = None,
        save_to_history: bool = True,
        update_database: bool = True
    ) -> BatchScoreResult:
        """
        ID 목록으로 테마 + 트렌드 조회 후 배치 계산 / 저장

        테마 조회 실패는 해당 항목만 실패로 기록하고, 트렌드 조회 실패 시
        트렌드 없이 계산한다.

        Raises:
            ThemeNotFoundError: 조회 실패 없이 찾은 테마가 하나도 없을 때
        """
        started_at = time.perf_counter()
        unique_ids = list(dict.fromkeys(theme_ids))
        lookups = await asyncio.gather(
            *(self.themes.get(theme_id) for theme_id in unique_ids),
            return_exceptions=True,
        )

        themes = []
        read_failures = []
        for theme_id, found in zip(unique_ids, lookups):
            if isinstance(found, Exception):
                logger.error(f"Failed to read theme {theme_id}: {found}")
                read_failures.append(BatchItemResult(theme_id=theme_id, success=False, error=str(found)))
            elif found is not None:
                themes.append(found)

        if not themes and not read_failures:
            raise ThemeNotFoundError(", ".join(unique_ids))

        trend_data = await self._load_trends(themes)
        outcome = self.score_themes(themes, trend_data, weights)
        scored = [theme for theme, item in zip(outcome.themes, outcome.results) if item.success]
        if read_failures:
            outcome.results.extend(read_failures)
            outcome.summary = build_summary(outcome.results, started_at)

        if save_to_history:
            outcome.history = await self.save_history(
                scored, {"batch_update": True, "custom_weights": _weights_metadata(weights)}
            )
        if update_database:
            outcome.database = await self.update_themes(scored)

        logger.info(
            f"Batch recalculation: {outcome.summary.successful}/{outcome.summary.total} scored, "
            f"average {outcome.summary.average_score}"
        )
        return outcome

    async def _load_trends(self, themes: Sequence[Theme]) -> Dict[str, List[TrendData]]:
        if not themes:
            return {}
        try:
            return await self.trends.get_for_themes([theme.id for theme in themes])
        except StoreError as e:
            logger.warning(f"Trend lookup failed, scoring {len(themes)} themes without trend data: {e.message}")
            return {}

    async def reweight_stored_themes(
        self,
        weights: PartialValues,
        limit: int = 100,
        save_to_history: bool = True
    ) -> BatchScoreResult:
        """
        요인이 저장된 테마 전체에 새 가중치 적용 후 저장

        Raises:
            ThemeNotFoundError: 요인이 저장된 테마가 없을 때
        """
        themes = await self.themes.get_scored(limit)
        if not themes:
            raise ThemeNotFoundError(message="수익화 요인이 저장된 테마가 없습니다.")

        outcome = self.rescore_themes(themes, weights)
        rescored = [theme for theme, item in zip(outcome.themes, outcome.results) if item.success]

        if save_to_history:
            outcome.history = await self.save_history(
                rescored, {"weight_update": True, "new_weights": _weights_metadata(weights)}
            )
        outcome.database = await self.update_themes(rescored)
        return outcome


# 싱글톤 인스턴스
batch_orchestrator = BatchOrchestrator()
