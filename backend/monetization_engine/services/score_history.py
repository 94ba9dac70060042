"""
Score History Service
테마별 점수 스냅샷 저장 (append-only) / 통계 / 보존 기간 정리

- ScoreHistoryRepository: score_history 테이블 접근 (호출마다 세션 분리)
- ScoreHistoryTracker: 기록 / 조회 / 통계 / 배치 저장 / 추세 분석
"""
import asyncio
import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from sqlalchemy import delete, desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from monetization_engine.core.config import settings
from monetization_engine.core.database import AsyncSessionLocal
from monetization_engine.core.exceptions import StoreError, ValidationError
from monetization_engine.models.monetization import (
    BatchWriteResult,
    MonetizationFactors,
    ScoreAnalysis,
    ScoreHistoryEntry,
    ScoreStatistics,
    SignificantChange,
    TopPerformer,
    TrendDirection,
)
from monetization_engine.models.theme import ScoreHistoryRecord
from monetization_engine.services.factor_normalizer import normalize_factors
from monetization_engine.services.score_calculator import round_half_up
from monetization_engine.services.trend_analyzer import (
    TrendAnalyzer,
    classify_change,
    percentage_change,
    trend_analyzer,
)

logger = logging.getLogger(__name__)


class HistoryWrite(NamedTuple):
    """배치 저장 입력 항목"""
    theme_id: str
    score: float
    factors: MonetizationFactors
    metadata: Optional[Dict[str, Any]] = None


def record_to_entry(record: ScoreHistoryRecord) -> ScoreHistoryEntry:
    """저장된 요인 / 점수는 정규화 후 복원"""
    return ScoreHistoryEntry(
        score=min(100.0, max(0.0, record.score or 0.0)),
        factors=normalize_factors(record.factors),
        timestamp=record.created_at,
        metadata=record.extra,
    )


def _cutoff(days: int) -> datetime:
    return datetime.utcnow() - timedelta(days=days)


class ScoreHistoryRepository:
    """score_history 테이블 저장소"""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        self.session_factory = session_factory or AsyncSessionLocal

    async def append(self, theme_id: str, entry: ScoreHistoryEntry) -> ScoreHistoryEntry:
        """스냅샷 추가 (기존 항목은 수정하지 않음)"""
        record = ScoreHistoryRecord(
            theme_id=theme_id,
            score=entry.score,
            factors=entry.factors.model_dump(),
            extra=entry.metadata,
            created_at=entry.timestamp,
        )
        try:
            async with self.session_factory() as db:
                db.add(record)
                await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Score history append failed for {theme_id}: {e}")
            raise StoreError(details={"theme_id": theme_id})
        return entry

    async def query(
        self,
        theme_id: str,
        since_days: Optional[int] = None,
        limit: Optional[int] = None
    ) -> List[ScoreHistoryEntry]:
        """테마 히스토리 조회 (최신순)"""
        query = (
            select(ScoreHistoryRecord)
            .where(ScoreHistoryRecord.theme_id == theme_id)
            .order_by(desc(ScoreHistoryRecord.created_at), desc(ScoreHistoryRecord.id))
        )
        if since_days is not None:
            query = query.where(ScoreHistoryRecord.created_at >= _cutoff(since_days))
        if limit is not None:
            query = query.limit(limit)

        try:
            async with self.session_factory() as db:
                result = await db.execute(query)
                return [record_to_entry(record) for record in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Score history query failed for {theme_id}: {e}")
            raise StoreError(details={"theme_id": theme_id})

    async def query_many(
        self,
        theme_ids: Sequence[str],
        limit_per_theme: int
    ) -> Dict[str, List[ScoreHistoryEntry]]:
        """여러 테마의 히스토리 (테마별 최대 limit_per_theme 개, 최신순)"""
        if not theme_ids:
            return {}

        query = (
            select(ScoreHistoryRecord)
            .where(ScoreHistoryRecord.theme_id.in_(list(theme_ids)))
            .order_by(desc(ScoreHistoryRecord.created_at), desc(ScoreHistoryRecord.id))
        )
        return self._group(await self._fetch(query), limit_per_theme)

    async def query_since(self, since_days: int) -> Dict[str, List[ScoreHistoryEntry]]:
        """기간 내 전체 테마 히스토리 (테마 ID → 최신순 목록)"""
        query = (
            select(ScoreHistoryRecord)
            .where(ScoreHistoryRecord.created_at >= _cutoff(since_days))
            .order_by(desc(ScoreHistoryRecord.created_at), desc(ScoreHistoryRecord.id))
        )
        return self._group(await self._fetch(query))

    async def delete_older_than(self, cutoff: datetime) -> int:
        """cutoff 이전 항목 삭제, 삭제 건수 반환"""
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    delete(ScoreHistoryRecord).where(ScoreHistoryRecord.created_at < cutoff)
                )
                await db.commit()
                return result.rowcount or 0
        except SQLAlchemyError as e:
            logger.error(f"Score history cleanup failed: {e}")
            raise StoreError()

    async def _fetch(self, query) -> List[ScoreHistoryRecord]:
        try:
            async with self.session_factory() as db:
                result = await db.execute(query)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Score history query failed: {e}")
            raise StoreError()

    def _group(
        self,
        records: List[ScoreHistoryRecord],
        limit_per_theme: Optional[int] = None
    ) -> Dict[str, List[ScoreHistoryEntry]]:
        grouped: Dict[str, List[ScoreHistoryEntry]] = defaultdict(list)
        for record in records:
            items = grouped[record.theme_id]
            if limit_per_theme is None or len(items) < limit_per_theme:
                items.append(record_to_entry(record))
        return dict(grouped)


class ScoreHistoryTracker:
    """점수 히스토리 기록 / 분석"""

    def __init__(
        self,
        repository: Optional[ScoreHistoryRepository] = None,
        analyzer: Optional[TrendAnalyzer] = None
    ):
        self.repository = repository or ScoreHistoryRepository()
        self.analyzer = analyzer or trend_analyzer

    # ===========================================
    # Per-theme operations
    # ===========================================

    async def record_entry(
        self,
        theme_id: str,
        score: float,
        factors: MonetizationFactors,
        metadata: Optional[Dict[str, Any]] = None
    ) -> ScoreHistoryEntry:
        """현재 시각으로 스냅샷 저장"""
        entry = ScoreHistoryEntry(
            score=score,
            factors=factors,
            timestamp=datetime.utcnow(),
            metadata=metadata,
        )
        return await self.repository.append(theme_id, entry)

    async def recent_entries(
        self,
        theme_id: str,
        days: Optional[int] = None
    ) -> List[ScoreHistoryEntry]:
        """최근 N일 히스토리 (최신순)"""
        days = settings.TREND_ANALYSIS_DAYS if days is None else days
        return await self.repository.query(theme_id, since_days=days)

    async def history(self, theme_id: str, limit: Optional[int] = None) -> List[ScoreHistoryEntry]:
        limit = settings.HISTORY_QUERY_LIMIT if limit is None else limit
        return await self.repository.query(theme_id, limit=limit)

    async def statistics(self, theme_id: str) -> ScoreStatistics:
        """
        점수 통계

        히스토리가 없으면 current=None, 나머지 0 (오류 아님)
        """
        entries = await self.repository.query(theme_id)
        if not entries:
            return ScoreStatistics()

        scores = [entry.score for entry in entries]
        return ScoreStatistics(
            current=scores[0],
            average=round_half_up(sum(scores) / len(scores), 2),
            min=min(scores),
            max=max(scores),
            total_entries=len(entries),
            first_recorded=entries[-1].timestamp,
            last_recorded=entries[0].timestamp,
        )

    async def cleanup(self, retention_days: Optional[int] = None) -> int:
        """보존 기간이 지난 항목 삭제 (반복 호출해도 안전)"""
        retention_days = settings.HISTORY_RETENTION_DAYS if retention_days is None else retention_days
        if retention_days < 0:
            raise ValidationError(
                f"보존 기간은 0 이상이어야 합니다: {retention_days}",
                field="retention_days",
            )

        removed = await self.repository.delete_older_than(_cutoff(retention_days))
        logger.info(f"Score history cleanup removed {removed} entries older than {retention_days} days")
        return removed

    async def analyze_theme_trend(
        self,
        theme_id: str,
        current_score: float,
        current_factors: MonetizationFactors
    ) -> ScoreAnalysis:
        history = await self.recent_entries(theme_id)
        return self.analyzer.analyze_trend(current_score, current_factors, history)

    # ===========================================
    # Batch operations
    # ===========================================

    async def record_batch(self, items: Sequence[HistoryWrite]) -> BatchWriteResult:
        """
        항목별 독립 저장

        한 테마의 저장 실패는 errors 에 기록되고 나머지 저장은 계속된다.
        """
        if not items:
            return BatchWriteResult()

        outcomes = await asyncio.gather(
            *(self.record_entry(item.theme_id, item.score, item.factors, item.metadata) for item in items),
            return_exceptions=True,
        )

        result = BatchWriteResult()
        for item, outcome in zip(items, outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"Failed to save score history for {item.theme_id}: {outcome}")
                result.failed += 1
                result.errors.append(f"{item.theme_id}: {outcome}")
                result.failed_theme_ids.append(item.theme_id)
            else:
                result.successful += 1
        return result

    async def history_for_themes(
        self,
        theme_ids: Sequence[str],
        limit: Optional[int] = None
    ) -> Dict[str, List[ScoreHistoryEntry]]:
        limit = settings.BATCH_HISTORY_LIMIT if limit is None else limit
        return await self.repository.query_many(theme_ids, limit)

    async def significant_changes(
        self,
        threshold_percentage: float = 10,
        days: int = 7
    ) -> List[SignificantChange]:
        """
        최근 두 점수의 변화율이 임계값 이상인 테마

        Returns:
            |변화율| 내림차순 목록 (이전 점수 0 인 테마 제외)
        """
        grouped = await self.repository.query_since(days)

        changes = []
        for theme_id, entries in grouped.items():
            if len(entries) < 2:
                continue
            current_score = entries[0].score
            previous_score = entries[1].score
            if previous_score == 0:
                continue

            change = percentage_change(previous_score, current_score)
            if abs(change) >= threshold_percentage:
                changes.append(SignificantChange(
                    theme_id=theme_id,
                    current_score=current_score,
                    previous_score=previous_score,
                    change_percentage=change,
                    trend=TrendDirection.INCREASING if change > 0 else TrendDirection.DECREASING,
                ))

        return sorted(changes, key=lambda c: abs(c.change_percentage), reverse=True)

    async def top_performing(self, limit: int = 10, days: int = 30) -> List[TopPerformer]:
        """기간 내 평균 점수 상위 테마"""
        grouped = await self.repository.query_since(days)

        performers = []
        for theme_id, entries in grouped.items():
            scores = [entry.score for entry in entries]
            trend = TrendDirection.STABLE
            if len(scores) > 1:
                trend = classify_change(percentage_change(scores[1], scores[0]))

            performers.append(TopPerformer(
                theme_id=theme_id,
                average_score=round_half_up(sum(scores) / len(scores), 2),
                current_score=scores[0],
                trend=trend,
                entry_count=len(scores),
            ))

        performers.sort(key=lambda p: p.average_score, reverse=True)
        return performers[:limit]


# 싱글톤 인스턴스
score_history_tracker = ScoreHistoryTracker()
