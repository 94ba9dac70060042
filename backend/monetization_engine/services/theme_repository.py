"""
Theme / Trend Repository
테마 / 트렌드 레코드 저장소 (엔진 입장에서는 외부 협력자)

호출마다 독립된 세션을 열기 때문에 배치 작업에서 병렬 호출이 가능하다.
"""
import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from pydantic import ValidationError as ModelValidationError
from sqlalchemy import asc, desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from monetization_engine.core.database import AsyncSessionLocal
from monetization_engine.core.exceptions import StoreError, ThemeNotFoundError
from monetization_engine.models.monetization import (
    DataSource,
    EstimatedRevenue,
    MonetizationFactors,
    Theme,
    ThemeFilter,
    TrendData,
)
from monetization_engine.models.theme import ThemeRecord, TrendRecord
from monetization_engine.services.factor_normalizer import normalize_factors

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS = {
    "monetization_score": ThemeRecord.monetization_score,
    "market_size": ThemeRecord.market_size,
    "created_at": ThemeRecord.created_at,
    "updated_at": ThemeRecord.updated_at,
    "title": ThemeRecord.title,
}


def record_to_theme(record: ThemeRecord) -> Theme:
    """
    ThemeRecord → Theme

    저장된 요인은 정규화를 거쳐 복원한다 (누락 50, 범위 밖 값은 clamp).
    """
    factors = None
    if record.monetization_factors:
        factors = normalize_factors(record.monetization_factors)

    return Theme(
        id=record.id,
        title=record.title or "",
        description=record.description or "",
        category=record.category,
        monetization_score=record.monetization_score,
        market_size=record.market_size or 0,
        competition_level=record.competition_level,
        technical_difficulty=record.technical_difficulty,
        estimated_revenue=EstimatedRevenue(
            min=record.estimated_revenue_min or 0,
            max=record.estimated_revenue_max or 0,
        ),
        data_sources=[DataSource(**source) for source in (record.data_sources or [])],
        monetization_factors=factors,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def convert_theme(record: ThemeRecord) -> Theme:
    """record_to_theme + 형식 오류를 StoreError 로 변환"""
    try:
        return record_to_theme(record)
    except ModelValidationError as e:
        logger.error(f"Malformed theme record {record.id}: {e.error_count()} invalid fields")
        raise StoreError(
            message="테마 레코드 형식이 올바르지 않습니다.",
            details={"theme_id": record.id},
        )


def record_to_trend(record: TrendRecord) -> TrendData:
    return TrendData(
        id=str(record.id),
        theme_id=record.theme_id,
        source=record.source,
        search_volume=record.search_volume or 0,
        growth_rate=record.growth_rate or 0,
        timestamp=record.timestamp,
        metadata=record.extra,
    )


class ThemeRepository:
    """themes 테이블 저장소"""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        self.session_factory = session_factory or AsyncSessionLocal

    async def get(self, theme_id: str) -> Optional[Theme]:
        """ID로 테마 조회 (없으면 None)"""
        try:
            async with self.session_factory() as db:
                record = await db.get(ThemeRecord, theme_id)
                return convert_theme(record) if record else None
        except SQLAlchemyError as e:
            logger.error(f"Theme lookup failed for {theme_id}: {e}")
            raise StoreError(details={"theme_id": theme_id})

    async def get_many(self, theme_filter: Optional[ThemeFilter] = None) -> List[Theme]:
        """조건부 테마 목록 조회 (형식이 깨진 레코드는 제외)"""
        theme_filter = theme_filter or ThemeFilter()
        query = select(ThemeRecord)

        if theme_filter.category:
            query = query.where(ThemeRecord.category == theme_filter.category)
        if theme_filter.competition_level:
            query = query.where(ThemeRecord.competition_level == theme_filter.competition_level.value)
        if theme_filter.technical_difficulty:
            query = query.where(ThemeRecord.technical_difficulty == theme_filter.technical_difficulty.value)
        if theme_filter.min_score is not None:
            query = query.where(ThemeRecord.monetization_score >= theme_filter.min_score)
        if theme_filter.max_score is not None:
            query = query.where(ThemeRecord.monetization_score <= theme_filter.max_score)
        if theme_filter.min_market_size is not None:
            query = query.where(ThemeRecord.market_size >= theme_filter.min_market_size)
        if theme_filter.max_market_size is not None:
            query = query.where(ThemeRecord.market_size <= theme_filter.max_market_size)
        if theme_filter.only_scored:
            query = query.where(ThemeRecord.monetization_factors.is_not(None))

        column = SORTABLE_COLUMNS.get(theme_filter.sort_by, ThemeRecord.monetization_score)
        order = asc if theme_filter.sort_order == "asc" else desc
        query = (
            query.order_by(order(column), ThemeRecord.id)
            .offset(theme_filter.offset)
            .limit(theme_filter.limit)
        )

        try:
            async with self.session_factory() as db:
                result = await db.execute(query)
                records = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Theme query failed: {e}")
            raise StoreError()

        themes = []
        for record in records:
            try:
                themes.append(convert_theme(record))
            except StoreError:
                logger.warning(f"Skipping malformed theme record {record.id}")
        return themes

    async def get_scored(self, limit: int = 100) -> List[Theme]:
        """요인이 저장된 테마 (가중치 재계산 대상)"""
        return await self.get_many(ThemeFilter(only_scored=True, limit=limit))

    async def update_score(
        self,
        theme_id: str,
        score: float,
        factors: MonetizationFactors
    ) -> None:
        """점수 / 요인 갱신"""
        try:
            async with self.session_factory() as db:
                record = await db.get(ThemeRecord, theme_id)
                if record is None:
                    raise ThemeNotFoundError(theme_id)
                record.monetization_score = score
                record.monetization_factors = factors.model_dump()
                record.updated_at = datetime.utcnow()
                await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Theme score update failed for {theme_id}: {e}")
            raise StoreError(details={"theme_id": theme_id})


class TrendRepository:
    """trend_data 테이블 저장소"""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        self.session_factory = session_factory or AsyncSessionLocal

    async def get_for_theme(self, theme_id: str, limit: int = 10) -> List[TrendData]:
        """테마의 최근 트렌드 데이터 (최신순)"""
        query = (
            select(TrendRecord)
            .where(TrendRecord.theme_id == theme_id)
            .order_by(desc(TrendRecord.timestamp))
            .limit(limit)
        )
        try:
            async with self.session_factory() as db:
                result = await db.execute(query)
                return [record_to_trend(record) for record in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Trend query failed for {theme_id}: {e}")
            raise StoreError(details={"theme_id": theme_id})

    async def get_for_themes(
        self,
        theme_ids: Sequence[str],
        limit_per_theme: Optional[int] = None
    ) -> Dict[str, List[TrendData]]:
        """여러 테마의 트렌드 데이터 (테마 ID → 최신순 목록)"""
        grouped: Dict[str, List[TrendData]] = defaultdict(list)
        if not theme_ids:
            return grouped

        query = (
            select(TrendRecord)
            .where(TrendRecord.theme_id.in_(list(theme_ids)))
            .order_by(desc(TrendRecord.timestamp))
        )
        try:
            async with self.session_factory() as db:
                result = await db.execute(query)
                for record in result.scalars().all():
                    items = grouped[record.theme_id]
                    if limit_per_theme is None or len(items) < limit_per_theme:
                        items.append(record_to_trend(record))
        except SQLAlchemyError as e:
            logger.error(f"Trend query failed for {len(theme_ids)} themes: {e}")
            raise StoreError()

        return grouped


# 싱글톤 인스턴스
theme_repository = ThemeRepository()
trend_repository = TrendRepository()
