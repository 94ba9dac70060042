"""
Pytest Configuration and Fixtures
단위 / 저장소 / API 테스트 공통 설정
"""
import pytest
import pytest_asyncio
import sys
import os
from datetime import datetime, timedelta
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# 프로젝트 루트 경로 추가
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from monetization_engine.core.database import Base
from monetization_engine.models import ThemeRecord, TrendRecord, ScoreHistoryRecord  # noqa: F401
from monetization_engine.models.monetization import (
    DataSource,
    EstimatedRevenue,
    MonetizationFactors,
    ScoreHistoryEntry,
    Theme,
    TrendData,
)


# ===========================================
# Domain Fixtures
# ===========================================

@pytest.fixture
def sample_factors() -> MonetizationFactors:
    """기본 가중치로 70점이 나오는 요인"""
    return MonetizationFactors(
        market_size=80,
        payment_willingness=70,
        competition_level=30,
        revenue_models=60,
        customer_acquisition_cost=40,
        customer_lifetime_value=75,
    )


@pytest.fixture
def make_theme():
    """테마 생성 팩토리"""
    def _make(**overrides) -> Theme:
        values = {
            "id": "theme-1",
            "title": "AI 가계부",
            "description": "개인 재무 관리 앱",
            "category": "finance",
            "market_size": 2_000_000,
            "competition_level": "medium",
            "technical_difficulty": "intermediate",
            "estimated_revenue": EstimatedRevenue(min=1000, max=5000),
            "data_sources": [DataSource(source="google_trends"), DataSource(source="reddit")],
        }
        values.update(overrides)
        return Theme(**values)
    return _make


@pytest.fixture
def make_trend():
    """트렌드 데이터 생성 팩토리"""
    def _make(search_volume: float, growth_rate: float, theme_id: str = "theme-1", days_ago: int = 0) -> TrendData:
        return TrendData(
            theme_id=theme_id,
            source="google_trends",
            search_volume=search_volume,
            growth_rate=growth_rate,
            timestamp=datetime.utcnow() - timedelta(days=days_ago),
        )
    return _make


@pytest.fixture
def make_entry(sample_factors):
    """히스토리 항목 생성 팩토리 (hours_ago 가 클수록 과거)"""
    def _make(score: float, hours_ago: int = 1, factors: MonetizationFactors = None) -> ScoreHistoryEntry:
        return ScoreHistoryEntry(
            score=score,
            factors=factors or sample_factors,
            timestamp=datetime.utcnow() - timedelta(hours=hours_ago),
        )
    return _make


# ===========================================
# Database Fixtures
# ===========================================

@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """
    임시 SQLite 파일 DB

    저장소는 호출마다 새 세션을 열기 때문에 in-memory 대신 파일 DB 를 사용한다.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def seeded_theme(session_factory) -> ThemeRecord:
    """저장된 요인이 없는 테마 1건"""
    record = ThemeRecord(
        id="theme-1",
        title="AI 가계부",
        description="개인 재무 관리 앱",
        category="finance",
        market_size=2_000_000,
        competition_level="medium",
        technical_difficulty="intermediate",
        estimated_revenue_min=1000,
        estimated_revenue_max=5000,
        data_sources=[{"source": "google_trends"}, {"source": "reddit"}],
    )
    async with session_factory() as db:
        db.add(record)
        await db.commit()
    return record
