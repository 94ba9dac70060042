"""
Theme / Trend Repository 테스트 (임시 SQLite DB)
"""
import pytest
from datetime import datetime, timedelta

from monetization_engine.core.exceptions import StoreError, ThemeNotFoundError
from monetization_engine.models import ThemeRecord, TrendRecord
from monetization_engine.models.monetization import CompetitionLevel, ThemeFilter
from monetization_engine.services.theme_repository import ThemeRepository, TrendRepository


@pytest.fixture
def themes(session_factory):
    return ThemeRepository(session_factory)


@pytest.fixture
def trends(session_factory):
    return TrendRepository(session_factory)


async def _add(session_factory, *records):
    async with session_factory() as db:
        db.add_all(records)
        await db.commit()


def _theme_record(theme_id, score=None, competition_level="medium", market_size=1_000_000):
    return ThemeRecord(
        id=theme_id,
        title=theme_id,
        market_size=market_size,
        competition_level=competition_level,
        technical_difficulty="intermediate",
        monetization_score=score,
        monetization_factors=None,
    )


class TestThemeRepository:

    @pytest.mark.asyncio
    async def test_get(self, themes, seeded_theme):
        theme = await themes.get("theme-1")

        assert theme.title == "AI 가계부"
        assert theme.market_size == 2_000_000
        assert theme.estimated_revenue.max == 5000
        assert [s.source for s in theme.data_sources] == ["google_trends", "reddit"]
        assert theme.monetization_factors is None

    @pytest.mark.asyncio
    async def test_get_missing(self, themes, seeded_theme):
        assert await themes.get("missing") is None

    @pytest.mark.asyncio
    async def test_update_score(self, themes, seeded_theme, sample_factors):
        await themes.update_score("theme-1", 70, sample_factors)

        theme = await themes.get("theme-1")
        assert theme.monetization_score == 70
        assert theme.monetization_factors == sample_factors

    @pytest.mark.asyncio
    async def test_update_score_missing_theme(self, themes, seeded_theme, sample_factors):
        with pytest.raises(ThemeNotFoundError):
            await themes.update_score("missing", 70, sample_factors)

    @pytest.mark.asyncio
    async def test_get_scored_only_returns_themes_with_factors(self, themes, seeded_theme, sample_factors):
        assert await themes.get_scored() == []

        await themes.update_score("theme-1", 70, sample_factors)

        assert [t.id for t in await themes.get_scored()] == ["theme-1"]

    @pytest.mark.asyncio
    async def test_get_many_filters_and_sorts(self, themes, session_factory):
        await _add(
            session_factory,
            _theme_record("a", score=40, competition_level="low"),
            _theme_record("b", score=90, competition_level="low"),
            _theme_record("c", score=70, competition_level="high"),
        )

        low = await themes.get_many(ThemeFilter(competition_level=CompetitionLevel.LOW))
        assert [t.id for t in low] == ["b", "a"]

        ranged = await themes.get_many(ThemeFilter(min_score=50, sort_order="asc"))
        assert [t.id for t in ranged] == ["c", "b"]

        paged = await themes.get_many(ThemeFilter(limit=1, offset=1))
        assert [t.id for t in paged] == ["c"]


class TestStoredRecordConversion:
    """저장된 레코드 복원 테스트"""

    @pytest.mark.asyncio
    async def test_partial_stored_factors_are_normalized(self, themes, session_factory):
        record = _theme_record("partial", score=55)
        record.monetization_factors = {"market_size": 80, "payment_willingness": 130}
        await _add(session_factory, record)

        theme = await themes.get("partial")

        assert theme.monetization_factors.market_size == 80
        assert theme.monetization_factors.payment_willingness == 100
        assert theme.monetization_factors.customer_lifetime_value == 50

    @pytest.mark.asyncio
    async def test_malformed_record_raises_store_error(self, themes, session_factory):
        await _add(session_factory, _theme_record("broken", competition_level="extreme"))

        with pytest.raises(StoreError) as exc_info:
            await themes.get("broken")
        assert exc_info.value.details["theme_id"] == "broken"

    @pytest.mark.asyncio
    async def test_get_many_skips_malformed_records(self, themes, session_factory):
        await _add(
            session_factory,
            _theme_record("ok", score=60),
            _theme_record("broken", score=70, competition_level="extreme"),
        )

        assert [t.id for t in await themes.get_many()] == ["ok"]


class TestTrendRepository:

    @pytest.mark.asyncio
    async def test_get_for_theme_most_recent_first(self, trends, session_factory, seeded_theme):
        now = datetime.utcnow()
        await _add(
            session_factory,
            TrendRecord(theme_id="theme-1", search_volume=100, growth_rate=1, timestamp=now - timedelta(days=2)),
            TrendRecord(theme_id="theme-1", search_volume=300, growth_rate=3, timestamp=now),
            TrendRecord(theme_id="theme-1", search_volume=200, growth_rate=2, timestamp=now - timedelta(days=1),
                        extra={"region": "KR"}),
        )

        items = await trends.get_for_theme("theme-1", limit=2)

        assert [t.search_volume for t in items] == [300, 200]
        assert items[1].metadata == {"region": "KR"}

    @pytest.mark.asyncio
    async def test_get_for_themes_groups_by_theme(self, trends, session_factory):
        await _add(session_factory, _theme_record("a"), _theme_record("b"))
        now = datetime.utcnow()
        await _add(
            session_factory,
            TrendRecord(theme_id="a", search_volume=1, timestamp=now - timedelta(hours=2)),
            TrendRecord(theme_id="a", search_volume=2, timestamp=now - timedelta(hours=1)),
            TrendRecord(theme_id="b", search_volume=3, timestamp=now),
        )

        grouped = await trends.get_for_themes(["a", "b", "c"], limit_per_theme=1)

        assert [t.search_volume for t in grouped["a"]] == [2]
        assert [t.search_volume for t in grouped["b"]] == [3]
        assert grouped["c"] == []

    @pytest.mark.asyncio
    async def test_get_for_no_themes(self, trends):
        assert await trends.get_for_themes([]) == {}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
