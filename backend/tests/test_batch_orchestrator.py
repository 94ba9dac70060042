"""
Batch Orchestrator 테스트
- 배치 계산 / 가중치 재적용
- 저장 fan-out 부분 실패
- 저장소 연동 워크플로우 (AsyncMock)
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from monetization_engine.core.exceptions import StoreError, ThemeNotFoundError
from monetization_engine.models import ThemeRecord
from monetization_engine.models.monetization import BatchWriteResult, FACTOR_NAMES
from monetization_engine.services.batch_orchestrator import BatchOrchestrator
from monetization_engine.services.factor_deriver import ThemeFactorDeriver
from monetization_engine.services.theme_repository import ThemeRepository, TrendRepository


MARKET_ONLY_WEIGHTS = {name: (1.0 if name == "market_size" else 0.0) for name in FACTOR_NAMES}


@pytest.fixture
def tracker():
    tracker = MagicMock()
    tracker.record_batch = AsyncMock(return_value=BatchWriteResult())
    return tracker


@pytest.fixture
def themes_repo():
    repo = MagicMock()
    repo.get = AsyncMock(return_value=None)
    repo.get_scored = AsyncMock(return_value=[])
    repo.update_score = AsyncMock(return_value=None)
    return repo


@pytest.fixture
def trends_repo():
    repo = MagicMock()
    repo.get_for_themes = AsyncMock(return_value={})
    return repo


@pytest.fixture
def orchestrator(tracker, themes_repo, trends_repo):
    return BatchOrchestrator(tracker=tracker, themes=themes_repo, trends=trends_repo)


class TestBatchCalculation:
    """calculate_batch / score_themes 테스트"""

    def test_empty_batch(self, orchestrator):
        assert orchestrator.calculate_batch([]) == []

    def test_each_theme_scored_independently(self, orchestrator, make_theme, make_trend):
        themes = [make_theme(id="a"), make_theme(id="b", competition_level="low")]
        trends = {"a": [make_trend(20000, 20, theme_id="a")]}

        result = orchestrator.score_themes(themes, trends)

        assert [t.id for t in result.themes] == ["a", "b"]
        assert all(t.monetization_factors is not None for t in result.themes)
        assert result.themes[0].monetization_factors.payment_willingness == 100
        assert result.themes[1].monetization_factors.payment_willingness == 50
        assert result.summary.total == 2
        assert result.summary.successful == 2
        assert result.summary.failed == 0
        expected = (result.themes[0].monetization_score + result.themes[1].monetization_score) / 2
        assert result.summary.average_score == pytest.approx(expected, abs=0.01)

    def test_failure_does_not_abort_batch(self, tracker, themes_repo, trends_repo, make_theme):
        real = ThemeFactorDeriver()

        def update(theme, trend_data=None, weights=None):
            if theme.id == "bad":
                raise ValueError("broken theme data")
            return real.update_theme_with_score(theme, trend_data, weights)

        deriver = MagicMock()
        deriver.update_theme_with_score.side_effect = update
        orchestrator = BatchOrchestrator(deriver=deriver, tracker=tracker, themes=themes_repo, trends=trends_repo)

        result = orchestrator.score_themes([make_theme(id="a"), make_theme(id="bad"), make_theme(id="c")])

        assert result.summary.successful == 2
        assert result.summary.failed == 1
        failed = result.results[1]
        assert failed.success is False
        assert "broken theme data" in failed.error
        assert result.themes[1].monetization_score is None


class TestRecalculateWithNewWeights:
    """recalculate_with_new_weights 테스트"""

    def test_uses_stored_factors(self, orchestrator, make_theme, sample_factors):
        theme = make_theme(monetization_score=70, monetization_factors=sample_factors)

        [updated] = orchestrator.recalculate_with_new_weights([theme], MARKET_ONLY_WEIGHTS)

        assert updated.monetization_score == 80
        assert updated.monetization_factors == sample_factors

    def test_theme_without_factors_returned_unchanged(self, orchestrator, make_theme):
        theme = make_theme()

        [updated] = orchestrator.recalculate_with_new_weights([theme], MARKET_ONLY_WEIGHTS)

        assert updated is theme

    def test_skipped_theme_flagged(self, orchestrator, make_theme, sample_factors):
        themes = [make_theme(id="a", monetization_factors=sample_factors), make_theme(id="b")]

        result = orchestrator.rescore_themes(themes, MARKET_ONLY_WEIGHTS)

        assert result.summary.successful == 1
        assert result.summary.failed == 1
        assert result.results[1].success is False
        assert result.summary.average_score == 80


class TestPersistenceFanOut:
    """save_history / update_themes 테스트"""

    @pytest.mark.asyncio
    async def test_save_history_skips_unscored(self, orchestrator, tracker, make_theme, sample_factors):
        themes = [
            make_theme(id="a", monetization_score=70, monetization_factors=sample_factors),
            make_theme(id="b"),
        ]

        await orchestrator.save_history(themes, {"batch_update": True})

        [items] = tracker.record_batch.await_args.args
        assert [item.theme_id for item in items] == ["a"]
        assert items[0].metadata == {"batch_update": True}

    @pytest.mark.asyncio
    async def test_update_themes_partial_failure(self, orchestrator, themes_repo, make_theme, sample_factors):
        async def update_score(theme_id, score, factors):
            if theme_id == "bad":
                raise StoreError()

        themes_repo.update_score.side_effect = update_score
        themes = [
            make_theme(id=theme_id, monetization_score=70, monetization_factors=sample_factors)
            for theme_id in ("a", "bad", "c")
        ]

        result = await orchestrator.update_themes(themes)

        assert result.successful == 2
        assert result.failed == 1
        assert result.failed_theme_ids == ["bad"]
        assert themes_repo.update_score.await_count == 3

    @pytest.mark.asyncio
    async def test_update_themes_nothing_to_write(self, orchestrator, themes_repo, make_theme):
        result = await orchestrator.update_themes([make_theme()])

        assert result.successful == 0
        themes_repo.update_score.assert_not_awaited()


class TestStoreWorkflows:
    """recalculate_themes / reweight_stored_themes 테스트"""

    @pytest.mark.asyncio
    async def test_recalculate_themes(self, orchestrator, themes_repo, tracker, make_theme):
        async def get(theme_id):
            return make_theme(id=theme_id) if theme_id == "a" else None

        themes_repo.get.side_effect = get
        tracker.record_batch.return_value = BatchWriteResult(successful=1)

        outcome = await orchestrator.recalculate_themes(["a", "missing", "a"])

        assert outcome.summary.total == 1
        assert outcome.results[0].theme_id == "a"
        assert outcome.history.successful == 1
        assert outcome.database.successful == 1
        themes_repo.update_score.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_recalculate_without_writes(self, orchestrator, themes_repo, tracker, make_theme):
        themes_repo.get.return_value = make_theme(id="a")

        outcome = await orchestrator.recalculate_themes(["a"], save_to_history=False, update_database=False)

        assert outcome.history is None
        assert outcome.database is None
        tracker.record_batch.assert_not_awaited()
        themes_repo.update_score.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_read_recorded_per_item(self, orchestrator, themes_repo, tracker, make_theme):
        async def get(theme_id):
            if theme_id == "bad":
                raise StoreError()
            return make_theme(id=theme_id)

        themes_repo.get.side_effect = get
        tracker.record_batch.return_value = BatchWriteResult(successful=2)

        outcome = await orchestrator.recalculate_themes(["a", "bad", "c"])

        assert outcome.summary.total == 3
        assert outcome.summary.successful == 2
        assert outcome.summary.failed == 1
        failed = [r for r in outcome.results if not r.success]
        assert [r.theme_id for r in failed] == ["bad"]
        assert failed[0].error
        assert outcome.database.successful == 2
        assert themes_repo.update_score.await_count == 2

    @pytest.mark.asyncio
    async def test_all_reads_failing_is_not_a_missing_theme(self, orchestrator, themes_repo):
        themes_repo.get.side_effect = StoreError()

        outcome = await orchestrator.recalculate_themes(["a", "b"])

        assert outcome.summary.total == 2
        assert outcome.summary.failed == 2
        themes_repo.update_score.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_trend_read_failure_scores_without_trends(self, orchestrator, themes_repo, trends_repo, make_theme):
        themes_repo.get.return_value = make_theme(id="a")
        trends_repo.get_for_themes.side_effect = StoreError()

        outcome = await orchestrator.recalculate_themes(["a"], save_to_history=False)

        assert outcome.summary.successful == 1
        assert outcome.results[0].score == 36

    @pytest.mark.asyncio
    async def test_recalculate_unknown_themes(self, orchestrator):
        with pytest.raises(ThemeNotFoundError):
            await orchestrator.recalculate_themes(["missing"])

    @pytest.mark.asyncio
    async def test_reweight_stored_themes(self, orchestrator, themes_repo, tracker, make_theme, sample_factors):
        themes_repo.get_scored.return_value = [
            make_theme(id="a", monetization_score=70, monetization_factors=sample_factors)
        ]

        outcome = await orchestrator.reweight_stored_themes(MARKET_ONLY_WEIGHTS, limit=10)

        assert outcome.results[0].score == 80
        themes_repo.get_scored.assert_awaited_once_with(10)
        themes_repo.update_score.assert_awaited_once_with("a", 80, sample_factors)
        [items] = tracker.record_batch.await_args.args
        assert items[0].metadata["weight_update"] is True

    @pytest.mark.asyncio
    async def test_reweight_without_scored_themes(self, orchestrator):
        with pytest.raises(ThemeNotFoundError):
            await orchestrator.reweight_stored_themes(MARKET_ONLY_WEIGHTS)


class TestStoredRecords:
    """임시 SQLite 에 저장된 레코드로 배치 실행"""

    @pytest.mark.asyncio
    async def test_malformed_rows_do_not_abort_batch(self, session_factory, tracker):
        async with session_factory() as db:
            db.add_all([
                _record("good"),
                _record("partial", monetization_score=55, monetization_factors={"market_size": 80}),
                _record("broken", competition_level="extreme"),
            ])
            await db.commit()

        themes = ThemeRepository(session_factory)
        orchestrator = BatchOrchestrator(tracker=tracker, themes=themes, trends=TrendRepository(session_factory))

        outcome = await orchestrator.recalculate_themes(["good", "partial", "broken"], save_to_history=False)

        assert outcome.summary.total == 3
        assert outcome.summary.successful == 2
        assert [r.theme_id for r in outcome.results if not r.success] == ["broken"]
        assert outcome.database.successful == 2
        assert (await themes.get("partial")).monetization_score == 36

    @pytest.mark.asyncio
    async def test_reweight_partial_stored_factors(self, session_factory, tracker):
        async with session_factory() as db:
            db.add(_record("partial", monetization_score=55, monetization_factors={"market_size": 80}))
            await db.commit()

        orchestrator = BatchOrchestrator(
            tracker=tracker,
            themes=ThemeRepository(session_factory),
            trends=TrendRepository(session_factory),
        )

        outcome = await orchestrator.reweight_stored_themes(MARKET_ONLY_WEIGHTS, save_to_history=False)

        assert outcome.results[0].success is True
        assert outcome.results[0].score == 80
        assert outcome.results[0].factors.payment_willingness == 50


def _record(theme_id, **overrides):
    values = {
        "id": theme_id,
        "title": theme_id,
        "market_size": 2_000_000,
        "competition_level": "medium",
        "technical_difficulty": "intermediate",
        "estimated_revenue_min": 1000,
        "estimated_revenue_max": 5000,
        "data_sources": [{"source": "google_trends"}, {"source": "reddit"}],
    }
    values.update(overrides)
    return ThemeRecord(**values)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
