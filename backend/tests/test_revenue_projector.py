"""
Revenue Projector 테스트
- 시장 보정 계수 / 시나리오 예측
- 마일스톤 타임라인
- 성장 곡선 (plateau)
"""
import pytest

from monetization_engine.core.exceptions import ValidationError
from monetization_engine.models.monetization import (
    MonetizationFactors,
    RevenueOptions,
    ScenarioMultipliers,
    Timeframe,
)
from monetization_engine.services.revenue_projector import RevenueProjector


@pytest.fixture
def projector():
    return RevenueProjector()


@pytest.fixture
def scored_theme(make_theme):
    """기준 매출 3000, 보정 계수 1.6 (2 * 0.8 * 1.0 * 1.0)"""
    return make_theme(monetization_score=80)


@pytest.fixture
def factors_70_75():
    return MonetizationFactors(
        market_size=50, payment_willingness=70, competition_level=50,
        revenue_models=50, customer_acquisition_cost=50, customer_lifetime_value=75,
    )


class TestBaseValues:

    def test_base_revenue(self, projector, scored_theme):
        assert projector.base_revenue(scored_theme) == 3000

    def test_market_adjustment_without_factors(self, projector, scored_theme):
        assert projector.market_adjustment_factor(scored_theme) == pytest.approx(1.6)

    def test_market_adjustment_with_factors(self, projector, scored_theme, factors_70_75):
        theme = scored_theme.model_copy(update={"monetization_factors": factors_70_75})

        # 1.6 * 1.1 * (1 + 25/300)
        assert projector.market_adjustment_factor(theme) == pytest.approx(1.6 * 1.1 * (1 + 25 / 300))

    def test_market_size_factor_capped(self, projector, make_theme):
        theme = make_theme(monetization_score=100, market_size=10_000_000)
        assert projector.market_adjustment_factor(theme) == pytest.approx(2.0)

    def test_competition_and_difficulty_multipliers(self, projector, make_theme):
        theme = make_theme(monetization_score=100, competition_level="low", technical_difficulty="beginner")
        assert projector.market_adjustment_factor(theme) == pytest.approx(2 * 1.2 * 1.1)


class TestProjectRevenue:
    """project_revenue 테스트"""

    def test_monthly_scenarios(self, projector, scored_theme):
        projection = projector.project_revenue(scored_theme, Timeframe.MONTH)

        assert projection.scenarios.conservative == 1440
        assert projection.scenarios.realistic == 3360
        assert projection.scenarios.optimistic == 7200

    @pytest.mark.parametrize("timeframe,multiplier", [("quarter", 3), ("year", 12)])
    def test_time_multiplier(self, projector, scored_theme, timeframe, multiplier):
        projection = projector.project_revenue(scored_theme, timeframe)

        assert projection.timeframe == Timeframe(timeframe)
        assert projection.scenarios.realistic == 3360 * multiplier

    def test_scenarios_are_ordered(self, projector, make_theme):
        for level in ("low", "medium", "high"):
            for difficulty in ("beginner", "intermediate", "advanced"):
                theme = make_theme(competition_level=level, technical_difficulty=difficulty)
                s = projector.project_revenue(theme).scenarios
                assert s.conservative <= s.realistic <= s.optimistic

    def test_custom_multiplier_overrides_one_scenario(self, projector, scored_theme):
        options = RevenueOptions(custom_multipliers=ScenarioMultipliers(realistic=1.0))

        projection = projector.project_revenue(scored_theme, Timeframe.MONTH, options)

        assert projection.scenarios.realistic == 4800
        assert projection.scenarios.conservative == 1440

    def test_assumptions_without_factors(self, projector, scored_theme):
        assumptions = projector.project_revenue(scored_theme).assumptions

        assert [a.factor for a in assumptions] == ["시장 규모", "수익화 점수", "경쟁 수준", "기술 난이도", "시장 보정 계수"]
        assert [a.confidence for a in assumptions] == [75, 80, 70, 85, 65]
        assert assumptions[-1].value == pytest.approx(1.6)

    def test_assumptions_with_factors(self, projector, scored_theme, factors_70_75):
        theme = scored_theme.model_copy(update={"monetization_factors": factors_70_75})

        assumptions = projector.project_revenue(theme).assumptions

        assert len(assumptions) == 7
        assert assumptions[4].value == pytest.approx(1.91)
        assert assumptions[5].value == 70
        assert assumptions[6].value == 75

    def test_unscored_theme_is_scored_first(self, projector, make_theme):
        projection = projector.project_revenue(make_theme())

        assert projection.assumptions[1].value == 36
        assert projection.scenarios.realistic > 0


class TestTimeline:
    """timeline 테스트"""

    def test_default_ranges(self, projector, scored_theme):
        timeline = projector.timeline(scored_theme)

        assert (timeline.mvp_to_first_revenue.min_months, timeline.mvp_to_first_revenue.max_months) == (2, 4)
        assert (timeline.to_10k.min_months, timeline.to_10k.max_months) == (6, 12)
        assert (timeline.to_100k.min_months, timeline.to_100k.max_months) == (12, 24)
        assert timeline.mvp_to_first_revenue.period == "2-4개월"

    def test_amounts(self, projector, scored_theme):
        timeline = projector.timeline(scored_theme)

        assert timeline.mvp_to_first_revenue.amount == 336  # realistic 월 매출의 10%
        assert timeline.to_10k.amount == 10_000
        assert timeline.to_100k.amount == 100_000
        assert [timeline.mvp_to_first_revenue.confidence, timeline.to_10k.confidence,
                timeline.to_100k.confidence] == [70, 65, 55]

    def test_hard_market_stretches_timeline(self, projector, make_theme):
        theme = make_theme(monetization_score=60, competition_level="high", technical_difficulty="advanced")

        timeline = projector.timeline(theme)

        # 1.3 * 1.2 = 1.56
        assert (timeline.mvp_to_first_revenue.min_months, timeline.mvp_to_first_revenue.max_months) == (3, 6)
        assert (timeline.to_10k.min_months, timeline.to_10k.max_months) == (9, 19)
        assert (timeline.to_100k.min_months, timeline.to_100k.max_months) == (19, 37)

    def test_easy_market_shortens_timeline(self, projector, make_theme):
        theme = make_theme(monetization_score=60, competition_level="low", technical_difficulty="beginner")

        timeline = projector.timeline(theme)

        # 0.8 * 0.9 = 0.72
        assert (timeline.mvp_to_first_revenue.min_months, timeline.mvp_to_first_revenue.max_months) == (1, 3)


class TestGrowthProjection:
    """growth_projection 테스트"""

    def test_first_months(self, projector, scored_theme):
        growth = projector.growth_projection(scored_theme, 3)

        months = growth.monthly_projections
        assert [m.month for m in months] == [1, 2, 3]
        assert [m.conservative for m in months] == [1440, 1512, 1588]
        assert [m.realistic for m in months] == [3360, 3696, 4066]
        assert [m.optimistic for m in months] == [7200, 8640, 10368]

        assert growth.total_projection.conservative == 4540
        assert growth.total_projection.realistic == 11122
        assert growth.total_projection.optimistic == 26208
        assert growth.peak_month == 3
        assert growth.plateau_revenue.realistic == 4066

    def test_plateau_holds_flat(self, projector, scored_theme):
        growth = projector.growth_projection(scored_theme, 30)
        months = growth.monthly_projections

        assert months[17].conservative == months[29].conservative  # month 18 이후 고정
        assert months[23].realistic == months[29].realistic  # month 24 이후 고정
        assert months[28].optimistic < months[29].optimistic  # 36 까지 성장
        assert growth.peak_month == 24
        assert growth.plateau_revenue.conservative == months[17].conservative
        assert growth.plateau_revenue.optimistic == months[29].optimistic

    def test_invalid_months(self, projector, scored_theme):
        with pytest.raises(ValidationError):
            projector.growth_projection(scored_theme, 0)


class TestRevenueAnalysis:
    """perform_revenue_analysis 테스트"""

    def test_without_growth(self, projector, scored_theme):
        analysis = projector.perform_revenue_analysis(scored_theme)

        assert analysis.projection.timeframe == Timeframe.MONTH
        assert analysis.growth_projection is None
        assert analysis.timeline.to_10k.amount == 10_000

    def test_with_growth(self, projector, scored_theme):
        options = RevenueOptions(include_growth_projection=True, time_horizon_months=6)

        analysis = projector.perform_revenue_analysis(scored_theme, options)

        assert len(analysis.growth_projection.monthly_projections) == 6

    def test_risks_and_opportunities_included(self, projector, make_theme):
        theme = make_theme(monetization_score=85, competition_level="high")

        analysis = projector.perform_revenue_analysis(theme)

        assert any(r.factor == "고경쟁 시장" for r in analysis.risk_factors)
        assert any(o.opportunity == "높은 수익화 잠재력" for o in analysis.opportunities)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
