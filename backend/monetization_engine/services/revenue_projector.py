"""
Revenue Projector
테마 속성 기반 매출 시나리오 / 마일스톤 / 성장 곡선 예측

- 시나리오: 기준 매출 * 시나리오 배수 * 시장 보정 계수 * 기간 배수
- 마일스톤: 첫 매출 / 월 1만 / 월 10만 도달 기간 (난이도, 경쟁 보정)
- 성장 곡선: 시나리오별 월 복리 성장 후 정체(plateau) 월부터 유지
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from monetization_engine.core.exceptions import ValidationError
from monetization_engine.models.monetization import (
    CompetitionLevel,
    MonthlyRevenue,
    RevenueAnalysis,
    RevenueAssumption,
    RevenueGrowthProjection,
    RevenueMilestone,
    RevenueOptions,
    RevenueProjection,
    RevenueScenarios,
    RevenueTimeline,
    Scenario,
    TechnicalDifficulty,
    Theme,
    Timeframe,
)
from monetization_engine.services.factor_deriver import (
    COMPETITION_FACTOR_VALUES,
    DIFFICULTY_COST_VALUES,
    ThemeFactorDeriver,
    factor_deriver,
)
from monetization_engine.services.risk_analyzer import RiskOpportunityAnalyzer, risk_analyzer
from monetization_engine.services.score_calculator import round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GrowthPattern:
    monthly_growth_rate: float
    plateau_month: int


DEFAULT_MULTIPLIERS: Dict[Scenario, float] = {
    Scenario.CONSERVATIVE: 0.3,
    Scenario.REALISTIC: 0.7,
    Scenario.OPTIMISTIC: 1.5,
}

GROWTH_PATTERNS: Dict[Scenario, GrowthPattern] = {
    Scenario.CONSERVATIVE: GrowthPattern(monthly_growth_rate=0.05, plateau_month=18),
    Scenario.REALISTIC: GrowthPattern(monthly_growth_rate=0.10, plateau_month=24),
    Scenario.OPTIMISTIC: GrowthPattern(monthly_growth_rate=0.20, plateau_month=36),
}

TIME_MULTIPLIERS: Dict[Timeframe, int] = {
    Timeframe.MONTH: 1,
    Timeframe.QUARTER: 3,
    Timeframe.YEAR: 12,
}

MARKET_SIZE_NORMALIZATION = 1_000_000
MAX_MARKET_SIZE_FACTOR = 2.0

COMPETITION_MULTIPLIERS: Dict[CompetitionLevel, float] = {
    CompetitionLevel.LOW: 1.2,
    CompetitionLevel.MEDIUM: 1.0,
    CompetitionLevel.HIGH: 0.8,
}

DIFFICULTY_MULTIPLIERS: Dict[TechnicalDifficulty, float] = {
    TechnicalDifficulty.BEGINNER: 1.1,
    TechnicalDifficulty.INTERMEDIATE: 1.0,
    TechnicalDifficulty.ADVANCED: 0.9,
}

# 마일스톤 기간 보정 (값이 클수록 오래 걸림)
TIMELINE_DIFFICULTY_ADJUSTMENTS: Dict[TechnicalDifficulty, float] = {
    TechnicalDifficulty.BEGINNER: 0.8,
    TechnicalDifficulty.INTERMEDIATE: 1.0,
    TechnicalDifficulty.ADVANCED: 1.3,
}

TIMELINE_COMPETITION_ADJUSTMENTS: Dict[CompetitionLevel, float] = {
    CompetitionLevel.LOW: 0.9,
    CompetitionLevel.MEDIUM: 1.0,
    CompetitionLevel.HIGH: 1.2,
}

MILESTONE_MONTHS: Dict[str, Tuple[int, int]] = {
    "mvp_to_first_revenue": (2, 4),
    "to_10k": (6, 12),
    "to_100k": (12, 24),
}

FIRST_REVENUE_RATIO = 0.1
MILESTONE_10K_AMOUNT = 10_000
MILESTONE_100K_AMOUNT = 100_000
DEFAULT_GROWTH_MONTHS = 24


class RevenueProjector:
    """매출 예측"""

    def __init__(
        self,
        deriver: Optional[ThemeFactorDeriver] = None,
        analyzer: Optional[RiskOpportunityAnalyzer] = None
    ):
        self.deriver = deriver or factor_deriver
        self.analyzer = analyzer or risk_analyzer

    # ===========================================
    # Base values
    # ===========================================

    def base_revenue(self, theme: Theme) -> float:
        """예상 매출 범위의 중간값"""
        return (theme.estimated_revenue.min + theme.estimated_revenue.max) / 2

    def market_adjustment_factor(self, theme: Theme) -> float:
        """
        시장 보정 계수

        시장 규모(최대 2) * 점수/100 * 경쟁 배수 * 난이도 배수 * 요인 보정
        """
        theme = self.deriver.ensure_scored(theme)

        market_size_factor = min(MAX_MARKET_SIZE_FACTOR, theme.market_size / MARKET_SIZE_NORMALIZATION)
        score_factor = theme.monetization_score / 100
        competition_factor = COMPETITION_MULTIPLIERS[theme.competition_level]
        difficulty_factor = DIFFICULTY_MULTIPLIERS[theme.technical_difficulty]

        additional_factor = 1.0
        factors = theme.monetization_factors
        if factors is not None:
            additional_factor *= 1 + (factors.payment_willingness - 50) / 200  # ±25%
            additional_factor *= 1 + (factors.customer_lifetime_value - 50) / 300  # ±17%

        return market_size_factor * score_factor * competition_factor * difficulty_factor * additional_factor

    # ===========================================
    # Projection
    # ===========================================

    def project_revenue(
        self,
        theme: Theme,
        timeframe: Timeframe = Timeframe.MONTH,
        options: Optional[RevenueOptions] = None
    ) -> RevenueProjection:
        """
        기간별 시나리오 매출 예측

        Args:
            theme: 테마 (점수가 없으면 자동 계산)
            timeframe: month / quarter / year
            options: 시나리오 배수 재정의 등

        Returns:
            RevenueProjection
        """
        theme = self.deriver.ensure_scored(theme)
        timeframe = Timeframe(timeframe)

        base = self.base_revenue(theme)
        adjustment = self.market_adjustment_factor(theme)
        time_multiplier = TIME_MULTIPLIERS[timeframe]
        multipliers = self._resolve_multipliers(options)

        scenarios = {
            scenario.value: round_half_up(base * multipliers[scenario] * adjustment * time_multiplier)
            for scenario in Scenario
        }

        return RevenueProjection(
            timeframe=timeframe,
            scenarios=RevenueScenarios(**scenarios),
            assumptions=self._assumptions(theme, adjustment),
        )

    def _resolve_multipliers(self, options: Optional[RevenueOptions]) -> Dict[Scenario, float]:
        multipliers = dict(DEFAULT_MULTIPLIERS)
        if options is not None and options.custom_multipliers is not None:
            custom = options.custom_multipliers
            for scenario in Scenario:
                value = getattr(custom, scenario.value)
                if value is not None:
                    multipliers[scenario] = value
        return multipliers

    def _assumptions(self, theme: Theme, adjustment: float) -> List[RevenueAssumption]:
        assumptions = [
            RevenueAssumption(factor="시장 규모", value=theme.market_size, confidence=75, source="트렌드 데이터 분석"),
            RevenueAssumption(factor="수익화 점수", value=theme.monetization_score, confidence=80, source="종합 평가 알고리즘"),
            RevenueAssumption(
                factor="경쟁 수준",
                value=COMPETITION_FACTOR_VALUES[theme.competition_level],
                confidence=70,
                source="경쟁 분석",
            ),
            RevenueAssumption(
                factor="기술 난이도",
                value=DIFFICULTY_COST_VALUES[theme.technical_difficulty],
                confidence=85,
                source="기술 요건 분석",
            ),
            RevenueAssumption(factor="시장 보정 계수", value=round_half_up(adjustment, 2), confidence=65, source="복합 요인 분석"),
        ]

        factors = theme.monetization_factors
        if factors is not None:
            assumptions.append(RevenueAssumption(
                factor="지불 의향", value=factors.payment_willingness, confidence=70, source="사용자 행동 분석",
            ))
            assumptions.append(RevenueAssumption(
                factor="고객 생애 가치", value=factors.customer_lifetime_value, confidence=60, source="수익 모델 분석",
            ))

        return assumptions

    # ===========================================
    # Timeline
    # ===========================================

    def timeline(self, theme: Theme) -> RevenueTimeline:
        """
        매출 마일스톤 타임라인

        첫 매출 금액은 월간 realistic 예측의 10%, 나머지는 고정 목표 금액
        """
        monthly = self.project_revenue(theme, Timeframe.MONTH)
        adjustment = (
            TIMELINE_DIFFICULTY_ADJUSTMENTS[theme.technical_difficulty]
            * TIMELINE_COMPETITION_ADJUSTMENTS[theme.competition_level]
        )

        return RevenueTimeline(
            mvp_to_first_revenue=self._milestone(
                "mvp_to_first_revenue", adjustment,
                description="MVP 개발부터 첫 매출까지",
                amount=round_half_up(monthly.scenarios.realistic * FIRST_REVENUE_RATIO),
                confidence=70,
            ),
            to_10k=self._milestone(
                "to_10k", adjustment,
                description="월 매출 1만 달성까지",
                amount=MILESTONE_10K_AMOUNT,
                confidence=65,
            ),
            to_100k=self._milestone(
                "to_100k", adjustment,
                description="월 매출 10만 달성까지",
                amount=MILESTONE_100K_AMOUNT,
                confidence=55,
            ),
        )

    def _milestone(
        self,
        key: str,
        adjustment: float,
        description: str,
        amount: float,
        confidence: float
    ) -> RevenueMilestone:
        low, high = MILESTONE_MONTHS[key]
        min_months = int(round_half_up(low * adjustment))
        max_months = int(round_half_up(high * adjustment))
        return RevenueMilestone(
            period=f"{min_months}-{max_months}개월",
            min_months=min_months,
            max_months=max_months,
            description=description,
            amount=amount,
            confidence=confidence,
        )

    # ===========================================
    # Growth curve
    # ===========================================

    def growth_projection(self, theme: Theme, months: int = DEFAULT_GROWTH_MONTHS) -> RevenueGrowthProjection:
        """
        월별 성장 곡선

        revenue(month) = 기준 월매출 * (1 + rate) ^ (min(month, plateau) - 1)
        """
        if months < 1:
            raise ValidationError(f"예측 개월 수는 1 이상이어야 합니다: {months}", field="months")

        base = self.project_revenue(theme, Timeframe.MONTH).scenarios

        monthly_projections = []
        for month in range(1, months + 1):
            values = {}
            for scenario, pattern in GROWTH_PATTERNS.items():
                exponent = min(month, pattern.plateau_month) - 1
                values[scenario.value] = round_half_up(
                    getattr(base, scenario.value) * (1 + pattern.monthly_growth_rate) ** exponent
                )
            monthly_projections.append(MonthlyRevenue(month=month, **values))

        totals = {
            scenario.value: sum(getattr(p, scenario.value) for p in monthly_projections)
            for scenario in Scenario
        }

        plateau_revenue = {
            scenario.value: getattr(
                monthly_projections[min(pattern.plateau_month, months) - 1], scenario.value
            )
            for scenario, pattern in GROWTH_PATTERNS.items()
        }

        return RevenueGrowthProjection(
            monthly_projections=monthly_projections,
            total_projection=RevenueScenarios(**totals),
            peak_month=min(GROWTH_PATTERNS[Scenario.REALISTIC].plateau_month, months),
            plateau_revenue=RevenueScenarios(**plateau_revenue),
        )

    # ===========================================
    # Full analysis
    # ===========================================

    def perform_revenue_analysis(
        self,
        theme: Theme,
        options: Optional[RevenueOptions] = None,
        timeframe: Timeframe = Timeframe.MONTH
    ) -> RevenueAnalysis:
        """예측 + 타임라인 + (선택) 성장 곡선 + 리스크/기회"""
        options = options or RevenueOptions()
        theme = self.deriver.ensure_scored(theme)

        growth = None
        if options.include_growth_projection:
            growth = self.growth_projection(theme, options.time_horizon_months)

        return RevenueAnalysis(
            projection=self.project_revenue(theme, timeframe, options),
            timeline=self.timeline(theme),
            growth_projection=growth,
            risk_factors=self.analyzer.analyze_risks(theme),
            opportunities=self.analyzer.identify_opportunities(theme),
        )


# 싱글톤 인스턴스
revenue_projector = RevenueProjector()
