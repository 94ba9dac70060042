"""
Theme Factor Deriver
테마의 정적 속성 + 트렌드 신호로 6개 수익화 요인 도출

- market_size: 시장 규모(백만 단위) * 10, 최대 100
- competition_level: low 20 / medium 50 / high 80
- customer_acquisition_cost: beginner 30 / intermediate 50 / advanced 70
- revenue_models: 데이터 소스 수 * 20, 최대 100
- customer_lifetime_value: (예상 매출 min + max) / 2000
- payment_willingness: 기본 50, 트렌드 데이터가 있으면 검색량/성장률로 재계산
"""
import logging
from typing import Dict, Optional, Sequence

from monetization_engine.models.monetization import (
    CompetitionLevel,
    MonetizationFactors,
    TechnicalDifficulty,
    Theme,
    TrendData,
)
from monetization_engine.services.factor_normalizer import (
    DEFAULT_FACTOR_VALUE,
    PartialValues,
    normalize_factors,
)
from monetization_engine.services.score_calculator import ScoreCalculator, score_calculator

logger = logging.getLogger(__name__)

MARKET_SIZE_UNIT = 1_000_000
SEARCH_VOLUME_UNIT = 10_000
GROWTH_BOOST_THRESHOLD = 10  # 평균 성장률 ±10% 초과 시 시장 규모 보정

COMPETITION_FACTOR_VALUES: Dict[CompetitionLevel, float] = {
    CompetitionLevel.LOW: 20,
    CompetitionLevel.MEDIUM: 50,
    CompetitionLevel.HIGH: 80,
}

DIFFICULTY_COST_VALUES: Dict[TechnicalDifficulty, float] = {
    TechnicalDifficulty.BEGINNER: 30,
    TechnicalDifficulty.INTERMEDIATE: 50,
    TechnicalDifficulty.ADVANCED: 70,
}


class ThemeFactorDeriver:
    """테마 데이터 → 수익화 요인"""

    def __init__(self, calculator: Optional[ScoreCalculator] = None):
        self.calculator = calculator or score_calculator

    def derive_factors(
        self,
        theme: Theme,
        trend_data: Optional[Sequence[TrendData]] = None
    ) -> MonetizationFactors:
        """
        요인 도출

        Args:
            theme: 테마
            trend_data: 테마의 트렌드 데이터 (순서 무관, 평균값 사용)

        Returns:
            정규화된 MonetizationFactors
        """
        market_size = min(100.0, theme.market_size / MARKET_SIZE_UNIT * 10)
        payment_willingness = DEFAULT_FACTOR_VALUE
        revenue = theme.estimated_revenue

        if trend_data:
            count = len(trend_data)
            avg_search_volume = sum(t.search_volume for t in trend_data) / count
            avg_growth_rate = sum(t.growth_rate for t in trend_data) / count

            payment_willingness = min(
                100.0,
                avg_search_volume / SEARCH_VOLUME_UNIT * 50 + max(0.0, avg_growth_rate) * 2
            )

            if avg_growth_rate > GROWTH_BOOST_THRESHOLD:
                market_size = min(100.0, market_size * 1.2)
            elif avg_growth_rate < -GROWTH_BOOST_THRESHOLD:
                market_size = max(0.0, market_size * 0.8)

        return normalize_factors({
            "market_size": market_size,
            "payment_willingness": payment_willingness,
            "competition_level": COMPETITION_FACTOR_VALUES[theme.competition_level],
            "revenue_models": min(100, len(theme.data_sources) * 20),
            "customer_acquisition_cost": DIFFICULTY_COST_VALUES[theme.technical_difficulty],
            "customer_lifetime_value": (revenue.min + revenue.max) / 2000,
        })

    def update_theme_with_score(
        self,
        theme: Theme,
        trend_data: Optional[Sequence[TrendData]] = None,
        weights: PartialValues = None
    ) -> Theme:
        """
        점수/요인이 채워진 테마 사본 반환 (원본은 변경하지 않음)
        """
        factors = self.derive_factors(theme, trend_data)
        score = self.calculator.calculate_score(factors, weights)

        logger.debug(f"Theme {theme.id} scored {score}")
        return theme.model_copy(update={
            "monetization_score": score,
            "monetization_factors": factors,
        })

    def ensure_scored(self, theme: Theme) -> Theme:
        """저장된 점수가 없는 테마는 트렌드 데이터 없이 계산"""
        if theme.monetization_score is not None:
            return theme
        logger.info(f"Theme {theme.id} has no stored score, deriving from theme attributes")
        return self.update_theme_with_score(theme)


# 싱글톤 인스턴스
factor_deriver = ThemeFactorDeriver()
