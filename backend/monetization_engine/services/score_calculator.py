"""
Score Calculator Service
정규화된 요인 / 가중치로 수익화 점수(0-100) 계산

- score = Σ weight_i * effective_i
- effective_i = factor_i (일반 요인), 100 - factor_i (경쟁 수준, 고객 획득 비용)
"""
import math
from typing import Dict, Optional

from monetization_engine.core.config import settings
from monetization_engine.models.monetization import INVERTED_FACTORS, MonetizationFactors
from monetization_engine.services.factor_normalizer import (
    PartialValues,
    normalize_factors,
    normalize_weights,
)


def round_half_up(value: float, decimal_places: int = 0) -> float:
    """0.5 는 올림 처리하는 반올림 (은행가 반올림 아님)"""
    scale = 10 ** decimal_places
    return math.floor(value * scale + 0.5) / scale


class ScoreCalculator:
    """가중합 기반 수익화 점수 계산 (상태 없음)"""

    def __init__(self, decimal_places: Optional[int] = None):
        self.decimal_places = (
            settings.SCORE_DECIMAL_PLACES if decimal_places is None else decimal_places
        )

    def calculate_breakdown(
        self,
        factors: PartialValues,
        weights: PartialValues = None
    ) -> Dict[str, float]:
        """
        요인별 기여도 계산 (합산 전)

        Args:
            factors: 요인 값 (누락/범위 밖 값은 정규화됨)
            weights: 가중치 (누락 값은 기본 가중치)

        Returns:
            {"market_size": 20.0, ...} 요인별 점수 기여분
        """
        normalized_factors = normalize_factors(factors)
        normalized_weights = normalize_weights(weights)

        breakdown = {}
        for name, value in normalized_factors.items():
            effective = 100 - value if name in INVERTED_FACTORS else value
            breakdown[name] = effective * getattr(normalized_weights, name)
        return breakdown

    def calculate_score(
        self,
        factors: PartialValues,
        weights: PartialValues = None
    ) -> float:
        """
        수익화 점수 계산

        Returns:
            0-100 점수 (설정된 소수 자리로 반올림)
        """
        breakdown = self.calculate_breakdown(factors, weights)
        return round_half_up(sum(breakdown.values()), self.decimal_places)


# 싱글톤 인스턴스
score_calculator = ScoreCalculator()
