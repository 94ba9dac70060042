"""
Trend Analyzer
현재 점수 / 요인을 히스토리와 비교하여 추세, 변동성, 신뢰도, 요인 기여 분석

- 추세: 직전 점수 대비 변화율 |Δ%| < 2 → stable
- 변동성: 최근 10개 히스토리 + 현재 점수의 모표준편차 (최대 100)
- 신뢰도: min(100, 표본수/10*100) - 변동성*0.5
"""
import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from monetization_engine.models.monetization import (
    FactorAttribution,
    MonetizationFactors,
    ScoreAnalysis,
    ScoreHistoryEntry,
    TrendDirection,
)

logger = logging.getLogger(__name__)

STABLE_THRESHOLD_PERCENT = 2.0
VOLATILITY_SAMPLE_SIZE = 10
FACTOR_CHANGE_THRESHOLD = 1.0
MAX_VOLATILITY = 100.0


def classify_change(change_percentage: float) -> TrendDirection:
    """변화율 → 추세 방향"""
    if abs(change_percentage) < STABLE_THRESHOLD_PERCENT:
        return TrendDirection.STABLE
    if change_percentage > 0:
        return TrendDirection.INCREASING
    return TrendDirection.DECREASING


def percentage_change(previous: float, current: float) -> float:
    """이전 값이 0 이하이면 0"""
    if previous <= 0:
        return 0.0
    return (current - previous) / previous * 100


class TrendAnalyzer:
    """점수 추세 분석"""

    def analyze_trend(
        self,
        current_score: float,
        current_factors: MonetizationFactors,
        history: Sequence[ScoreHistoryEntry]
    ) -> ScoreAnalysis:
        """
        추세 분석 (히스토리가 비어 있어도 실패하지 않음)

        Args:
            current_score: 현재 점수
            current_factors: 현재 요인
            history: 점수 히스토리 (순서 무관)

        Returns:
            ScoreAnalysis
        """
        sorted_history = sorted(history, key=lambda entry: entry.timestamp, reverse=True)
        previous_entry = sorted_history[0] if sorted_history else None
        previous_score = previous_entry.score if previous_entry else None

        change = 0.0
        trend = TrendDirection.STABLE
        if previous_score is not None:
            change = percentage_change(previous_score, current_score)
            trend = classify_change(change)

        volatility, sample_size = self._volatility(current_score, sorted_history)

        base_confidence = min(100.0, sample_size / VOLATILITY_SAMPLE_SIZE * 100)
        confidence = max(0.0, base_confidence - volatility * 0.5)

        return ScoreAnalysis(
            current_score=current_score,
            previous_score=previous_score,
            trend=trend,
            change_percentage=change,
            volatility=volatility,
            confidence=confidence,
            factors=self._attribute_factors(current_factors, previous_entry),
        )

    def _volatility(
        self,
        current_score: float,
        sorted_history: List[ScoreHistoryEntry]
    ) -> Tuple[float, int]:
        """최근 점수 표본의 모표준편차와 표본 수"""
        scores = [current_score] + [
            entry.score for entry in sorted_history[:VOLATILITY_SAMPLE_SIZE]
        ]
        volatility = float(np.std(np.array(scores, dtype=float)))
        return min(MAX_VOLATILITY, volatility), len(scores)

    def _attribute_factors(
        self,
        current_factors: MonetizationFactors,
        previous_entry: Optional[ScoreHistoryEntry]
    ) -> FactorAttribution:
        """가장 강한/약한 요인, 가장 개선/하락한 요인"""
        values = list(current_factors.items())
        # 동점이면 앞선 요인 우선 (정렬 안정성)
        ranked = sorted(values, key=lambda item: item[1], reverse=True)

        most_improved = None
        most_declined = None
        if previous_entry is not None:
            previous = previous_entry.factors
            changes = sorted(
                ((name, value - getattr(previous, name)) for name, value in values),
                key=lambda item: item[1],
                reverse=True,
            )
            if changes[0][1] > FACTOR_CHANGE_THRESHOLD:
                most_improved = changes[0][0]
            if changes[-1][1] < -FACTOR_CHANGE_THRESHOLD:
                most_declined = changes[-1][0]

        return FactorAttribution(
            strongest=ranked[0][0],
            weakest=ranked[-1][0],
            most_improved=most_improved,
            most_declined=most_declined,
        )


# 싱글톤 인스턴스
trend_analyzer = TrendAnalyzer()
