"""
Risk & Opportunity Analyzer
테마 속성 기반 규칙형 리스크 / 기회 분류

각 규칙은 독립적으로 평가되며 여러 개가 동시에 적용될 수 있다.
"""
from typing import List

from monetization_engine.models.monetization import (
    CompetitionLevel,
    ImpactLevel,
    Opportunity,
    RiskFactor,
    TechnicalDifficulty,
    Theme,
)

SMALL_MARKET_THRESHOLD = 500_000
LARGE_MARKET_THRESHOLD = 1_000_000
LOW_SCORE_THRESHOLD = 50
HIGH_SCORE_THRESHOLD = 80
LOW_PAYMENT_WILLINGNESS = 40
HIGH_PAYMENT_WILLINGNESS = 70


class RiskOpportunityAnalyzer:
    """규칙 기반 리스크 / 기회 분석"""

    def analyze_risks(self, theme: Theme) -> List[RiskFactor]:
        risks = []
        factors = theme.monetization_factors
        score = theme.monetization_score

        if theme.competition_level == CompetitionLevel.HIGH:
            risks.append(RiskFactor(
                factor="고경쟁 시장",
                impact=ImpactLevel.HIGH,
                probability=80,
                mitigation="차별화 전략 강화, 니치 시장 특화",
            ))

        if theme.technical_difficulty == TechnicalDifficulty.ADVANCED:
            risks.append(RiskFactor(
                factor="기술 구현 복잡성",
                impact=ImpactLevel.MEDIUM,
                probability=70,
                mitigation="단계적 개발, 기술 부채 관리",
            ))

        if theme.market_size < SMALL_MARKET_THRESHOLD:
            risks.append(RiskFactor(
                factor="제한적인 시장 규모",
                impact=ImpactLevel.MEDIUM,
                probability=60,
                mitigation="시장 확대 전략, 인접 시장 진출",
            ))

        if score is not None and score < LOW_SCORE_THRESHOLD:
            risks.append(RiskFactor(
                factor="낮은 수익화 가능성",
                impact=ImpactLevel.HIGH,
                probability=75,
                mitigation="수익 모델 재검토, 가치 제안 강화",
            ))

        if factors is not None and factors.payment_willingness < LOW_PAYMENT_WILLINGNESS:
            risks.append(RiskFactor(
                factor="낮은 지불 의향",
                impact=ImpactLevel.HIGH,
                probability=70,
                mitigation="프리미엄 모델, 가치 명확화",
            ))

        return risks

    def identify_opportunities(self, theme: Theme) -> List[Opportunity]:
        opportunities = []
        factors = theme.monetization_factors
        score = theme.monetization_score

        if theme.competition_level == CompetitionLevel.LOW:
            opportunities.append(Opportunity(
                opportunity="블루오션 시장",
                potential=ImpactLevel.HIGH,
                timeframe="6-12개월",
                requirements=["신속한 시장 진입", "브랜드 구축"],
            ))

        if score is not None and score >= HIGH_SCORE_THRESHOLD:
            opportunities.append(Opportunity(
                opportunity="높은 수익화 잠재력",
                potential=ImpactLevel.HIGH,
                timeframe="3-6개월",
                requirements=["효율적인 개발", "마케팅 투자"],
            ))

        if theme.market_size >= LARGE_MARKET_THRESHOLD:
            opportunities.append(Opportunity(
                opportunity="대규모 시장 확장",
                potential=ImpactLevel.MEDIUM,
                timeframe="12-24개월",
                requirements=["확장 가능한 설계", "자금 조달"],
            ))

        if theme.technical_difficulty == TechnicalDifficulty.BEGINNER:
            opportunities.append(Opportunity(
                opportunity="신속한 MVP 개발",
                potential=ImpactLevel.MEDIUM,
                timeframe="1-3개월",
                requirements=["최소한의 리소스", "시장 검증"],
            ))

        if factors is not None and factors.payment_willingness >= HIGH_PAYMENT_WILLINGNESS:
            opportunities.append(Opportunity(
                opportunity="높은 지불 의향 활용",
                potential=ImpactLevel.HIGH,
                timeframe="3-9개월",
                requirements=["프리미엄 기능 개발", "가격 전략 최적화"],
            ))

        return opportunities


# 싱글톤 인스턴스
risk_analyzer = RiskOpportunityAnalyzer()
