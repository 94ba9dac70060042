from monetization_engine.services.score_calculator import score_calculator
from monetization_engine.services.factor_deriver import factor_deriver
from monetization_engine.services.trend_analyzer import trend_analyzer
from monetization_engine.services.risk_analyzer import risk_analyzer
from monetization_engine.services.revenue_projector import revenue_projector
from monetization_engine.services.score_history import score_history_tracker
from monetization_engine.services.theme_repository import theme_repository, trend_repository
from monetization_engine.services.batch_orchestrator import batch_orchestrator

__all__ = [
    "score_calculator",
    "factor_deriver",
    "trend_analyzer",
    "risk_analyzer",
    "revenue_projector",
    "score_history_tracker",
    "theme_repository",
    "trend_repository",
    "batch_orchestrator",
]
