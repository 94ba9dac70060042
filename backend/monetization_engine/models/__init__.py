from monetization_engine.models.theme import ThemeRecord, TrendRecord, ScoreHistoryRecord

__all__ = ["ThemeRecord", "TrendRecord", "ScoreHistoryRecord"]
