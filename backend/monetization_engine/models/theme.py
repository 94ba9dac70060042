from sqlalchemy import Column, Integer, String, DateTime, Float, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from monetization_engine.core.database import Base


class ThemeRecord(Base):
    """테마 테이블 (외부 CRUD 레이어가 생성, 엔진은 점수만 갱신)"""
    __tablename__ = "themes"

    id = Column(String(64), primary_key=True, index=True)
    title = Column(String(255), nullable=False, default="")
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True, index=True)

    # 시장 속성
    market_size = Column(Float, default=0)
    competition_level = Column(String(20), nullable=False)  # low / medium / high
    technical_difficulty = Column(String(20), nullable=False)  # beginner / intermediate / advanced
    estimated_revenue_min = Column(Float, default=0)
    estimated_revenue_max = Column(Float, default=0)
    data_sources = Column(JSON, nullable=True)  # [{"source": ..., "search_volume": ..., ...}]

    # 수익화 점수
    monetization_score = Column(Float, nullable=True, index=True)
    monetization_factors = Column(JSON, nullable=True)

    # 타임스탬프
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    trend_data = relationship("TrendRecord", back_populates="theme")


class TrendRecord(Base):
    """트렌드 수집 데이터"""
    __tablename__ = "trend_data"

    id = Column(Integer, primary_key=True, index=True)
    theme_id = Column(String(64), ForeignKey("themes.id"), nullable=False, index=True)
    source = Column(String(50), nullable=False, default="unknown")
    search_volume = Column(Float, default=0)
    growth_rate = Column(Float, default=0)
    extra = Column("metadata", JSON, nullable=True)
    timestamp = Column(DateTime, default=datetime.utcnow, index=True)

    # Relationships
    theme = relationship("ThemeRecord", back_populates="trend_data")


class ScoreHistoryRecord(Base):
    """수익화 점수 히스토리 (append-only)"""
    __tablename__ = "score_history"

    id = Column(Integer, primary_key=True, index=True)
    theme_id = Column(String(64), nullable=False, index=True)
    score = Column(Float, nullable=False)
    factors = Column(JSON, nullable=False)
    extra = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
