"""
Application Configuration
환경 변수 기반 설정 관리
"""
from pydantic_settings import BaseSettings
from typing import Optional, List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # ===========================================
    # Application
    # ===========================================
    APP_NAME: str = "Monetization Engine"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # ===========================================
    # Server
    # ===========================================
    HOST: str = "0.0.0.0"
    PORT: int = 8001

    # ===========================================
    # Database (Supabase PostgreSQL / local SQLite)
    # ===========================================
    DATABASE_URL: Optional[str] = None  # 환경변수로 설정 시 PostgreSQL 사용

    @property
    def database_url(self) -> str:
        """
        DATABASE_URL 환경변수가 있으면 PostgreSQL 사용, 없으면 SQLite 사용
        postgresql:// -> postgresql+asyncpg:// 자동 변환
        """
        if self.DATABASE_URL:
            url = self.DATABASE_URL
            if url.startswith("postgresql://"):
                url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
            elif url.startswith("postgres://"):
                url = url.replace("postgres://", "postgresql+asyncpg://", 1)
            return url
        # 로컬 개발용 SQLite
        return "sqlite+aiosqlite:///./monetization_engine.db"

    # ===========================================
    # Scoring
    # ===========================================
    SCORE_DECIMAL_PLACES: int = 0
    TREND_ANALYSIS_DAYS: int = 30
    TREND_SAMPLE_LIMIT: int = 10  # 테마당 최근 트렌드 데이터 개수

    # ===========================================
    # Score History
    # ===========================================
    HISTORY_QUERY_LIMIT: int = 100
    BATCH_HISTORY_LIMIT: int = 50
    HISTORY_RETENTION_DAYS: int = 365
    MIN_RETENTION_DAYS: int = 30

    # ===========================================
    # Batch
    # ===========================================
    BATCH_MAX_THEMES: int = 100

    # ===========================================
    # Scheduler
    # ===========================================
    SCHEDULER_ENABLED: bool = True
    HISTORY_CLEANUP_HOUR: int = 4

    # ===========================================
    # CORS Settings
    # ===========================================
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse ALLOWED_ORIGINS to list"""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # 추가 환경변수 무시


# Create global settings instance
settings = Settings()
