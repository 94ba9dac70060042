from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from monetization_engine.core.config import settings
import asyncio
import logging

logger = logging.getLogger(__name__)

# PostgreSQL 사용 시 connection pool 설정 추가
db_url = settings.database_url
is_postgres = db_url.startswith("postgresql")

engine_kwargs = {
    "echo": settings.DEBUG,
    "future": True,
}

# PostgreSQL에서는 NullPool 사용 (serverless 환경 호환)
if is_postgres:
    engine_kwargs["poolclass"] = NullPool
    engine_kwargs["connect_args"] = {
        "timeout": 30,  # 연결 타임아웃 30초
        "command_timeout": 60,  # 쿼리 타임아웃 60초
        "server_settings": {
            "application_name": "monetization-engine"
        }
    }

engine = create_async_engine(db_url, **engine_kwargs)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False
)

Base = declarative_base()


async def init_db(max_retries: int = 3, retry_delay: float = 5.0) -> bool:
    """
    데이터베이스 초기화 - 테이블 생성

    Returns:
        초기화 성공 여부 (실패해도 예외를 올리지 않음)
    """
    # Import models to register them with Base
    from monetization_engine.models import ThemeRecord, TrendRecord, ScoreHistoryRecord  # noqa: F401

    logger.info(f"Is PostgreSQL: {is_postgres}")

    for attempt in range(1, max_retries + 1):
        try:
            async with asyncio.timeout(45):  # 전체 작업 45초 제한
                async with engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables created successfully")
            return True

        except asyncio.TimeoutError:
            logger.error(f"DATABASE CONNECTION TIMEOUT (attempt {attempt}/{max_retries})")
        except Exception as e:
            logger.error(f"DATABASE CONNECTION FAILED (attempt {attempt}/{max_retries}): {type(e).__name__}: {e}")

        if attempt < max_retries:
            await asyncio.sleep(retry_delay)

    return False


async def check_db_connection() -> bool:
    """헬스체크용 DB 연결 확인"""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        return False
