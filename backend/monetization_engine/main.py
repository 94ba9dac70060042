from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from monetization_engine.core.config import settings
from monetization_engine.core.database import init_db, check_db_connection
from monetization_engine.core.exceptions import MonetizationEngineException
from monetization_engine.api import api_router
from monetization_engine.services.scheduler import retention_scheduler
import logging

# 로깅 설정
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 시작/종료 시 실행"""
    # Startup
    logger.info(f"Starting {settings.APP_NAME}...")

    # 데이터베이스 초기화 (실패해도 서버 시작)
    db_initialized = False
    try:
        db_initialized = await init_db(max_retries=3, retry_delay=5.0)
        if db_initialized:
            logger.info("Database initialized successfully")
        else:
            logger.warning("Database initialization failed - API will start without DB connection")
    except Exception as e:
        logger.error(f"Database initialization error: {e}")

    # 스케줄러 시작 (DB 연결된 경우에만)
    if db_initialized and settings.SCHEDULER_ENABLED:
        try:
            retention_scheduler.start()
        except Exception as e:
            logger.error(f"Failed to start scheduler: {e}")
    else:
        logger.warning("Retention scheduler not started")

    logger.info("API Ready")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}...")

    try:
        retention_scheduler.stop()
    except Exception as e:
        logger.error(f"Error stopping scheduler: {e}")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="테마 수익화 점수 / 추세 분석 / 매출 예측 API",
    lifespan=lifespan
)

# CORS 설정
default_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

origins = list(set(default_origins + settings.allowed_origins_list))

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(MonetizationEngineException)
async def engine_exception_handler(request: Request, exc: MonetizationEngineException):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code} {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# API 라우터 등록
app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """헬스체크 - DB 연결 상태 포함"""
    db_connected = await check_db_connection()
    return {
        "status": "healthy",
        "database": "connected" if db_connected else "disconnected",
        "scheduler": "running" if retention_scheduler.is_running else "stopped"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "monetization_engine.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
