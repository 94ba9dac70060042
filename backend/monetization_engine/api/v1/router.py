"""
API V1 Router
모든 v1 API 라우터 통합
"""
from fastapi import APIRouter
from monetization_engine.api.v1 import batch, monetization, revenue

router = APIRouter(prefix="/v1")

# 배치 API (/themes/batch-... 가 /themes/{id}/... 보다 먼저 등록)
router.include_router(
    batch.router,
    tags=["배치 수익화 점수"]
)

# 수익화 점수 API
router.include_router(
    monetization.router,
    tags=["수익화 점수"]
)

# 매출 분석 API
router.include_router(
    revenue.router,
    tags=["매출 분석"]
)
