from fastapi import APIRouter
from monetization_engine.api.v1.router import router as v1_router

api_router = APIRouter()

# V1 API (수익화 점수 엔진)
api_router.include_router(v1_router)
