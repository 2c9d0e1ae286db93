from fastapi import APIRouter

from skycast.api.routes import meta, weather

api_router = APIRouter(prefix="/api")
api_router.include_router(meta.router, tags=["meta"])
api_router.include_router(weather.router, tags=["weather"])
