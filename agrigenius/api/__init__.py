"""API router definitions."""

from fastapi import APIRouter

from .auth import router as auth_router
from .chat import router as chat_router
from .logs import router as logs_router
from .market import router as market_router
from .navigation import router as navigation_router
from .profile import router as profile_router
from .routes import health_router
from .sensors import router as sensors_router
from .weather import router as weather_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(profile_router)
api_router.include_router(sensors_router)
api_router.include_router(weather_router)
api_router.include_router(chat_router)
api_router.include_router(market_router)
api_router.include_router(navigation_router)
api_router.include_router(logs_router)

__all__ = ["api_router"]
