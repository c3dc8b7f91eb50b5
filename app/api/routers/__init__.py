from fastapi import APIRouter

from app.api.routers import admin, auth, dashboard, health, loans

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(loans.router)
api_router.include_router(admin.router)
api_router.include_router(dashboard.router)

__all__ = ["api_router"]
