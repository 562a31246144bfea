from fastapi import APIRouter
from notification_center.api.v1.health import router as health_router
from notification_center.api.v1.notifications import router as notifications_router


api_router = APIRouter()
api_router.include_router(health_router, prefix="/v1", tags=["health"])
api_router.include_router(notifications_router, prefix="/v1/notifications", tags=["notifications"])
