# API routes
from fastapi import APIRouter
from app.api.health import router as health_router
from app.api.checklist import router as checklist_router
from app.api.answer_storage import router as answer_storage_router
from app.api.images import router as images_router, uploads_router

# Combine all routers
router = APIRouter()
router.include_router(health_router)
router.include_router(checklist_router)
router.include_router(answer_storage_router)
router.include_router(images_router)

__all__ = ["router", "uploads_router"]
