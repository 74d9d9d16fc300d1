"""API v1 router configuration."""

from fastapi import APIRouter

from api.v1.routes.chat import router as chat_router
from api.v1.routes.meetings import router as meetings_router
from api.v1.routes.study_groups import router as study_groups_router

router = APIRouter()
router.include_router(study_groups_router)
router.include_router(meetings_router)
router.include_router(chat_router)
