"""API v1 routes."""

from fastapi import APIRouter

from api.routes.v1 import ai, llm, projects

router = APIRouter(prefix="/v1", tags=["v1"])
router.include_router(projects.router, tags=["projects"])
router.include_router(ai.router, tags=["ai"])
router.include_router(llm.router, tags=["llm"])
