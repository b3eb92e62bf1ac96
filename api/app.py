"""
FastAPI application for the Story Builder backend.

Run with: python main.py  (or: uvicorn api.app:create_app --factory --reload)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.errors import AppError
from api.project_store import ProjectStore
from api.routes.v1 import router as v1_router

logger = logging.getLogger("story_builder.api")


def create_app(store: ProjectStore | None = None) -> FastAPI:
    """Build the app around one explicitly constructed project store."""
    application = FastAPI(
        title="Story Builder API",
        description="Projects, AI content generation and a local LLM proxy for the writing assistant.",
        version="0.1.0",
    )
    application.state.project_store = store if store is not None else ProjectStore()
    application.include_router(v1_router)

    @application.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})

    @application.get("/health")
    def health() -> dict[str, str]:
        """Liveness check."""
        return {"status": "ok"}

    return application
