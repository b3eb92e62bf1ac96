"""Project routes: CRUD, export, current project selection."""

import logging

from fastapi import APIRouter, Depends, Query, Response

from api.deps import get_store
from api.project_store import ProjectStore
from api.schemas import CurrentProjectRequest, Project, ProjectCreateRequest

logger = logging.getLogger("story_builder.api")

router = APIRouter()

EXPORT_MEDIA_TYPES = {
    "txt": "text/plain; charset=utf-8",
    "json": "application/json",
}


@router.post("/projects", response_model=Project, status_code=201)
async def create_project(body: ProjectCreateRequest, store: ProjectStore = Depends(get_store)) -> Project:
    """Create an empty project. Returns the stored record."""
    return await store.create(body.title, body.description)


@router.get("/projects", response_model=list[Project])
async def list_projects(store: ProjectStore = Depends(get_store)) -> list[Project]:
    """All projects, unordered."""
    return await store.list_projects()


@router.get("/projects/{project_id}", response_model=Project)
async def get_project(project_id: str, store: ProjectStore = Depends(get_store)) -> Project:
    """Get project. 404 if not found."""
    return await store.get(project_id)


@router.put("/projects/{project_id}", response_model=Project)
async def update_project(project_id: str, body: Project, store: ProjectStore = Depends(get_store)) -> Project:
    """Replace the whole project record; updated_at is set by the server. 404 if not found."""
    return await store.update(project_id, body)


@router.delete("/projects/{project_id}", status_code=204)
async def delete_project(project_id: str, store: ProjectStore = Depends(get_store)) -> Response:
    """Delete project. 404 if not found."""
    await store.delete(project_id)
    return Response(status_code=204)


@router.get("/projects/{project_id}/export")
async def export_project(
    project_id: str,
    fmt: str = Query(..., alias="format", description="txt or json"),
    store: ProjectStore = Depends(get_store),
) -> Response:
    """
    Export project as plain text or pretty-printed JSON.
    404 if not found; 400 for any other format.
    """
    content = await store.export(project_id, fmt)
    logger.info("Exported project %s as %s (%d chars)", project_id, fmt, len(content))
    return Response(content=content, media_type=EXPORT_MEDIA_TYPES[fmt])


@router.get("/current-project", response_model=Project | None)
async def get_current_project(store: ProjectStore = Depends(get_store)) -> Project | None:
    """The selected project, or null when none is selected."""
    return await store.current()


@router.put("/current-project", response_model=Project)
async def select_current_project(body: CurrentProjectRequest, store: ProjectStore = Depends(get_store)) -> Project:
    """Select the current project. 404 if not found."""
    return await store.select(body.project_id)
