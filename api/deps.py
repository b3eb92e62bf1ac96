"""FastAPI dependencies shared by the v1 routes."""

from fastapi import Request

from api.project_store import ProjectStore


def get_store(request: Request) -> ProjectStore:
    """The project store owned by the running app."""
    return request.app.state.project_store
