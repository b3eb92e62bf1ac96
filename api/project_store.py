"""In-memory project store guarded by a single asyncio lock."""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable

from api.errors import FileError, ProjectNotFound
from api.schemas import Project

logger = logging.getLogger("story_builder.api.store")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    """Treat naive timestamps from callers as UTC so they compare with stored ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def render_txt(project: Project) -> str:
    """Title, optional description, then each chapter heading and raw content in storage order."""
    content = f"Title: {project.title}\n"
    if project.description is not None:
        content += f"Description: {project.description}\n"
    for chapter in project.chapters:
        content += f"\n## {chapter.title}\n"
        content += chapter.content
    return content


def render_json(project: Project) -> str:
    try:
        return project.model_dump_json(indent=2)
    except (TypeError, ValueError) as e:
        raise FileError(f"JSON conversion error: {e}") from e


class ProjectStore:
    """
    Mapping of project id -> Project plus the currently selected project.

    Every operation, read or write, holds the same lock for its whole
    duration, so operations are linearizable. Records are copied on the
    way in and out; callers never hold a reference to a stored record.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._projects: dict[str, Project] = {}
        self._current_id: str | None = None
        self._lock = asyncio.Lock()
        self._clock = clock

    async def create(self, title: str, description: str | None = None) -> Project:
        """Create an empty project (no characters, chapters or plot) and return it."""
        project_id = str(uuid.uuid4())
        now = _as_utc(self._clock())
        project = Project(
            id=project_id,
            title=title,
            description=description,
            created_at=now,
            updated_at=now,
        )
        async with self._lock:
            self._projects[project_id] = project
            logger.info("Created project %s (%r)", project_id, title)
            return project.model_copy(deep=True)

    async def list_projects(self) -> list[Project]:
        """Snapshot of all projects, in no particular order."""
        async with self._lock:
            return [p.model_copy(deep=True) for p in self._projects.values()]

    async def get(self, project_id: str) -> Project:
        async with self._lock:
            return self._require(project_id).model_copy(deep=True)

    async def update(self, project_id: str, project: Project) -> Project:
        """
        Replace the stored record with `project` as a whole (not a merge).

        The stored id is kept and updated_at is set by the store: never
        earlier than now, the previous update or the record's created_at.
        Raises ProjectNotFound if the id is unknown.
        """
        async with self._lock:
            previous = self._require(project_id)
            updated_at = max(_as_utc(self._clock()), previous.updated_at, _as_utc(project.created_at))
            stored = project.model_copy(
                update={"id": project_id, "updated_at": updated_at},
                deep=True,
            )
            self._projects[project_id] = stored
            logger.info("Updated project %s", project_id)
            return stored.model_copy(deep=True)

    async def delete(self, project_id: str) -> None:
        async with self._lock:
            self._require(project_id)
            del self._projects[project_id]
            if self._current_id == project_id:
                self._current_id = None
            logger.info("Deleted project %s", project_id)

    async def export(self, project_id: str, fmt: str) -> str:
        """
        Render a project as "txt" or "json".

        Raises ProjectNotFound for an unknown id and FileError for any other format.
        """
        async with self._lock:
            project = self._require(project_id)
            if fmt == "txt":
                return render_txt(project)
            if fmt == "json":
                return render_json(project)
            raise FileError(f"Unsupported export format: {fmt}")

    async def select(self, project_id: str) -> Project:
        """Mark a project as the current one."""
        async with self._lock:
            project = self._require(project_id)
            self._current_id = project_id
            return project.model_copy(deep=True)

    async def current(self) -> Project | None:
        async with self._lock:
            if self._current_id is None:
                return None
            return self._projects[self._current_id].model_copy(deep=True)

    def _require(self, project_id: str) -> Project:
        # Caller must hold self._lock.
        project = self._projects.get(project_id)
        if project is None:
            raise ProjectNotFound(project_id)
        return project
