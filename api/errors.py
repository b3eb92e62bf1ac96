"""Application errors. Each one renders as a single user-displayable message."""


class AppError(Exception):
    """Base error for store and AI operations."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class ProjectNotFound(AppError):
    """No project is stored under the given id."""

    status_code = 404

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


class AIConfigError(AppError):
    status_code = 400

    def __init__(self, reason: str):
        super().__init__(f"AI configuration error: {reason}")


class FileError(AppError):
    """Export or serialization failed."""

    status_code = 400

    def __init__(self, reason: str):
        super().__init__(f"File operation error: {reason}")


class DatabaseError(AppError):
    """Reserved for a persistence layer; nothing raises it yet."""

    status_code = 500

    def __init__(self, reason: str):
        super().__init__(f"Database error: {reason}")
