"""Pydantic models for projects, AI settings and API request/response bodies."""

from datetime import datetime

from pydantic import BaseModel, Field


class Character(BaseModel):
    id: str
    name: str
    age: int | None = None
    description: str = ""
    role: str = ""
    personality: str = ""
    background: str = ""


class Act(BaseModel):
    id: str
    title: str
    description: str = ""
    order: int = Field(default=0, description="Caller-assigned position; not validated")


class Plot(BaseModel):
    id: str
    title: str
    genre: str = ""
    theme: str = ""
    setting: str = ""
    conflict: str = ""
    resolution: str = ""
    acts: list[Act] = Field(default_factory=list)


class Chapter(BaseModel):
    id: str
    title: str
    content: str = ""
    order: int = Field(default=0, description="Caller-assigned position; export ignores it")
    word_count: int = Field(default=0, description="Caller-supplied; never recomputed from content")


class Project(BaseModel):
    """A story project. Stored and replaced as a whole record."""

    id: str
    title: str
    description: str | None = None
    characters: list[Character] = Field(default_factory=list)
    plot: Plot | None = None
    synopsis: str | None = None
    chapters: list[Chapter] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class AIConfig(BaseModel):
    """Transient AI settings passed along with a generation request."""

    provider: str = Field(..., description="openai | claude | local; anything else is rejected")
    api_key: str | None = Field(default=None, description="Provider API key (optional)")
    model: str = ""
    temperature: float = 0.7
    max_tokens: int = 2048


class ProjectCreateRequest(BaseModel):
    """Request body for POST /v1/projects."""

    title: str = Field(..., description="Project title")
    description: str | None = Field(default=None, description="Optional description")


class CurrentProjectRequest(BaseModel):
    """Request body for PUT /v1/current-project."""

    project_id: str


class GenerateRequest(BaseModel):
    """Request body for POST /v1/ai/generate."""

    prompt: str
    config: AIConfig


class ProxyRequest(BaseModel):
    """Request body for POST /v1/llm/proxy."""

    endpoint: str = Field(..., description="Local LLM server URL, e.g. http://localhost:1234/v1/chat/completions")
    body: str = Field(default="", description="Raw request body forwarded as-is")
    headers: dict[str, str] = Field(default_factory=dict)


class ContentResponse(BaseModel):
    """Response for generation and proxy calls."""

    content: str
