"""AI content generation route: POST /v1/ai/generate."""

from fastapi import APIRouter

from api.schemas import ContentResponse, GenerateRequest
from utils.ai_providers import generate_content

router = APIRouter()


@router.post("/ai/generate", response_model=ContentResponse)
def post_generate(body: GenerateRequest) -> ContentResponse:
    """Generate content with the configured provider. 400 for an unsupported provider."""
    return ContentResponse(content=generate_content(body.prompt, body.config))
