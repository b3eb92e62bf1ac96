"""Local LLM proxy route: POST /v1/llm/proxy."""

import logging

from fastapi import APIRouter, HTTPException

from api.schemas import ContentResponse, ProxyRequest
from utils.llm_proxy import ProxyError, forward

logger = logging.getLogger("story_builder.api")

router = APIRouter()


@router.post("/llm/proxy", response_model=ContentResponse)
def post_llm_proxy(body: ProxyRequest) -> ContentResponse:
    """
    Forward body and headers to the local LLM endpoint and return its response text.

    Runs in FastAPI's threadpool, so concurrent proxy calls do not wait on each other
    or on the project store. Upstream status codes are not inspected; transport
    failures return 502 with a human-readable message.
    """
    if not body.endpoint or not body.endpoint.strip():
        raise HTTPException(status_code=400, detail="Provide endpoint.")
    try:
        text = forward(body.endpoint.strip(), body.body, body.headers)
    except ProxyError as e:
        raise HTTPException(status_code=502, detail=e.message)
    return ContentResponse(content=text)
