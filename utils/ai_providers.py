"""
Generate AI content for a prompt with the provider named in AIConfig.

Providers are strategies registered by name: openai, claude, local.
None of them talk to a real API yet; each returns a provider-tagged
placeholder that embeds the prompt. Real clients plug in through
register_provider() without touching the store or the LLM proxy.
Unknown providers raise AIConfigError.
"""

import logging
from abc import ABC, abstractmethod

from api.errors import AIConfigError
from api.schemas import AIConfig

logger = logging.getLogger("story_builder.ai")


class ContentGenerator(ABC):
    """Base strategy: turn a prompt into generated text."""

    name = ""

    @abstractmethod
    def generate(self, prompt: str, config: AIConfig) -> str:
        """Return generated text for prompt."""


class OpenAIGenerator(ContentGenerator):
    name = "openai"

    def generate(self, prompt: str, config: AIConfig) -> str:
        return f"[openai] AI generated content: {prompt}"


class ClaudeGenerator(ContentGenerator):
    name = "claude"

    def generate(self, prompt: str, config: AIConfig) -> str:
        return f"[claude] AI generated content: {prompt}"


class LocalGenerator(ContentGenerator):
    """Local model server (LM Studio, Ollama). Raw HTTP calls go through utils.llm_proxy."""

    name = "local"

    def generate(self, prompt: str, config: AIConfig) -> str:
        return f"[local] Local AI generated content: {prompt}"


_providers: dict[str, ContentGenerator] = {}


def register_provider(name: str, generator: ContentGenerator) -> None:
    """Register (or replace) the strategy used for provider `name`."""
    _providers[_normalize(name)] = generator


def get_provider(name: str) -> ContentGenerator:
    """Return the strategy for `name`. Raises AIConfigError if none is registered."""
    generator = _providers.get(_normalize(name))
    if generator is None:
        raise AIConfigError(f"Unsupported AI provider: {name}")
    return generator


def generate_content(prompt: str, config: AIConfig) -> str:
    """
    Generate content for prompt using config.provider.

    Args:
        prompt: User prompt string.
        config: Provider, model and sampling settings for this call.

    Returns:
        Generated text.

    Raises:
        AIConfigError: provider is not one of the registered names.
    """
    generator = get_provider(config.provider)
    logger.info("Generating content: provider=%s, model=%s, prompt_len=%d", generator.name, config.model or "-", len(prompt))
    return generator.generate(prompt, config)


def _normalize(name: str) -> str:
    return (name or "").strip().lower()


for _generator in (OpenAIGenerator(), ClaudeGenerator(), LocalGenerator()):
    register_provider(_generator.name, _generator)
