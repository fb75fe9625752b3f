"""
Capabilities that reach the hosted generative service.

The pipeline only sees two narrow protocols, `TextGenerator` and
`ImageGenerator`; the OpenAI-backed implementations below are built once by
the caller and passed in, so tests and alternate vendors can supply fakes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Protocol

from openai import OpenAI

from .config import Settings, get_settings

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    def generate(self, prompt: str, *, web_search: bool = False) -> str:
        """Return the raw text response for a single prompt."""


class ImageGenerator(Protocol):
    def generate(self, prompt: str) -> Optional[str]:
        """Return a data: URI for the image, or None when nothing was produced."""


def build_client(api_key: Optional[str] = None) -> OpenAI:
    """Create an OpenAI client; separated for easier testing."""
    # OpenAI() raises when no key is available; requests with the placeholder get a 401.
    return OpenAI(api_key=api_key or "missing-api-key")


def _response_text_or_raise(response: object, *, step: str) -> str:
    """Extract response text or raise a clear error when output is missing."""
    text = getattr(response, "output_text", None)
    if isinstance(text, str) and text.strip():
        return text

    status = getattr(response, "status", None)
    if status == "incomplete":
        details = getattr(response, "incomplete_details", None)
        reason = getattr(details, "reason", None) if details else None
        raise RuntimeError(f"{step} response incomplete (reason={reason}).")

    err = getattr(response, "error", None)
    if err:
        raise RuntimeError(f"{step} response error: {err}")

    raise RuntimeError(f"{step} response missing output text.")


class OpenAITextGenerator:
    """Text generation through the Responses API, optionally with web search."""

    def __init__(
        self,
        client: OpenAI,
        model: str,
        *,
        system_prompt: str = "",
        web_search_tool: str = "web_search",
        step: str = "Generator",
    ):
        self.client = client
        self.model = model
        self.system_prompt = system_prompt
        self.web_search_tool = web_search_tool
        self.step = step

    def generate(self, prompt: str, *, web_search: bool = False) -> str:
        messages = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": prompt})
        request_kwargs = {"model": self.model, "input": messages}
        if web_search:
            request_kwargs["tools"] = [{"type": self.web_search_tool}]
        logger.debug("%s request to %s (web_search=%s)", self.step, self.model, web_search)
        response = self.client.responses.create(**request_kwargs)
        return _response_text_or_raise(response, step=self.step)


class OpenAIImageGenerator:
    """Image synthesis through the Images API, returned as a base64 data URI."""

    def __init__(self, client: OpenAI, model: str, *, size: str = "1536x1024"):
        self.client = client
        self.model = model
        self.size = size

    def generate(self, prompt: str) -> Optional[str]:
        response = self.client.images.generate(
            model=self.model,
            prompt=(
                "Generate a high-quality, educational, photorealistic or diagrammatic "
                f"image for an encyclopedia about: {prompt}. Wide landscape framing. "
                "No text overlay. Minimalist style."
            ),
            size=self.size,
            n=1,
        )
        for item in getattr(response, "data", None) or []:
            b64 = getattr(item, "b64_json", None)
            if b64:
                return f"data:image/png;base64,{b64}"
        return None


@dataclass
class ServiceCapabilities:
    """Generators handed to the pipeline; built once per process."""

    article: TextGenerator
    revision: TextGenerator
    image: Optional[ImageGenerator] = None


def build_capabilities(
    settings: Settings | None = None, client: Optional[OpenAI] = None
) -> ServiceCapabilities:
    """
    Build the OpenAI-backed capabilities, all sharing one client.

    A missing API key is tolerated here; requests made later will fail and
    surface through the normal error paths.
    """
    settings = settings or get_settings()
    if not settings.openai_api_key and client is None:
        logger.warning("OPENAI_API_KEY is not set; service calls will fail.")
    shared = client or build_client(settings.openai_api_key)
    article_generator = OpenAITextGenerator(
        shared,
        settings.article_model,
        system_prompt=(
            "You are Rewiki AI, a specialized editor that writes concise, modern "
            "encyclopedia articles. You reply with JSON only."
        ),
        web_search_tool=settings.web_search_tool,
        step="Article generator",
    )
    revision_generator = OpenAITextGenerator(
        shared,
        settings.revision_model,
        system_prompt=(
            "You are the Rewiki Quality Control AI. You review proposed edits to "
            "encyclopedia articles and reply with JSON only."
        ),
        web_search_tool=settings.web_search_tool,
        step="Revision analyzer",
    )
    image_generator = OpenAIImageGenerator(
        shared, settings.image_model, size=settings.image_size
    )
    return ServiceCapabilities(
        article=article_generator,
        revision=revision_generator,
        image=image_generator,
    )


@lru_cache(maxsize=1)
def default_capabilities() -> ServiceCapabilities:
    """Process-wide capabilities for callers that do not inject their own."""
    return build_capabilities()
