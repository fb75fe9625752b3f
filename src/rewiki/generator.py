"""Content generator: topic in, validated and enriched Article out.

One mandatory text request builds the article JSON; one best-effort image
request follows, since its prompt comes from the text result. Capabilities
are injected so tests can run offline with deterministic fakes.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .clients import ImageGenerator, TextGenerator, default_capabilities
from .errors import ArticleValidationError, GenerationError
from .models import SUPPORTED_LANGUAGES, Article, new_identifier
from .parsing import parse_json_object
from .schema import ARTICLE_SCHEMA, validate_payload

logger = logging.getLogger(__name__)

LANGUAGE_INSTRUCTIONS = {
    "en": "Generate EVERYTHING in English.",
    "es": "Generate EVERYTHING in Spanish (Español).",
}
LANGUAGE_NAMES = {"en": "English", "es": "Spanish"}

# Display formats for `last_updated` when the service omits it.
DATE_FORMATS = {"en": "%m/%d/%Y", "es": "%d/%m/%Y"}

# Fields assigned locally; anything the service echoes for them is discarded.
_LOCAL_FIELDS = ("identifier", "language", "generated_image")


def format_display_date(value: date, language: str) -> str:
    return value.strftime(DATE_FORMATS.get(language, DATE_FORMATS["en"]))


def _check_language(language: str) -> None:
    if language not in SUPPORTED_LANGUAGES:
        raise ValueError(
            f"Unsupported language {language!r}; expected one of {', '.join(SUPPORTED_LANGUAGES)}."
        )


def build_article_prompt(topic: str, language: str) -> str:
    """Compose the single instruction sent for article generation."""
    return f"""Topic: "{topic}"
Language: {LANGUAGE_INSTRUCTIONS[language]}

Use web search to ground every fact. Also use it to find two distinct, publicly
hosted image URLs about the topic: a primary header image and a secondary
contextual image.

Return exactly one JSON object with these keys:
- "topic": the confirmed, human-readable name of the topic.
- "summary": a very clear, concise summary (TL;DR).
- "sections": 3-4 key sections, each {{"section_id", "heading", "body"}}; every section_id unique.
- "image_prompts": a list with 1 very descriptive prompt to generate an educational image about this topic.
- "primary_image_url": URL of the primary image found by search.
- "secondary_image_url": URL of the secondary image found by search (different from the primary).
- "original_style_snippet": a simulated complex, old-fashioned encyclopedia paragraph about this topic for comparison.
- "change_log": what you simplified (in {LANGUAGE_NAMES[language]}).
- "fun_fact": a fun or surprising fact about the topic.
- "study_tips": an array of 3 key bullet points useful for a student's homework.
- "related_topics": an array of 3 related topics (strings) to explore next.
- "quiz": an array of 3 multiple-choice questions, each {{"question", "options", "correct_option_index"}} where correct_option_index is the 0-based index of the right option.
- "last_updated": the current date.

The tone must be educational, objective, and modern.
Output the JSON object only: no markdown, no code fences, no commentary."""


def parse_article_payload(text: str | None) -> Dict[str, Any]:
    """Decode and schema-check raw article text. Raises GenerationError subclasses."""
    try:
        payload = parse_json_object(text)
    except ValueError as exc:
        raise GenerationError(f"Article response could not be parsed: {exc}") from exc
    try:
        return validate_payload(payload, ARTICLE_SCHEMA)
    except ValueError as exc:
        raise ArticleValidationError(str(exc)) from exc


def _attach_generated_image(
    article: Article, image_generator: Optional[ImageGenerator]
) -> Article:
    if image_generator is None or not article.image_prompts:
        return article
    try:
        image = image_generator.generate(article.image_prompts[0])
    except Exception:
        logger.warning("Image generation failed for %r", article.topic, exc_info=True)
        return article
    if image:
        article.generated_image = image
    return article


def generate_article(
    topic: str,
    language: str,
    *,
    text_generator: Optional[TextGenerator] = None,
    image_generator: Optional[ImageGenerator] = None,
    today: Optional[date] = None,
) -> Article:
    """
    Generate a complete article for `topic` in `language`.

    Raises GenerationError when the service fails or returns non-JSON, and
    ArticleValidationError when the JSON lacks the article shape. A failed
    image request never fails the call; `generated_image` stays unset.
    """
    topic = (topic or "").strip()
    if not topic:
        raise ValueError("topic is required.")
    _check_language(language)

    if text_generator is None:
        capabilities = default_capabilities()
        text_generator = capabilities.article
        image_generator = image_generator or capabilities.image

    prompt = build_article_prompt(topic, language)
    try:
        raw_text = text_generator.generate(prompt, web_search=True)
    except Exception as exc:
        logger.error("Article generation request failed for %r: %s", topic, exc)
        raise GenerationError(f"Article generation failed: {exc}") from exc

    payload = dict(parse_article_payload(raw_text))
    for key in _LOCAL_FIELDS:
        payload.pop(key, None)
    if not (payload.get("last_updated") or "").strip():
        payload["last_updated"] = format_display_date(today or date.today(), language)

    try:
        article = Article(identifier=new_identifier(), language=language, **payload)
    except ValidationError as exc:
        raise ArticleValidationError(f"Article payload rejected: {exc}") from exc

    logger.info("Generated article %s for %r (%s)", article.identifier, article.topic, language)
    return _attach_generated_image(article, image_generator)
