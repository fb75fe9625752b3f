"""Revision analysis and local application of accepted edits."""

from __future__ import annotations

import logging
from typing import Optional

from .clients import TextGenerator, default_capabilities
from .config import get_settings
from .errors import RevisionApplyError
from .models import Article, ArticleSection, EditKind, RevisionVerdict, new_identifier
from .parsing import parse_json_object
from .schema import VERDICT_SCHEMA, validate_payload

logger = logging.getLogger(__name__)

NO_EXCERPT_SENTINEL = "(none: general edit with no specific excerpt)"

UNAVAILABLE_MESSAGES = {
    "en": "AI service unavailable.",
    "es": "Servicio de IA no disponible.",
}
NEW_SECTION_HEADINGS = {"en": "New Section", "es": "Nueva Sección"}
CHANGE_LOG_NOTES = {EditKind.ADD: "Added section", EditKind.FIX: "Fixed info"}

_EDIT_KIND_INSTRUCTIONS = {
    EditKind.FIX: "Fix: correct or replace the existing content.",
    EditKind.ADD: "Add: write new content to append as a new section.",
}


def truncate_context(text: str, limit: int) -> str:
    if limit <= 0 or len(text) <= limit:
        return text
    return f"{text[:limit]}..."


def build_revision_prompt(
    current_context: str,
    selected_excerpt: str,
    change_request: str,
    language: str,
    edit_kind: EditKind,
) -> str:
    """Compose the single instruction sent for revision analysis."""
    language_name = "Spanish" if language == "es" else "English"
    excerpt = selected_excerpt or NO_EXCERPT_SENTINEL
    return f"""A user wants to edit an article.
Language context: {language_name}. Write new_content and reasoning in {language_name}.
Edit kind: {_EDIT_KIND_INSTRUCTIONS[edit_kind]}

Current text context: "{current_context}"
User selected text: "{excerpt}"
User's requested change: "{change_request}"

Use web search to verify the claims, then analyze:
1. Is the change factually correct?
2. Is it objective?

If YES: return "accepted": true, "new_content" (the rewritten text) and a short "reasoning".
If NO: return "accepted": false and "reasoning" (why).

Return exactly one JSON object {{"accepted", "new_content", "reasoning"}}.
No markdown, no code fences, no commentary."""


def unavailable_verdict(language: str) -> RevisionVerdict:
    return RevisionVerdict(
        accepted=False,
        reasoning=UNAVAILABLE_MESSAGES.get(language, UNAVAILABLE_MESSAGES["en"]),
    )


def analyze_revision(
    current_context: str,
    selected_excerpt: str,
    change_request: str,
    language: str,
    edit_kind: EditKind,
    *,
    text_generator: Optional[TextGenerator] = None,
    context_chars: Optional[int] = None,
) -> RevisionVerdict:
    """
    Ask the service to judge (and possibly rewrite) a proposed edit.

    Never raises: transport, parse and shape failures all come back as a
    rejected verdict with a "service unavailable" reasoning.
    """
    edit_kind = EditKind(edit_kind)
    limit = context_chars if context_chars is not None else get_settings().revision_context_chars
    prompt = build_revision_prompt(
        truncate_context(current_context or "", limit),
        selected_excerpt or "",
        change_request,
        language,
        edit_kind,
    )
    try:
        generator = text_generator or default_capabilities().revision
        payload = parse_json_object(generator.generate(prompt, web_search=True))
        validate_payload(payload, VERDICT_SCHEMA)
        verdict = RevisionVerdict(**payload)
    except Exception:
        logger.warning("Revision analysis failed; returning fallback verdict", exc_info=True)
        return unavailable_verdict(language)

    logger.info("Revision %s (%s)", "accepted" if verdict.accepted else "rejected", edit_kind.value)
    return verdict


def apply_revision(
    article: Article,
    verdict: RevisionVerdict,
    edit_kind: EditKind,
    selected_excerpt: Optional[str] = None,
) -> Article:
    """
    Return a copy of `article` with an accepted verdict applied.

    - add: append a section with a placeholder heading.
    - fix with an excerpt: replace the body of the first section containing it.
    - fix without an excerpt: replace the body of the first section.

    The input article is never modified; RevisionApplyError means nothing changed.
    """
    edit_kind = EditKind(edit_kind)
    if not verdict.accepted:
        raise RevisionApplyError("Cannot apply a rejected revision.")
    replacement = verdict.new_content
    if not replacement:
        raise RevisionApplyError("Accepted revision carries no replacement content.")

    sections = [section.model_copy() for section in article.sections]
    if edit_kind is EditKind.ADD:
        existing_ids = {section.section_id for section in sections}
        new_id = _fresh_section_id(existing_ids)
        sections.append(
            ArticleSection(
                section_id=new_id,
                heading=NEW_SECTION_HEADINGS.get(article.language, NEW_SECTION_HEADINGS["en"]),
                body=replacement,
            )
        )
    else:
        target = _find_fix_target(sections, selected_excerpt)
        sections[target] = sections[target].model_copy(update={"body": replacement})

    revised = article.model_copy(
        update={
            "sections": sections,
            "change_log": f"{article.change_log} | {CHANGE_LOG_NOTES[edit_kind]}",
        }
    )
    # model_copy skips validation; re-run it so the invariants still hold.
    return Article.model_validate(revised.model_dump())


def _find_fix_target(sections: list[ArticleSection], excerpt: Optional[str]) -> int:
    if not sections:
        raise RevisionApplyError("Article has no sections to fix.")
    if not excerpt:
        return 0
    for idx, section in enumerate(sections):
        if excerpt in section.body:
            return idx
    raise RevisionApplyError("Selected excerpt was not found in any section.")


def _fresh_section_id(existing: set[str]) -> str:
    candidate = new_identifier()
    while candidate in existing:
        candidate = new_identifier()
    return candidate
