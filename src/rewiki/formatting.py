"""Markdown rendering of articles for the command line and exports."""

from __future__ import annotations

from typing import List

from .models import Article

LABELS = {
    "en": {
        "summary": "Summary",
        "fun_fact": "Did you know?",
        "study_tips": "Homework help",
        "quiz": "Quiz",
        "related": "Related topics",
        "original": "The old way",
        "change_log": "What changed",
        "updated": "Last updated",
        "images": "Images",
    },
    "es": {
        "summary": "Resumen",
        "fun_fact": "¿Sabías que?",
        "study_tips": "Ayuda para tareas",
        "quiz": "Cuestionario",
        "related": "Temas relacionados",
        "original": "A la antigua",
        "change_log": "Qué cambió",
        "updated": "Última actualización",
        "images": "Imágenes",
    },
}


def _bullets(items: List[str]) -> List[str]:
    return [f"- {item}" for item in items if item.strip()]


def format_markdown(article: Article, *, show_answers: bool = False) -> str:
    """Render an article as Markdown with labels in the article's language."""
    t = LABELS.get(article.language, LABELS["en"])
    lines = [
        f"# {article.topic}",
        "",
        f"_{t['updated']}: {article.last_updated}_",
        "",
        f"## {t['summary']}",
        "",
        article.summary,
    ]

    for section in article.sections:
        lines.extend(["", f"## {section.heading}", "", section.body])

    image_urls = [u for u in (article.primary_image_url, article.secondary_image_url) if u]
    if image_urls:
        lines.extend(["", f"## {t['images']}", ""])
        lines.extend(f"![{article.topic}]({url})" for url in image_urls)

    if article.fun_fact:
        lines.extend(["", f"> **{t['fun_fact']}** {article.fun_fact}"])

    if article.study_tips:
        lines.extend(["", f"## {t['study_tips']}", "", *_bullets(article.study_tips)])

    if article.quiz:
        lines.extend(["", f"## {t['quiz']}"])
        for q_idx, question in enumerate(article.quiz, start=1):
            lines.extend(["", f"{q_idx}. {question.question}"])
            for o_idx, option in enumerate(question.options):
                marker = " ✓" if show_answers and question.is_correct(o_idx) else ""
                lines.append(f"   {chr(ord('a') + o_idx)}) {option}{marker}")

    if article.related_topics:
        lines.extend(["", f"## {t['related']}", "", *_bullets(article.related_topics)])

    lines.extend(
        [
            "",
            f"## {t['original']}",
            "",
            f"> {article.original_style_snippet}",
            "",
            f"_{t['change_log']}: {article.change_log}_",
        ]
    )
    return "\n".join(lines)
