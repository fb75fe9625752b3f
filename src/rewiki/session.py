"""Reading session: current article, history, preferences and view state."""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import List, Optional, Tuple

from .clients import ServiceCapabilities
from .config import Settings, get_settings
from .errors import GenerationError, RevisionApplyError
from .generator import generate_article
from .history import (
    LocalStore,
    load_history,
    load_language,
    load_theme,
    record_article,
    save_language,
    save_theme,
)
from .models import Article, EditKind, RevisionVerdict
from .revision import analyze_revision, apply_revision

logger = logging.getLogger(__name__)

GENERATION_FAILED_MESSAGES = {
    "en": "Failed to generate Rewiki article. High traffic or API limit.",
    "es": "No se pudo generar el artículo de Rewiki. Mucho tráfico o límite de la API.",
}


class ViewState(str, Enum):
    HOME = "home"
    LOADING = "loading"
    ARTICLE = "article"
    ERROR = "error"


class ArticleSession:
    """
    Python counterpart of the reading shell.

    Holds the current article and the persisted history, and routes user
    actions to the generator and revision analyzer. The service capabilities
    are built once by the caller and passed in.
    """

    def __init__(
        self,
        capabilities: ServiceCapabilities,
        store: Optional[LocalStore] = None,
        settings: Optional[Settings] = None,
    ):
        self.capabilities = capabilities
        self.settings = settings or get_settings()
        self.store = store or LocalStore()
        self.history: List[Article] = load_history(self.store)
        self.language: str = load_language(self.store)
        self.theme: str = load_theme(self.store)
        self.current: Optional[Article] = None
        self.view = ViewState.HOME
        self.error: Optional[str] = None

    # --- Article lifecycle -------------------------------------------------

    def search(self, topic: str) -> Optional[Article]:
        """Generate an article for `topic`; blank topics are ignored."""
        query = (topic or "").strip()
        if not query:
            return None

        self.view = ViewState.LOADING
        self.error = None
        try:
            article = generate_article(
                query,
                self.language,
                text_generator=self.capabilities.article,
                image_generator=self.capabilities.image,
            )
        except GenerationError as exc:
            logger.error("Generation failed for %r: %s", query, exc)
            self.current = None
            self.error = GENERATION_FAILED_MESSAGES[self.language]
            self.view = ViewState.ERROR
            return None

        self.open_article(article)
        return article

    def follow_related(self, topic: str) -> Optional[Article]:
        return self.search(topic)

    def find_in_history(self, identifier: str) -> Optional[Article]:
        return next((item for item in self.history if item.identifier == identifier), None)

    def load_from_history(self, identifier: str) -> Article:
        article = self.find_in_history(identifier)
        if article is None:
            raise KeyError(identifier)
        self.open_article(article)
        return article

    def open_article(self, article: Article) -> None:
        self.current = article
        self.history = record_article(self.store, article, limit=self.settings.history_limit)
        self.view = ViewState.ARTICLE

    def reset(self) -> None:
        self.view = ViewState.HOME
        self.current = None
        self.error = None

    # --- Revisions ---------------------------------------------------------

    def revision_context(self, article: Optional[Article] = None) -> str:
        target = article or self.current
        if target is None:
            return ""
        return json.dumps(
            [section.model_dump() for section in target.sections], ensure_ascii=False
        )

    def propose_revision(
        self,
        change_request: str,
        edit_kind: EditKind = EditKind.FIX,
        selected_excerpt: Optional[str] = None,
    ) -> RevisionVerdict:
        """
        Send an edit for the open article to the analyzer and apply it when accepted.

        The current article is replaced only when the whole update succeeds.
        """
        if self.current is None:
            raise ValueError("No article is open.")
        verdict, _ = self.revise_article(
            self.current, change_request, edit_kind, selected_excerpt
        )
        return verdict

    def revise_article(
        self,
        article: Article,
        change_request: str,
        edit_kind: EditKind = EditKind.FIX,
        selected_excerpt: Optional[str] = None,
    ) -> Tuple[RevisionVerdict, Article]:
        """
        Analyze and apply an edit against `article`.

        Returns the verdict with the resulting article, which is `article`
        itself when the edit is rejected. An accepted edit is recorded in
        history; it becomes the open article only if `article` is still open.
        """
        if not (change_request or "").strip():
            raise ValueError("change_request is required.")

        verdict = analyze_revision(
            self.revision_context(article),
            selected_excerpt or "",
            change_request,
            article.language,
            edit_kind,
            text_generator=self.capabilities.revision,
            context_chars=self.settings.revision_context_chars,
        )
        if not verdict.accepted:
            return verdict, article

        try:
            revised = apply_revision(article, verdict, edit_kind, selected_excerpt)
        except RevisionApplyError as exc:
            logger.warning("Accepted revision could not be applied: %s", exc)
            return RevisionVerdict(accepted=False, reasoning=str(exc)), article

        self.history = record_article(self.store, revised, limit=self.settings.history_limit)
        if self.current is None or self.current.identifier == article.identifier:
            self.current = revised
            self.view = ViewState.ARTICLE
        return verdict, revised

    # --- Quiz and preferences ----------------------------------------------

    def answer_quiz(self, question_index: int, option_index: int) -> bool:
        if self.current is None:
            raise ValueError("No article is open.")
        quiz = self.current.quiz
        if not 0 <= question_index < len(quiz):
            raise ValueError(f"question_index {question_index} is out of range.")
        return quiz[question_index].is_correct(option_index)

    def set_language(self, language: str) -> str:
        save_language(self.store, language)
        self.language = language
        return language

    def toggle_language(self) -> str:
        return self.set_language("en" if self.language == "es" else "es")

    def set_theme(self, theme: str) -> str:
        save_theme(self.store, theme)
        self.theme = theme
        return theme

    def toggle_theme(self) -> str:
        return self.set_theme("light" if self.theme == "dark" else "dark")
