"""Local key-value storage for history and reader preferences.

Each key lives in its own file under the storage root and is rewritten
wholesale on every change. There is no migration or versioning of the format.
"""

from __future__ import annotations

import json
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from threading import Lock
from typing import Iterator, List, Optional

from pydantic import TypeAdapter, ValidationError

from .config import get_settings
from .models import SUPPORTED_LANGUAGES, Article

logger = logging.getLogger(__name__)

HISTORY_KEY = "rewiki_history"
LANGUAGE_KEY = "rewiki_lang"
THEME_KEY = "rewiki_theme"

DEFAULT_LANGUAGE = "es"
THEMES = ("light", "dark")
DEFAULT_HISTORY_LIMIT = 10

_ARTICLE_LIST = TypeAdapter(List[Article])

_LOCKS: dict[str, Lock] = {}
_LOCKS_GUARD = Lock()


def storage_root() -> Path:
    """Base directory for local state (override via REWIKI_DATA_DIR)."""
    settings = get_settings()
    if settings.data_dir:
        return Path(settings.data_dir).expanduser().resolve()
    return Path(__file__).resolve().parents[2] / "data" / "local"


@contextmanager
def _locked(path: Path) -> Iterator[None]:
    """Serialize access to a single path within this process."""
    key = str(path.resolve())
    with _LOCKS_GUARD:
        lock = _LOCKS.setdefault(key, Lock())
    with lock:
        yield


class LocalStore:
    """Directory-backed string store; one file per key."""

    def __init__(self, root: Optional[Path | str] = None):
        self.root = Path(root).expanduser() if root else storage_root()

    def _path(self, key: str) -> Path:
        return self.root / key

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        with _locked(path):
            if not path.exists():
                return None
            return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        with _locked(path):
            tmp = path.with_name(f".{path.name}.tmp")
            tmp.write_text(value, encoding="utf-8")
            os.replace(tmp, path)


# --- History --------------------------------------------------------------


def add_to_history(
    history: List[Article], article: Article, limit: int = DEFAULT_HISTORY_LIMIT
) -> List[Article]:
    """Return a new list: `article` first, same-topic entries dropped, capped at `limit`."""
    filtered = [item for item in history if item.topic != article.topic]
    return [article, *filtered][:limit]


def load_history(store: LocalStore) -> List[Article]:
    raw = store.get(HISTORY_KEY)
    if not raw:
        return []
    try:
        return _ARTICLE_LIST.validate_json(raw)
    except ValidationError:
        logger.warning("Failed to load history; starting empty.", exc_info=True)
        return []


def save_history(store: LocalStore, history: List[Article]) -> None:
    store.set(HISTORY_KEY, _ARTICLE_LIST.dump_json(history).decode("utf-8"))


def record_article(
    store: LocalStore, article: Article, *, limit: Optional[int] = None
) -> List[Article]:
    """Add `article` to the stored history and persist the whole list."""
    cap = limit if limit is not None else get_settings().history_limit
    updated = add_to_history(load_history(store), article, cap)
    save_history(store, updated)
    return updated


# --- Preferences ----------------------------------------------------------


def load_language(store: LocalStore) -> str:
    value = (store.get(LANGUAGE_KEY) or "").strip()
    return value if value in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE


def save_language(store: LocalStore, language: str) -> None:
    if language not in SUPPORTED_LANGUAGES:
        raise ValueError(f"Unsupported language {language!r}.")
    store.set(LANGUAGE_KEY, language)


def load_theme(store: LocalStore) -> str:
    value = (store.get(THEME_KEY) or "").strip()
    return "dark" if value == "dark" else "light"


def save_theme(store: LocalStore, theme: str) -> None:
    if theme not in THEMES:
        raise ValueError(f"Unsupported theme {theme!r}; expected light or dark.")
    store.set(THEME_KEY, theme)
