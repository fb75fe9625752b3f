"""FastAPI surface over the article session."""

from __future__ import annotations

import os
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .clients import build_capabilities
from .errors import GenerationError
from .generator import generate_article
from .models import Article, EditKind
from .session import ArticleSession


app = FastAPI(title="Rewiki")


def _add_cors(app: FastAPI) -> None:
    """Allow a browser front end to call the API during local development."""
    allow_all = os.getenv("CORS_ALLOW_ALL", "true").lower() == "true"
    origins_env = os.getenv("CORS_ALLOW_ORIGINS", "")
    origins = [o.strip() for o in origins_env.split(",") if o.strip()]
    allow_credentials = (
        os.getenv("CORS_ALLOW_CREDENTIALS", "true").lower() == "true"
    )
    if allow_all or not origins:
        origins = ["*"]
    if origins == ["*"] and allow_credentials:
        # Starlette/FastAPI disallow wildcard origins when credentials are enabled.
        allow_credentials = False
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )


_add_cors(app)


def get_session(request: Request) -> ArticleSession:
    """Session built on first use and kept on app.state; override in tests."""
    session = getattr(request.app.state, "session", None)
    if session is None:
        session = ArticleSession(build_capabilities())
        request.app.state.session = session
    return session


class GenerateRequest(BaseModel):
    topic: str = Field(..., min_length=1)
    language: Optional[str] = None


class RevisionRequest(BaseModel):
    change_request: str = Field(..., min_length=1)
    edit_kind: EditKind = EditKind.FIX
    selected_excerpt: Optional[str] = None


def _article_or_404(session: ArticleSession, identifier: str) -> Article:
    if session.current is not None and session.current.identifier == identifier:
        return session.current
    article = session.find_in_history(identifier)
    if article is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown article {identifier}."
        )
    return article


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/articles", status_code=status.HTTP_201_CREATED)
def create_article(
    payload: GenerateRequest, session: ArticleSession = Depends(get_session)
) -> Dict[str, Any]:
    language = payload.language or session.language
    try:
        # Generate directly so the real failure reason reaches the API caller.
        article = generate_article(
            payload.topic,
            language,
            text_generator=session.capabilities.article,
            image_generator=session.capabilities.image,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except GenerationError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    session.set_language(language)
    session.open_article(article)
    return article.model_dump()


@app.get("/history")
def list_history(session: ArticleSession = Depends(get_session)) -> list[Dict[str, Any]]:
    return [
        {
            "identifier": item.identifier,
            "topic": item.topic,
            "language": item.language,
            "last_updated": item.last_updated,
        }
        for item in session.history
    ]


@app.get("/history/{identifier}")
def get_history_article(
    identifier: str, session: ArticleSession = Depends(get_session)
) -> Dict[str, Any]:
    if session.find_in_history(identifier) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown article {identifier}."
        )
    return session.load_from_history(identifier).model_dump()


@app.post("/articles/{identifier}/revisions")
def create_revision(
    identifier: str,
    payload: RevisionRequest,
    session: ArticleSession = Depends(get_session),
) -> Dict[str, Any]:
    article = _article_or_404(session, identifier)
    try:
        verdict, revised = session.revise_article(
            article, payload.change_request, payload.edit_kind, payload.selected_excerpt
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {
        "verdict": verdict.model_dump(),
        "article": revised.model_dump(),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "rewiki.server:app",
        host=os.getenv("REWIKI_HOST", "0.0.0.0"),
        port=int(os.getenv("REWIKI_PORT", "8000")),
        reload=os.getenv("REWIKI_RELOAD", "false").lower() == "true",
    )
