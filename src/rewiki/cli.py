"""Command-line entry points for Rewiki."""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich import print as rprint
from rich.markdown import Markdown

from .clients import build_capabilities
from .formatting import format_markdown
from .history import LocalStore
from .models import Article, EditKind
from .session import ArticleSession

app = typer.Typer(help="Generate, read and revise AI-written encyclopedia articles.")


@app.callback()
def configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _session(data_dir: Optional[Path] = None) -> ArticleSession:
    store = LocalStore(data_dir) if data_dir else LocalStore()
    return ArticleSession(build_capabilities(), store=store)


def _write_output(out_path: Path, article: Article) -> None:
    if out_path.suffix.lower() == ".json":
        out_path.write_text(
            json.dumps(article.model_dump(), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
    else:
        out_path.write_text(format_markdown(article), encoding="utf-8")


def _history_entry(session: ArticleSession, index: int) -> Article:
    if index < 1 or index > len(session.history):
        raise typer.BadParameter(
            f"index must be between 1 and {len(session.history)} (see `rewiki history`)."
        )
    return session.history[index - 1]


def _emit(article: Article, out: Optional[Path], show_answers: bool = False) -> None:
    if out:
        _write_output(out, article)
        rprint(f"[cyan]Wrote output to {out}[/cyan]")
    else:
        rprint(Markdown(format_markdown(article, show_answers=show_answers)))


DATA_DIR_OPTION = typer.Option(
    None, "--data-dir", help="Override the local storage directory (REWIKI_DATA_DIR)."
)


@app.command("search")
def search_command(
    topic: str = typer.Argument(..., help="Topic to generate an article about."),
    lang: Optional[str] = typer.Option(
        None, "--lang", "-l", help="Article language (en or es); defaults to the saved one."
    ),
    out: Optional[Path] = typer.Option(
        None, "--out", "-o", help="Optional path to write output (.md or .json)."
    ),
    data_dir: Optional[Path] = DATA_DIR_OPTION,
):
    """Generate an article and record it in history."""
    session = _session(data_dir)
    if lang:
        try:
            session.set_language(lang.lower())
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc

    article = session.search(topic)
    if article is None:
        rprint(f"[red]{session.error or 'Nothing to search for.'}[/red]")
        raise typer.Exit(code=1)
    _emit(article, out)


@app.command("history")
def history_command(data_dir: Optional[Path] = DATA_DIR_OPTION):
    """List recent articles, most recent first."""
    session = _session(data_dir)
    if not session.history:
        rprint("[yellow]No recent articles.[/yellow]")
        return
    for idx, article in enumerate(session.history, start=1):
        rprint(f"{idx:2d}. {article.topic} [dim]({article.language}, {article.last_updated})[/dim]")


@app.command("show")
def show_command(
    index: int = typer.Argument(..., help="History position (1 = most recent)."),
    answers: bool = typer.Option(False, "--answers", help="Mark correct quiz answers."),
    out: Optional[Path] = typer.Option(None, "--out", "-o"),
    data_dir: Optional[Path] = DATA_DIR_OPTION,
):
    """Show an article from history."""
    session = _session(data_dir)
    article = session.load_from_history(_history_entry(session, index).identifier)
    _emit(article, out, show_answers=answers)


@app.command("revise")
def revise_command(
    index: int = typer.Argument(..., help="History position (1 = most recent)."),
    request: str = typer.Option(..., "--request", "-r", help="Requested change."),
    excerpt: Optional[str] = typer.Option(
        None, "--excerpt", "-e", help="Exact text the change applies to."
    ),
    kind: EditKind = typer.Option(EditKind.FIX, "--kind", "-k", case_sensitive=False),
    data_dir: Optional[Path] = DATA_DIR_OPTION,
):
    """Propose an edit; accepted edits are applied and saved."""
    session = _session(data_dir)
    session.load_from_history(_history_entry(session, index).identifier)
    try:
        verdict = session.propose_revision(request, kind, excerpt)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    if verdict.accepted:
        rprint(f"[green]Revision approved: {verdict.reasoning}[/green]")
        rprint(Markdown(format_markdown(session.current)))
    else:
        rprint(f"[red]Revision rejected: {verdict.reasoning}[/red]")
        raise typer.Exit(code=1)


@app.command("lang")
def lang_command(
    language: Optional[str] = typer.Argument(None, help="en or es; toggles when omitted."),
    data_dir: Optional[Path] = DATA_DIR_OPTION,
):
    """Set or toggle the saved article language."""
    session = _session(data_dir)
    try:
        value = session.set_language(language.lower()) if language else session.toggle_language()
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    rprint(f"[cyan]Language: {value}[/cyan]")


@app.command("theme")
def theme_command(
    theme: Optional[str] = typer.Argument(None, help="light or dark; toggles when omitted."),
    data_dir: Optional[Path] = DATA_DIR_OPTION,
):
    """Set or toggle the saved theme preference."""
    session = _session(data_dir)
    try:
        value = session.set_theme(theme.lower()) if theme else session.toggle_theme()
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    rprint(f"[cyan]Theme: {value}[/cyan]")


def main():
    app()


if __name__ == "__main__":
    main()
