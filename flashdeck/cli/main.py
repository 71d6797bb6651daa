"""
flashdeck: command line front end for the review engine.

Commands:
- flashdeck init-db          - Create tables
- flashdeck import-deck      - Load cards from a JSON deck file
- flashdeck queue            - Show the next study or quiz queue
- flashdeck review           - Record a rating for a card
- flashdeck session-start    - Open a study session
- flashdeck session-end      - Finalize a study session
- flashdeck session-report   - Grade a session
- flashdeck deck-report      - Grade a deck, its score windows and cards
- flashdeck load             - Check today's review load
"""
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from config import get_settings
from flashdeck.core.cards import card_from_dict
from flashdeck.core.errors import FlashdeckError, ValidationError
from flashdeck.db.database import get_database
from flashdeck.db.store import SqlStore
from flashdeck.quiz.items import FillBlankItem, MultipleChoiceItem, TrueFalseItem
from flashdeck.study.scoring import best_window
from flashdeck.study.study_service import Collaborators, StudyService

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="flashdeck",
    help="flashdeck: spaced-repetition review engine",
    no_args_is_help=True,
)
console = Console()

STYLES = {
    "again": "bold red",
    "hard": "yellow",
    "good": "green",
    "easy": "bold green",
    "unreviewed": "dim",
    "medium": "yellow",
}

LearnerOption = Annotated[str, typer.Option("--learner", "-l", help="Learner id")]


def _service() -> StudyService:
    db = get_database()
    db.init_db()
    return StudyService(Collaborators.from_store(SqlStore(db)))


def _fail(error: FlashdeckError) -> None:
    console.print(f"[red]{error.code}: {error.message}[/]")
    raise typer.Exit(code=1)


# =============================================================================
# Commands
# =============================================================================


@app.command("init-db")
def init_db() -> None:
    """Create database tables."""
    get_database().init_db()
    console.print("[green]✓ Database initialized[/]")


@app.command("import-deck")
def import_deck(
    deck_file: Annotated[Path, typer.Argument(help="JSON file with deck_id and cards")],
) -> None:
    """Import (or replace) the cards of a deck."""
    if not deck_file.exists():
        console.print(f"[red]File not found: {deck_file}[/]")
        raise typer.Exit(code=1)

    try:
        data = json.loads(deck_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        _fail(ValidationError(f"Invalid deck file {deck_file}: {exc.msg} (line {exc.lineno})"))
    if not isinstance(data, dict):
        _fail(ValidationError(f"Invalid deck file {deck_file}: expected an object with deck_id and cards"))

    try:
        cards = [card_from_dict(item, data.get("deck_id")) for item in data.get("cards", [])]
        db = get_database()
        db.init_db()
        count = SqlStore(db).add_cards(cards)
    except FlashdeckError as exc:
        _fail(exc)
    console.print(f"[green]✓ Imported {count} cards into {data.get('deck_id')}[/]")


@app.command()
def queue(
    deck_id: Annotated[str, typer.Argument(help="Deck id")],
    learner: LearnerOption = "default",
    limit: Annotated[Optional[int], typer.Option("--limit", "-n", help="Cards in the queue")] = None,
    mode: Annotated[str, typer.Option("--mode", "-m", help="study or quiz")] = "study",
) -> None:
    """Show the next queue for a deck."""
    try:
        result = _service().get_queue(learner, deck_id, limit, mode)
    except FlashdeckError as exc:
        _fail(exc)

    if result.warning:
        console.print(f"[yellow]⚠ {result.warning.message}[/]")
    if not result.items:
        console.print("[green]Nothing to study right now.[/]")
        return

    table = Table(title=f"{mode.title()} queue: {result.stats.due} due, {result.stats.new} new")
    table.add_column("#", justify="right")
    table.add_column("Card")
    table.add_column("Prompt")
    table.add_column("Detail", style="dim")
    for index, item in enumerate(result.items, start=1):
        if isinstance(item, MultipleChoiceItem):
            detail = " | ".join(choice.text for choice in item.choices)
        elif isinstance(item, FillBlankItem):
            detail = "fill in the blank"
        elif isinstance(item, TrueFalseItem):
            detail = f"true or false: {item.statement}"
        else:
            detail = item.card_type.value
        card_id = getattr(item, "card_id", None) or item.id
        table.add_row(str(index), card_id, item.front if hasattr(item, "front") else item.prompt, detail)
    console.print(table)


@app.command()
def review(
    card_id: Annotated[str, typer.Argument(help="Card id")],
    rating: Annotated[str, typer.Argument(help="again, hard, good or easy")],
    learner: LearnerOption = "default",
    session_id: Annotated[Optional[str], typer.Option("--session", "-s", help="Session id")] = None,
    seconds: Annotated[int, typer.Option("--seconds", help="Time spent on the card")] = 0,
) -> None:
    """Record a rating for a card."""
    try:
        outcome = _service().submit_review(learner, card_id, rating, session_id, seconds)
    except FlashdeckError as exc:
        _fail(exc)
    style = STYLES.get(outcome.rating.value, "")
    console.print(
        f"[{style}]{outcome.rating.value}[/] → next review in {outcome.interval_days} day(s) "
        f"({outcome.next_due_at:%Y-%m-%d})"
    )


@app.command("session-start")
def session_start(
    deck_id: Annotated[str, typer.Argument(help="Deck id")],
    learner: LearnerOption = "default",
) -> None:
    """Open a study session and print its id."""
    try:
        session = _service().start_session(learner, deck_id)
    except FlashdeckError as exc:
        _fail(exc)
    console.print(session.id)


@app.command("session-end")
def session_end(
    session_id: Annotated[str, typer.Argument(help="Session id")],
    learner: LearnerOption = "default",
    seconds: Annotated[Optional[int], typer.Option("--seconds", help="Active seconds")] = None,
) -> None:
    """Finalize a study session."""
    try:
        session = _service().end_session(session_id, learner, seconds)
    except FlashdeckError as exc:
        _fail(exc)
    console.print(f"[green]✓ Session ended after {session.seconds_active}s[/]")


@app.command("session-report")
def session_report(
    session_id: Annotated[str, typer.Argument(help="Session id")],
    learner: LearnerOption = "default",
) -> None:
    """Grade a study session."""
    try:
        perf = _service().get_session_performance(session_id, learner)
    except FlashdeckError as exc:
        _fail(exc)
    rate = f"{perf.success_rate:.0%}" if perf.success_rate is not None else "-"
    console.print(
        f"Grade [bold]{perf.grade or '-'}[/]  success {rate}  "
        f"cards {perf.cards_reviewed}  active {perf.seconds_active}s"
    )


@app.command("deck-report")
def deck_report(
    deck_id: Annotated[str, typer.Argument(help="Deck id")],
    learner: LearnerOption = "default",
) -> None:
    """Grade a deck, refresh its score windows and label its cards."""
    service = _service()
    try:
        perf = service.get_deck_performance(learner, deck_id)
        scores = service.refresh_deck_scores(learner, deck_id)
        cards = service.get_card_performance(learner, deck_id)
    except FlashdeckError as exc:
        _fail(exc)

    rate = f"{perf.success_rate:.0%}" if perf.success_rate is not None else "-"
    console.print(
        f"[bold]{deck_id}[/]: grade {perf.grade or '- (not enough reviews)'}  success {rate}  "
        f"cards reviewed {perf.total_cards_reviewed}  sessions {perf.total_sessions}"
    )

    table = Table(title="Score windows")
    for column in ("Window", "Accuracy", "Avg stability", "Lapses", "Reviews"):
        table.add_column(column)
    for score in scores:
        table.add_row(
            score.window.value,
            f"{score.accuracy_pct:.1f}%",
            f"{score.stability_avg:.1f}d",
            str(score.lapses),
            str(score.review_count),
        )
    console.print(table)
    best = best_window(scores)
    if best:
        console.print(f"Best window: {best.window.value} ({best.accuracy_pct:.1f}%)")

    card_table = Table(title="Cards")
    card_table.add_column("Card")
    card_table.add_column("Difficulty")
    card_table.add_column("Recent success")
    for item in cards:
        success = f"{item.success_rate:.0%}" if item.success_rate is not None else "-"
        card_table.add_row(item.card_id, f"[{STYLES[item.label]}]{item.label}[/]", success)
    console.print(card_table)


@app.command()
def load(
    deck_id: Annotated[str, typer.Argument(help="Deck id")],
    learner: LearnerOption = "default",
) -> None:
    """Check today's review load for a deck."""
    try:
        warning = _service().load_monitor.check_load(learner, deck_id)
    except FlashdeckError as exc:
        _fail(exc)
    if warning:
        console.print(f"[yellow]⚠ {warning.message}[/]")
    else:
        console.print("[green]Review load looks normal.[/]")


# =============================================================================
# Entry Point
# =============================================================================


def configure_logging() -> None:
    """Send loguru output to stderr (and the log file when configured)."""
    settings = get_settings()
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<level>{message}</level>",
    )
    if settings.log_file:
        logger.add(settings.log_file, level=settings.log_level, rotation="10 MB", retention="7 days")


def main() -> None:
    """CLI entry point."""
    configure_logging()
    app()


if __name__ == "__main__":
    main()
