"""cadence CLI: learn sessions, due lists, deck stats and configuration."""

import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Annotated

import typer

from cadence.application.config import resolve_config
from cadence.application.due_selector import partition
from cadence.application.factory import get_card_store, get_clock, get_kv_store, new_learn_session
from cadence.application.learn_queue import LearnSession, SessionState
from cadence.application.stats import days_overdue, summarize_deck
from cadence.domain.constants import SESSION_KEY_PREFIX
from cadence.domain.ports import UnknownCardError
from cadence.domain.records import reset_progress
from cadence.infrastructure.shuffle import RandomShuffler
from cadence.interface._common import (
    _apply_verbosity,
    _echo_json,
    _format_ts,
    _resolve_with_overrides,
)

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="cadence: spaced-repetition learn sessions for flashcard decks.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage cadence configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

QUIT_WORDS = {"q", "quit", "exit"}


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
    data_dir: Annotated[
        Path | None, typer.Option("--data-dir", help="Directory holding deck files.")
    ] = None,
):
    """Global settings for cadence."""
    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = data_dir
    # Without -v the configured level applies.
    _apply_verbosity(verbose or resolve_config().verbose)


def _session_key(deck_id: str) -> str:
    return f"{SESSION_KEY_PREFIX}{deck_id}"


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def learn(
    ctx: typer.Context,
    deck: Annotated[str, typer.Argument(help="Deck id to study.")],
    cap: Annotated[int | None, typer.Option("--cap", min=1, help="Maximum cards this session.")] = None,
    seed: Annotated[int | None, typer.Option(help="Seed for reproducible card order.")] = None,
    fresh: Annotated[
        bool, typer.Option("--fresh", help="Discard any saved session and start over.")
    ] = False,
):
    """[bold green]Learn[/bold green] a deck: reveal each card, then grade it 0-3."""
    config = _resolve_with_overrides(
        data_dir=ctx.obj.get("data_dir"), session_cap=cap, seed=seed
    )
    kv = get_kv_store(config)
    store = get_card_store(config, kv)
    clock = get_clock()

    if not store.deck_exists(deck):
        typer.secho(f"Deck '{deck}' not found in {config.data_dir}", fg="red")
        raise typer.Exit(1)

    session: LearnSession | None = None
    saved = kv.load(_session_key(deck))
    if saved and not fresh:
        try:
            session = LearnSession.restore(
                json.loads(saved),
                store.get(deck),
                store=store,
                clock=clock,
                shuffler=RandomShuffler(config.seed),
                cap=config.session_cap,
            )
            if session.state == SessionState.IN_PROGRESS:
                p = session.progress
                typer.secho(f"Resuming session: {p.graded}/{p.total} graded.", fg="cyan")
            else:
                session = None
        except ValueError as e:
            logger.warning(f"Ignoring saved session for '{deck}': {e}")
            session = None

    if session is None:
        session = new_learn_session(config, deck, store, clock)
        session.start()

    if session.state == SessionState.COMPLETED:
        kv.delete(_session_key(deck))
        typer.secho("Nothing to study in this deck.", fg="yellow")
        return

    while session.state == SessionState.IN_PROGRESS:
        kv.save(_session_key(deck), json.dumps(session.snapshot()))
        p = session.progress
        card = session.current
        typer.echo("")
        typer.secho(f"[{p.position + 1}/{p.total}] {card.term}", bold=True)

        if not session.flipped:
            answer = typer.prompt("Enter to reveal, q to stop", default="", show_default=False)
            if answer.strip().lower() in QUIT_WORDS:
                typer.secho("Session saved. Run the same command to resume.", fg="cyan")
                return
            session.reveal()
            kv.save(_session_key(deck), json.dumps(session.snapshot()))

        typer.echo(f"  {card.definition}")
        while True:
            raw = typer.prompt("Grade 0=Again 1=Hard 2=Good 3=Easy (q to stop)")
            if raw.strip().lower() in QUIT_WORDS:
                typer.secho("Session saved. Run the same command to resume.", fg="cyan")
                return
            try:
                result = session.grade(int(raw))
            except ValueError:
                typer.secho(f"'{raw}' is not a grade.", fg="yellow")
                continue
            except UnknownCardError:
                kv.delete(_session_key(deck))
                typer.secho(f"Card {card.id} was removed from '{deck}'; session ended.", fg="red")
                raise typer.Exit(1) from None
            break

        updated = result.card
        if updated.interval:
            typer.secho(f"  next review in {updated.interval} day(s)", fg="green")
        else:
            typer.secho("  due again now", fg="yellow")

    kv.delete(_session_key(deck))
    p = session.progress
    typer.secho(f"\nSession complete: {p.graded} card(s) graded.", fg="green")


@app.command()
def due(
    ctx: typer.Context,
    deck: Annotated[str, typer.Argument(help="Deck id.")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List which cards are due now and which are not."""
    config = _resolve_with_overrides(data_dir=ctx.obj.get("data_dir"))
    store = get_card_store(config)
    now = get_clock().now()
    due_cards, not_due = partition(store.get(deck), now)

    if json_output:
        _echo_json(
            {
                "now": now,
                "due": [c.id for c in due_cards],
                "not_due": [c.id for c in not_due],
            }
        )
        return

    typer.echo(f"Due: {len(due_cards)}  Not due: {len(not_due)}")
    for card in due_cards:
        overdue = days_overdue(card, now)
        note = f"  (overdue {overdue}d)" if overdue > 0 else ""
        typer.echo(f"  {card.id}  {card.term}{note}")


@app.command()
def stats(
    ctx: typer.Context,
    deck: Annotated[str, typer.Argument(help="Deck id.")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show a deck summary: totals, due count, lapses, average ease."""
    config = _resolve_with_overrides(data_dir=ctx.obj.get("data_dir"))
    store = get_card_store(config)
    summary = summarize_deck(store.get(deck), get_clock().now())

    if json_output:
        _echo_json(asdict(summary))
        return

    typer.echo(f"Cards: {summary.total}  Due: {summary.due}  New: {summary.new}")
    typer.echo(f"Learned: {summary.learned}  Lapses: {summary.lapses}")
    avg = f"{summary.average_ef:.2f}" if summary.average_ef is not None else "-"
    typer.echo(f"Average ease: {avg}  Next due: {_format_ts(summary.next_due)}")


@app.command()
def reset(
    ctx: typer.Context,
    deck: Annotated[str, typer.Argument(help="Deck id.")],
    card_id: Annotated[
        str | None, typer.Argument(help="Single card to reset. Omit to reset the whole deck.")
    ] = None,
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Skip the confirmation prompt.")
    ] = False,
):
    """Reset scheduling progress to new-card defaults."""
    config = _resolve_with_overrides(data_dir=ctx.obj.get("data_dir"))
    store = get_card_store(config)
    cards = store.get(deck)
    if not cards:
        typer.secho(f"Deck '{deck}' has no cards.", fg="yellow")
        raise typer.Exit(1)

    targets = {c.id for c in cards} if card_id is None else {card_id}
    if card_id is not None and card_id not in {c.id for c in cards}:
        typer.secho(f"Card '{card_id}' not found in '{deck}'.", fg="red")
        raise typer.Exit(1)

    if not force and not typer.confirm(f"Reset progress for {len(targets)} card(s)?"):
        raise typer.Abort()

    now = get_clock().now()
    store.save_deck(deck, [reset_progress(c, now) if c.id in targets else c for c in cards])
    typer.secho(f"Reset {len(targets)} card(s).", fg="green")


@app.command()
def serve(
    port: Annotated[int | None, typer.Option(help="Port to bind the server to.")] = None,
    host: Annotated[str | None, typer.Option(help="Host to bind the server to.")] = None,
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP service."""
    import uvicorn

    config = resolve_config({"host": host, "port": port})
    uvicorn.run("cadence.server:app", host=config.host, port=config.port, reload=reload)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
