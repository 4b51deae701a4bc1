"""wordloop CLI — review, word store and sign-in commands."""

import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer

from wordloop.application.factory import get_identity_gate, get_review_service, get_word_store
from wordloop.domain.errors import InvalidInput, NotAuthorized, StoreUnavailable
from wordloop.domain.models import Card
from wordloop.infrastructure.adapters.wire import WordItem
from wordloop.interface._common import _resolve_with_overrides

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="wordloop: spaced-repetition vocabulary review.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage wordloop configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

VERBOSITY_LEVELS = {0: logging.WARNING, 1: logging.WARNING, 2: logging.INFO}


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
    ] = 1,
):
    """Global settings for wordloop."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    logging.getLogger().setLevel(VERBOSITY_LEVELS.get(verbose, logging.DEBUG))


def _show_prompt(card: Card) -> None:
    typer.secho(f"\n{card.content}", bold=True)
    if card.phonics:
        typer.echo(f"  /{card.phonics}/")
    typer.echo(f"  ({card.type}, stage {card.review_stage})")


def _show_answer(card: Card) -> None:
    typer.echo(f"  {card.chinese_explain}")
    if card.eng_explain:
        typer.echo(f"  {card.eng_explain}")
    if card.example:
        typer.secho(f"  e.g. {card.example}", dim=True)


def _ask_quality() -> int | None:
    """Prompt until a quality in 0..5 is entered; None means quit."""
    while True:
        raw = typer.prompt("Quality 0-5 (q to stop)").strip().lower()
        if raw in ("q", "quit"):
            return None
        try:
            quality = int(raw)
        except ValueError:
            typer.secho("Enter a number from 0 to 5.", fg="yellow")
            continue
        if 0 <= quality <= 5:
            return quality
        typer.secho("Enter a number from 0 to 5.", fg="yellow")


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def review(
    backend: Annotated[str | None, typer.Option(help="Word store: sheet or file.")] = None,
    store_url: Annotated[str | None, typer.Option(help="Spreadsheet web-app URL.")] = None,
    words_file: Annotated[Path | None, typer.Option(help="YAML word list.")] = None,
    pass_threshold: Annotated[
        int | None, typer.Option(help="Lowest quality that counts as remembered.")
    ] = None,
):
    """[bold green]Review[/bold green] the words due today."""
    config = _resolve_with_overrides(
        backend=backend,
        store_url=store_url,
        words_file=words_file,
        pass_threshold=pass_threshold,
    )

    async def run() -> int:
        try:
            service = get_review_service(config)
        except InvalidInput as e:
            typer.secho(str(e), fg="red")
            return 1
        try:
            return await _review_loop(service, config.log_dir)
        finally:
            await service.close()

    raise typer.Exit(asyncio.run(run()))


async def _review_loop(service, log_dir: Path) -> int:
    try:
        session = await service.start()
    except StoreUnavailable as e:
        typer.secho(f"Could not load due words: {e}", fg="red")
        return 1

    if session.is_complete:
        typer.secho("Nothing due. See you tomorrow!", fg="green")
        return 0

    typer.echo(f"{session.progress().remaining} words due.")
    while not session.is_complete:
        card = session.current_card
        _show_prompt(card)
        typer.prompt("Press Enter to reveal", default="", show_default=False)
        _show_answer(card)

        quality = _ask_quality()
        if quality is None:
            break
        outcome = service.answer(quality)
        if outcome.missed:
            typer.secho("  Missed; it will come back at the end.", fg="yellow")
        else:
            typer.secho(f"  Next review in {outcome.update.interval_days} days.", fg="green")
        if outcome.restarted:
            typer.secho(
                f"\nGoing over {session.progress().remaining} missed words again.", fg="cyan"
            )

    return await _flush_interactively(service, log_dir)


async def _flush_interactively(service, log_dir: Path) -> int:
    while True:
        try:
            written = await service.flush()
            typer.secho(f"Saved {written} reviews.", fg="green")
            return 0
        except NotAuthorized as e:
            typer.secho(f"Not signed in: {e}. Run 'wordloop login' in another shell.", fg="red")
        except StoreUnavailable as e:
            typer.secho(f"Saving failed: {e}", fg="red")

        if not typer.confirm("Retry saving?", default=True):
            unsaved = {cid: u.to_fields() for cid, u in service.session.batch.snapshot().items()}
            text = json.dumps(unsaved, indent=2)
            typer.echo(text, err=True)
            try:
                log_dir.mkdir(parents=True, exist_ok=True)
                dump = log_dir / f"unsaved-{datetime.now():%Y%m%d-%H%M%S}.json"
                dump.write_text(text, encoding="utf-8")
                typer.secho(f"Unsaved reviews written to {dump}", fg="yellow", err=True)
            except OSError as e:
                logger.warning(f"Could not write unsaved reviews: {e}")
                typer.secho("Unsaved reviews printed above.", fg="yellow", err=True)
            return 1


@app.command()
def due(
    backend: Annotated[str | None, typer.Option(help="Word store: sheet or file.")] = None,
    store_url: Annotated[str | None, typer.Option(help="Spreadsheet web-app URL.")] = None,
    words_file: Annotated[Path | None, typer.Option(help="YAML word list.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List the words due for review."""
    config = _resolve_with_overrides(backend=backend, store_url=store_url, words_file=words_file)

    async def fetch() -> list[Card]:
        store = get_word_store(config)
        try:
            return await store.fetch_due_cards()
        finally:
            await store.close()

    try:
        cards = asyncio.run(fetch())
    except InvalidInput as e:
        typer.secho(str(e), fg="red")
        raise typer.Exit(1)
    except StoreUnavailable as e:
        typer.secho(f"Could not load due words: {e}", fg="red")
        raise typer.Exit(1)

    if json_output:
        items = [WordItem.from_card(c).model_dump(mode="json", by_alias=True) for c in cards]
        typer.echo(json.dumps(items, indent=2, ensure_ascii=False))
        return

    if not cards:
        typer.secho("Nothing due.", fg="green")
        return
    for card in cards:
        last = card.last_review.isoformat() if card.last_review else "never"
        typer.echo(f"{card.id:>6}  {card.content:<24} stage {card.review_stage}  last {last}")
    typer.echo(f"\n{len(cards)} due")


@app.command()
def login(
    token: Annotated[str, typer.Argument(help="Google ID token (JWT) from the sign-in page.")],
):
    """Store an ID token for writing reviews."""
    gate = get_identity_gate(_resolve_with_overrides())
    try:
        payload = gate.save_token(token)
    except NotAuthorized as e:
        typer.secho(str(e), fg="red")
        raise typer.Exit(1)
    typer.secho(f"Signed in as {payload['email']}.", fg="green")


@app.command()
def logout():
    """Forget the stored ID token."""
    get_identity_gate(_resolve_with_overrides()).clear_token()
    typer.echo("Signed out.")


@app.command()
def whoami():
    """Show the signed-in account."""
    profile = get_identity_gate(_resolve_with_overrides()).get_profile()
    if profile is None:
        typer.secho("Not signed in.", fg="yellow")
        raise typer.Exit(1)
    typer.echo(profile.get("name") or profile.get("email"))
    typer.echo(profile.get("email", ""))


@app.command()
def serve(
    port: Annotated[int, typer.Option(help="Port to bind the server to.")] = 8777,
    host: Annotated[str, typer.Option(help="Host to bind the server to.")] = "127.0.0.1",
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the review API server."""
    import uvicorn

    uvicorn.run("wordloop.server:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = _resolve_with_overrides()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


@config_app.command("check")
def config_check():
    """Validate the configured word store settings."""
    try:
        config = _resolve_with_overrides()
        get_word_store(config)
    except InvalidInput as e:
        typer.secho(str(e), fg="red")
        raise typer.Exit(1)
    typer.secho(f"Backend '{config.backend}' is configured.", fg="green")


if __name__ == "__main__":
    app()
