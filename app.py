"""Crowd Pick – command-line entry point.

    python app.py seed characters.json
    python app.py serve
    python app.py play --include villain --exclude robot
"""

import logging
from typing import List, Optional

import typer

from api_server import serve as run_server
from client import ApiClient
from config import API_HOST, API_PORT, API_URL, APP_NAME, APP_VERSION, DB_PATH, STATS_DIR
from database import Database
from errors import CrowdPickError
from scoring import rating
from session import VotingSession
from stats_store import StatsStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s – %(message)s",
)
logger = logging.getLogger("crowd_pick")

app = typer.Typer(name="crowd-pick", help=f"{APP_NAME} v{APP_VERSION}")


def _describe(character):
    tags = ", ".join(character.get("tags") or []) or "No tags"
    return f"{character['name']} ({character.get('franchise') or '?'})\n  tags: {tags}"


def _format_outcome(outcome):
    vs = outcome["voteStats"]
    lines = []
    if outcome["earnedPoints"] > 0:
        side = "Conventional" if outcome.get("majority") else "Unconventional"
        lines.append(f"Earned {outcome['earnedPoints']} points towards {side}")
    else:
        lines.append("No points earned")
    if vs["totalVotes"]:
        yes_pct = round(vs["yesVotes"] / vs["totalVotes"] * 100)
        lines.append(
            f"Yes: {vs['yesVotes']} ({yes_pct}%) | No: {vs['noVotes']} "
            f"({100 - yes_pct}%) | Total: {vs['totalVotes']}"
        )
    else:
        lines.append("No votes yet")
    return "\n".join(lines)


def _format_stats(stats):
    pct = rating(stats)
    return "\n".join([
        f"Yes: {stats['yesVotesTotal']} | No: {stats['noVotesTotal']} | Skips: {stats['skipsTotal']}",
        f"Yes rating: {'n/a' if pct is None else f'{pct}%'}",
        f"Majority picks: {stats['majorityTotal']} | Minority picks: {stats['minorityTotal']}",
        f"Conventional points: {stats['majorityPoints']} | Unconventional points: {stats['minorityPoints']}",
        f"Majority streak: {stats['majorityStreak']} | Minority streak: {stats['minorityStreak']}",
    ])


@app.command()
def serve(
    host: str = typer.Option(API_HOST, help="Interface to bind."),
    port: int = typer.Option(API_PORT, help="Port to listen on."),
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite database file."),
):
    """Run the voting API in the foreground."""
    db = Database(db_path)
    if not db.get_character_count():
        logger.warning("Database %s has no characters – run 'seed' first", db_path)
    try:
        run_server(db, host, port)
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        db.close()


@app.command()
def seed(
    path: str = typer.Argument(..., help="JSON list of characters."),
    db_path: str = typer.Option(DB_PATH, "--db", help="SQLite database file."),
):
    """Import characters and their tags from a JSON file."""
    db = Database(db_path)
    try:
        count = db.import_characters(path)
    finally:
        db.close()
    typer.echo(f"Imported {count} characters.")


@app.command()
def tags(url: str = typer.Option(API_URL, help="API base URL.")):
    """List every known tag."""
    for name in ApiClient(url).get_tags():
        typer.echo(name)


@app.command()
def play(
    url: str = typer.Option(API_URL, help="API base URL."),
    include: Optional[List[str]] = typer.Option(None, help="Tag to include (repeatable)."),
    exclude: Optional[List[str]] = typer.Option(None, help="Tag to exclude (repeatable)."),
    reset: bool = typer.Option(False, help="Start over with a new visitor id."),
):
    """Vote on random characters in the terminal."""
    session = VotingSession(ApiClient(url), StatsStore(STATS_DIR))
    if reset:
        session.reset_stats()
    tag_filter = session.load_tags()
    for tag in include or []:
        if tag in tag_filter:
            tag_filter.toggle_include(tag)
        else:
            typer.echo(f"Unknown tag: {tag}", err=True)
    for tag in exclude or []:
        if tag in tag_filter:
            tag_filter.toggle_exclude(tag)
        else:
            typer.echo(f"Unknown tag: {tag}", err=True)
    typer.echo(tag_filter.summary)
    typer.echo(_format_stats(session.stats))

    while True:
        try:
            character = session.load_character()
        except CrowdPickError as exc:
            typer.echo(f"Could not load a character: {exc}", err=True)
            raise typer.Exit(1)
        if character is None:
            typer.echo("No more characters match your filters.")
            break

        typer.echo("")
        typer.echo(_describe(character))
        choice = ""
        while choice[:1] not in ("y", "n", "s", "q"):
            choice = typer.prompt("[y]es / [n]o / [s]kip / [q]uit").strip().lower()
        if choice.startswith("q"):
            break
        try:
            if choice.startswith("s"):
                outcome = session.skip()
            else:
                outcome = session.vote(choice.startswith("y"))
        except CrowdPickError as exc:
            typer.echo(f"Request failed: {exc}", err=True)
            session.abandon()
            continue
        typer.echo(_format_outcome(outcome))
        typer.echo(_format_stats(outcome["stats"]))


if __name__ == "__main__":
    app()
