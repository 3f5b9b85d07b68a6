#!/usr/bin/env python3
"""Read-only queries: head-to-head, player stats, rating history, match history."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from _cli import configure_logging, echo_json, fail, open_store, resolve_config
from db import DB_URL_ENVVAR, DEFAULT_DB_URL
from domain.errors import CueRatingsError
from domain.operations import (
    get_head_to_head,
    get_match_history,
    get_player_stats,
    get_rating_history,
    list_players,
)
from domain.ratings.common import player_key

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Query ratings and match analytics.",
)

DbUrl = Annotated[
    str,
    typer.Option(
        "--db-url",
        envvar=DB_URL_ENVVAR,
        help="Database URL. Defaults to the local cue_ratings postgres instance.",
    ),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output.")] = False,
) -> None:
    configure_logging(verbose)


@app.command("h2h")
def head_to_head_command(
    player_a: Annotated[str, typer.Argument()],
    player_b: Annotated[str, typer.Argument()],
    db_url: DbUrl = DEFAULT_DB_URL,
) -> None:
    """Head-to-head record between two players."""
    try:
        summary = get_head_to_head(open_store(db_url), player_a, player_b)
    except CueRatingsError as exc:
        raise fail(exc) from exc
    echo_json(summary)


@app.command("player")
def player_command(
    name: Annotated[str, typer.Argument()],
    db_url: DbUrl = DEFAULT_DB_URL,
    config_dir: Annotated[Path | None, typer.Option("--config-dir")] = None,
    config_name: Annotated[str | None, typer.Option("--config-name")] = None,
) -> None:
    """Win/loss, streaks and opponent breakdown for one player."""
    config = resolve_config(config_dir, config_name)
    try:
        stats = get_player_stats(open_store(db_url), name, config=config)
    except CueRatingsError as exc:
        raise fail(exc) from exc
    echo_json(stats)


@app.command("players")
def players_command(db_url: DbUrl = DEFAULT_DB_URL) -> None:
    """Roster with the latest rebuilt rating per player."""
    try:
        profiles = list_players(open_store(db_url))
    except CueRatingsError as exc:
        raise fail(exc) from exc
    for profile in sorted(profiles, key=lambda item: item.elo, reverse=True):
        typer.echo(f"{profile.elo:>5}  {profile.name}")


@app.command("history")
def history_command(
    player: Annotated[str | None, typer.Option("--player", help="Only this player's points.")] = None,
    db_url: DbUrl = DEFAULT_DB_URL,
) -> None:
    """Rating trajectory per player, oldest first."""
    try:
        history = get_rating_history(open_store(db_url))
    except CueRatingsError as exc:
        raise fail(exc) from exc
    if player is not None:
        key = player_key(player)
        history = {name: points for name, points in history.items() if player_key(name) == key}
    echo_json({name: [vars(point) for point in points] for name, points in history.items()})


@app.command("matches")
def matches_command(db_url: DbUrl = DEFAULT_DB_URL) -> None:
    """Every recorded match, most recent first, ignored ones flagged."""
    try:
        items = get_match_history(open_store(db_url))
    except CueRatingsError as exc:
        raise fail(exc) from exc
    echo_json(items)


if __name__ == "__main__":
    app()
