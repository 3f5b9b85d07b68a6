#!/usr/bin/env python3
"""Record matches, toggle ignore flags, remove the last match and rebuild ratings."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from _cli import configure_logging, echo_json, fail, open_store, resolve_config
from db import DB_URL_ENVVAR, DEFAULT_DB_URL
from domain.errors import CueRatingsError
from domain.operations import (
    rebuild_ratings,
    record_one_v_one,
    record_race,
    remove_last_match,
    set_match_ignored,
)
from domain.pipeline import rebuild_rating_history
from repositories.ledger import add_player, store_session

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Match ledger and rating jobs.",
)

DbUrl = Annotated[
    str,
    typer.Option(
        "--db-url",
        envvar=DB_URL_ENVVAR,
        help="Database URL. Defaults to the local cue_ratings postgres instance.",
    ),
]
ConfigDir = Annotated[
    Path | None,
    typer.Option("--config-dir", help="Directory of Elo system TOML files."),
]
ConfigName = Annotated[
    str | None,
    typer.Option("--config-name", help="Config filename or system name (for example: default.toml)."),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output.")] = False,
) -> None:
    configure_logging(verbose)


@app.command("add-player")
def add_player_command(
    name: Annotated[str, typer.Argument(help="Display name used in match rows.")],
    nickname: Annotated[str | None, typer.Option("--nickname")] = None,
    cue: Annotated[str | None, typer.Option("--cue")] = None,
    favorite_game: Annotated[str | None, typer.Option("--favorite-game")] = None,
    db_url: DbUrl = DEFAULT_DB_URL,
) -> None:
    """Add a roster entry at the baseline rating."""
    try:
        session_factory = open_store(db_url)
        with store_session(session_factory) as session:
            player_id = add_player(
                session,
                name,
                nickname=nickname,
                cue=cue,
                favorite_game=favorite_game,
            )
    except CueRatingsError as exc:
        raise fail(exc) from exc
    typer.echo(f"added player={name} id={player_id}")


@app.command("record-1v1")
def record_one_v_one_command(
    player_a: Annotated[str, typer.Argument()],
    player_b: Annotated[str, typer.Argument()],
    winner: Annotated[str, typer.Option("--winner", help="Name of the winning player.")],
    date: Annotated[str | None, typer.Option("--date", help="Match date, defaults to today.")] = None,
    game_type: Annotated[str | None, typer.Option("--game-type")] = None,
    session_id: Annotated[str | None, typer.Option("--session-id")] = None,
    notes: Annotated[str | None, typer.Option("--notes")] = None,
    db_url: DbUrl = DEFAULT_DB_URL,
    config_dir: ConfigDir = None,
    config_name: ConfigName = None,
) -> None:
    """Record a 1v1 game and update both cached ratings."""
    config = resolve_config(config_dir, config_name)
    try:
        session_factory = open_store(db_url)
        recorded = record_one_v_one(
            session_factory,
            player_a=player_a,
            player_b=player_b,
            winner=winner,
            date=date,
            game_type=game_type,
            session_id=session_id,
            notes=notes,
            config=config,
        )
    except CueRatingsError as exc:
        raise fail(exc) from exc
    update = recorded.update
    typer.echo(
        f"recorded {recorded.match.match_id} "
        f"{update.winner}={update.winner_post_elo} {update.loser}={update.loser_post_elo}"
    )


@app.command("record-race")
def record_race_command(
    player_a: Annotated[str, typer.Argument()],
    player_b: Annotated[str, typer.Argument()],
    score_a: Annotated[int, typer.Argument(min=0)],
    score_b: Annotated[int, typer.Argument(min=0)],
    race_to: Annotated[int | None, typer.Option("--race-to", min=1)] = None,
    date: Annotated[str | None, typer.Option("--date", help="Match date, defaults to today.")] = None,
    game_type: Annotated[str | None, typer.Option("--game-type")] = None,
    notes: Annotated[str | None, typer.Option("--notes")] = None,
    db_url: DbUrl = DEFAULT_DB_URL,
    config_dir: ConfigDir = None,
    config_name: ConfigName = None,
) -> None:
    """Record a race and update both cached ratings by the score margin."""
    config = resolve_config(config_dir, config_name)
    try:
        session_factory = open_store(db_url)
        recorded = record_race(
            session_factory,
            player_a=player_a,
            player_b=player_b,
            score_a=score_a,
            score_b=score_b,
            race_to=race_to,
            date=date,
            game_type=game_type,
            notes=notes,
            config=config,
        )
    except CueRatingsError as exc:
        raise fail(exc) from exc
    update = recorded.update
    typer.echo(
        f"recorded {recorded.match.match_id} margin={update.margin} "
        f"{update.winner}={update.winner_post_elo} {update.loser}={update.loser_post_elo}"
    )


@app.command("ignore")
def ignore_command(
    source: Annotated[str, typer.Argument(help="Source table: 1v1 or Race.")],
    row_index: Annotated[int, typer.Argument(min=0, help="Zero-based row within the table.")],
    clear: Annotated[bool, typer.Option("--clear", help="Clear the flag instead of setting it.")] = False,
    db_url: DbUrl = DEFAULT_DB_URL,
    config_dir: ConfigDir = None,
    config_name: ConfigName = None,
) -> None:
    """Set or clear the ignore flag on one match."""
    config = resolve_config(config_dir, config_name)
    try:
        session_factory = open_store(db_url)
        summary = set_match_ignored(
            session_factory,
            source=source,
            row_index=row_index,
            ignore=not clear,
            config=config,
        )
    except CueRatingsError as exc:
        raise fail(exc) from exc
    typer.echo(f"ignore={'no' if clear else 'yes'} source={source} row_index={row_index}")
    if summary is not None:
        echo_json(summary)


@app.command("remove-last")
def remove_last_command(
    db_url: DbUrl = DEFAULT_DB_URL,
    config_dir: ConfigDir = None,
    config_name: ConfigName = None,
) -> None:
    """Delete the most recent match across both tables and rebuild."""
    config = resolve_config(config_dir, config_name)
    try:
        session_factory = open_store(db_url)
        result = remove_last_match(session_factory, config=config)
    except CueRatingsError as exc:
        raise fail(exc) from exc
    echo_json(result)


@app.command("rebuild")
def rebuild_command(
    db_url: DbUrl = DEFAULT_DB_URL,
    config_dir: ConfigDir = None,
    config_name: ConfigName = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Replay the ledger without writing history."),
    ] = False,
    sync_roster: Annotated[
        bool,
        typer.Option("--sync-roster/--no-sync-roster", help="Copy latest rebuilt ratings into the roster."),
    ] = True,
) -> None:
    """Recompute the rating history from the full ledger."""
    config = resolve_config(config_dir, config_name)
    try:
        session_factory = open_store(db_url)
        if dry_run:
            rebuild_rating_history(
                session_factory=session_factory,
                system_config=config,
                dry_run=True,
                echo=typer.echo,
            )
            return
        summary = rebuild_ratings(session_factory, config=config, sync_roster=sync_roster)
    except CueRatingsError as exc:
        raise fail(exc) from exc
    typer.echo(
        "completed "
        f"system={summary.system_name} "
        f"processed_matches={summary.processed_matches} "
        f"skipped_ignored={summary.skipped_ignored} "
        f"inserted_entries={summary.inserted_entries} "
        f"tracked_players={summary.tracked_players}"
    )


if __name__ == "__main__":
    app()
