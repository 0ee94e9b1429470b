"""CLI for querying the card search module.

This module provides click commands that run one webservice search and
print the JSON answer on stdout.
"""

import asyncio
import json
from pathlib import Path
from typing import Any

import click

from decktutor.client import DeckTutorClient
from decktutor.config import Config, ConfigError, get_config_file_path, load_config
from decktutor.schemas.types import Game
from decktutor.utils.errors import DeckTutorError
from decktutor.utils.telemetry import (
    setup_logging,
    setup_tracing,
    start_metrics_server,
)


def _prepare(ctx: click.Context) -> Config:
    config: Config = ctx.obj["config"]
    setup_logging(
        config.logging.level,
        enable_redaction=config.logging.enable_redaction,
        log_format=config.logging.format,
    )
    if ctx.obj["trace"]:
        setup_tracing()
    if config.metrics.enabled:
        start_metrics_server(config.metrics.port)
    return config


def _run(ctx: click.Context, operation: str, *args: Any, **kwargs: Any) -> None:
    config = _prepare(ctx)

    async def call() -> Any:
        async with DeckTutorClient.from_config(config) as client:
            return await getattr(client, operation)(*args, **kwargs)

    try:
        result = asyncio.run(call())
    except DeckTutorError as e:
        raise click.ClickException(str(e)) from e

    click.echo(json.dumps(result, indent=2, ensure_ascii=False))


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file (YAML)",
)
@click.option("--endpoint", help="Webservice base URL")
@click.option(
    "--game",
    type=click.Choice([game.value for game in Game]),
    help="Card game to search in",
)
@click.option("--log-level", help="Log level")
@click.option("--trace", is_flag=True, help="Print tracing spans to the console")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    endpoint: str | None,
    game: str | None,
    log_level: str | None,
    trace: bool,
) -> None:
    """Search the DeckTutor card database."""
    try:
        config = load_config(config_path or get_config_file_path())
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    if endpoint:
        config.client.endpoint = endpoint
    if game:
        config.client.game = game
    if log_level:
        config.logging.level = log_level.upper()

    ctx.obj = {"config": config, "trace": trace}


@cli.command()
@click.argument("query")
@click.pass_context
def names(ctx: click.Context, query: str) -> None:
    """Find card names matching QUERY."""
    _run(ctx, "find_card_names", query)


@cli.command()
@click.argument("name")
@click.option("--set", "set_code", help="Set code to limit the search to")
@click.option("--offset", default=0, help="Offset of the first result")
@click.option("--limit", type=int, help="Number of results")
@click.option("--order", help="Ordering as column,dir")
@click.pass_context
def versions(
    ctx: click.Context,
    name: str,
    set_code: str | None,
    offset: int,
    limit: int | None,
    order: str | None,
) -> None:
    """Find the printed versions of the card NAME."""
    _run(
        ctx,
        "find_card_versions",
        name,
        set=set_code,
        offset=offset,
        limit=limit,
        order=order,
    )


@cli.command()
def games() -> None:
    """List the supported card games."""
    for game in Game:
        click.echo(f"{game.value}\t{game.label}")
