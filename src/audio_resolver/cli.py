"""CLI entry point for the audio resolver."""

import json
from pathlib import Path

import click
from loguru import logger

from .config import ResolverConfig
from .handler import handle
from .resolver import Resolver

log = logger.bind(stage="cli")

# Exit codes by HTTP outcome
_EXIT_CODES = {200: 0, 400: 2}


def _load_config(config_file: str | None, **overrides) -> ResolverConfig:
    """Build config from an explicit .env (or ./.env) plus CLI overrides."""
    env_file = Path(config_file) if config_file else Path(".env")
    config = ResolverConfig(_env_file=env_file, **overrides)  # type: ignore[call-arg]
    config.setup_logging()
    log.debug(f"Loaded config (env_file={env_file})")
    return config


config_option = click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to .env file.",
)


@click.group()
def main() -> None:
    """Resolve audio metadata and stream sources with ranked fallback."""


@main.command()
@click.option("--id", "identifier", required=True, help="Media identifier for instance lookups.")
@click.option("--title", default="", help="Title hint; enables metadata search.")
@click.option("--author", default="", help="Author hint; enables strict scoring.")
@click.option("--duration", type=int, default=None, help="Duration hint in seconds.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@config_option
def resolve(
    identifier: str,
    title: str,
    author: str,
    duration: int | None,
    verbose: bool,
    config_file: str | None,
) -> None:
    """Resolve one identifier and print the JSON response."""
    overrides = {"log_level": "DEBUG"} if verbose else {}
    config = _load_config(config_file, **overrides)

    params = {"id": identifier, "title": title, "author": author}
    if duration is not None:
        params["duration"] = str(duration)

    status, body = handle("GET", params, Resolver.from_config(config))
    click.echo(json.dumps(body, indent=2))
    raise SystemExit(_EXIT_CODES.get(status, 1))


@main.command()
@click.option("--host", default=None, help="Bind address (default from config).")
@click.option("--port", type=int, default=None, help="Bind port (default from config).")
@config_option
def serve(host: str | None, port: int | None, config_file: str | None) -> None:
    """Serve the resolver over HTTP."""
    import uvicorn

    from .server import create_app

    config = _load_config(config_file)
    host = host or config.host
    port = port or config.port

    log.info(f"Serving {config.route_path} on {host}:{port}")
    uvicorn.run(create_app(config), host=host, port=port, log_level=config.log_level.lower())
