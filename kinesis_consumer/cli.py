import logging
from pathlib import Path

import click

from kinesis_consumer.backend import Backend
from kinesis_consumer.consumer import consume, log_payload
from kinesis_consumer.exceptions import ConfigurationError
from kinesis_consumer.settings import CONFIG_FILE_ENV_VAR, Settings, load_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

config_option = click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar=CONFIG_FILE_ENV_VAR,
    help="YAML configuration file, application.yml by default.",
)


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # botocore is chatty below WARNING
    botocore_level = max(logging.getLevelName(level), logging.WARNING)
    logging.getLogger("botocore").setLevel(botocore_level)


def _load(config_file: Path | None) -> Settings:
    try:
        return load_settings(config_file)
    except ConfigurationError as error:
        raise click.ClickException(str(error)) from error


@click.group()
def cli() -> None:
    """Consumes a Kinesis stream and logs every message."""


@cli.command()
@config_option
@click.option(
    "--limit",
    type=click.IntRange(min=1),
    default=None,
    help="Stop after this many messages.",
)
def run(config_file: Path | None, limit: int | None) -> None:
    settings = _load(config_file)
    configure_logging(settings.logging.level)
    backend = Backend().configure(settings)
    # built eagerly so credential problems surface at startup
    backend.dynamodb
    logging.getLogger(__name__).info(
        "Consuming stream %s in %s environment",
        settings.consumer.stream,
        backend.environment.value,
    )
    consume(backend.subscription, log_payload, limit=limit)


@cli.command("check-config")
@config_option
def check_config(config_file: Path | None) -> None:
    """Validates the configuration and prints the values in effect."""
    settings = _load(config_file)
    registry = settings.amazon.dynamodb
    policy = registry.client

    click.echo(f"environment: {settings.environment.value}")
    click.echo(f"dynamodb: {registry.endpoint} ({registry.region})")
    for name, millis in policy.to_millis().items():
        click.echo(f"  {name}: {millis}ms")
    retry_policy = "custom" if policy.uses_custom_retry_policy() else "default"
    click.echo(
        f"  max_error_retries: {policy.effective_max_error_retries()} ({retry_policy})"
    )
    for key, table in registry.tables.items():
        click.echo(f"table {key}: {table.name}")
        for ttl_key, ttl in table.time_to_live.items():
            click.echo(f"  {ttl_key}: {ttl.value if ttl.is_enabled() else 'disabled'}")
