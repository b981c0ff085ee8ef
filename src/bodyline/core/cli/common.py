"""Shared setup logic for CLI commands."""

from __future__ import annotations

from datetime import date

import click

from bodyline.core.config import Config
from bodyline.core.exceptions import BodylineError
from bodyline.core.utils.logging import setup_logging
from bodyline.health.plugins.json_export import JsonExportEventSource
from bodyline.health.registry import EventSourceRegistry
from bodyline.health.source import EventSource
from bodyline.timeline.config import TimelineConfig
from bodyline.timeline.service import TimelineService

DEFAULT_SOURCE = "json_export"

export_argument = click.argument("export_file", type=click.Path(exists=True, dir_okay=False))
config_option = click.option(
    "--config", "config_file", type=click.Path(exists=True, dir_okay=False), help="YAML/JSON config file."
)
user_option = click.option("--user", "user_id", default="me", show_default=True, help="User key inside the export.")
source_option = click.option(
    "--source",
    "source_name",
    default=DEFAULT_SOURCE,
    show_default=True,
    help="Event source plugin that reads EXPORT_FILE.",
)
today_option = click.option(
    "--today",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Reference date for the year range (defaults to the current date).",
)


def load_config(config_file: str | None) -> Config:
    """Load config and apply its logging section."""
    try:
        config = Config(config_file=config_file)
        settings = config.validated()
    except BodylineError as e:
        raise click.ClickException(str(e)) from e
    setup_logging(level=settings.logging.level, log_file=settings.logging.file)
    return config


def resolve_source(name: str, export_file: str) -> EventSource:
    """Instantiate the named source from the plugin registry.

    The bundled JSON/YAML reader is always available, even when the package
    metadata (and so its entry point) is not installed.
    """
    registry = EventSourceRegistry()
    registry.register(DEFAULT_SOURCE, JsonExportEventSource)
    registry.discover()
    try:
        return registry.create(name, export_path=export_file)
    except KeyError as e:
        raise click.ClickException(e.args[0]) from e


def build_service(
    export_file: str,
    config_file: str | None,
    user_id: str,
    today,
    source_name: str = DEFAULT_SOURCE,
) -> TimelineService:
    """Create a service over an export file and run the first rebuild."""
    config = load_config(config_file)
    reference = today.date() if today else date.today()
    service = TimelineService(
        config=TimelineConfig.from_config(config),
        source=resolve_source(source_name, export_file),
        clock=lambda: reference,
    )
    try:
        service.refresh(user_id)
    except BodylineError as e:
        raise click.ClickException(str(e)) from e
    return service
