"""bodyline cursor: print where the shared cursor lands."""

from __future__ import annotations

import json

import click

from .common import build_service, config_option, export_argument, source_option, today_option, user_option


@click.command()
@export_argument
@config_option
@user_option
@source_option
@today_option
def cursor(export_file, config_file, user_id, source_name, today) -> None:
    """Show the initial cursor and its bucket for EXPORT_FILE."""
    service = build_service(export_file, config_file, user_id, today, source_name)
    current, bucket = service.selection()
    if current is None:
        click.echo("Cursor unset (no data).")
        return
    click.echo(json.dumps({"cursor": current.to_dict(), "bucket": bucket.to_dict() if bucket else None}, indent=2))
