"""bodyline show: print the buckets of one scale."""

from __future__ import annotations

import json

import click

from bodyline.timeline.models import Metric, MetricValue, TimelineScale

from .common import build_service, config_option, export_argument, source_option, today_option, user_option

_MARKS = {"present": "", "estimated": "~", "missing": ""}


def _format_value(value: MetricValue) -> str:
    if value.value is None:
        return "-"
    return f"{_MARKS[value.presence.value]}{value.value:.1f}"


@click.command()
@export_argument
@click.option(
    "--scale",
    type=click.Choice([s.value for s in TimelineScale]),
    default=TimelineScale.WEEK.value,
    show_default=True,
)
@click.option("--json", "as_json", is_flag=True, help="Emit the full state as JSON.")
@config_option
@user_option
@source_option
@today_option
def show(export_file, scale, as_json, config_file, user_id, source_name, today) -> None:
    """Show timeline buckets built from EXPORT_FILE."""
    service = build_service(export_file, config_file, user_id, today, source_name)

    if as_json:
        click.echo(json.dumps(service.state.to_dict(), indent=2, sort_keys=True))
        return

    buckets = service.buckets(TimelineScale(scale))
    if not buckets:
        click.echo("No data.")
        return

    header = ["bucket", *[m.value for m in Metric], "photo", "score"]
    click.echo("  ".join(f"{h:>10}" for h in header))
    for bucket in buckets:
        snap = bucket.metrics
        cells = [
            bucket.id + ("*" if bucket.is_bridge else ""),
            *[_format_value(snap[m]) for m in Metric],
            snap.canonical_photo_id or "-",
            snap.body_score_completeness.value,
        ]
        click.echo("  ".join(f"{c:>10}" for c in cells))

    skipped = service.state.skipped_events
    if skipped:
        click.echo(f"\n{len(skipped)} event(s) skipped:")
        for reason in skipped:
            click.echo(f"  {reason}")
