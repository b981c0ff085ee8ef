"""Bodyline CLI: inspect a timeline built from an event export."""

import click

from bodyline import __version__


@click.group()
@click.version_option(version=__version__, package_name="bodyline")
def main() -> None:
    """Bodyline: week / month / year timeline of your health data."""


# Register subcommands
from .cursor_cmd import cursor
from .show_cmd import show

main.add_command(show)
main.add_command(cursor)
