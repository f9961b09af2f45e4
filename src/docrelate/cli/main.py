"""docrelate CLI entry point."""

import logging

import click


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool):
    """docrelate: relation hooks between document collections."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Register subcommand groups
from docrelate.cli.relations_cmd import relations  # noqa: E402

cli.add_command(relations)
