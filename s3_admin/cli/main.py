"""Main CLI entry point for s3-admin management commands."""

import click

from s3_admin import __version__
from s3_admin.cli.commands import storage
from s3_admin.infra.logging.config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="s3-admin")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """S3 Admin CLI - bucket and object administration.

    \b
    Command Groups:
      storage    Buckets, objects, access points and presigned URLs

    \b
    Quick Start:
      s3-admin storage info                    # Show configuration
      s3-admin storage buckets                 # List buckets
      s3-admin storage delete-bucket demo      # Delete an empty bucket
      s3-admin --server                        # Run the HTTP API
    """
    ctx.ensure_object(dict)


cli.add_command(storage.storage)


def main() -> None:
    """Entry point for CLI."""
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
