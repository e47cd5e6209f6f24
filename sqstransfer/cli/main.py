#!/usr/bin/env python3
"""
sqstransfer CLI - Main entry point.

Commands:
  sqstransfer transfer  - Move messages to another queue, or delete them
  sqstransfer stats     - Show approximate queue depth
"""

import logging
import os
import sys

import click
from rich.console import Console
from rich.logging import RichHandler

from sqstransfer import __version__

# Setup rich console
console = Console()


def setup_logging(verbose: bool = False) -> None:
    """
    Interactive logging: worker and engine events through a rich handler on the console.

    The sqstransfer namespace follows SQSTRANSFER_APP_LOG_LEVEL (default INFO, DEBUG with
    --verbose); everything else, boto3/botocore included, stays at WARNING unless
    SQSTRANSFER_BOTO_LOG_LEVEL says otherwise. `--log-format json` replaces this setup.
    """
    app_level = "DEBUG" if verbose else os.environ.get("SQSTRANSFER_APP_LOG_LEVEL", "INFO").upper()
    boto_level = os.environ.get("SQSTRANSFER_BOTO_LOG_LEVEL", "WARNING").upper()

    logging.basicConfig(
        level=logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=verbose)]
    )
    logging.getLogger("sqstransfer").setLevel(app_level)
    for name in ("boto3", "botocore", "urllib3"):
        logging.getLogger(name).setLevel(boto_level)


@click.group()
@click.version_option(version=__version__)
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, verbose):
    """sqstransfer - Move every message of an SQS queue to another queue, or delete them.

    Workers poll in parallel, 10 messages per batch, and delete a message from the
    source only after the destination accepted it.
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    setup_logging(verbose)


# Import subcommands
from sqstransfer.cli.transfer import transfer
from sqstransfer.cli.stats import stats

cli.add_command(transfer)
cli.add_command(stats)


def main():
    """Main entry point."""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        if '--verbose' in sys.argv or '-v' in sys.argv:
            raise
        sys.exit(1)


if __name__ == '__main__':
    main()
