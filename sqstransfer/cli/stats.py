"""
sqstransfer Stats CLI - Inspect queue depth before or after a transfer.

Usage:
  sqstransfer stats --queue-url <url> [--region us-east-1]
"""

import os
import sys

import click
from rich.console import Console
from rich.table import Table

console = Console()


@click.command()
@click.option('-q', '--queue-url', required=True, help='SQS queue URL')
@click.option('-r', '--region', help='AWS region (default: from AWS_DEFAULT_REGION env)')
@click.option('--endpoint-url', help='Custom SQS endpoint (e.g. LocalStack)')
def stats(queue_url, region, endpoint_url):
    """Show queue statistics."""
    from sqstransfer.io.sqs import SQSClient

    region = region or os.environ.get('AWS_DEFAULT_REGION')
    if not region:
        console.print("[red]Error:[/red] Set `--region` option or AWS_DEFAULT_REGION environment value.")
        sys.exit(1)

    sqs = SQSClient(region, endpoint_url=endpoint_url)

    try:
        stats_data = sqs.get_queue_stats(queue_url)
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    table = Table(title=f"Queue Stats: {queue_url}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Messages Available", str(stats_data['approximate_messages']))
    table.add_row("Messages In Flight", str(stats_data['approximate_messages_not_visible']))
    table.add_row("Messages Delayed", str(stats_data['approximate_messages_delayed']))

    console.print(table)
