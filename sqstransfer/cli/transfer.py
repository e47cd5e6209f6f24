"""
sqstransfer Transfer CLI - Move or delete every message of a queue.

Usage:
  sqstransfer transfer --source <url> --destination <url> [--threads 16]
  sqstransfer transfer --source <url> --delete

Environment variables:
  AWS_DEFAULT_REGION (used when --region is not given)
  AWS credentials as understood by boto3
"""

import contextlib
import logging
import signal
import sys
import threading
from typing import Any, Iterator

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from sqstransfer.config import DEFAULT_THREADS, DEFAULT_WAIT_SECONDS, TransferConfig, build_config
from sqstransfer.core.engine import TransferEngine
from sqstransfer.core.transport import QueueTransport
from sqstransfer.errors import ConfigError

console = Console()
logger = logging.getLogger("sqstransfer.cli.transfer")

# Load environment variables from .env file if present
load_dotenv()


def make_transport(config: TransferConfig) -> QueueTransport:
    """Build the transport for one worker."""
    from sqstransfer.io.sqs import SQSClient

    return SQSClient.from_config(config)


@contextlib.contextmanager
def graceful_shutdown(engine: TransferEngine) -> Iterator[None]:
    """
    Route SIGTERM/SIGINT to the engine while a transfer runs.

    First signal: stop starting new batches; in-flight batches finish (including their delete)
    and the partial count is reported.
    Second signal: raise KeyboardInterrupt out of the join. The per-worker results and the
    count are lost, but batches already in flight still run to completion before the
    interpreter exits, since worker threads are never killed.
    """
    if threading.current_thread() is not threading.main_thread():
        # signal.signal() only works on the main thread
        yield
        return

    signaled = threading.Event()

    def signal_handler(signum: int, frame: Any) -> None:
        sig_name = signal.Signals(signum).name
        if not signaled.is_set():
            logger.info(
                f"Received {sig_name} signal. Stopping workers after their current batch."
            )
            signaled.set()
            engine.terminate()
        else:
            logger.warning(
                f"Received second {sig_name} signal. Abandoning the transfer count; "
                "batches already in flight still complete before the process exits."
            )
            raise KeyboardInterrupt("Forced shutdown by second signal")

    previous = {
        signal.SIGTERM: signal.signal(signal.SIGTERM, signal_handler),
        signal.SIGINT: signal.signal(signal.SIGINT, signal_handler),
    }
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


def print_worker_table(engine: TransferEngine) -> None:
    table = Table(title="Workers")
    table.add_column("Worker", style="cyan")
    table.add_column("Transferred", style="green", justify="right")
    table.add_column("Batches", justify="right")
    table.add_column("Stopped")
    table.add_column("Error", style="red", overflow="fold")

    for r in engine.results or []:
        table.add_row(
            str(r.worker_id),
            str(r.transferred),
            str(r.batches),
            r.stop_reason.value,
            r.error or "",
        )

    console.print(table)


@click.command()
@click.option('-s', '--source', required=True, help='Source SQS queue URL')
@click.option('-d', '--destination', help='Destination SQS queue URL')
@click.option('--delete', is_flag=True, help='Delete messages instead of transferring them')
@click.option('-t', '--threads', type=int, default=DEFAULT_THREADS, show_default=True, help='Number of threads')
@click.option('-r', '--region', help='AWS region (default: from AWS_DEFAULT_REGION env)')
@click.option('--endpoint-url', help='Custom SQS endpoint (e.g. LocalStack)')
@click.option('--wait-seconds', type=int, default=DEFAULT_WAIT_SECONDS, show_default=True,
              help='SQS long-poll wait time per fetch (0-20 seconds)')
@click.option('--visibility-timeout', type=int, help='Visibility timeout for fetched messages (seconds)')
@click.option('--log-format', type=click.Choice(['rich', 'json']), default='rich', show_default=True,
              help='Log output format')
@click.pass_context
def transfer(
    ctx,
    source,
    destination,
    delete,
    threads,
    region,
    endpoint_url,
    wait_seconds,
    visibility_timeout,
    log_format,
):
    """Transfer SQS messages to another queue, or delete them with --delete."""
    verbose = bool(ctx.obj and ctx.obj.get('verbose'))

    if log_format == 'json':
        from sqstransfer.logging_setup import setup_logging
        setup_logging(verbose)

    try:
        config = build_config(
            source=source,
            destination=destination,
            delete=delete,
            threads=threads,
            region=region,
            endpoint_url=endpoint_url,
            wait_seconds=wait_seconds,
            visibility_timeout=visibility_timeout,
        )
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    engine = TransferEngine.start(config, transport_factory=make_transport)
    with graceful_shutdown(engine):
        try:
            count = engine.join()
        except KeyboardInterrupt:
            # click would turn this into Abort (exit 1)
            console.print("\n[yellow]Interrupted:[/yellow] transfer count unavailable")
            sys.exit(130)

    if config.delete_only:
        console.print(f"Deleted messages count: {count} (from: {config.source})", soft_wrap=True)
    else:
        console.print(
            f"Transferred messages count: {count} (from: {config.source}, to: {config.destination})",
            soft_wrap=True,
        )

    if verbose or engine.failed:
        print_worker_table(engine)

    if engine.failed:
        console.print(
            f"[yellow]Warning:[/yellow] {len(engine.failed)} of {len(engine.workers)} worker(s) "
            "failed; the source queue may not be empty"
        )
        sys.exit(1)
