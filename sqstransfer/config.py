from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Union

import boto3

from sqstransfer.errors import ConfigError

DEFAULT_THREADS = 16
DEFAULT_WAIT_SECONDS = 1
MAX_WAIT_SECONDS = 20               # SQS long-poll ceiling
MAX_VISIBILITY_TIMEOUT = 43200      # 12 hours

@dataclass(frozen=True)
class ForwardMode:
    destination: str  # destination queue URL

@dataclass(frozen=True)
class DeleteOnlyMode:
    pass

TransferMode = Union[ForwardMode, DeleteOnlyMode]

@dataclass(frozen=True)
class TransferConfig:
    source: str                 # source queue URL
    mode: TransferMode
    region: str

    threads: int = DEFAULT_THREADS
    endpoint_url: Optional[str] = None   # e.g. LocalStack
    wait_seconds: int = DEFAULT_WAIT_SECONDS
    visibility_timeout: Optional[int] = None  # None: queue default

    @property
    def destination(self) -> Optional[str]:
        if isinstance(self.mode, ForwardMode):
            return self.mode.destination
        return None

    @property
    def delete_only(self) -> bool:
        return isinstance(self.mode, DeleteOnlyMode)

    def __str__(self) -> str:
        return (
            f"(source:{self.source}, destination:{self.destination or ''}, "
            f"threads:{self.threads}, region:{self.region})"
        )


def known_regions() -> set[str]:
    """All SQS regions listed in botocore's bundled endpoint data, across partitions."""
    session = boto3.session.Session()
    regions: set[str] = set()
    for partition in session.get_available_partitions():
        regions.update(session.get_available_regions("sqs", partition_name=partition))
    return regions


def build_config(
    source: str,
    destination: Optional[str] = None,
    delete: bool = False,
    threads: int = DEFAULT_THREADS,
    region: Optional[str] = None,
    endpoint_url: Optional[str] = None,
    wait_seconds: int = DEFAULT_WAIT_SECONDS,
    visibility_timeout: Optional[int] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> TransferConfig:
    """
    Validate raw options and build a TransferConfig.

    Args:
        source: Source queue URL
        destination: Destination queue URL (mutually exclusive with delete)
        delete: Discard messages instead of forwarding them
        threads: Number of concurrent workers
        region: AWS region (default: AWS_DEFAULT_REGION from environ)
        endpoint_url: Optional SQS endpoint override; skips region validation
        wait_seconds: Long-poll wait per fetch (0-20)
        visibility_timeout: Optional visibility timeout per fetch (0-43200)
        environ: Environment mapping (default: os.environ)

    Raises:
        ConfigError: If any option is invalid
    """
    env = os.environ if environ is None else environ

    if not source:
        raise ConfigError("Set `--source`.")

    if bool(destination) == bool(delete):
        raise ConfigError("Set `--destination` or `--delete`.")
    mode: TransferMode = ForwardMode(destination) if destination else DeleteOnlyMode()

    if threads < 1:
        raise ConfigError(f"Number of threads must be a positive integer, got {threads}")

    region = region or env.get("AWS_DEFAULT_REGION", "")
    if not region:
        raise ConfigError("Set `--region` option or AWS_DEFAULT_REGION environment value.")
    if endpoint_url is None and region not in known_regions():
        raise ConfigError(f"Invalid region identifier: {region}")

    if not 0 <= wait_seconds <= MAX_WAIT_SECONDS:
        raise ConfigError(f"wait_seconds must be between 0 and {MAX_WAIT_SECONDS}, got {wait_seconds}")
    if visibility_timeout is not None and not 0 <= visibility_timeout <= MAX_VISIBILITY_TIMEOUT:
        raise ConfigError(
            f"visibility_timeout must be between 0 and {MAX_VISIBILITY_TIMEOUT}, got {visibility_timeout}"
        )

    return TransferConfig(
        source=source,
        mode=mode,
        region=region,
        threads=threads,
        endpoint_url=endpoint_url,
        wait_seconds=wait_seconds,
        visibility_timeout=visibility_timeout,
    )
