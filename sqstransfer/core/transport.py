from __future__ import annotations
from typing import Callable, List, Protocol, Sequence

from sqstransfer.config import TransferConfig
from sqstransfer.core.models import MAX_BATCH_SIZE, Message, SendBatchResult, SendEntry

class QueueTransport(Protocol):
    """
    Batch operations against a remote queue service. No retry, no threading.
    One instance is owned by exactly one worker.
    """

    def fetch_batch(self, queue_url: str, max_messages: int = MAX_BATCH_SIZE) -> List[Message]:
        """Return 0..max_messages messages, or raise FetchError."""
        ...

    def send_batch(self, queue_url: str, entries: Sequence[SendEntry]) -> SendBatchResult:
        """Report per-entry success/failure, or raise SendError if the request fails as a whole."""
        ...

    def delete_batch(self, queue_url: str, receipt_handles: Sequence[str]) -> int:
        """Return the number of messages deleted, or raise DeleteError."""
        ...

TransportFactory = Callable[[TransferConfig], QueueTransport]
