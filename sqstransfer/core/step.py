from __future__ import annotations
import logging
from typing import Dict, List

from sqstransfer.config import DeleteOnlyMode, ForwardMode, TransferMode
from sqstransfer.core.models import MAX_BATCH_SIZE, Message, SendEntry
from sqstransfer.core.transport import QueueTransport
from sqstransfer.errors import MissingReceiptHandleError

logger = logging.getLogger("sqstransfer.core.step")


def transfer_batch(
    transport: QueueTransport,
    source: str,
    mode: TransferMode,
    max_messages: int = MAX_BATCH_SIZE,
) -> int:
    """
    Run one fetch -> forward -> acknowledge cycle.

    A message is deleted from the source only once the destination has
    confirmed it; messages whose send failed stay on the source for
    redelivery. In delete-only mode every fetched message is deleted.

    Args:
        transport: Transport owned by the calling worker
        source: Source queue URL
        mode: ForwardMode(destination) or DeleteOnlyMode()
        max_messages: Batch size (at most 10)

    Returns:
        Number of messages fetched (0 means the source looked empty)

    Raises:
        FetchError, SendError, DeleteError: Fatal to the calling worker
    """
    messages = transport.fetch_batch(source, max_messages)
    if not messages:
        return 0

    # ordinal id -> receipt handle, local to this step
    handles = _receipt_handles(messages)

    if isinstance(mode, ForwardMode):
        to_delete = _forward(transport, mode.destination, messages, handles)
    elif isinstance(mode, DeleteOnlyMode):
        to_delete = list(handles.values())
    else:
        raise TypeError(f"Unknown transfer mode: {mode!r}")

    if to_delete:
        transport.delete_batch(source, to_delete)

    logger.debug(f"Batch done: fetched={len(messages)}, deleted={len(to_delete)}")
    return len(messages)


def _receipt_handles(messages: List[Message]) -> Dict[str, str]:
    handles = {}
    for i, msg in enumerate(messages):
        if not msg.receipt_handle:
            raise MissingReceiptHandleError(f"Message {msg.message_id} has no ReceiptHandle")
        handles[str(i)] = msg.receipt_handle
    return handles


def _forward(
    transport: QueueTransport,
    destination: str,
    messages: List[Message],
    handles: Dict[str, str],
) -> List[str]:
    entries = [
        SendEntry(entry_id=entry_id, body=msg.body, message_attributes=msg.message_attributes)
        for entry_id, msg in zip(handles, messages)
    ]
    result = transport.send_batch(destination, entries)

    for entry_id, reason in result.failed.items():
        logger.warning(f"Send failed for entry {entry_id} to {destination}, leaving it on source: {reason}")

    # ids in neither list are unconfirmed and stay on the source too
    return [handle for entry_id, handle in handles.items() if result.succeeded(entry_id)]
