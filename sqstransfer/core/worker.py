from __future__ import annotations

import logging
import threading

from sqstransfer.config import TransferMode
from sqstransfer.core.models import StopReason, WorkerResult
from sqstransfer.core.step import transfer_batch
from sqstransfer.core.transport import QueueTransport
from sqstransfer.errors import TransferError

logger = logging.getLogger("sqstransfer.core.worker")


class TransferWorker:
    """
    Repeatedly runs batch transfer steps against one (source, mode) pair.

    Stops when:
    - a fetch returns no messages (source drained)
    - a step raises (no retry; sibling workers are unaffected)
    - terminate() was called; checked only between steps, so a batch
      already in flight always finishes, including its delete
    """

    def __init__(
        self,
        worker_id: int,
        transport: QueueTransport,
        source: str,
        mode: TransferMode,
    ):
        self.worker_id = worker_id
        self.transport = transport
        self.source = source
        self.mode = mode

        self._terminate = threading.Event()

    def terminate(self) -> None:
        """Ask the worker to stop before its next step. Safe after the worker has exited."""
        self._terminate.set()

    @property
    def terminate_requested(self) -> bool:
        return self._terminate.is_set()

    def run(self) -> WorkerResult:
        transferred = 0
        batches = 0

        while True:
            if self._terminate.is_set():
                logger.info(f"Worker {self.worker_id} terminated after {transferred} messages")
                return WorkerResult(self.worker_id, transferred, batches, StopReason.TERMINATED)

            try:
                n = transfer_batch(self.transport, self.source, self.mode)
            except TransferError as e:
                logger.error(
                    f"Worker {self.worker_id} stopping on {type(e).__name__}: {e}",
                    extra={"worker_id": self.worker_id, "transferred": transferred},
                )
                return WorkerResult(self.worker_id, transferred, batches, StopReason.FAILED, str(e))
            except Exception as e:
                logger.error(f"Worker {self.worker_id} failed unexpectedly: {e}", exc_info=True)
                return WorkerResult(self.worker_id, transferred, batches, StopReason.FAILED, str(e))

            if n <= 0:
                logger.info(f"Worker {self.worker_id} drained source after {transferred} messages")
                return WorkerResult(self.worker_id, transferred, batches, StopReason.DRAINED)

            transferred += n
            batches += 1
