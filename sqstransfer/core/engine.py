from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import List, Optional, Sequence

from sqstransfer.config import TransferConfig
from sqstransfer.core.models import StopReason, WorkerResult
from sqstransfer.core.transport import TransportFactory
from sqstransfer.core.worker import TransferWorker

logger = logging.getLogger("sqstransfer.core.engine")


class TransferEngine:
    """
    Fixed pool of transfer workers, one thread and one transport client each.

    Lifecycle:
    1. start(): build one client per worker on the calling thread, then spawn all workers
    2. join(): wait for every worker to stop on its own and sum their counts (once only)
    3. terminate(): ask every worker to stop before its next batch (non-blocking)
    4. shutdown(): terminate() then wait, returning the same total as join()

    Worker errors never propagate here; the total is whatever was accumulated.
    """

    def __init__(self, workers: Sequence[TransferWorker]):
        self.workers: List[TransferWorker] = list(workers)

        self._state_lock = threading.Lock()
        self._collect_lock = threading.Lock()
        self._join_called = False
        self._results: Optional[List[WorkerResult]] = None

        self._executor = ThreadPoolExecutor(
            max_workers=max(len(self.workers), 1),
            thread_name_prefix="sqstransfer-worker",
        )
        self._futures: List[Future] = [self._executor.submit(w.run) for w in self.workers]

    @classmethod
    def start(
        cls,
        config: TransferConfig,
        transport_factory: Optional[TransportFactory] = None,
    ) -> TransferEngine:
        """
        Spawn config.threads workers. Does not validate config.

        Args:
            config: Transfer configuration
            transport_factory: Builds one transport per worker (default: SQSClient.from_config)
        """
        if transport_factory is None:
            from sqstransfer.io.sqs import SQSClient
            transport_factory = SQSClient.from_config

        workers = [
            TransferWorker(i, transport_factory(config), config.source, config.mode)
            for i in range(config.threads)
        ]
        logger.info(f"Starting transfer engine {config}")
        return cls(workers)

    @property
    def running(self) -> int:
        """Number of workers still executing."""
        return sum(1 for f in self._futures if not f.done())

    @property
    def results(self) -> Optional[List[WorkerResult]]:
        """Per-worker results once joined, else None."""
        return self._results

    @property
    def total(self) -> int:
        return sum(r.transferred for r in self._results or [])

    @property
    def failed(self) -> List[WorkerResult]:
        return [r for r in self._results or [] if r.stop_reason is StopReason.FAILED]

    def terminate(self) -> None:
        """Signal every worker. Never blocks; safe from a signal handler and after workers exit."""
        for worker in self.workers:
            worker.terminate()

    def join(self) -> int:
        """
        Block until every worker has stopped and return the total transferred.

        Raises:
            RuntimeError: If join() was already called on this engine
        """
        with self._state_lock:
            if self._join_called:
                raise RuntimeError("TransferEngine.join() may only be called once")
            self._join_called = True
        return self._collect()

    def shutdown(self) -> int:
        """Signal every worker, then wait for all of them. Safe to call repeatedly."""
        logger.info("Shutting down transfer engine")
        self.terminate()
        return self._collect()

    def _collect(self) -> int:
        with self._collect_lock:
            if self._results is None:
                results = [f.result() for f in self._futures]
                self._executor.shutdown(wait=True)
                self._results = results

                logger.info(
                    f"Transfer engine stopped: {self.total} messages, "
                    f"{len(self.failed)}/{len(results)} workers failed"
                )
            return self.total

    def __enter__(self) -> TransferEngine:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
