"""Shared test fixtures for sqstransfer: an in-memory queue broker and transport."""
import itertools
import logging
import threading
from collections import deque
from typing import Callable, Dict, List, Optional, Sequence

import pytest

from sqstransfer.config import DeleteOnlyMode, ForwardMode, TransferConfig
from sqstransfer.core.models import MAX_BATCH_SIZE, Message, SendBatchResult, SendEntry
from sqstransfer.errors import DeleteError, FetchError, SendError

SOURCE = "https://sqs.us-east-1.amazonaws.com/123456789012/src"
DESTINATION = "https://sqs.us-east-1.amazonaws.com/123456789012/dst"


class FakeBroker:
    """Thread-safe in-memory queues with SQS-like receive/delete semantics (no visibility expiry)."""

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count()
        self.visible: Dict[str, deque] = {}
        self.in_flight: Dict[str, tuple] = {}  # receipt handle -> (queue, record)
        self.fetch_threads: set = set()

    def put(self, queue: str, body: str, attributes: Optional[dict] = None) -> None:
        with self._lock:
            record = (f"m-{next(self._ids)}", body, dict(attributes or {}))
            self.visible.setdefault(queue, deque()).append(record)

    def put_many(self, queue: str, n: int, prefix: str = "msg") -> None:
        for i in range(n):
            self.put(queue, f"{prefix}-{i}")

    def receive(self, queue: str, max_messages: int) -> List[Message]:
        with self._lock:
            self.fetch_threads.add(threading.current_thread())
            q = self.visible.setdefault(queue, deque())
            out = []
            while q and len(out) < max_messages:
                record = q.popleft()
                handle = f"rh-{next(self._ids)}"
                self.in_flight[handle] = (queue, record)
                message_id, body, attributes = record
                out.append(Message(message_id, body, handle, attributes))
            return out

    def delete(self, queue: str, handle: str) -> bool:
        with self._lock:
            entry = self.in_flight.get(handle)
            if entry is None or entry[0] != queue:
                return False
            del self.in_flight[handle]
            return True

    def bodies(self, queue: str) -> List[str]:
        with self._lock:
            return [body for _, body, _ in self.visible.get(queue, ())]

    def attributes(self, queue: str) -> List[dict]:
        with self._lock:
            return [attrs for _, _, attrs in self.visible.get(queue, ())]

    def in_flight_count(self, queue: str) -> int:
        with self._lock:
            return sum(1 for q, _ in self.in_flight.values() if q == queue)

    def depth(self, queue: str) -> int:
        """Visible plus not-yet-deleted in-flight messages."""
        return len(self.bodies(queue)) + self.in_flight_count(queue)


class FakeTransport:
    """
    QueueTransport over a FakeBroker, recording every call.

    fail_on maps an operation name ("fetch", "send", "delete") to the 1-based
    call number from which that operation raises.
    """

    def __init__(
        self,
        broker: FakeBroker,
        fail_on: Optional[Dict[str, int]] = None,
        failing_send_ids: Sequence[str] = (),
        on_fetch: Optional[Callable[["FakeTransport"], None]] = None,
    ):
        self.broker = broker
        self.fail_on = fail_on or {}
        self.failing_send_ids = set(failing_send_ids)
        self.on_fetch = on_fetch

        self.fetch_calls: List[int] = []
        self.send_calls: List[List[SendEntry]] = []
        self.delete_calls: List[List[str]] = []
        self._calls = {"fetch": 0, "send": 0, "delete": 0}

    def _should_fail(self, op: str) -> bool:
        self._calls[op] += 1
        threshold = self.fail_on.get(op)
        return threshold is not None and self._calls[op] >= threshold

    def fetch_batch(self, queue_url: str, max_messages: int = MAX_BATCH_SIZE) -> List[Message]:
        if self.on_fetch is not None:
            self.on_fetch(self)
        if self._should_fail("fetch"):
            raise FetchError(f"fetch refused for {queue_url}")
        messages = self.broker.receive(queue_url, max_messages)
        self.fetch_calls.append(len(messages))
        return messages

    def send_batch(self, queue_url: str, entries: Sequence[SendEntry]) -> SendBatchResult:
        if self._should_fail("send"):
            raise SendError(f"send refused for {queue_url}")
        self.send_calls.append(list(entries))
        successful = set()
        failed = {}
        for entry in entries:
            if entry.entry_id in self.failing_send_ids:
                failed[entry.entry_id] = "InternalError: injected"
            else:
                self.broker.put(queue_url, entry.body, entry.message_attributes)
                successful.add(entry.entry_id)
        return SendBatchResult(successful=frozenset(successful), failed=failed)

    def delete_batch(self, queue_url: str, receipt_handles: Sequence[str]) -> int:
        if self._should_fail("delete"):
            raise DeleteError(f"delete refused for {queue_url}")
        self.delete_calls.append(list(receipt_handles))
        return sum(1 for h in receipt_handles if self.broker.delete(queue_url, h))

    @property
    def non_empty_fetches(self) -> List[int]:
        return [n for n in self.fetch_calls if n > 0]


class RecordingFactory:
    """Transport factory handing each worker its own FakeTransport."""

    def __init__(self, broker: FakeBroker, make: Optional[Callable[[int, FakeBroker], FakeTransport]] = None):
        self.broker = broker
        self.make = make or (lambda i, b: FakeTransport(b))
        self.transports: List[FakeTransport] = []

    def __call__(self, config: TransferConfig) -> FakeTransport:
        transport = self.make(len(self.transports), self.broker)
        self.transports.append(transport)
        return transport

    @property
    def fetch_calls(self) -> List[int]:
        return [n for t in self.transports for n in t.fetch_calls]

    @property
    def send_calls(self) -> list:
        return [c for t in self.transports for c in t.send_calls]


@pytest.fixture
def broker() -> FakeBroker:
    return FakeBroker()


@pytest.fixture
def transport(broker) -> FakeTransport:
    return FakeTransport(broker)


@pytest.fixture
def factory(broker) -> RecordingFactory:
    return RecordingFactory(broker)


@pytest.fixture
def forward_config() -> Callable[..., TransferConfig]:
    def make(threads: int = 2) -> TransferConfig:
        return TransferConfig(source=SOURCE, mode=ForwardMode(DESTINATION), region="us-east-1", threads=threads)
    return make


@pytest.fixture
def delete_config() -> Callable[..., TransferConfig]:
    def make(threads: int = 2) -> TransferConfig:
        return TransferConfig(source=SOURCE, mode=DeleteOnlyMode(), region="us-east-1", threads=threads)
    return make


@pytest.fixture
def restore_logging():
    """Undo setup_logging(): root handlers and the levels it touches."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    levels = {name: logging.getLogger(name).level for name in ("sqstransfer", "boto3", "botocore", "urllib3")}
    root_level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(root_level)
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)
