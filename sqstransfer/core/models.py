from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

MAX_BATCH_SIZE = 10  # SQS hard limit for receive/send/delete batches

@dataclass(frozen=True)
class Message:
    message_id: str
    body: str
    receipt_handle: Optional[str]  # valid against the source queue only, until visibility expires
    message_attributes: Dict[str, Any] = field(default_factory=dict)

@dataclass(frozen=True)
class SendEntry:
    entry_id: str              # per-batch ordinal ("0".."N-1"), never reused across steps
    body: str
    message_attributes: Dict[str, Any] = field(default_factory=dict)

@dataclass(frozen=True)
class SendBatchResult:
    successful: frozenset[str]
    failed: Dict[str, str] = field(default_factory=dict)  # entry_id -> reason

    def succeeded(self, entry_id: str) -> bool:
        return entry_id in self.successful

class StopReason(str, Enum):
    DRAINED = "drained"        # empty fetch
    TERMINATED = "terminated"  # termination signal observed
    FAILED = "failed"          # fatal step error

@dataclass(frozen=True)
class WorkerResult:
    worker_id: int
    transferred: int
    batches: int
    stop_reason: StopReason
    error: Optional[str] = None
