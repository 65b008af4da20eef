"""Batch history (audit log) operations.

A batch's history is append-only: events are never reordered or removed.
Appending returns a new batch value and leaves the input untouched.
"""

import hashlib
import json
from datetime import datetime
from typing import Any, Optional

from core.models.batch import Batch, HistoryEvent


def append(batch: Batch, event: HistoryEvent) -> Batch:
    """Return a copy of `batch` with `event` appended to its history."""
    return batch.model_copy(update={"history": batch.history + (event,)})


def ledger_reference(
    batch_id: str,
    action: str,
    timestamp: datetime,
    details: Optional[Any] = None,
) -> str:
    """Derive a ledger reference for a history event.

    The reference is opaque to the rest of the system; it is deterministic
    so the same event always maps to the same reference.
    """
    if hasattr(details, "model_dump"):
        details = details.model_dump(mode="json")
    block = json.dumps({
        "batch_id": batch_id,
        "action": action,
        "timestamp": timestamp.isoformat(),
        "details": details,
    }, sort_keys=True, default=str)
    return "0x" + hashlib.sha256(block.encode("utf-8")).hexdigest()[:16]
