"""In-memory collaborators for development and demos.

InMemoryBatchSource and InMemoryAlertSource stand in for the backend
service of record; they simulate network latency like the real thing.
CannedTextGenerator answers prompts without calling a model, for running
the dashboard offline.
"""

import asyncio
from typing import Dict, Iterable, List

from connectors.base import AlertSource, BatchSource, TextGenerator
from core.audit.history import append
from core.errors import NotFoundError, ValidationError
from core.models.alerts import Alert
from core.models.batch import Batch, BatchStatus, HistoryEvent
from core.observability.logging import get_logger


logger = get_logger(__name__)


async def _simulate_latency(latency_ms: float) -> None:
    if latency_ms > 0:
        await asyncio.sleep(latency_ms / 1000.0)


class InMemoryBatchSource(BatchSource):
    """Batch store kept in a dict keyed by batch id.

    Batches are immutable values, so handing them out never exposes the
    store to outside mutation.
    """

    def __init__(self, batches: Iterable[Batch] = (), latency_ms: float = 0.0):
        self._batches: Dict[str, Batch] = {b.id: b for b in batches}
        self.latency_ms = latency_ms

    async def list_batches(self) -> List[Batch]:
        await _simulate_latency(self.latency_ms)
        return list(self._batches.values())

    async def get_batch(self, batch_id: str) -> Batch:
        await _simulate_latency(self.latency_ms)
        try:
            return self._batches[batch_id]
        except KeyError:
            raise NotFoundError(f"Batch {batch_id} not found", batch_id=batch_id)

    async def update_status(self, batch_id: str, status: BatchStatus, event: HistoryEvent) -> Batch:
        logger.info(f"Updating batch {batch_id} to {status.value}")
        current = self._batches.get(batch_id)
        if current is None:
            raise NotFoundError(f"Batch {batch_id} not found", batch_id=batch_id)

        updated = append(current, event).model_copy(update={"status": status})
        await _simulate_latency(self.latency_ms)
        self._batches[batch_id] = updated
        return updated

    async def add_batch(self, batch: Batch) -> Batch:
        await _simulate_latency(self.latency_ms)
        if batch.id in self._batches:
            raise ValidationError(f"Batch {batch.id} already exists", batch_id=batch.id)
        self._batches[batch.id] = batch
        return batch


class InMemoryAlertSource(AlertSource):
    """Alert feed backed by a fixed list."""

    def __init__(self, alerts: Iterable[Alert] = (), latency_ms: float = 0.0):
        self._alerts: List[Alert] = list(alerts)
        self.latency_ms = latency_ms

    async def list_alerts(self) -> List[Alert]:
        await _simulate_latency(self.latency_ms)
        return list(self._alerts)


class CannedTextGenerator(TextGenerator):
    """Offline generator that echoes the prompt back as a draft."""

    name = "canned"

    def __init__(self, latency_ms: float = 0.0):
        self.latency_ms = latency_ms
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        await _simulate_latency(self.latency_ms)
        body = "\n".join(line.strip() for line in prompt.strip().splitlines() if line.strip())
        return f"[DRAFT - generated offline]\n\n{body}"
