"""Collaborator interfaces.

The core depends only on these interfaces:
- BatchSource: system of record for batches
- AlertSource: external alert feed
- TextGenerator: opaque generative-text capability

Implementations live beside this module (in-memory mocks, OpenAI).
All calls are asynchronous and may fail with a TraceError subclass.
"""

from abc import ABC, abstractmethod
from typing import List

from core.models.alerts import Alert
from core.models.batch import Batch, BatchStatus, HistoryEvent


class BatchSource(ABC):
    """System of record for batches."""

    @abstractmethod
    async def list_batches(self) -> List[Batch]:
        """Return every known batch.

        Raises:
            ExternalServiceError: if the source cannot be reached
        """
        pass

    @abstractmethod
    async def get_batch(self, batch_id: str) -> Batch:
        """Return one batch.

        Raises:
            NotFoundError: if no batch has that id
        """
        pass

    @abstractmethod
    async def update_status(self, batch_id: str, status: BatchStatus, event: HistoryEvent) -> Batch:
        """Set a batch's status and append `event` to its history in one step.

        Returns:
            The updated batch as now recorded by the source

        Raises:
            NotFoundError: if no batch has that id
            ExternalServiceError: if the write fails
        """
        pass

    @abstractmethod
    async def add_batch(self, batch: Batch) -> Batch:
        """Record a newly ingested batch.

        Raises:
            ValidationError: if a batch with the same id already exists
        """
        pass


class AlertSource(ABC):
    """External alert feed (read-only)."""

    @abstractmethod
    async def list_alerts(self) -> List[Alert]:
        pass


class TextGenerator(ABC):
    """Generative text capability: prompt in, text out."""

    name: str = "text_generator"

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Generate text for a prompt.

        Raises:
            ExternalServiceError: on transport, quota or configuration failure
        """
        pass
