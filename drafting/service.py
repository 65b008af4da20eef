"""Drafting service.

Builds prompts from batch/workflow context, calls the text generator once,
and hands back the text unchanged. There is no automatic retry; failures
surface as ExternalServiceError for the operator to retry.
"""

import time
from typing import Sequence

from connectors.base import TextGenerator
from core.errors import ExternalServiceError, TraceError
from core.models.alerts import Alert
from core.models.batch import Batch
from core.observability.logging import get_logger, log_external_call
from core.observability.metrics import record_call_completed, record_call_failed, record_call_started
from drafting import prompts


logger = get_logger(__name__)


class DraftingService:
    """Produces AI-assisted drafts for regulator workflows."""

    def __init__(self, generator: TextGenerator):
        self.generator = generator

    async def recall_communication(self, batch: Batch, reason: str) -> str:
        """Bilingual (English/Hindi) recall notification for a batch."""
        prompt = prompts.recall_communication_prompt(batch, reason)
        return await self._generate("recall_communication", prompt, batch_id=batch.id)

    async def rule_directive(self, topic: str) -> str:
        """Official directive text for a new compliance rule."""
        return await self._generate("rule_directive", prompts.rule_directive_prompt(topic))

    async def upgrade_plan(self, reason: str) -> str:
        """Technical plan for a smart-contract upgrade."""
        return await self._generate("upgrade_plan", prompts.upgrade_plan_prompt(reason))

    async def inspection_notes(self, batch: Batch, alerts: Sequence[Alert]) -> str:
        """Prioritized inspection notes for a batch, informed by recent alerts."""
        prompt = prompts.inspection_notes_prompt(batch, alerts)
        return await self._generate("inspection_notes", prompt, batch_id=batch.id)

    async def _generate(self, call_name: str, prompt: str, batch_id: str = None) -> str:
        record_call_started(call_name)
        start = time.monotonic()
        try:
            text = await self.generator.generate(prompt)
        except TraceError as e:
            record_call_failed(call_name, e.message)
            log_external_call(call_name, error=e.message, generator=self.generator.name)
            if isinstance(e, ExternalServiceError):
                e.batch_id = e.batch_id or batch_id
                raise
            raise ExternalServiceError(e.message, service=self.generator.name, batch_id=batch_id) from e
        except Exception as e:
            record_call_failed(call_name, str(e))
            log_external_call(call_name, error=str(e), generator=self.generator.name)
            raise ExternalServiceError(
                f"Failed to generate {call_name.replace('_', ' ')}: {e}",
                service=self.generator.name,
                batch_id=batch_id,
            ) from e

        duration_ms = (time.monotonic() - start) * 1000
        record_call_completed(call_name, duration_ms)
        log_external_call(call_name, duration_ms=duration_ms, generator=self.generator.name)
        return text
