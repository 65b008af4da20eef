"""Error types shared by the traceability core.

Every error raised by the core derives from TraceError so the API and
worker boundaries can translate them into user-visible messages.
"""

from typing import Optional


class TraceError(Exception):
    """Base class for all traceability errors."""

    def __init__(
        self,
        message: str,
        *,
        batch_id: Optional[str] = None,
        workflow_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.batch_id = batch_id
        self.workflow_id = workflow_id


class NotFoundError(TraceError):
    """A batch (or alert, or workflow) with the given id does not exist."""


class ValidationError(TraceError):
    """Required input is empty, missing or malformed."""


class InvalidTransitionError(ValidationError):
    """The requested status change is not allowed from the current status."""


class WorkflowStateError(TraceError):
    """The operation is not allowed in the workflow's current step."""


class ExternalServiceError(TraceError):
    """A collaborator call (text generation, batch source) failed or timed out."""

    def __init__(
        self,
        message: str,
        *,
        service: str = "external",
        batch_id: Optional[str] = None,
        workflow_id: Optional[str] = None,
    ):
        super().__init__(message, batch_id=batch_id, workflow_id=workflow_id)
        self.service = service
