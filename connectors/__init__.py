"""Connectors - collaborator interfaces and their implementations.

The core, the API and the Temporal activities depend ONLY on the
interfaces in connectors.base; build_text_generator picks an
implementation from settings.
"""

from connectors.base import AlertSource, BatchSource, TextGenerator
from connectors.memory import CannedTextGenerator, InMemoryAlertSource, InMemoryBatchSource
from connectors.openai_generator import OpenAITextGenerator
from core.config import Settings, TEXT_BACKEND_OFFLINE


def build_text_generator(settings: Settings) -> TextGenerator:
    """Text generator for the configured backend."""
    if settings.text_backend == TEXT_BACKEND_OFFLINE:
        return CannedTextGenerator()
    return OpenAITextGenerator(
        api_key=settings.openai_api_key,
        model=settings.llm_model,
        timeout=settings.llm_timeout_seconds,
    )


__all__ = [
    "AlertSource",
    "BatchSource",
    "TextGenerator",
    "CannedTextGenerator",
    "InMemoryAlertSource",
    "InMemoryBatchSource",
    "OpenAITextGenerator",
    "build_text_generator",
]
