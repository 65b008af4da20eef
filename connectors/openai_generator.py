"""OpenAI-backed text generator.

Calls the chat completions API once per prompt. Client-side retries are
disabled: a failed draft is surfaced to the operator, who retries by hand.
"""

from typing import Optional

import openai

from connectors.base import TextGenerator
from core.errors import ExternalServiceError
from core.observability.logging import get_logger


logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a drafting assistant for a government regulator overseeing an "
    "Ayurvedic herbal supply chain. Reply with the requested document only."
)


class OpenAITextGenerator(TextGenerator):
    """Text generation through `openai.AsyncOpenAI`."""

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-4o",
        timeout: float = 60.0,
        temperature: float = 0.4,
        client: Optional[openai.AsyncOpenAI] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self._client = client

    def _get_client(self) -> openai.AsyncOpenAI:
        """Create the client on first use so a missing key only fails drafting calls."""
        if self._client is None:
            if not self.api_key:
                raise ExternalServiceError(
                    "API key is not configured. Set OPENAI_API_KEY or use TRACE_TEXT_BACKEND=offline.",
                    service=self.name,
                )
            self._client = openai.AsyncOpenAI(
                api_key=self.api_key,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    async def generate(self, prompt: str) -> str:
        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
            )
        except openai.RateLimitError as e:
            raise ExternalServiceError(f"Text generation quota exceeded: {e}", service=self.name) from e
        except openai.APITimeoutError as e:
            raise ExternalServiceError("Text generation timed out", service=self.name) from e
        except openai.APIError as e:
            raise ExternalServiceError(f"Text generation failed: {e}", service=self.name) from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ExternalServiceError("Text generation returned an empty response", service=self.name)
        return content
