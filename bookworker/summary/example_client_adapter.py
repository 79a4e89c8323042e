"""Example summary client adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseSummaryClient and register the provider in SummarizerFactory.
"""

from typing import ClassVar

from bookworker.summary.client_base import BaseSummaryClient


class ExampleClientAdapter(BaseSummaryClient):
    """Example adapter that returns a fixed summary. No network calls."""

    DEFAULT_RESPONSE: ClassVar[str] = (
        "Resumen de ejemplo: el libro narra una historia en varios capítulos."
    )

    async def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
    ) -> str:
        _ = model, temperature, system_prompt, user_prompt
        return self.DEFAULT_RESPONSE
