# core/openai_client.py
from __future__ import annotations
from typing import Any, Dict, List, Optional

from openai import AsyncAzureOpenAI, AsyncOpenAI

from core.config import Config, cfg


def build_client(config: Config = cfg) -> AsyncOpenAI:
    """Azure client when an Azure endpoint is configured, plain OpenAI otherwise."""
    if config.use_azure:
        return AsyncAzureOpenAI(
            api_key=config.azure_key,
            api_version=config.azure_api_version,
            azure_endpoint=config.azure_endpoint,
        )
    return AsyncOpenAI(
        api_key=config.openai_key,
        organization=config.openai_organization,
        base_url=config.openai_base_url,
    )


def first_choice_text(response: Any) -> Optional[str]:
    """Text of the first candidate, or None for a null response / no candidates."""
    if response is None:
        return None
    choices = getattr(response, "choices", None)
    if not choices:
        return None
    return choices[0].message.content


class CompletionClient:
    """
    Wrapper for Chat Completions (new SDK interface).
    Errors propagate; retries are left to the SDK.
    """

    def __init__(self, client: AsyncOpenAI):
        self.client = client

    async def submit(self, model: str, messages: List[Dict[str, str]], max_tokens: Optional[int] = None):
        kwargs: Dict[str, Any] = {"model": model, "messages": messages}
        if max_tokens:
            kwargs["max_tokens"] = max_tokens
        return await self.client.chat.completions.create(**kwargs)
