"""Anthropic Claude as an alternative gateway backend."""

from __future__ import annotations

from typing import Any

import anthropic

from hyperevo.exceptions import KnowledgeAPIError
from hyperevo.llm.base import BaseKnowledgeProvider, KnowledgeResponse


class AnthropicProvider(BaseKnowledgeProvider):
    def __init__(self, api_key: str, model: str = "claude-sonnet-4-20250514"):
        self._client = anthropic.AsyncAnthropic(api_key=api_key)
        self._model = model

    async def complete(
        self,
        system: str,
        user: str,
        max_tokens: int = 800,
        temperature: float = 0.4,
        **params: Any,
    ) -> KnowledgeResponse:
        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system,
                messages=[{"role": "user", "content": user}],
            )
        except anthropic.APIStatusError as e:
            raise KnowledgeAPIError(
                f"Anthropic API error: {e.status_code}", status_code=e.status_code,
            ) from e
        except anthropic.APIError as e:
            raise KnowledgeAPIError(f"Anthropic request failed: {type(e).__name__}: {e}") from e

        text = "".join(block.text for block in response.content if block.type == "text")
        return KnowledgeResponse(content=text or None)
