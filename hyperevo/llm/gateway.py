"""OpenAI-compatible LLM gateway provider."""

from __future__ import annotations

from typing import Any

import httpx

from hyperevo.exceptions import KnowledgeAPIError
from hyperevo.llm.base import BaseKnowledgeProvider, KnowledgeResponse


class GatewayProvider(BaseKnowledgeProvider):
    def __init__(
        self,
        api_key: str,
        url: str = "https://ai.gateway.lovable.dev/v1/chat/completions",
        model: str = "google/gemini-2.5-flash",
        timeout: float = 60.0,
    ) -> None:
        self._api_key = api_key
        self._url = url
        self._model = model
        self._timeout = timeout

    async def complete(
        self,
        system: str,
        user: str,
        max_tokens: int = 800,
        temperature: float = 0.4,
        **params: Any,
    ) -> KnowledgeResponse:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    self._url,
                    json={
                        "model": self._model,
                        "messages": [
                            {"role": "system", "content": system},
                            {"role": "user", "content": user},
                        ],
                        "max_tokens": max_tokens,
                        "temperature": temperature,
                        **params,
                    },
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
        except httpx.HTTPError as e:
            raise KnowledgeAPIError(f"Gateway request failed: {type(e).__name__}: {e}") from e

        if resp.status_code >= 400:
            raise KnowledgeAPIError(
                f"Gateway API error: {resp.status_code}", status_code=resp.status_code,
            )
        choices = resp.json().get("choices") or [{}]
        return KnowledgeResponse(content=(choices[0].get("message") or {}).get("content"))
