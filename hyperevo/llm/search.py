"""Web-search knowledge provider (Perplexity-style chat completions).

Responses carry the answer text and, when the endpoint returns them, the
citation URLs it searched.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from hyperevo.exceptions import KnowledgeAPIError
from hyperevo.llm.base import BaseKnowledgeProvider, KnowledgeResponse

_logger = logging.getLogger(__name__)


class SearchProvider(BaseKnowledgeProvider):
    def __init__(
        self,
        api_key: str,
        url: str = "https://api.perplexity.ai/chat/completions",
        model: str = "sonar",
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
        max_tokens: int = 500,
        temperature: float = 0.3,
        **params: Any,
    ) -> KnowledgeResponse:
        payload: dict[str, Any] = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
            **params,
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    self._url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
        except httpx.HTTPError as e:
            raise KnowledgeAPIError(f"Search API request failed: {type(e).__name__}: {e}") from e

        if resp.status_code >= 400:
            raise KnowledgeAPIError(
                f"Search API error: {resp.status_code}", status_code=resp.status_code,
            )
        data = resp.json()

        choices = data.get("choices") or [{}]
        content = (choices[0].get("message") or {}).get("content")
        citations = [str(c) for c in data.get("citations") or []]
        _logger.debug("Search completion: %d chars, %d citations", len(content or ""), len(citations))
        return KnowledgeResponse(content=content, citations=citations)
