"""Abstract base for knowledge providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field


class KnowledgeResponse(BaseModel):
    content: str | None = None
    citations: list[str] = Field(default_factory=list)


class BaseKnowledgeProvider(ABC):
    """A single-turn completion endpoint: one system prompt, one user prompt."""

    @abstractmethod
    async def complete(
        self,
        system: str,
        user: str,
        max_tokens: int = 500,
        temperature: float = 0.3,
        **params: Any,
    ) -> KnowledgeResponse: ...
