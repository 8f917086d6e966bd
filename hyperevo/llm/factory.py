"""Build knowledge providers from settings. A provider without credentials is None."""

from __future__ import annotations

from hyperevo.config import HyperEvoSettings
from hyperevo.llm.anthropic import AnthropicProvider
from hyperevo.llm.base import BaseKnowledgeProvider
from hyperevo.llm.gateway import GatewayProvider
from hyperevo.llm.search import SearchProvider


def build_search_provider(config: HyperEvoSettings) -> BaseKnowledgeProvider | None:
    if not config.search_api_key:
        return None
    return SearchProvider(
        api_key=config.search_api_key,
        url=config.search_api_url,
        model=config.search_model,
        timeout=config.http_timeout_seconds,
    )


def build_gateway_provider(config: HyperEvoSettings) -> BaseKnowledgeProvider | None:
    if config.gateway_provider == "anthropic":
        if not config.anthropic_api_key:
            return None
        return AnthropicProvider(api_key=config.anthropic_api_key, model=config.anthropic_model)
    if not config.gateway_api_key:
        return None
    return GatewayProvider(
        api_key=config.gateway_api_key,
        url=config.gateway_api_url,
        model=config.gateway_model,
        timeout=config.http_timeout_seconds,
    )
