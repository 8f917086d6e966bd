"""Global configuration, loaded from environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings


class HyperEvoSettings(BaseSettings):
    workspace_dir: Path = Path(".hyperevo")
    db_path: str = ".hyperevo/hyperevo.db"
    log_level: str = "INFO"
    api_host: str = "127.0.0.1"
    api_port: int = 8430

    # Web-search knowledge endpoint (knowledge absorption, task discovery)
    search_api_key: str = ""
    search_api_url: str = "https://api.perplexity.ai/chat/completions"
    search_model: str = "sonar"

    # General LLM gateway (visual intelligence)
    gateway_api_key: str = ""
    gateway_api_url: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    gateway_model: str = "google/gemini-2.5-flash"
    gateway_provider: str = "openai"  # "openai" (compatible gateway) or "anthropic"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"

    http_timeout_seconds: float = 60.0
    persist_service_logs: bool = True

    model_config = {"env_prefix": "HYPEREVO_"}


settings = HyperEvoSettings()
